"""Tests for upgrade_report.releases."""

from __future__ import annotations

from upgrade_report.models import Release
from upgrade_report.releases import filter_releases_in_range, release_version


def _releases(*tags: str) -> list[Release]:
    return [Release(tag_name=tag, body=f"notes for {tag}") for tag in tags]


def _tags(releases: list[Release]) -> list[str]:
    return [r.tag_name for r in releases]


class TestFilterReleasesInRange:
    def test_selects_range(self) -> None:
        releases = _releases("v1.0.0", "v1.1.0", "v1.2.0", "v1.3.0", "v2.0.0")

        result = filter_releases_in_range(releases, "1.0.0", "1.3.0")

        assert _tags(result) == ["v1.1.0", "v1.2.0", "v1.3.0"]

    def test_excludes_from_version(self) -> None:
        result = filter_releases_in_range(_releases("v1.0.0", "v1.1.0"), "1.0.0", "1.1.0")

        assert _tags(result) == ["v1.1.0"]

    def test_includes_to_version(self) -> None:
        result = filter_releases_in_range(_releases("v1.0.0", "v1.1.0"), "0.9.0", "1.0.0")

        assert _tags(result) == ["v1.0.0"]

    def test_sorts_ascending(self) -> None:
        releases = _releases("v1.3.0", "v1.1.0", "v1.2.0")

        result = filter_releases_in_range(releases, "1.0.0", "1.3.0")

        assert _tags(result) == ["v1.1.0", "v1.2.0", "v1.3.0"]

    def test_semver_ordering_not_lexical(self) -> None:
        releases = _releases("v1.10.0", "v1.9.0", "v1.2.0")

        result = filter_releases_in_range(releases, "1.1.0", "1.10.0")

        assert _tags(result) == ["v1.2.0", "v1.9.0", "v1.10.0"]

    def test_prereleases_precede_release(self) -> None:
        releases = _releases("v2.0.0", "v2.0.0-rc.1", "v2.0.0-beta.2", "v1.5.0")

        result = filter_releases_in_range(releases, "1.5.0", "2.0.0")

        assert _tags(result) == ["v2.0.0-beta.2", "v2.0.0-rc.1", "v2.0.0"]

    def test_no_matches(self) -> None:
        assert filter_releases_in_range(_releases("v1.0.0", "v2.0.0"), "1.0.0", "1.5.0") == []

    def test_empty_input(self) -> None:
        assert filter_releases_in_range([], "1.0.0", "2.0.0") == []

    def test_unprefixed_tags(self) -> None:
        releases = _releases("3.0.0", "3.1.0", "3.2.0")

        result = filter_releases_in_range(releases, "3.0.0", "3.1.0", tag_prefix="")

        assert _tags(result) == ["3.1.0"]

    def test_unprefixed_repo_ignores_v_tags(self) -> None:
        releases = _releases("1.1.0", "v1.1.0", "v1.2.0")

        result = filter_releases_in_range(releases, "1.0.0", "2.0.0", tag_prefix="")

        assert _tags(result) == ["1.1.0"]

    def test_skips_foreign_tag_formats(self) -> None:
        releases = _releases("v1.1.0", "nightly", "docs-v1.2.0", "@scope/pkg@1.2.0", "1.2.0")

        result = filter_releases_in_range(releases, "1.0.0", "2.0.0")

        assert _tags(result) == ["v1.1.0"]

    def test_unparseable_bounds(self) -> None:
        assert filter_releases_in_range(_releases("v1.0.0"), "dev-main", "1.0.0") == []


class TestReleaseVersion:
    def test_strips_prefix(self) -> None:
        assert release_version(Release(tag_name="v1.2.3"), "v") == "1.2.3"

    def test_missing_prefix(self) -> None:
        assert release_version(Release(tag_name="1.2.3"), "v") is None

    def test_empty_prefix(self) -> None:
        assert release_version(Release(tag_name="1.2.3"), "") == "1.2.3"

    def test_empty_prefix_rejects_v_tag(self) -> None:
        assert release_version(Release(tag_name="v1.2.3"), "") is None
