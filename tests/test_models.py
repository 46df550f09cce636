"""Tests for upgrade_report.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from upgrade_report.models import (
    PackageNotes,
    PackageSource,
    ReconcileResult,
    Release,
    SyncSummary,
    Upgrade,
    VendorSection,
)


class TestPackageSource:
    def test_default_tag_prefix(self) -> None:
        assert PackageSource(repo="owner/repo").tag_prefix == "v"

    def test_rejects_other_prefixes(self) -> None:
        with pytest.raises(ValidationError):
            PackageSource(repo="owner/repo", tag_prefix="release-")


class TestRelease:
    def test_from_api_payload(self) -> None:
        release = Release.model_validate(
            {"tag_name": "v1.0.0", "body": None, "html_url": "https://x", "draft": False}
        )
        assert release.tag_name == "v1.0.0"
        assert release.body is None


class TestPackageNotes:
    def test_defaults(self) -> None:
        notes = PackageNotes(upgrade=Upgrade(package="a/b", from_version="1.0.0", to_version="2.0.0"))
        assert notes.source is None
        assert notes.releases == []


class TestVendorSection:
    def test_render(self) -> None:
        section = VendorSection(vendor="@types", markdown="# @types\n")
        assert section.render() == "<!-- vendor-section:@types -->\n# @types\n"


class TestReconcileResult:
    def test_writes(self) -> None:
        result = ReconcileResult(created=["a"], updated=["b", "c"], deleted=["d"])
        assert result.writes == 4
        assert ReconcileResult(up_to_date=True).writes == 0


class TestSyncSummary:
    def test_ok(self) -> None:
        assert SyncSummary(results={"yarn.lock": None}).ok
        assert not SyncSummary(failed=["composer.lock"]).ok
