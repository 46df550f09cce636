"""Release selection.

Picks the releases a version bump walked through, so the report shows the
notes for every release after the old version up to the new one.
"""

from __future__ import annotations

from .models import Release
from .versions import strip_v, try_parse_version


def release_version(release: Release, tag_prefix: str = "v") -> str | None:
    """Return the bare version of a release tag, or None if it lacks the prefix.

    With an empty prefix, "v"-prefixed tags belong to another tag format and
    are rejected as well.
    """
    if not release.tag_name.startswith(tag_prefix):
        return None
    bare = release.tag_name[len(tag_prefix):]
    if strip_v(bare) != bare:
        return None
    return bare


def filter_releases_in_range(
    releases: list[Release],
    from_version: str,
    to_version: str,
    tag_prefix: str = "v",
) -> list[Release]:
    """Select releases with from_version < version <= to_version.

    Versions are compared by semver precedence, so "1.10.0" sorts after
    "1.9.0" and "2.0.0-rc.1" before "2.0.0". Tags that don't follow the
    repository's tag format (wrong prefix, not a version) are skipped.

    Args:
        releases: Releases in any order, as returned by GitHub.
        from_version: Version before the upgrade (excluded).
        to_version: Version after the upgrade (included).
        tag_prefix: "v" or "" depending on the repository's tag convention.

    Returns:
        Matching releases sorted by version, oldest first.

    Example:
        Tags v1.0.0 … v2.0.0 with range ("1.0.0", "1.3.0")
        → [v1.1.0, v1.2.0, v1.3.0]
    """
    lower = try_parse_version(from_version)
    upper = try_parse_version(to_version)
    if lower is None or upper is None:
        return []

    selected = []
    for release in releases:
        bare = release_version(release, tag_prefix)
        version = try_parse_version(bare) if bare else None
        if version is not None and lower < version <= upper:
            selected.append((version, release))

    selected.sort(key=lambda pair: pair[0])
    return [release for _, release in selected]

