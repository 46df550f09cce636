"""Version parsing and comparison utilities.

Handles conversion between lock file / release tag version strings and semver
objects, with special handling for incomplete version strings
(e.g., "1.0" → "1.0.0") and prerelease suffixes.
"""

from __future__ import annotations

import re

import semver

_LEADING_V = re.compile(r"^v(?=\d)")


def strip_v(version_str: str) -> str:
    """Drop a single leading "v" when it precedes a digit ("v6.4.1" → "6.4.1")."""
    return _LEADING_V.sub("", version_str)


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2-beta.1" → "1.2.0-beta.1"
    - "1.2.3" → "1.2.3"

    Only the first 3 numeric components are used (major.minor.patch).
    Prerelease identifiers are kept so that "1.2.3-beta.1" < "1.2.3";
    build metadata is dropped.

    Raises:
        ValueError: If the string is not a version.
    """
    version_str = strip_v(version_str.strip()).split("+", 1)[0]
    core, sep, prerelease = version_str.partition("-")
    parts = core.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]) + sep + prerelease)


def try_parse_version(version_str: str) -> semver.Version | None:
    """Like parse_version(), but return None for strings that are not versions."""
    try:
        return parse_version(version_str)
    except (ValueError, TypeError):
        return None


def max_version(a: str, b: str) -> str:
    """Return whichever of two version strings is greater.

    Unparseable versions lose against parseable ones; between two
    unparseable versions the second one wins.
    """
    va, vb = try_parse_version(a), try_parse_version(b)
    if va is None:
        return b
    if vb is None:
        return a
    return a if va > vb else b
