"""Lock file parsing and diffing.

Turns Composer and Yarn lock files (or a Composer-style upgrade listing) into
the list of Upgrade records the report is built from.
"""

from __future__ import annotations

import json
import re

from .models import Ecosystem, Upgrade
from .versions import max_version, strip_v

_UPGRADE_LINE = re.compile(
    r"^\s*-\s+(?:(?:Upgrading|Downgrading|Updating)\s+)?"
    r"(?P<package>\S+)\s+\((?P<from>[^\s()]+)\s+=>\s+(?P<to>[^\s()]+)\)"
)
# Only the block's own field (two-space indent), never nested dependency entries
_YARN_VERSION = re.compile(r'^  version:?\s+"?(?P<version>[^"\s]+)"?\s*$')


def parse_upgrade_listing(text: str) -> list[Upgrade]:
    """Extract upgrades from a line-oriented listing.

    Recognizes lines of the form ``- vendor/package (1.0.0 => 1.1.0)`` as
    printed by ``composer update``. Anything else is ignored, so empty or
    unrelated input simply yields an empty list.

    Example:
        "  - symfony/console (v6.4.1 => v6.4.3)"
        → Upgrade(package="symfony/console", from_version="6.4.1", to_version="6.4.3")
    """
    upgrades: list[Upgrade] = []
    for line in text.splitlines():
        match = _UPGRADE_LINE.match(line)
        if match:
            upgrades.append(
                Upgrade(
                    package=match["package"],
                    from_version=strip_v(match["from"]),
                    to_version=strip_v(match["to"]),
                )
            )
    return upgrades


def _yarn_block_names(header: str) -> list[str]:
    """Package names declared by a yarn.lock block header.

    A header lists one or more specifiers, quoted or not:
    ``"@babel/core@^7.0.0", "@babel/core@^7.1.0":`` → ["@babel/core"]
    """
    names: list[str] = []
    for spec in header.rstrip()[:-1].split(","):
        spec = spec.strip().strip('"')
        if not spec:
            continue
        # The version range starts at the first "@" after a possible scope
        at = spec.find("@", 1)
        name = spec[:at] if at > 0 else spec
        if name not in names:
            names.append(name)
    return names


def parse_yarn_lock(content: str) -> dict[str, str]:
    """Parse a yarn.lock (classic or berry) into a package → version map.

    When a package is locked more than once (different ranges resolving to
    different versions), the greatest version wins.
    """
    versions: dict[str, str] = {}
    names: list[str] = []

    for line in content.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue

        if not line[0].isspace():
            names = _yarn_block_names(line) if line.rstrip().endswith(":") else []
            if "__metadata" in names:
                names = []
            continue

        if not names:
            continue

        match = _YARN_VERSION.match(line)
        if match:
            version = match["version"]
            for name in names:
                versions[name] = (
                    max_version(versions[name], version) if name in versions else version
                )
            names = []

    return versions


def parse_composer_lock(content: str) -> dict[str, str]:
    """Parse a composer.lock into a package → version map.

    Both ``packages`` and ``packages-dev`` are included. Versions are
    normalized by dropping a leading "v". Invalid JSON yields an empty map.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return {}
    if not isinstance(data, dict):
        return {}

    versions: dict[str, str] = {}
    for key in ("packages", "packages-dev"):
        entries = data.get(key)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name, version = entry.get("name"), entry.get("version")
            if isinstance(name, str) and isinstance(version, str):
                versions[name] = strip_v(version)
    return versions


def diff_versions(old: dict[str, str], new: dict[str, str]) -> list[Upgrade]:
    """List packages present in both maps whose version changed.

    Added and removed packages have no "from" or "to" side and are skipped.
    The result is sorted by package name.
    """
    return [
        Upgrade(package=name, from_version=old[name], to_version=new[name])
        for name in sorted(old.keys() & new.keys())
        if old[name] != new[name]
    ]


def upgrades_between(old_content: str, new_content: str, ecosystem: Ecosystem) -> list[Upgrade]:
    """Diff two versions of a Composer ("composer") or Yarn ("npm") lock file."""
    parse = parse_composer_lock if ecosystem == "composer" else parse_yarn_lock
    return diff_versions(parse(old_content), parse(new_content))
