"""Markdown report assembly.

Builds one section per vendor out of the upgrades in a lock file diff. Each
section lists the vendor's upgraded packages with the notes of every release
in between, and starts with a ``<!-- vendor-section:... -->`` marker so the
report can be split back into per-vendor PR comments.
"""

from __future__ import annotations

import re

from .models import Ecosystem, PackageNotes, Upgrade, VendorSection
from .registry import RegistryClient, vendor_name
from .releases import filter_releases_in_range
from .shell import info

GITHUB_URL = "https://github.com"
# Exit status of `generate` when the lock files differ in no package version
EXIT_NO_UPGRADES = 3

_INLINE_LINK = re.compile(
    r"(?P<label>!?\[[^\]]*\])\((?P<target>[^()\s]+)(?P<title>\s+\"[^\"]*\")?\)"
)
_ABSOLUTE_URL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_SECTION_MARKER = re.compile(r"<!-- vendor-section:(?P<vendor>.+?) -->\n?")
_TOP_HEADING = re.compile(r"^(# .+)$", re.MULTILINE)


def _is_relative(target: str) -> bool:
    return not (
        _ABSOLUTE_URL.match(target)
        or target.startswith("#")
        or target.lower().startswith("mailto:")
    )


def rewrite_relative_links(markdown: str, repo: str, ref: str) -> str:
    """Point relative links in release notes at the repository on GitHub.

    Release notes are written relative to the repository, so a link such as
    ``[CHANGELOG](CHANGELOG.md)`` is broken once shown on another project's
    pull request. Relative targets become blob URLs at ``ref``, or raw URLs
    for images so they render inline; absolute, fragment and mailto links
    are left alone.

    Example:
        rewrite_relative_links("[x](/docs/a.md)", "o/r", "v1.0.0")
        → "[x](https://github.com/o/r/blob/v1.0.0/docs/a.md)"
    """

    def replace(match: re.Match[str]) -> str:
        target = match["target"]
        if not _is_relative(target):
            return match[0]
        path = target[1:] if target.startswith("/") else target
        kind = "raw" if match["label"].startswith("!") else "blob"
        url = f"{GITHUB_URL}/{repo}/{kind}/{ref}/{path}"
        return f"{match['label']}({url}{match['title'] or ''})"

    return _INLINE_LINK.sub(replace, markdown)


def append_file_path(markdown: str, file_path: str) -> str:
    """Suffix every top-level heading with the lock file it came from.

    Used when several lock files of the same ecosystem are reported on one
    pull request, so readers can tell the vendor comments apart.
    """
    return _TOP_HEADING.sub(lambda m: f"{m[1]} (`{file_path}`)", markdown)


def _package_markdown(notes: PackageNotes) -> list[str]:
    upgrade = notes.upgrade
    lines = [
        f"## {upgrade.package} `{upgrade.from_version}` → `{upgrade.to_version}`",
        "",
    ]

    if notes.source is None:
        lines += ["_No GitHub repository found for this package._", ""]
        return lines

    repo = notes.source.repo
    if not notes.releases:
        prefix = notes.source.tag_prefix
        lines += [
            f"_No GitHub releases found between `{upgrade.from_version}` and "
            f"`{upgrade.to_version}`._ "
            f"[Compare changes]({GITHUB_URL}/{repo}/compare/"
            f"{prefix}{upgrade.from_version}...{prefix}{upgrade.to_version})",
            "",
        ]
        return lines

    for release in notes.releases:
        tag = release.tag_name
        lines.append(f"### [{tag}]({release.html_url})" if release.html_url else f"### {tag}")
        lines.append("")
        body = (release.body or "").strip()
        lines.append(rewrite_relative_links(body, repo, tag) if body else "_No release notes._")
        lines.append("")
    return lines


def assemble_vendor_section(
    vendor: str,
    packages: list[PackageNotes],
    file_path: str | None = None,
) -> VendorSection:
    """Render the markdown section for one vendor.

    Args:
        vendor: Vendor name shared by all packages.
        packages: Per-package upgrade, source and in-range releases.
        file_path: Lock file path to append to the top-level heading, for
                   repositories with several lock files of one ecosystem.
    """
    heading = f"# {vendor}"
    if file_path:
        heading = append_file_path(heading, file_path)

    lines = [heading, ""]
    for notes in packages:
        lines += _package_markdown(notes)
    return VendorSection(vendor=vendor, markdown="\n".join(lines).rstrip() + "\n")


def render_report(sections: list[VendorSection]) -> str:
    """Concatenate vendor sections into the full report."""
    return "".join(section.render() for section in sections)


def split_report(report: str) -> list[VendorSection]:
    """Cut a report back into its vendor sections.

    Inverse of render_report(). Text before the first marker, and sections
    with no content, are dropped.
    """
    sections: list[VendorSection] = []
    for part in re.split(r"(?=<!-- vendor-section:)", report):
        match = _SECTION_MARKER.match(part)
        if not match or not part[match.end():].strip():
            continue
        sections.append(VendorSection(vendor=match["vendor"], markdown=part[match.end():]))
    return sections


def collect_package_notes(
    upgrades: list[Upgrade],
    ecosystem: Ecosystem,
    client: RegistryClient,
) -> dict[str, list[PackageNotes]]:
    """Resolve sources and in-range releases, grouped by vendor.

    Packages whose registry entry can't be resolved are kept without
    release notes; every upgrade ends up in exactly one vendor group.
    """
    by_vendor: dict[str, list[PackageNotes]] = {}
    for upgrade in upgrades:
        package = upgrade.package
        if ecosystem == "composer":
            source = client.packagist_source(package)
        else:
            source = client.npm_source(package)

        releases = []
        if source is None:
            info(f"  {package}: no GitHub repository found")
        else:
            releases = filter_releases_in_range(
                client.releases(source.repo),
                upgrade.from_version,
                upgrade.to_version,
                source.tag_prefix,
            )
            info(
                f"  {package} {upgrade.from_version} → {upgrade.to_version}: "
                f"{len(releases)} release(s) from {source.repo}"
            )

        by_vendor.setdefault(vendor_name(package), []).append(
            PackageNotes(upgrade=upgrade, source=source, releases=releases)
        )
    return by_vendor


def build_sections(
    upgrades: list[Upgrade],
    ecosystem: Ecosystem,
    client: RegistryClient,
    file_path: str | None = None,
) -> list[VendorSection]:
    """Build the vendor sections for a list of upgrades, sorted by vendor."""
    by_vendor = collect_package_notes(upgrades, ecosystem, client)
    return [
        assemble_vendor_section(vendor, by_vendor[vendor], file_path)
        for vendor in sorted(by_vendor)
    ]
