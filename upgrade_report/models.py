"""Data models for the upgrade report.

These Pydantic models represent the values passed between the lock diff,
registry resolution, report assembly and comment reconciliation stages.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field

Ecosystem = Literal["composer", "npm"]

MARKER_PATTERN = re.compile(
    r"^<!-- (?P<report_type>[\w.@/-]+?)-upgrade-report:(?P<vendor>[\w.@/-]+) "
    r"(?P<content_hash>[a-f0-9]+) total:(?P<total>\d+) -->$"
)


class Upgrade(BaseModel):
    """A single dependency whose locked version changed.

    Attributes:
        package: Package identifier as written in the lock file
                 (e.g., "symfony/console" or "@babel/core").
        from_version: Version locked before the change.
        to_version: Version locked after the change.
    """

    package: str
    from_version: str
    to_version: str


class PackageSource(BaseModel):
    """Where a package's releases live.

    Attributes:
        repo: GitHub "owner/name" slug.
        tag_prefix: Literal prefix of release tags ahead of the version.
    """

    repo: str
    tag_prefix: Literal["", "v"] = "v"


class Release(BaseModel):
    """A GitHub release as returned by the releases API."""

    tag_name: str
    body: str | None = ""
    html_url: str | None = None


class PackageNotes(BaseModel):
    """Everything the report says about one upgraded package.

    Attributes:
        upgrade: The version change.
        source: Where the package's releases live, or None if unknown.
        releases: Releases between the two versions, oldest first.
    """

    upgrade: Upgrade
    source: PackageSource | None = None
    releases: list[Release] = Field(default_factory=list)


class VendorSection(BaseModel):
    """Markdown for every upgraded package under one vendor.

    ``markdown`` holds the section content only; render() prefixes the
    boundary marker that split_report() uses to cut a report back apart.
    """

    vendor: str
    markdown: str

    def render(self) -> str:
        return f"<!-- vendor-section:{self.vendor} -->\n{self.markdown}"


class CommentMarker(BaseModel):
    """Identity and fingerprint embedded as the first line of a report comment.

    The marker is an HTML comment, so GitHub does not render it.

    Attributes:
        report_type: Which report the comment belongs to (e.g., "composer").
        vendor: Vendor the comment covers.
        content_hash: SHA-256 of the lock file the comment was built from.
        total: Number of vendor comments the report had when written.
    """

    report_type: str
    vendor: str
    content_hash: str
    total: int

    def render(self) -> str:
        return (
            f"<!-- {self.report_type}-upgrade-report:{self.vendor} "
            f"{self.content_hash} total:{self.total} -->"
        )

    @classmethod
    def parse(cls, body: str) -> CommentMarker | None:
        """Decode the marker from the first line of a comment body.

        Returns None when the first line is not a well-formed marker.
        """
        first_line = body.split("\n", 1)[0].rstrip("\r")
        match = MARKER_PATTERN.match(first_line)
        if not match:
            return None
        return cls(
            report_type=match["report_type"],
            vendor=match["vendor"],
            content_hash=match["content_hash"],
            total=int(match["total"]),
        )


class TrackedComment(BaseModel):
    """A PR comment carrying a parseable report marker."""

    id: int
    marker: CommentMarker


class ReconcileResult(BaseModel):
    """What a reconciliation pass did to the PR's comments."""

    up_to_date: bool = False
    created: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)

    @property
    def writes(self) -> int:
        return len(self.created) + len(self.updated) + len(self.deleted)


class SyncSummary(BaseModel):
    """Outcome of a sync run across all configured lock files.

    Attributes:
        results: Reconciliation result per lock file path; None when the
                 lock file was skipped (new in the pull request).
        failed: Lock file paths whose processing raised an error.
    """

    results: dict[str, ReconcileResult | None] = Field(default_factory=dict)
    failed: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
