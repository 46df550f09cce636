"""PR comment reconciliation.

Keeps one comment per vendor on the pull request in sync with the latest
report. Each comment starts with a CommentMarker recording the report type,
the vendor, a hash of the lock file and the number of vendor comments, which
lets a re-run with an unchanged lock file finish without any API writes.

The comment snapshot is fetched once per run and treated as authoritative.
Comments without a marker of the expected report type are never touched.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Protocol

from .models import CommentMarker, ReconcileResult, TrackedComment, VendorSection
from .policy import WritePolicy
from .shell import gh, info

# GitHub rejects comment bodies longer than this
MAX_COMMENT_LENGTH = 65536
TRUNCATION_NOTE = "\n\n_Report truncated: it exceeds GitHub's comment size limit._\n"


class CommentAPI(Protocol):
    """The slice of the issue comments API the reconciler needs."""

    def list_all(self) -> list[dict[str, Any]]: ...

    def create(self, body: str) -> int: ...

    def update(self, comment_id: int, body: str) -> None: ...

    def delete(self, comment_id: int) -> None: ...


class GitHubComments:
    """Issue comments of one pull request, through the ``gh`` CLI.

    Args:
        repository: "owner/name" of the repository.
        pull_request: Pull request number.
    """

    def __init__(self, repository: str, pull_request: int) -> None:
        self.repository = repository
        self.pull_request = pull_request

    @property
    def _collection(self) -> str:
        return f"repos/{self.repository}/issues/{self.pull_request}/comments"

    def _item(self, comment_id: int) -> str:
        return f"repos/{self.repository}/issues/comments/{comment_id}"

    def list_all(self) -> list[dict[str, Any]]:
        """Fetch every comment, following pagination (100 per page)."""
        output = gh("api", "--paginate", "--slurp", f"{self._collection}?per_page=100")
        pages = json.loads(output) if output else []
        return [comment for page in pages for comment in page]

    def create(self, body: str) -> int:
        output = gh(
            "api", "--method", "POST", self._collection, "--input", "-",
            input=json.dumps({"body": body}),
        )
        return int(json.loads(output)["id"])

    def update(self, comment_id: int, body: str) -> None:
        gh(
            "api", "--method", "PATCH", self._item(comment_id), "--input", "-",
            input=json.dumps({"body": body}),
        )

    def delete(self, comment_id: int) -> None:
        gh("api", "--method", "DELETE", self._item(comment_id))


def lock_hash(lock_file: Path) -> str:
    """SHA-256 of the whole lock file, used as the report fingerprint."""
    return hashlib.sha256(lock_file.read_bytes()).hexdigest()


def tracked_comments(comments: list[dict[str, Any]], report_type: str) -> list[TrackedComment]:
    """Pick the comments belonging to ``report_type``, oldest first."""
    tracked: list[TrackedComment] = []
    for comment in comments:
        body = comment.get("body")
        if not isinstance(body, str) or "id" not in comment:
            continue
        marker = CommentMarker.parse(body)
        if marker is not None and marker.report_type == report_type:
            tracked.append(TrackedComment(id=comment["id"], marker=marker))
    return sorted(tracked, key=lambda c: c.id)


def is_up_to_date(tracked: list[TrackedComment], content_hash: str) -> bool:
    """True when the existing comments were built from this exact lock file.

    The oldest comment's marker declares the hash and the number of vendor
    comments; both must match, so a half-finished earlier run is redone.
    """
    if not tracked:
        return False
    first = tracked[0].marker
    return first.content_hash == content_hash and len(tracked) == first.total


def comment_body(marker: CommentMarker, section: VendorSection) -> str:
    body = f"{marker.render()}\n{section.markdown}"
    if len(body) > MAX_COMMENT_LENGTH:
        body = body[: MAX_COMMENT_LENGTH - len(TRUNCATION_NOTE)] + TRUNCATION_NOTE
    return body


class CommentReconciler:
    """Converges a pull request's report comments onto a new report.

    Args:
        api: Comment API scoped to the pull request.
        report_type: Report identity, e.g. "composer" or "frontend-yarn".
        policy: Retry and throttling applied to every write.
    """

    def __init__(self, api: CommentAPI, report_type: str, policy: WritePolicy | None = None) -> None:
        self.api = api
        self.report_type = report_type
        self.policy = policy or WritePolicy()

    def _delete(self, comment: TrackedComment, result: ReconcileResult) -> None:
        self.policy.write(lambda: self.api.delete(comment.id), comment.marker.vendor)
        result.deleted.append(comment.marker.vendor)
        info(f"  Deleted comment #{comment.id} for {comment.marker.vendor}")

    def reconcile(
        self,
        comments: list[dict[str, Any]],
        sections: list[VendorSection],
        content_hash: str,
    ) -> ReconcileResult:
        """Create, update and delete comments so they match ``sections``.

        Args:
            comments: Snapshot of all PR comments (any report, any author).
            sections: Vendor sections of the fresh report, in posting order.
            content_hash: Fingerprint of the lock file the report came from.
        """
        result = ReconcileResult()
        tracked = tracked_comments(comments, self.report_type)

        if is_up_to_date(tracked, content_hash):
            info(f"  {self.report_type}: report already up to date")
            result.up_to_date = True
            return result

        if not sections:
            for comment in tracked:
                self._delete(comment, result)
            return result

        # Oldest comment per vendor is the one we keep; any later ones are stale
        existing: dict[str, TrackedComment] = {}
        duplicates: list[TrackedComment] = []
        for comment in tracked:
            if comment.marker.vendor in existing:
                duplicates.append(comment)
            else:
                existing[comment.marker.vendor] = comment

        total = len(sections)
        for section in sections:
            marker = CommentMarker(
                report_type=self.report_type,
                vendor=section.vendor,
                content_hash=content_hash,
                total=total,
            )
            body = comment_body(marker, section)
            current = existing.get(section.vendor)
            if current is not None:
                self.policy.write(lambda: self.api.update(current.id, body), section.vendor)
                result.updated.append(section.vendor)
                info(f"  Updated comment #{current.id} for {section.vendor}")
            else:
                created = self.policy.write(lambda: self.api.create(body), section.vendor)
                result.created.append(section.vendor)
                info(f"  Created comment #{created} for {section.vendor}")

        vendors = {section.vendor for section in sections}
        stale = [c for v, c in existing.items() if v not in vendors] + duplicates
        for comment in sorted(stale, key=lambda c: c.id):
            self._delete(comment, result)

        return result
