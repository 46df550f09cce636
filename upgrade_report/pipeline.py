"""Comment sync pipeline: hash → diff → generate → split → reconcile.

This module orchestrates one run on a pull request:
1. Fetch every PR comment once (shared by all lock files)
2. For the Composer lock, then each Yarn lock:
   a. Hash the lock file and stop early if the comments already match it
   b. Recover the lock file from the base revision (skip if it is new)
   c. Run the report generator on the old and new lock files
   d. Split the report into vendor sections and reconcile the comments

Lock files are processed one after another. A failure in one of them is
logged and the rest still run; comments already converged for earlier lock
files are left as they are.
"""

from __future__ import annotations

import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from .comments import CommentAPI, CommentReconciler, GitHubComments, is_up_to_date, lock_hash, tracked_comments
from .config import ReportConfig
from .errors import ReportError, ReportGenerationError
from .models import ReconcileResult, SyncSummary
from .policy import WritePolicy
from .report import EXIT_NO_UPGRADES, append_file_path, split_report
from .shell import git_show, info, run, step

GENERATE_FLAGS = {"composer": "--from-lock", "yarn": "--from-yarn-lock"}


def report_type_for(lock_file: str) -> str:
    """Derive a Yarn lock's report type from its path.

    Example:
        "frontend/yarn.lock" → "frontend-yarn"
    """
    return lock_file.replace("/", "-").replace(".lock", "", 1)


def generate_report(report_command: str, lock_type: str, old_path: Path, new_path: str) -> str:
    """Run the report generator and return its markdown (empty if no upgrades).

    Raises:
        ReportGenerationError: If the generator fails with anything other
            than the "no upgrades" status.
    """
    result = run(
        *shlex.split(report_command),
        "generate",
        GENERATE_FLAGS[lock_type],
        str(old_path),
        new_path,
    )
    if result.stderr.strip():
        info(result.stderr.rstrip())
    if result.returncode == EXIT_NO_UPGRADES:
        return ""
    if result.returncode != 0:
        raise ReportGenerationError(result.returncode, result.stderr)
    return result.stdout


def process_lock_file(
    *,
    api: CommentAPI,
    comments: list[dict[str, Any]],
    lock_file: str,
    base_ref: str,
    lock_type: str,
    report_type: str,
    report_command: str,
    append_path: bool = False,
    policy: WritePolicy | None = None,
) -> ReconcileResult | None:
    """Generate and post the upgrade report for a single lock file.

    Args:
        api: Comment API of the pull request.
        comments: Snapshot of all PR comments fetched at the start of the run.
        lock_file: Path of the lock file, relative to the repository root.
        base_ref: Revision to compare against.
        lock_type: "composer" or "yarn".
        report_type: Identity of this report in comment markers.
        report_command: Command running the report generator.
        append_path: Suffix vendor headings with the lock file path.
        policy: Retry/throttle policy for comment writes.

    Returns:
        What was done to the comments, or None if the lock file is new in
        this pull request and there is nothing to compare.
    """
    content_hash = lock_hash(Path(lock_file))
    reconciler = CommentReconciler(api, report_type, policy)

    if is_up_to_date(tracked_comments(comments, report_type), content_hash):
        info(f"  Report for {lock_file} already up to date")
        return ReconcileResult(up_to_date=True)

    old_content = git_show(base_ref, lock_file)
    if old_content is None:
        info(f"  {lock_file} is new in this PR, skipping report")
        return None

    with tempfile.TemporaryDirectory() as tmp:
        old_path = Path(tmp) / f"old-{report_type}.lock"
        old_path.write_text(old_content)
        report = generate_report(report_command, lock_type, old_path, lock_file)

    if not report.strip():
        info(f"  No upgrades found in {lock_file}")
        return reconciler.reconcile(comments, [], content_hash)

    if append_path:
        report = append_file_path(report, lock_file)

    sections = split_report(report)
    info(f"  {lock_file}: {len(sections)} vendor section(s)")
    return reconciler.reconcile(comments, sections, content_hash)


def sync(
    config: ReportConfig,
    api: CommentAPI | None = None,
    policy: WritePolicy | None = None,
) -> SyncSummary:
    """Bring the pull request's report comments up to date with its lock files.

    Args:
        config: Lock files, base revision, pull request and generator command.
        api: Comment API; defaults to the pull request through ``gh``.
        policy: Retry/throttle policy for remote calls.
    """
    api = api or GitHubComments(config.repository, config.pull_request)
    policy = policy or WritePolicy()
    summary = SyncSummary()

    step(f"Fetching comments of {config.repository}#{config.pull_request}")
    comments = policy.call(api.list_all, "list comments")
    info(f"  {len(comments)} comment(s)")

    jobs: list[tuple[str, str, str, bool]] = []
    if config.composer_lock:
        jobs.append((config.composer_lock, "composer", "composer", False))
    for yarn_lock in config.yarn_locks:
        jobs.append((yarn_lock, "yarn", report_type_for(yarn_lock), len(config.yarn_locks) > 1))

    for lock_file, lock_type, report_type, append_path in jobs:
        step(f"Processing {lock_file}")
        try:
            summary.results[lock_file] = process_lock_file(
                api=api,
                comments=comments,
                lock_file=lock_file,
                base_ref=config.base_ref,
                lock_type=lock_type,
                report_type=report_type,
                report_command=config.report_command,
                append_path=append_path,
                policy=policy,
            )
        except (ReportError, subprocess.CalledProcessError, OSError, ValueError) as exc:
            info(f"  ERROR: {lock_file}: {exc}")
            summary.failed.append(lock_file)

    return summary
