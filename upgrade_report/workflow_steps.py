"""Helpers for script-based GitHub Actions workflow steps.

The workflow configures the run through environment variables
(COMPOSER_LOCK, YARN_LOCK_FILES, BASE_REF, ...), see config.load_env_settings.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from upgrade_report.config import build_config, load_env_settings, load_pyproject_settings
from upgrade_report.errors import ConfigError
from upgrade_report.models import SyncSummary
from upgrade_report.pipeline import sync


def _write_output(output_path: str, name: str, value: str) -> None:
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")


def write_summary(summary: SyncSummary, github_output: str) -> None:
    """Emit comment counts and failed lock files as GitHub step outputs."""
    results = [r for r in summary.results.values() if r is not None]
    _write_output(github_output, "created", str(sum(len(r.created) for r in results)))
    _write_output(github_output, "updated", str(sum(len(r.updated) for r in results)))
    _write_output(github_output, "deleted", str(sum(len(r.deleted) for r in results)))
    _write_output(github_output, "failed", json.dumps(summary.failed))


def run_sync(github_output: str | None, config_path: str = "pyproject.toml") -> None:
    """Sync the report comments using the workflow's environment."""
    try:
        config = build_config(
            load_pyproject_settings(Path(config_path)), load_env_settings(os.environ)
        )
    except ConfigError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    summary = sync(config)
    if github_output:
        write_summary(summary, github_output)
    if not summary.ok:
        raise SystemExit(f"Failed to update the report for: {', '.join(summary.failed)}")


def main(argv: list[str] | None = None) -> None:
    """Run a workflow step command."""
    args = argv if argv is not None else sys.argv[1:]
    parser = argparse.ArgumentParser(prog="python -m upgrade_report.workflow_steps")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync")
    sync_parser.add_argument(
        "--github-output",
        default=os.environ.get("GITHUB_OUTPUT"),
        help="Path to GitHub step output file.",
    )
    sync_parser.add_argument(
        "--config", default="pyproject.toml", help="pyproject.toml to read settings from."
    )

    parsed = parser.parse_args(args)
    if parsed.command == "sync":
        run_sync(parsed.github_output, parsed.config)


if __name__ == "__main__":
    main()
