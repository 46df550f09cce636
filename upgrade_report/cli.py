"""CLI entry point for upgrade-report."""

from __future__ import annotations

import argparse
import os
import sys
from importlib.metadata import version as pkg_version
from pathlib import Path

from upgrade_report.config import build_config, load_env_settings, load_pyproject_settings
from upgrade_report.errors import ConfigError
from upgrade_report.lockfiles import parse_upgrade_listing, upgrades_between
from upgrade_report.pipeline import sync
from upgrade_report.registry import RegistryClient
from upgrade_report.report import EXIT_NO_UPGRADES, build_sections, render_report
from upgrade_report.shell import fatal, info, step

__version__ = pkg_version("vendor-upgrade-report")


def _read(path: str) -> str:
    try:
        return Path(path).read_text()
    except OSError as exc:
        fatal(f"Cannot read {path}: {exc.strerror}")
        return ""


def cmd_generate(args: argparse.Namespace) -> int:
    """Print the markdown upgrade report for two versions of a lock file."""
    if args.from_lock:
        ecosystem = "composer"
        old, new = args.from_lock
        upgrades = upgrades_between(_read(old), _read(new), ecosystem)
    elif args.from_yarn_lock:
        ecosystem = "npm"
        old, new = args.from_yarn_lock
        upgrades = upgrades_between(_read(old), _read(new), ecosystem)
    else:
        ecosystem = args.ecosystem
        upgrades = parse_upgrade_listing(sys.stdin.read())

    if not upgrades:
        info("No upgrades found.")
        return EXIT_NO_UPGRADES

    step(f"Resolving release notes for {len(upgrades)} upgrade(s)")
    with RegistryClient(token=os.environ.get("GITHUB_TOKEN")) as client:
        sections = build_sections(upgrades, ecosystem, client, args.file_path)

    sys.stdout.write(render_report(sections))
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    """Post or refresh the report comments on a pull request."""
    cli_settings = {
        "composer_lock": args.composer_lock,
        "yarn_locks": args.yarn_lock,
        "base_ref": args.base_ref,
        "repository": args.repo,
        "pull_request": args.pr,
        "report_command": args.report_command,
    }
    try:
        config = build_config(
            load_pyproject_settings(Path(args.config)),
            load_env_settings(os.environ),
            cli_settings,
        )
    except ConfigError as exc:
        fatal(str(exc))
        return 1

    summary = sync(config)
    if not summary.ok:
        fatal(f"Failed to update the report for: {', '.join(summary.failed)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="upgrade-report",
        description="Per-vendor release notes for lock file upgrades, as PR comments.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate subcommand
    generate_parser = subparsers.add_parser(
        "generate",
        help="Print the markdown report for two versions of a lock file.",
        description=(
            "Compare two lock files (or read a composer upgrade listing from "
            f"stdin) and print the report. Exits {EXIT_NO_UPGRADES} when "
            "nothing was upgraded."
        ),
    )
    source = generate_parser.add_mutually_exclusive_group()
    source.add_argument(
        "--from-lock",
        nargs=2,
        metavar=("OLD", "NEW"),
        help="Compare two composer.lock files.",
    )
    source.add_argument(
        "--from-yarn-lock",
        nargs=2,
        metavar=("OLD", "NEW"),
        help="Compare two yarn.lock files.",
    )
    generate_parser.add_argument(
        "--ecosystem",
        choices=["composer", "npm"],
        default="composer",
        help="Registry for packages read from stdin. (default: %(default)s)",
    )
    generate_parser.add_argument(
        "--file-path",
        default=None,
        help="Lock file path to append to every vendor heading.",
    )
    generate_parser.set_defaults(func=cmd_generate)

    # sync subcommand
    sync_parser = subparsers.add_parser(
        "sync", help="Create, update and delete the report comments on a PR."
    )
    sync_parser.add_argument("--composer-lock", default=None, help="Path to composer.lock.")
    sync_parser.add_argument(
        "--yarn-lock",
        action="append",
        default=None,
        help="Path to a yarn.lock (repeatable).",
    )
    sync_parser.add_argument("--base-ref", default=None, help="Base revision of the PR.")
    sync_parser.add_argument("--repo", default=None, help="Repository as owner/name.")
    sync_parser.add_argument("--pr", type=int, default=None, help="Pull request number.")
    sync_parser.add_argument(
        "--report-command",
        default=None,
        help="Command running the report generator. (default: upgrade-report)",
    )
    sync_parser.add_argument(
        "--config",
        default="pyproject.toml",
        help="pyproject.toml holding [tool.upgrade-report]. (default: %(default)s)",
    )
    sync_parser.set_defaults(func=cmd_sync)

    return parser


def cli(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    code = args.func(args)
    if code:
        sys.exit(code)
