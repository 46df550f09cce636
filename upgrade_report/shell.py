"""Shell, git and gh utilities.

Provides simple wrappers around subprocess calls for running git and the
GitHub CLI, plus output formatting helpers. Everything printed here goes to
stderr: stdout is reserved for the generated markdown report.
"""

from __future__ import annotations

import subprocess
import sys


def git_show(ref: str, path: str) -> str | None:
    """Return the content of ``path`` at ``ref``, or None if it does not exist there.

    The output is returned verbatim, not stripped: lock files are hashed
    and parsed byte for byte.
    """
    result = subprocess.run(
        ["git", "show", f"{ref}:{path}"], capture_output=True, text=True
    )
    if result.returncode != 0:
        return None
    return result.stdout


def gh(*args: str, input: str | None = None, check: bool = True) -> str:
    """Run a GitHub CLI command and return stdout.

    Args:
        *args: Arguments to pass to gh (e.g., "api", "repos/o/r/issues").
        input: Optional text fed to the command's stdin (used with
               ``--input -`` to send JSON request bodies).
        check: If True (default), raise CalledProcessError on non-zero exit.
    """
    result = subprocess.run(
        ["gh", *args], capture_output=True, text=True, input=input, check=check
    )
    return result.stdout.strip()


def run(*args: str) -> subprocess.CompletedProcess[str]:
    """Run an arbitrary command, capturing stdout and stderr as text.

    The exit status is not checked; callers decide which codes are expected.
    """
    return subprocess.run(args, capture_output=True, text=True)


def info(msg: str) -> None:
    """Print a progress line."""
    print(msg, file=sys.stderr)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate lock files and pipeline phases in CI logs.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}", file=sys.stderr)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the run.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
