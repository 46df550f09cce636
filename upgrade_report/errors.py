"""Exception types raised by the upgrade report pipeline."""

from __future__ import annotations


class ReportError(Exception):
    """Base class for upgrade report failures."""


class ConfigError(ReportError):
    """Configuration is missing or invalid."""


class ReportGenerationError(ReportError):
    """The report generator exited with an unexpected status.

    Attributes:
        returncode: Exit status of the generator process.
        stderr: Whatever the generator logged before failing.
    """

    def __init__(self, returncode: int, stderr: str = "") -> None:
        super().__init__(f"report generator exited with status {returncode}")
        self.returncode = returncode
        self.stderr = stderr
