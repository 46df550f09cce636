"""Run configuration.

A ReportConfig is assembled from up to three layers, each overriding the
previous one:

1. ``[tool.upgrade-report]`` in the repository's pyproject.toml
2. environment variables set by the GitHub Actions workflow
3. explicit command line options

and then passed to pipeline.sync(). Nothing below the entry points reads the
environment.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError

DEFAULT_REPORT_COMMAND = "upgrade-report"


class ReportConfig(BaseModel):
    """Everything a sync run needs to know.

    Attributes:
        report_command: Command that runs the report generator
                        (``<command> generate --from-lock OLD NEW``).
        composer_lock: Path of the Composer lock file, if the repo has one.
        yarn_locks: Paths of the Yarn lock files, possibly several.
        base_ref: Git revision the pull request is compared against.
        repository: "owner/name" of the repository hosting the pull request.
        pull_request: Pull request number.
    """

    report_command: str = DEFAULT_REPORT_COMMAND
    composer_lock: str | None = None
    yarn_locks: list[str] = Field(default_factory=list)
    base_ref: str
    repository: str
    pull_request: int


def load_pyproject_settings(path: Path) -> dict[str, Any]:
    """Read ``[tool.upgrade-report]`` from a pyproject.toml, if present.

    Keys use the TOML spelling (``composer-lock``, ``yarn-locks``,
    ``report-command``) and are returned with ReportConfig field names.
    """
    if not path.exists():
        return {}
    doc = tomlkit.parse(path.read_text())
    table = doc.get("tool", {}).get("upgrade-report", {})
    settings: dict[str, Any] = {}
    for key in ("composer-lock", "yarn-locks", "report-command"):
        if key in table:
            settings[key.replace("-", "_")] = table[key].unwrap()
    return settings


def _pull_request_from_event(event_path: str) -> int | None:
    path = Path(event_path)
    if not path.exists():
        return None
    event = json.loads(path.read_text())
    number = event.get("pull_request", {}).get("number") or event.get("number")
    return int(number) if number else None


def load_env_settings(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect settings from the workflow's environment variables.

    Recognized variables: REPORT_COMMAND, COMPOSER_LOCK, YARN_LOCK_FILES
    (JSON array), BASE_REF, GITHUB_REPOSITORY, PR_NUMBER, and
    GITHUB_EVENT_PATH as a fallback source of the pull request number.

    Raises:
        ConfigError: If YARN_LOCK_FILES is not a JSON array of strings.
    """
    settings: dict[str, Any] = {}
    if environ.get("REPORT_COMMAND"):
        settings["report_command"] = environ["REPORT_COMMAND"]
    if environ.get("COMPOSER_LOCK"):
        settings["composer_lock"] = environ["COMPOSER_LOCK"]
    if environ.get("YARN_LOCK_FILES"):
        try:
            yarn_locks = json.loads(environ["YARN_LOCK_FILES"])
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON for YARN_LOCK_FILES: {exc}") from exc
        if not isinstance(yarn_locks, list) or not all(isinstance(p, str) for p in yarn_locks):
            raise ConfigError("YARN_LOCK_FILES must be a JSON array of paths")
        settings["yarn_locks"] = yarn_locks
    if environ.get("BASE_REF"):
        settings["base_ref"] = environ["BASE_REF"]
    if environ.get("GITHUB_REPOSITORY"):
        settings["repository"] = environ["GITHUB_REPOSITORY"]
    if environ.get("PR_NUMBER"):
        settings["pull_request"] = environ["PR_NUMBER"]
    elif environ.get("GITHUB_EVENT_PATH"):
        number = _pull_request_from_event(environ["GITHUB_EVENT_PATH"])
        if number:
            settings["pull_request"] = number
    return settings


def build_config(*layers: Mapping[str, Any]) -> ReportConfig:
    """Merge settings layers (later wins, None values skipped) into a config.

    Raises:
        ConfigError: If required settings are missing or invalid.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update({k: v for k, v in layer.items() if v is not None})
    try:
        return ReportConfig.model_validate(merged)
    except ValidationError as exc:
        problems = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration ({problems})") from exc
