"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from upgrade_report.models import CommentMarker
from upgrade_report.policy import WritePolicy, instant_policy


class FakeComments:
    """In-memory stand-in for a pull request's comment API.

    Records every write so tests can assert on exactly what was sent.
    ``fail_next`` makes the next N write calls raise before succeeding.
    """

    def __init__(self, comments: list[dict[str, Any]] | None = None) -> None:
        self.comments: dict[int, str] = {c["id"]: c["body"] for c in comments or []}
        self.next_id = max(self.comments, default=100) + 1
        self.calls: list[tuple[str, int | None]] = []
        self.fail_next = 0

    def _maybe_fail(self) -> None:
        if self.fail_next:
            self.fail_next -= 1
            raise RuntimeError("secondary rate limit")

    def list_all(self) -> list[dict[str, Any]]:
        return [{"id": i, "body": b} for i, b in sorted(self.comments.items())]

    def create(self, body: str) -> int:
        self._maybe_fail()
        comment_id = self.next_id
        self.next_id += 1
        self.comments[comment_id] = body
        self.calls.append(("create", comment_id))
        return comment_id

    def update(self, comment_id: int, body: str) -> None:
        self._maybe_fail()
        self.comments[comment_id] = body
        self.calls.append(("update", comment_id))

    def delete(self, comment_id: int) -> None:
        self._maybe_fail()
        del self.comments[comment_id]
        self.calls.append(("delete", comment_id))


def marker_comment(
    comment_id: int,
    vendor: str,
    content_hash: str = "abc123",
    total: int = 1,
    report_type: str = "composer",
    content: str = "# report\n",
) -> dict[str, Any]:
    """Build a raw comment carrying a report marker."""
    marker = CommentMarker(
        report_type=report_type, vendor=vendor, content_hash=content_hash, total=total
    )
    return {"id": comment_id, "body": f"{marker.render()}\n{content}"}


@pytest.fixture
def policy() -> WritePolicy:
    """A retry policy that never sleeps."""
    return instant_policy()


@pytest.fixture
def fake_comments() -> FakeComments:
    return FakeComments()


@pytest.fixture
def yarn_lock_v1() -> str:
    return """\
# THIS IS AN AUTOGENERATED FILE. DO NOT EDIT THIS FILE DIRECTLY.
# yarn lockfile v1


"@babel/core@^7.0.0":
  version "7.24.0"
  resolved "https://registry.yarnpkg.com/@babel/core/-/core-7.24.0.tgz"
  dependencies:
    semver "^6.3.1"

lodash@^4.0.0, lodash@^4.17.0:
  version "4.17.20"
  resolved "https://registry.yarnpkg.com/lodash/-/lodash-4.17.20.tgz"

react@^18.2.0:
  version "18.2.0"
  resolved "https://registry.yarnpkg.com/react/-/react-18.2.0.tgz"
"""


@pytest.fixture
def composer_lock() -> Callable[..., str]:
    """Factory building composer.lock JSON from name → version maps."""

    def build(packages: dict[str, str], dev: dict[str, str] | None = None) -> str:
        return json.dumps(
            {
                "packages": [{"name": n, "version": v} for n, v in packages.items()],
                "packages-dev": [{"name": n, "version": v} for n, v in (dev or {}).items()],
            }
        )

    return build
