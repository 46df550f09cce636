"""Retry and throttling policy for remote calls.

Every remote call that can fail transiently goes through WritePolicy.call(),
which retries with a linearly increasing backoff. Comment writes go through
WritePolicy.write(), which additionally waits a fixed delay afterwards so
consecutive writes stay under GitHub's secondary rate limits.

Tests construct a policy with a no-op ``sleep`` to run without delays.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

from .shell import info

T = TypeVar("T")


class WritePolicy:
    """Bounded retry with backoff, plus a fixed delay between writes.

    Args:
        attempts: Total number of tries before the last error propagates.
        backoff: Seconds to wait after failed attempt N is ``N * backoff``.
        delay: Seconds to wait after each write, successful or not retried.
        sleep: Function used to wait; replace it to make tests instant.
        retry_on: Exception types considered transient.
    """

    def __init__(
        self,
        attempts: int = 3,
        backoff: float = 2.0,
        delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.backoff = backoff
        self.delay = delay
        self.sleep = sleep
        self.retry_on = retry_on

    def call(self, fn: Callable[[], T], label: str) -> T:
        """Run ``fn``, retrying transient failures.

        The exception from the final attempt is re-raised unchanged.
        """
        for attempt in range(1, self.attempts + 1):
            try:
                return fn()
            except self.retry_on as exc:
                if attempt == self.attempts:
                    raise
                wait = attempt * self.backoff
                info(f"  {label}: attempt {attempt} failed ({exc}), retrying in {wait:g}s...")
                self.sleep(wait)
        raise AssertionError("unreachable")

    def write(self, fn: Callable[[], T], label: str) -> T:
        """Run a write through call(), then pause before the next one."""
        result = self.call(fn, label)
        self.sleep(self.delay)
        return result


def instant_policy(**kwargs) -> WritePolicy:
    """A policy that never waits, for tests and dry runs."""
    return WritePolicy(sleep=lambda _seconds: None, **kwargs)
