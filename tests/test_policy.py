"""Tests for upgrade_report.policy."""

from __future__ import annotations

import pytest

from upgrade_report.policy import WritePolicy, instant_policy


class Flaky:
    """Callable that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, exc: type[Exception] = RuntimeError) -> None:
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


class TestCall:
    def test_success_first_try(self) -> None:
        waits: list[float] = []
        fn = Flaky(0)

        assert WritePolicy(sleep=waits.append).call(fn, "op") == "ok"
        assert fn.calls == 1
        assert waits == []

    def test_linear_backoff(self) -> None:
        waits: list[float] = []
        fn = Flaky(2)

        assert WritePolicy(sleep=waits.append).call(fn, "op") == "ok"
        assert fn.calls == 3
        assert waits == [2.0, 4.0]

    def test_exhaustion_reraises_last_error(self) -> None:
        fn = Flaky(5)

        with pytest.raises(RuntimeError, match="failure 3"):
            instant_policy().call(fn, "op")
        assert fn.calls == 3

    def test_non_transient_errors_not_retried(self) -> None:
        fn = Flaky(1, exc=KeyError)

        with pytest.raises(KeyError):
            instant_policy(retry_on=(RuntimeError,)).call(fn, "op")
        assert fn.calls == 1

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            WritePolicy(attempts=0)


class TestWrite:
    def test_delay_after_write(self) -> None:
        waits: list[float] = []

        assert WritePolicy(delay=0.5, sleep=waits.append).write(Flaky(0), "op") == "ok"
        assert waits == [0.5]

    def test_delay_follows_retries(self) -> None:
        waits: list[float] = []

        WritePolicy(backoff=1.0, delay=0.25, sleep=waits.append).write(Flaky(1), "op")

        assert waits == [1.0, 0.25]
