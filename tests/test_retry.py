"""Tests for the retry policy."""

import pytest

from protein_dashboard.services.errors import (
    DatabaseError,
    SearchValidationError,
    StatementTimeoutError,
)
from protein_dashboard.services.retry import RetryPolicy


class Flaky:
    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


async def test_recovers_from_transient_failures_with_linear_backoff(fake_sleep) -> None:
    policy = RetryPolicy(max_attempts=3, base_delay=1.0, sleep=fake_sleep)
    operation = Flaky([DatabaseError("connection reset"), DatabaseError("connection reset")])

    assert await policy.run(operation) == "ok"
    assert operation.calls == 3
    assert fake_sleep.delays == [1.0, 2.0]


async def test_exhausted_retries_raise_original_error(fake_sleep) -> None:
    policy = RetryPolicy(max_attempts=3, base_delay=0.5, sleep=fake_sleep)
    last = DatabaseError("too many connections", code="53300")
    operation = Flaky([DatabaseError("a"), DatabaseError("b"), last])

    with pytest.raises(DatabaseError) as info:
        await policy.run(operation)

    assert info.value is last
    assert info.value.code == "53300"
    assert fake_sleep.delays == [0.5, 1.0]


async def test_statement_timeout_is_not_retried(fake_sleep) -> None:
    policy = RetryPolicy(max_attempts=3, sleep=fake_sleep)
    operation = Flaky([StatementTimeoutError("canceling statement due to statement timeout", code="57014")])

    with pytest.raises(StatementTimeoutError):
        await policy.run(operation)

    assert operation.calls == 1
    assert fake_sleep.delays == []


async def test_validation_error_is_not_retried(fake_sleep) -> None:
    policy = RetryPolicy(max_attempts=3, sleep=fake_sleep)
    operation = Flaky([SearchValidationError("bad page", field="page")])

    with pytest.raises(SearchValidationError):
        await policy.run(operation)

    assert operation.calls == 1


def test_at_least_one_attempt_is_required() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
