"""Unit tests for bounded retry/backoff behavior."""

from __future__ import annotations

import asyncio

import pytest

from pdf_text_recovery.application.errors import (
    DocumentAuthError,
    DocumentNetworkError,
    ExtractionRetryExhaustedError,
    ExtractionTimeoutError,
)
from pdf_text_recovery.domain.extraction import FailureReason
from pdf_text_recovery.infrastructure.retry import (
    AsyncRetryExecutor,
    RetryPolicy,
    backoff_schedule,
    compute_backoff_delay,
    is_retryable_fetch_error,
)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay_seconds: float) -> None:
        self.calls.append(delay_seconds)


def test_default_backoff_schedule_doubles_from_one_second() -> None:
    policy = RetryPolicy()

    assert backoff_schedule(policy) == (1.0, 2.0)
    assert compute_backoff_delay(policy, 1) == 1.0
    assert compute_backoff_delay(policy, 3) == 4.0


def test_backoff_delay_is_capped() -> None:
    policy = RetryPolicy(max_attempts=10, base_delay_seconds=1.0, max_delay_seconds=5.0)

    assert backoff_schedule(policy)[-1] == 5.0


def test_backoff_rejects_attempt_zero() -> None:
    with pytest.raises(ValueError, match="attempt"):
        compute_backoff_delay(RetryPolicy(), 0)


def test_retry_policy_validates_limits() -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError, match="backoff_multiplier"):
        RetryPolicy(backoff_multiplier=0.5)


def test_only_network_and_timeout_errors_are_retryable() -> None:
    assert is_retryable_fetch_error(DocumentNetworkError("down")) is True
    assert is_retryable_fetch_error(ExtractionTimeoutError("slow")) is True
    assert is_retryable_fetch_error(DocumentAuthError("denied")) is False
    assert is_retryable_fetch_error(ValueError("bad")) is False


def test_retry_executor_retries_timeout_then_succeeds() -> None:
    attempts = {"count": 0}
    sleep = RecordingSleep()

    async def operation() -> str:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise ExtractionTimeoutError("timed out")
        return "ok"

    executor = AsyncRetryExecutor(
        RetryPolicy(
            max_attempts=4,
            base_delay_seconds=0.1,
            max_delay_seconds=1.0,
            backoff_multiplier=2.0,
        ),
        sleep=sleep,
    )

    result = asyncio.run(executor.run(operation))

    assert result == "ok"
    assert attempts["count"] == 3
    assert sleep.calls == [0.1, 0.2]


def test_retry_executor_raises_when_retry_budget_exhausted() -> None:
    sleep = RecordingSleep()
    executor = AsyncRetryExecutor(RetryPolicy(max_attempts=3), sleep=sleep)

    async def operation() -> str:
        raise DocumentNetworkError("connection refused")

    with pytest.raises(ExtractionRetryExhaustedError) as exc_info:
        asyncio.run(executor.run(operation, operation_name="document fetch"))

    assert exc_info.value.attempts == 3
    assert exc_info.value.reason is FailureReason.NETWORK
    assert sleep.calls == [1.0, 2.0]


def test_retry_executor_does_not_retry_non_retryable_error() -> None:
    sleep = RecordingSleep()
    executor = AsyncRetryExecutor(RetryPolicy(max_attempts=3), sleep=sleep)

    async def operation() -> str:
        raise DocumentAuthError("token expired")

    with pytest.raises(DocumentAuthError, match="token expired"):
        asyncio.run(executor.run(operation))

    assert sleep.calls == []
