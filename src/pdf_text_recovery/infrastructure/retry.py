"""Bounded retry/backoff utilities for document fetch and extraction calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from pdf_text_recovery.application.errors import (
    DocumentNetworkError,
    ExtractionError,
    ExtractionRetryExhaustedError,
    ExtractionTimeoutError,
)

LOGGER = logging.getLogger(__name__)

TResult = TypeVar("TResult")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry limits and exponential backoff configuration."""

    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")
        if self.max_delay_seconds < 0:
            raise ValueError("max_delay_seconds must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")


def compute_backoff_delay(policy: RetryPolicy, attempt: int) -> float:
    """Return delay to wait after failed attempt number ``attempt`` (1-based)."""
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return min(
        policy.max_delay_seconds,
        policy.base_delay_seconds * (policy.backoff_multiplier ** (attempt - 1)),
    )


def backoff_schedule(policy: RetryPolicy) -> tuple[float, ...]:
    """Return delays between consecutive attempts for the whole budget."""
    return tuple(
        compute_backoff_delay(policy, attempt) for attempt in range(1, policy.max_attempts)
    )


def is_retryable_fetch_error(error: Exception) -> bool:
    """Return whether a fetch failure is transient."""
    return isinstance(error, (DocumentNetworkError, ExtractionTimeoutError))


class AsyncRetryExecutor:
    """Await an operation with bounded retry/backoff policy."""

    def __init__(self, policy: RetryPolicy, *, sleep: Sleep = asyncio.sleep) -> None:
        self._policy = policy
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def run(
        self,
        operation: Callable[[], Awaitable[TResult]],
        *,
        is_retryable: Callable[[Exception], bool] = is_retryable_fetch_error,
        operation_name: str = "operation",
    ) -> TResult:
        """Run operation; re-raise non-retryable errors immediately."""
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if not is_retryable(exc):
                    raise

                if attempt >= self._policy.max_attempts:
                    reason = exc.reason if isinstance(exc, ExtractionError) else None
                    raise ExtractionRetryExhaustedError(
                        f"{operation_name} failed after {attempt} attempts: {exc}",
                        attempts=attempt,
                        reason=reason or DocumentNetworkError.reason,
                    ) from exc

                delay_seconds = compute_backoff_delay(self._policy, attempt)
                LOGGER.info(
                    "event=retry_scheduled operation=%s attempt=%s delay_seconds=%s error=%s",
                    operation_name,
                    attempt,
                    delay_seconds,
                    exc,
                )
                await self._sleep(delay_seconds)
                attempt += 1
