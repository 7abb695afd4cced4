"""Retry/fallback orchestration across extraction strategies.

State machine: ``IDLE -> ATTEMPTING -> SUCCEEDED | EXHAUSTED_RETRIES``. The
first attempt tries the primary strategy and, on any failure, falls through
to the fallback strategy within the same attempt. Later attempts use the
fallback strategy only. Every strategy call is bounded by a watchdog. A
strategy whose ``retry_after_timeout`` attribute is false runs blocking work
the watchdog cannot cancel; once it times out it is dropped from later
attempts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from pdf_text_recovery.application.errors import (
    ExtractionError,
    ExtractionRetryExhaustedError,
    user_message_for,
)
from pdf_text_recovery.application.ports import ExtractionRequest, ExtractionStrategy
from pdf_text_recovery.application.progress import ProgressReporter
from pdf_text_recovery.domain.extraction import (
    AttemptFailure,
    AttemptOutcome,
    AttemptSuccess,
    ExtractionAttempt,
    FailureReason,
)
from pdf_text_recovery.infrastructure.retry import RetryPolicy, Sleep, compute_backoff_delay

LOGGER = logging.getLogger(__name__)

DEFAULT_WATCHDOG_SECONDS = 45.0
TIMEOUT_DETAIL = "processing timed out"


class OrchestratorState(StrEnum):
    """Lifecycle of one orchestrated extraction."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED_RETRIES = "exhausted_retries"


@dataclass(frozen=True)
class ExtractionRun:
    """Successful orchestration result plus its audit trail."""

    text: str
    page_count: int | None
    strategy_name: str
    attempt_count: int
    attempts: tuple[ExtractionAttempt, ...]


class ExtractionOrchestrator:
    """Run extraction strategies with bounded retries and exponential backoff."""

    def __init__(
        self,
        *,
        fallback: ExtractionStrategy,
        primary: ExtractionStrategy | None = None,
        policy: RetryPolicy | None = None,
        watchdog_seconds: float = DEFAULT_WATCHDOG_SECONDS,
        sleep: Sleep = asyncio.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
        logger: logging.Logger | None = None,
    ) -> None:
        if watchdog_seconds <= 0:
            raise ValueError("watchdog_seconds must be > 0")

        self._primary = primary
        self._fallback = fallback
        self._policy = policy or RetryPolicy()
        self._watchdog_seconds = watchdog_seconds
        self._sleep = sleep
        self._now = now
        self._logger = logger or LOGGER
        self._state = OrchestratorState.IDLE

    @property
    def state(self) -> OrchestratorState:
        return self._state

    async def run(
        self,
        request: ExtractionRequest,
        *,
        progress: ProgressReporter | None = None,
    ) -> ExtractionRun:
        """Return the first successful attempt or raise when retries run out."""
        reporter = progress or ProgressReporter()
        attempts: list[ExtractionAttempt] = []
        abandoned: set[str] = set()
        attempt_count = 0
        self._state = OrchestratorState.ATTEMPTING
        reporter.report(0)

        for attempt_number in range(1, self._policy.max_attempts + 1):
            strategies = self._strategies_for(attempt_number, abandoned)
            if not strategies:
                break
            attempt_count = attempt_number
            reporter.report(10 + (attempt_number - 1) * 20)
            for strategy in strategies:
                attempt = await self._attempt(strategy, request, attempt_number)
                attempts.append(attempt)
                if _abandons_on_timeout(strategy, attempt.outcome):
                    abandoned.add(strategy.name)
                if isinstance(attempt.outcome, AttemptSuccess):
                    self._state = OrchestratorState.SUCCEEDED
                    reporter.report(100)
                    return ExtractionRun(
                        text=attempt.outcome.text,
                        page_count=attempt.outcome.page_count,
                        strategy_name=strategy.name,
                        attempt_count=attempt_number,
                        attempts=tuple(attempts),
                    )

            has_next = attempt_number < self._policy.max_attempts
            if has_next and self._strategies_for(attempt_number + 1, abandoned):
                delay_seconds = compute_backoff_delay(self._policy, attempt_number)
                self._logger.info(
                    "event=extraction_retry_scheduled correlation_id=%s attempt=%s delay_seconds=%s",
                    request.correlation_id,
                    attempt_number,
                    delay_seconds,
                )
                await self._sleep(delay_seconds)

        self._state = OrchestratorState.EXHAUSTED_RETRIES
        last_failure = _last_failure(attempts)
        self._logger.warning(
            "event=extraction_retries_exhausted correlation_id=%s attempts=%s reason=%s detail=%s",
            request.correlation_id,
            attempt_count,
            last_failure.reason.value,
            last_failure.detail,
        )
        raise ExtractionRetryExhaustedError(
            user_message_for(last_failure.reason),
            attempts=attempt_count,
            reason=last_failure.reason,
        )

    def _strategies_for(
        self,
        attempt_number: int,
        abandoned: set[str],
    ) -> tuple[ExtractionStrategy, ...]:
        if attempt_number == 1 and self._primary is not None:
            candidates: tuple[ExtractionStrategy, ...] = (self._primary, self._fallback)
        else:
            candidates = (self._fallback,)
        return tuple(strategy for strategy in candidates if strategy.name not in abandoned)

    async def _attempt(
        self,
        strategy: ExtractionStrategy,
        request: ExtractionRequest,
        attempt_number: int,
    ) -> ExtractionAttempt:
        started_at = self._now()
        outcome: AttemptOutcome
        try:
            success = await asyncio.wait_for(
                strategy.extract(request),
                timeout=self._watchdog_seconds,
            )
        except TimeoutError:
            outcome = AttemptFailure(reason=FailureReason.TIMEOUT, detail=TIMEOUT_DETAIL)
        except ExtractionError as exc:
            outcome = AttemptFailure(reason=exc.reason, detail=str(exc))
        except Exception as exc:
            self._logger.warning(
                "event=extraction_strategy_crashed correlation_id=%s strategy=%s",
                request.correlation_id,
                strategy.name,
                exc_info=True,
            )
            outcome = AttemptFailure(reason=FailureReason.UNKNOWN, detail=str(exc))
        else:
            if success.text:
                outcome = success
            else:
                outcome = AttemptFailure(
                    reason=FailureReason.NO_TEXT,
                    detail="strategy returned empty text",
                )

        self._log_attempt(request, strategy, attempt_number, outcome)
        return ExtractionAttempt(
            strategy_name=strategy.name,
            attempt_number=attempt_number,
            started_at=started_at,
            outcome=outcome,
        )

    def _log_attempt(
        self,
        request: ExtractionRequest,
        strategy: ExtractionStrategy,
        attempt_number: int,
        outcome: AttemptOutcome,
    ) -> None:
        if isinstance(outcome, AttemptSuccess):
            self._logger.info(
                "event=extraction_attempt_succeeded correlation_id=%s strategy=%s attempt=%s "
                "text_length=%s",
                request.correlation_id,
                strategy.name,
                attempt_number,
                len(outcome.text),
            )
            return
        self._logger.warning(
            "event=extraction_attempt_failed correlation_id=%s strategy=%s attempt=%s "
            "reason=%s detail=%s",
            request.correlation_id,
            strategy.name,
            attempt_number,
            outcome.reason.value,
            outcome.detail,
        )


def _last_failure(attempts: list[ExtractionAttempt]) -> AttemptFailure:
    for attempt in reversed(attempts):
        if isinstance(attempt.outcome, AttemptFailure):
            return attempt.outcome
    return AttemptFailure(reason=FailureReason.UNKNOWN, detail="no attempts were made")


def _abandons_on_timeout(strategy: ExtractionStrategy, outcome: AttemptOutcome) -> bool:
    if getattr(strategy, "retry_after_timeout", True):
        return False
    return isinstance(outcome, AttemptFailure) and outcome.reason is FailureReason.TIMEOUT
