"""Monotonic progress reporting for UI feedback."""

from __future__ import annotations

from collections.abc import Callable

ProgressCallback = Callable[[int], None]


class ProgressReporter:
    """Forward 0..100 percentages to a callback without ever regressing."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._current = -1

    @property
    def current(self) -> int:
        return max(self._current, 0)

    def report(self, percent: float) -> None:
        value = max(0, min(100, int(percent)))
        if value <= self._current:
            return
        self._current = value
        if self._callback is not None:
            self._callback(value)

    def scaled(self, start: int, end: int) -> ProgressReporter:
        """Return a child reporter mapping its 0..100 onto ``start..end`` here."""
        if not 0 <= start <= end <= 100:
            raise ValueError("expected 0 <= start <= end <= 100")
        span = end - start
        return ProgressReporter(lambda percent: self.report(start + span * percent / 100))
