"""Environment-backed settings for the extraction pipeline."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from pdf_text_recovery.application.errors import ExtractionConfigurationError
from pdf_text_recovery.infrastructure.retry import RetryPolicy

FUNCTIONS_URL_ENV_VAR = "PDF_TEXT_RECOVERY_FUNCTIONS_URL"
MAX_PAGES_ENV_VAR = "PDF_TEXT_RECOVERY_MAX_PAGES"
TIMEOUT_ENV_VAR = "PDF_TEXT_RECOVERY_TIMEOUT_SECONDS"

DEFAULT_MAX_PAGES = 10
DEFAULT_SERVER_TIMEOUT_SECONDS = 30
MAX_SERVER_TIMEOUT_SECONDS = 60
DEFAULT_WATCHDOG_TIMEOUT_SECONDS = 45.0

TValue = TypeVar("TValue")


@dataclass(frozen=True)
class ExtractionSettings:
    """Resolved runtime settings for fetch and extraction."""

    functions_base_url: str | None = None
    max_pages: int = DEFAULT_MAX_PAGES
    server_timeout_seconds: int = DEFAULT_SERVER_TIMEOUT_SECONDS
    watchdog_timeout_seconds: float = DEFAULT_WATCHDOG_TIMEOUT_SECONDS
    retry_policy: RetryPolicy = RetryPolicy()

    def __post_init__(self) -> None:
        if self.max_pages < 1:
            raise ExtractionConfigurationError("max_pages must be >= 1")
        if self.server_timeout_seconds < 1:
            raise ExtractionConfigurationError("server_timeout_seconds must be >= 1")
        if self.watchdog_timeout_seconds <= 0:
            raise ExtractionConfigurationError("watchdog_timeout_seconds must be > 0")


def load_extraction_settings(environ: Mapping[str, str] | None = None) -> ExtractionSettings:
    """Build settings from environment; blank values fall back to defaults."""
    env = os.environ if environ is None else environ
    base_url = env.get(FUNCTIONS_URL_ENV_VAR, "").strip()
    return ExtractionSettings(
        functions_base_url=base_url.rstrip("/") or None,
        max_pages=_resolve(env, MAX_PAGES_ENV_VAR, DEFAULT_MAX_PAGES, int),
        server_timeout_seconds=min(
            _resolve(env, TIMEOUT_ENV_VAR, DEFAULT_SERVER_TIMEOUT_SECONDS, int),
            MAX_SERVER_TIMEOUT_SECONDS,
        ),
    )


def _resolve(
    env: Mapping[str, str],
    env_var: str,
    fallback: TValue,
    parse: Callable[[str], TValue],
) -> TValue:
    resolved = env.get(env_var, "").strip()
    if not resolved:
        return fallback
    try:
        return parse(resolved)
    except ValueError as exc:
        raise ExtractionConfigurationError(
            f"Invalid value for {env_var}: {resolved!r}"
        ) from exc
