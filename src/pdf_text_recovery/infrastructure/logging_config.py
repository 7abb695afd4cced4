"""Logging bootstrap and secret masking for the application."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping

ROOT_LOGGER_NAME = "pdf_text_recovery"
LOG_LEVEL_ENV_VAR = "PDF_TEXT_RECOVERY_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_SECRET_KEY_PATTERN = re.compile(
    r"(?:api[_-]?key|secret|token|authorization|auth[_-]?key|password|private[_-]?key)",
    re.IGNORECASE,
)
_PROVIDER_KEYS_PATTERN = re.compile(r"provider.*keys?", re.IGNORECASE)
_INLINE_SECRET_PATTERN = re.compile(
    r"(?P<key>(?:api[_-]?key|token|authorization|password|secret)=)(?P<value>[^\s&]+)",
    re.IGNORECASE,
)
_BEARER_PATTERN = re.compile(r"(?P<key>Bearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)")


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure the package logger once and return it."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    resolved_level = level or os.environ.get(LOG_LEVEL_ENV_VAR, "").strip() or DEFAULT_LOG_LEVEL
    set_log_level(logger, resolved_level)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(SecretMaskingFilter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def set_log_level(logger: logging.Logger, level: str) -> None:
    """Set logger level from a level name."""
    normalized = level.strip().upper()
    if normalized not in _LEVEL_NAMES:
        raise ValueError(f"Unknown log level: {level!r}")
    logger.setLevel(normalized)


def get_log_level(logger: logging.Logger) -> str:
    """Return effective level name of a logger."""
    return logging.getLevelName(logger.getEffectiveLevel())


def mask_secret(value: str, *, prefix: int = 4, suffix: int = 3) -> str:
    """Keep a short prefix and suffix of a secret, hide the rest."""
    if not value:
        return ""
    if len(value) <= prefix + suffix:
        return "***"
    return f"{value[:prefix]}***{value[-suffix:]}"


def mask_secrets(payload: object) -> object:
    """Return a copy of a nested mapping/list with secret-like values masked."""
    if isinstance(payload, Mapping):
        masked: dict[object, object] = {}
        for key, value in payload.items():
            key_text = str(key)
            if isinstance(value, str) and _SECRET_KEY_PATTERN.search(key_text):
                masked[key] = mask_secret(value)
            elif isinstance(value, Mapping) and _PROVIDER_KEYS_PATTERN.search(key_text):
                masked[key] = {
                    inner_key: mask_secret(inner) if isinstance(inner, str) else mask_secrets(inner)
                    for inner_key, inner in value.items()
                }
            else:
                masked[key] = mask_secrets(value)
        return masked
    if isinstance(payload, list | tuple):
        return type(payload)(mask_secrets(item) for item in payload)
    return payload


def mask_secrets_in_text(message: str) -> str:
    """Mask bearer tokens and ``key=value`` secrets inside a log line."""
    masked = _BEARER_PATTERN.sub(
        lambda match: f"{match.group('key')}{mask_secret(match.group('value'))}",
        message,
    )
    return _INLINE_SECRET_PATTERN.sub(
        lambda match: f"{match.group('key')}{mask_secret(match.group('value'))}",
        masked,
    )


class SecretMaskingFilter(logging.Filter):
    """Mask secrets in formatted log messages before they are emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets_in_text(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True
