"""Map HTTP responses and transport failures onto extraction errors."""

from __future__ import annotations

from typing import cast

import httpx

from pdf_text_recovery.application.errors import (
    DocumentAuthError,
    DocumentNetworkError,
    DocumentNotFoundError,
    ExtractionError,
    ExtractionTimeoutError,
    ServerExtractionError,
)


def raise_for_status(service: str, response: httpx.Response) -> None:
    """Raise a classified extraction error for 4xx/5xx responses."""
    status_code = response.status_code
    if status_code < 400:
        return

    message = f"{service} request failed with status={status_code}."
    detail = extract_error_detail(response)
    if detail:
        message = f"{message} detail={detail}"
    if status_code in (401, 403):
        raise DocumentAuthError(message)
    if status_code == 404:
        raise DocumentNotFoundError(message)
    if status_code in (408, 504):
        raise ExtractionTimeoutError(message)
    if 500 <= status_code <= 599:
        raise DocumentNetworkError(message)
    raise ServerExtractionError(message)


def classify_transport_error(service: str, error: httpx.HTTPError) -> ExtractionError:
    """Convert an httpx transport failure into an extraction error."""
    if isinstance(error, httpx.TimeoutException):
        return ExtractionTimeoutError(f"{service} request timed out.")
    return DocumentNetworkError(f"{service} request failed: {error}")


def extract_error_detail(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        return truncate_detail(text) if text else None

    if isinstance(payload, dict):
        payload_obj = normalize_json_object(cast(dict[object, object], payload))
        error_obj = payload_obj.get("error")
        if isinstance(error_obj, str) and error_obj.strip():
            return truncate_detail(error_obj.strip())
        if isinstance(error_obj, dict):
            message = normalize_json_object(cast(dict[object, object], error_obj)).get("message")
            if isinstance(message, str) and message.strip():
                return truncate_detail(message.strip())
        message = payload_obj.get("message")
        if isinstance(message, str) and message.strip():
            return truncate_detail(message.strip())

    return None


def truncate_detail(value: str, *, max_length: int = 300) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[:max_length]}..."


def normalize_json_object(value: dict[object, object]) -> dict[str, object]:
    normalized: dict[str, object] = {}
    for key, item in value.items():
        normalized[str(key)] = item
    return normalized
