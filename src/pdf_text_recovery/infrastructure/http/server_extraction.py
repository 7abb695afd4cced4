"""HTTP client for the server-side process-pdf function."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from pdf_text_recovery.application.errors import (
    DocumentAuthError,
    NoTextFoundError,
    ServerExtractionError,
)
from pdf_text_recovery.application.ports import SessionTokenStore
from pdf_text_recovery.infrastructure.http.status import classify_transport_error, raise_for_status

LOGGER = logging.getLogger(__name__)

PROCESS_PDF_FUNCTION = "process-pdf"
CORRELATION_ID_HEADER = "X-Correlation-Id"
DEFAULT_WATCHDOG_SECONDS = 45.0


class ServerExtractionResponse(BaseModel):
    """Response body of the process-pdf function."""

    model_config = ConfigDict(extra="ignore")

    text: str | None = None
    error: str | None = None
    success: bool | None = None


class ServerPdfExtractionClient:
    """Send base64 PDF payloads to process-pdf and return extracted text."""

    def __init__(
        self,
        *,
        functions_base_url: str,
        credentials: SessionTokenStore,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_WATCHDOG_SECONDS,
    ) -> None:
        self._endpoint = f"{functions_base_url.rstrip('/')}/{PROCESS_PDF_FUNCTION}"
        self._credentials = credentials
        self._http_client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None
        self._timeout_seconds = timeout_seconds

    async def aclose(self) -> None:
        """Close owned HTTP client."""
        if self._owns_client:
            await self._http_client.aclose()

    async def extract(
        self,
        pdf_base64: str,
        *,
        options: Mapping[str, object],
        correlation_id: str,
    ) -> str:
        """Execute one process-pdf call; missing text counts as failure."""
        credentials = self._credentials.load()
        if credentials is None or not credentials.access_token:
            raise DocumentAuthError("Missing session credentials for process-pdf call.")

        headers = {
            "content-type": "application/json",
            "Authorization": f"Bearer {credentials.access_token}",
            "Cache-Control": "no-cache",
            CORRELATION_ID_HEADER: correlation_id,
        }
        if credentials.api_key:
            headers["apikey"] = credentials.api_key

        payload: dict[str, object] = {"pdfBase64": pdf_base64, "options": dict(options)}
        try:
            response = await self._http_client.post(
                self._endpoint,
                json=payload,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise classify_transport_error(PROCESS_PDF_FUNCTION, exc) from exc

        raise_for_status(PROCESS_PDF_FUNCTION, response)
        parsed = _parse_response(response)
        LOGGER.info(
            "event=server_extraction_response correlation_id=%s success=%s text_length=%s",
            correlation_id,
            parsed.success,
            len(parsed.text or ""),
        )

        if parsed.error:
            raise ServerExtractionError(f"Server processing error: {parsed.error}")
        if not parsed.text:
            raise NoTextFoundError("No text returned from server processing.")
        return parsed.text


def _parse_response(response: httpx.Response) -> ServerExtractionResponse:
    try:
        return ServerExtractionResponse.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise ServerExtractionError("process-pdf returned an invalid payload.") from exc
