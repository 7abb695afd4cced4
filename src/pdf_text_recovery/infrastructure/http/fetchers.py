"""HTTP document fetchers: direct download and proxy function."""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
import time
from typing import cast

import httpx

from pdf_text_recovery.application.errors import (
    DocumentAuthError,
    DocumentNotFoundError,
    ServerExtractionError,
)
from pdf_text_recovery.application.ports import SessionTokenStore
from pdf_text_recovery.domain.extraction import RawDocumentBytes
from pdf_text_recovery.infrastructure.http.status import (
    classify_transport_error,
    normalize_json_object,
    raise_for_status,
)
from pdf_text_recovery.infrastructure.http.urls import convert_google_drive_url, is_absolute_http_url

LOGGER = logging.getLogger(__name__)

PDF_PROXY_FUNCTION = "pdf-proxy"
DEFAULT_FETCH_TIMEOUT_SECONDS = 45.0


class HttpDocumentFetcher:
    """Download document bytes straight from their URL."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._http_client = http_client or httpx.AsyncClient(follow_redirects=True)
        self._owns_client = http_client is None
        self._timeout_seconds = timeout_seconds

    async def aclose(self) -> None:
        """Close owned HTTP client."""
        if self._owns_client:
            await self._http_client.aclose()

    async def fetch(self, source_url: str, title: str | None = None) -> RawDocumentBytes:
        """GET the document; empty bodies are treated as not found."""
        _require_absolute_url(source_url)
        target_url = convert_google_drive_url(source_url).url
        try:
            response = await self._http_client.get(target_url, timeout=self._timeout_seconds)
        except httpx.HTTPError as exc:
            raise classify_transport_error("document fetch", exc) from exc

        raise_for_status("document fetch", response)
        if not response.content:
            raise DocumentNotFoundError(f"Document {title or source_url} has an empty body.")

        LOGGER.info(
            "event=document_fetched fetcher=direct size_bytes=%s title=%s",
            len(response.content),
            title or "-",
        )
        return RawDocumentBytes(data=response.content, source=source_url)


class ProxyDocumentFetcher:
    """Fetch document bytes through the pdf-proxy function (base64 payload)."""

    def __init__(
        self,
        *,
        functions_base_url: str,
        credentials: SessionTokenStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._endpoint = f"{functions_base_url.rstrip('/')}/{PDF_PROXY_FUNCTION}"
        self._credentials = credentials
        self._http_client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None
        self._timeout_seconds = timeout_seconds

    async def aclose(self) -> None:
        """Close owned HTTP client."""
        if self._owns_client:
            await self._http_client.aclose()

    async def fetch(self, source_url: str, title: str | None = None) -> RawDocumentBytes:
        """POST the URL to the proxy and decode its base64 response."""
        _require_absolute_url(source_url)
        converted = convert_google_drive_url(source_url)
        if converted.was_converted:
            LOGGER.info("event=google_drive_url_converted url=%s", converted.url)

        payload: dict[str, object] = {
            "url": converted.url,
            "title": title or "untitled",
            "action": "fetch_document",
            "has_url": True,
            "timestamp": int(time.time() * 1000),
            "nonce": secrets.token_hex(6),
            "noCache": True,
        }
        try:
            response = await self._http_client.post(
                self._endpoint,
                json=payload,
                headers=self._headers(),
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise classify_transport_error(PDF_PROXY_FUNCTION, exc) from exc

        raise_for_status(PDF_PROXY_FUNCTION, response)
        data = _decode_proxy_payload(response)
        if not data:
            raise DocumentNotFoundError(f"Proxy returned no data for {title or source_url}.")

        LOGGER.info(
            "event=document_fetched fetcher=proxy size_bytes=%s title=%s",
            len(data),
            title or "-",
        )
        return RawDocumentBytes(data=data, source=source_url)

    def _headers(self) -> dict[str, str]:
        headers = {
            "content-type": "application/json",
            "Cache-Control": "no-cache, no-store",
            "Pragma": "no-cache",
        }
        if self._credentials is None:
            return headers

        credentials = self._credentials.load()
        if credentials is None:
            raise DocumentAuthError("Missing session credentials for pdf-proxy call.")
        headers["Authorization"] = f"Bearer {credentials.access_token}"
        if credentials.api_key:
            headers["apikey"] = credentials.api_key
        return headers


def _decode_proxy_payload(response: httpx.Response) -> bytes:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ServerExtractionError("pdf-proxy returned invalid JSON payload.") from exc

    if isinstance(payload, dict):
        payload = normalize_json_object(cast(dict[object, object], payload)).get("data")
    if payload is None or payload == "":
        return b""
    if not isinstance(payload, str):
        raise ServerExtractionError("pdf-proxy payload must be a base64 string.")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ServerExtractionError("Failed to decode document data from pdf-proxy.") from exc


def _require_absolute_url(source_url: str) -> None:
    if not is_absolute_http_url(source_url):
        raise ValueError("source_url must be an absolute http(s) URL")
