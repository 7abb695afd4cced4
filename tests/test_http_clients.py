"""Contract tests for document fetchers and the process-pdf client with mocked transport."""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import pytest

from pdf_text_recovery.application.errors import (
    DocumentAuthError,
    DocumentNetworkError,
    DocumentNotFoundError,
    ExtractionTimeoutError,
    NoTextFoundError,
    ServerExtractionError,
)
from pdf_text_recovery.application.ports import SessionCredentials
from pdf_text_recovery.infrastructure.http.fetchers import HttpDocumentFetcher, ProxyDocumentFetcher
from pdf_text_recovery.infrastructure.http.server_extraction import ServerPdfExtractionClient

FUNCTIONS_URL = "https://project.functions.example.com/functions/v1"
PDF_BYTES = b"%PDF-1.4\nfake body"

TResult = TypeVar("TResult")


class InMemoryCredentials:
    def __init__(self, credentials: SessionCredentials | None) -> None:
        self._credentials = credentials

    def save(self, credentials: SessionCredentials) -> None:
        self._credentials = credentials

    def load(self) -> SessionCredentials | None:
        return self._credentials

    def clear(self) -> None:
        self._credentials = None


def _run_with_client(
    handler: Callable[[httpx.Request], httpx.Response],
    call: Callable[[httpx.AsyncClient], Awaitable[TResult]],
) -> TResult:
    async def scenario() -> TResult:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            return await call(http_client)

    return asyncio.run(scenario())


def test_http_fetcher_returns_body_bytes() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code=200, content=PDF_BYTES)

    document = _run_with_client(
        handler,
        lambda client: HttpDocumentFetcher(http_client=client).fetch(
            "https://example.com/docs/report.pdf",
            "Report",
        ),
    )

    assert document.data == PDF_BYTES
    assert document.size == len(PDF_BYTES)
    assert document.source == "https://example.com/docs/report.pdf"
    assert captured[0].method == "GET"


def test_http_fetcher_converts_google_drive_links() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code=200, content=PDF_BYTES)

    _run_with_client(
        handler,
        lambda client: HttpDocumentFetcher(http_client=client).fetch(
            "https://drive.google.com/open?id=abc123"
        ),
    )

    assert captured[0].url.params["id"] == "abc123"
    assert captured[0].url.params["export"] == "download"


@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (401, DocumentAuthError),
        (403, DocumentAuthError),
        (404, DocumentNotFoundError),
        (504, ExtractionTimeoutError),
        (502, DocumentNetworkError),
        (422, ServerExtractionError),
    ],
)
def test_http_fetcher_maps_status_codes(status_code: int, error_type: type[Exception]) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=status_code, json={"error": "nope"})

    with pytest.raises(error_type, match="detail=nope"):
        _run_with_client(
            handler,
            lambda client: HttpDocumentFetcher(http_client=client).fetch(
                "https://example.com/a.pdf"
            ),
        )


def test_http_fetcher_treats_empty_body_as_not_found() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, content=b"")

    with pytest.raises(DocumentNotFoundError):
        _run_with_client(
            handler,
            lambda client: HttpDocumentFetcher(http_client=client).fetch(
                "https://example.com/a.pdf"
            ),
        )


def test_http_fetcher_maps_transport_errors() -> None:
    def timeout_handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    def refused_handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ExtractionTimeoutError, match="timed out"):
        _run_with_client(
            timeout_handler,
            lambda client: HttpDocumentFetcher(http_client=client).fetch(
                "https://example.com/a.pdf"
            ),
        )
    with pytest.raises(DocumentNetworkError, match="refused"):
        _run_with_client(
            refused_handler,
            lambda client: HttpDocumentFetcher(http_client=client).fetch(
                "https://example.com/a.pdf"
            ),
        )


def test_fetchers_reject_relative_urls() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        raise AssertionError("request must not be sent")

    with pytest.raises(ValueError, match="absolute"):
        _run_with_client(
            handler,
            lambda client: HttpDocumentFetcher(http_client=client).fetch("/a.pdf"),
        )
    with pytest.raises(ValueError, match="absolute"):
        _run_with_client(
            handler,
            lambda client: ProxyDocumentFetcher(
                functions_base_url=FUNCTIONS_URL,
                http_client=client,
            ).fetch("ftp://example.com/a.pdf"),
        )


def test_proxy_fetcher_posts_url_and_decodes_base64_payload() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            status_code=200,
            json=base64.b64encode(PDF_BYTES).decode("ascii"),
        )

    credentials = InMemoryCredentials(SessionCredentials(access_token="jwt", api_key="anon"))
    document = _run_with_client(
        handler,
        lambda client: ProxyDocumentFetcher(
            functions_base_url=FUNCTIONS_URL,
            credentials=credentials,
            http_client=client,
        ).fetch("https://example.com/a.pdf", "Syllabus"),
    )

    assert document.data == PDF_BYTES
    request = captured[0]
    assert request.url.path == "/functions/v1/pdf-proxy"
    assert request.headers["authorization"] == "Bearer jwt"
    assert request.headers["apikey"] == "anon"
    payload = json.loads(request.content.decode("utf-8"))
    assert payload["url"] == "https://example.com/a.pdf"
    assert payload["title"] == "Syllabus"
    assert payload["noCache"] is True
    assert payload["nonce"]


def test_proxy_fetcher_accepts_wrapped_payload() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=200,
            json={"data": base64.b64encode(PDF_BYTES).decode("ascii")},
        )

    document = _run_with_client(
        handler,
        lambda client: ProxyDocumentFetcher(
            functions_base_url=FUNCTIONS_URL,
            http_client=client,
        ).fetch("https://example.com/a.pdf"),
    )

    assert document.data == PDF_BYTES


def test_proxy_fetcher_rejects_invalid_base64() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json="%%% not base64 %%%")

    with pytest.raises(ServerExtractionError, match="decode"):
        _run_with_client(
            handler,
            lambda client: ProxyDocumentFetcher(
                functions_base_url=FUNCTIONS_URL,
                http_client=client,
            ).fetch("https://example.com/a.pdf"),
        )


def test_proxy_fetcher_requires_stored_credentials_when_configured() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        raise AssertionError("request must not be sent")

    with pytest.raises(DocumentAuthError):
        _run_with_client(
            handler,
            lambda client: ProxyDocumentFetcher(
                functions_base_url=FUNCTIONS_URL,
                credentials=InMemoryCredentials(None),
                http_client=client,
            ).fetch("https://example.com/a.pdf"),
        )


def test_server_client_sends_payload_and_headers() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code=200, json={"text": "Extracted words", "success": True})

    credentials = InMemoryCredentials(SessionCredentials(access_token="jwt", api_key="anon"))
    text = _run_with_client(
        handler,
        lambda client: ServerPdfExtractionClient(
            functions_base_url=FUNCTIONS_URL,
            credentials=credentials,
            http_client=client,
        ).extract("JVBERi0=", options={"timeout": 30, "maxPages": 10}, correlation_id="corr-9"),
    )

    assert text == "Extracted words"
    request = captured[0]
    assert request.url.path == "/functions/v1/process-pdf"
    assert request.headers["authorization"] == "Bearer jwt"
    assert request.headers["x-correlation-id"] == "corr-9"
    assert request.headers["cache-control"] == "no-cache"
    payload = json.loads(request.content.decode("utf-8"))
    assert payload == {"pdfBase64": "JVBERi0=", "options": {"timeout": 30, "maxPages": 10}}


@pytest.mark.parametrize(
    ("body", "error_type"),
    [
        ({"error": "could not parse"}, ServerExtractionError),
        ({"text": ""}, NoTextFoundError),
        ({}, NoTextFoundError),
    ],
)
def test_server_client_treats_missing_text_or_error_as_failure(
    body: dict[str, object],
    error_type: type[Exception],
) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json=body)

    credentials = InMemoryCredentials(SessionCredentials(access_token="jwt"))
    with pytest.raises(error_type):
        _run_with_client(
            handler,
            lambda client: ServerPdfExtractionClient(
                functions_base_url=FUNCTIONS_URL,
                credentials=credentials,
                http_client=client,
            ).extract("JVBERi0=", options={}, correlation_id="corr-1"),
        )


def test_server_client_without_credentials_raises_auth_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        raise AssertionError("request must not be sent")

    with pytest.raises(DocumentAuthError):
        _run_with_client(
            handler,
            lambda client: ServerPdfExtractionClient(
                functions_base_url=FUNCTIONS_URL,
                credentials=InMemoryCredentials(None),
                http_client=client,
            ).extract("JVBERi0=", options={}, correlation_id="corr-1"),
        )


def test_server_client_rejects_non_json_payload() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, content=b"<html>oops</html>")

    credentials = InMemoryCredentials(SessionCredentials(access_token="jwt"))
    with pytest.raises(ServerExtractionError, match="invalid payload"):
        _run_with_client(
            handler,
            lambda client: ServerPdfExtractionClient(
                functions_base_url=FUNCTIONS_URL,
                credentials=credentials,
                http_client=client,
            ).extract("JVBERi0=", options={}, correlation_id="corr-1"),
        )
