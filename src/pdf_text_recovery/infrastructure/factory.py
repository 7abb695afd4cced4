"""Factory helpers for default extraction pipeline wiring."""

from __future__ import annotations

import logging

import httpx

from pdf_text_recovery.application.extract_document_use_case import ExtractDocumentTextUseCase
from pdf_text_recovery.application.orchestrator import ExtractionOrchestrator
from pdf_text_recovery.application.ports import (
    DocumentFetcher,
    ExtractionStrategy,
    SessionTokenStore,
)
from pdf_text_recovery.application.strategies import ClientParseStrategy, ServerFunctionStrategy
from pdf_text_recovery.infrastructure.config import ExtractionSettings, load_extraction_settings
from pdf_text_recovery.infrastructure.http.fetchers import HttpDocumentFetcher, ProxyDocumentFetcher
from pdf_text_recovery.infrastructure.http.server_extraction import ServerPdfExtractionClient
from pdf_text_recovery.infrastructure.security.keyring_store import KeyringSessionStore


def create_default_extraction_use_case(
    *,
    http_client: httpx.AsyncClient,
    settings: ExtractionSettings | None = None,
    credentials: SessionTokenStore | None = None,
    logger: logging.Logger | None = None,
) -> ExtractDocumentTextUseCase:
    """Construct use case with fetcher and strategies chosen from settings.

    With a functions URL configured, documents go through the proxy function and
    the server function backs up the in-process parser. Without one, the
    document is downloaded directly and only the in-process parser is retried.
    """
    resolved = settings or load_extraction_settings()
    client_strategy = ClientParseStrategy(max_pages=resolved.max_pages)

    fetcher: DocumentFetcher
    primary: ExtractionStrategy | None
    fallback: ExtractionStrategy
    if resolved.functions_base_url:
        store = credentials or KeyringSessionStore()
        fetcher = ProxyDocumentFetcher(
            functions_base_url=resolved.functions_base_url,
            credentials=store,
            http_client=http_client,
            timeout_seconds=resolved.watchdog_timeout_seconds,
        )
        primary = client_strategy
        fallback = ServerFunctionStrategy(
            ServerPdfExtractionClient(
                functions_base_url=resolved.functions_base_url,
                credentials=store,
                http_client=http_client,
                timeout_seconds=resolved.watchdog_timeout_seconds,
            )
        )
    else:
        fetcher = HttpDocumentFetcher(
            http_client=http_client,
            timeout_seconds=resolved.watchdog_timeout_seconds,
        )
        primary = None
        fallback = client_strategy

    orchestrator = ExtractionOrchestrator(
        primary=primary,
        fallback=fallback,
        policy=resolved.retry_policy,
        watchdog_seconds=resolved.watchdog_timeout_seconds,
        logger=logger,
    )
    return ExtractDocumentTextUseCase(
        fetcher=fetcher,
        orchestrator=orchestrator,
        fetch_policy=resolved.retry_policy,
        max_pages=resolved.max_pages,
        server_timeout_seconds=resolved.server_timeout_seconds,
        logger=logger,
    )
