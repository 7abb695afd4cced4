"""Application use-case for recovering readable text from a remote PDF."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from uuid import uuid4

from pdf_text_recovery.application.errors import ExtractionError, PdfParseError, user_message_for
from pdf_text_recovery.application.orchestrator import ExtractionOrchestrator, ExtractionRun
from pdf_text_recovery.application.ports import DocumentFetcher, ExtractionRequest
from pdf_text_recovery.application.progress import ProgressCallback, ProgressReporter
from pdf_text_recovery.application.text_cleaning import clean_pdf_text
from pdf_text_recovery.application.text_normalizer import normalize_extracted_text
from pdf_text_recovery.domain.extraction import (
    DocumentDescriptor,
    ExtractionOutput,
    FailureReason,
    RawDocumentBytes,
)
from pdf_text_recovery.infrastructure.http.urls import validate_pdf_url
from pdf_text_recovery.infrastructure.pdf.parsers import DEFAULT_MAX_PAGES, is_pdf_bytes
from pdf_text_recovery.infrastructure.pdf.quality import is_binary_data
from pdf_text_recovery.infrastructure.retry import AsyncRetryExecutor, RetryPolicy, Sleep

LOGGER = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
CONTROL_CHARACTER_PROBE_LENGTH = 500
UNSUPPORTED_TYPE_MESSAGE = "Unsupported document type. Only PDF documents can be processed."

_CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


class ExtractDocumentTextUseCase:
    """Fetch a PDF, extract its text with retries and return cleaned text."""

    def __init__(
        self,
        *,
        fetcher: DocumentFetcher,
        orchestrator: ExtractionOrchestrator,
        fetch_policy: RetryPolicy | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
        server_timeout_seconds: int = 30,
        sleep: Sleep = asyncio.sleep,
        correlation_id_factory: Callable[[], str] = lambda: str(uuid4()),
        logger: logging.Logger | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._orchestrator = orchestrator
        self._fetch_retry = AsyncRetryExecutor(fetch_policy or RetryPolicy(), sleep=sleep)
        self._max_pages = max_pages
        self._server_timeout_seconds = server_timeout_seconds
        self._correlation_id_factory = correlation_id_factory
        self._logger = logger or LOGGER

    async def execute(
        self,
        descriptor: DocumentDescriptor,
        progress_callback: ProgressCallback | None = None,
    ) -> ExtractionOutput:
        """Run fetch, extraction and cleaning; failures become user-facing output."""
        correlation_id = self._correlation_id_factory()
        progress = ProgressReporter(progress_callback)
        progress.report(0)

        if descriptor.mime_type != PDF_MIME_TYPE:
            return self._failure(correlation_id, descriptor, UNSUPPORTED_TYPE_MESSAGE)

        validation = validate_pdf_url(descriptor.url)
        if not validation.is_valid:
            return self._failure(
                correlation_id,
                descriptor,
                validation.message or "Invalid document URL.",
            )

        try:
            document = await self._fetch(descriptor, correlation_id)
            progress.report(40)
            if not is_pdf_bytes(document.data):
                raise PdfParseError("Fetched payload is missing the %PDF- header.")

            run = await self._orchestrator.run(
                ExtractionRequest(
                    document=document,
                    correlation_id=correlation_id,
                    max_pages=self._max_pages,
                    server_timeout_seconds=self._server_timeout_seconds,
                ),
                progress=progress.scaled(40, 90),
            )
        except ExtractionError as exc:
            self._logger.warning(
                "event=document_extraction_failed correlation_id=%s title=%s reason=%s detail=%s",
                correlation_id,
                descriptor.title,
                exc.reason.value,
                exc,
            )
            return self._failure(correlation_id, descriptor, exc.user_message)
        except Exception:
            self._logger.exception(
                "event=document_extraction_crashed correlation_id=%s title=%s",
                correlation_id,
                descriptor.title,
            )
            return self._failure(
                correlation_id,
                descriptor,
                user_message_for(FailureReason.UNKNOWN),
            )

        text = _post_process(run.text)
        progress.report(100)
        self._log_success(correlation_id, descriptor, run, text)
        return ExtractionOutput(
            success=True,
            text=text,
            correlation_id=correlation_id,
            pages=run.page_count,
        )

    async def _fetch(self, descriptor: DocumentDescriptor, correlation_id: str) -> RawDocumentBytes:
        self._logger.info(
            "event=document_fetch_started correlation_id=%s title=%s",
            correlation_id,
            descriptor.title,
        )
        return await self._fetch_retry.run(
            lambda: self._fetcher.fetch(descriptor.url, descriptor.title),
            operation_name="document fetch",
        )

    def _failure(
        self,
        correlation_id: str,
        descriptor: DocumentDescriptor,
        message: str,
    ) -> ExtractionOutput:
        self._logger.info(
            "event=document_extraction_rejected correlation_id=%s title=%s",
            correlation_id,
            descriptor.title,
        )
        return ExtractionOutput(
            success=False,
            text="",
            correlation_id=correlation_id,
            error=message,
        )

    def _log_success(
        self,
        correlation_id: str,
        descriptor: DocumentDescriptor,
        run: ExtractionRun,
        text: str,
    ) -> None:
        self._logger.info(
            (
                "event=document_extraction_completed correlation_id=%s title=%s strategy=%s "
                "attempts=%s page_count=%s raw_length=%s length=%s"
            ),
            correlation_id,
            descriptor.title,
            run.strategy_name,
            run.attempt_count,
            run.page_count if run.page_count is not None else "-",
            len(run.text),
            len(text),
        )


def _post_process(text: str) -> str:
    if is_binary_data(text) or _has_control_characters(text):
        return clean_pdf_text(text)
    return normalize_extracted_text(text)


def _has_control_characters(text: str) -> bool:
    return bool(_CONTROL_CHARS_PATTERN.search(text[:CONTROL_CHARACTER_PROBE_LENGTH]))
