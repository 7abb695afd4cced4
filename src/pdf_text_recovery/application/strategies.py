"""Extraction strategies: in-process parse and server-side function call."""

from __future__ import annotations

import asyncio
import base64
import logging
import threading
from collections.abc import Callable
from typing import Protocol, TypeVar

from pdf_text_recovery.application.errors import NoTextFoundError, PdfParseError
from pdf_text_recovery.application.ports import ExtractionRequest
from pdf_text_recovery.domain.extraction import AttemptSuccess
from pdf_text_recovery.infrastructure.pdf.composite import (
    CompositePdfExtractor,
    LocalExtractionResult,
)
from pdf_text_recovery.infrastructure.pdf.parsers import (
    DEFAULT_MAX_PAGES,
    PdfMinerParser,
    PyPdfParser,
    is_pdf_bytes,
)

LOGGER = logging.getLogger(__name__)

MAX_SERVER_TIMEOUT_SECONDS = 60

TResult = TypeVar("TResult")


class LocalPdfExtractor(Protocol):
    """Synchronous in-process extractor used by the client strategy."""

    def extract(self, data: bytes) -> LocalExtractionResult:
        """Parse and assemble text from PDF bytes."""
        ...


class ServerExtractionGateway(Protocol):
    """Client for the server-side extraction function."""

    async def extract(
        self,
        pdf_base64: str,
        *,
        options: dict[str, object],
        correlation_id: str,
    ) -> str:
        """Return extracted text or raise a classified extraction error."""
        ...


class ClientParseStrategy:
    """Parse the PDF in-process with pypdf, falling back to pdfminer.

    The parse runs on a daemon thread. A watchdog timeout abandons the thread
    without stopping it, so a timed-out parse is not retried.
    """

    retry_after_timeout = False

    def __init__(
        self,
        extractor: LocalPdfExtractor | None = None,
        *,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self._extractor = extractor or CompositePdfExtractor(
            primary=PyPdfParser(max_pages=max_pages),
            fallback=PdfMinerParser(max_pages=max_pages),
        )

    @property
    def name(self) -> str:
        return "client_parse"

    async def extract(self, request: ExtractionRequest) -> AttemptSuccess:
        data = request.document.data
        if not is_pdf_bytes(data):
            raise PdfParseError("Payload is missing the %PDF- header.")

        result = await run_in_daemon_thread(self._extractor.extract, data)
        if result.assembled.is_empty:
            raise NoTextFoundError("no text found")
        return AttemptSuccess(
            text=result.assembled.full_text,
            page_count=result.assembled.page_count,
        )


class ServerFunctionStrategy:
    """Send the PDF to the process-pdf function."""

    def __init__(self, gateway: ServerExtractionGateway) -> None:
        self._gateway = gateway

    @property
    def name(self) -> str:
        return "server_function"

    async def extract(self, request: ExtractionRequest) -> AttemptSuccess:
        options: dict[str, object] = {
            **request.options,
            "timeout": min(request.server_timeout_seconds, MAX_SERVER_TIMEOUT_SECONDS),
            "forceTextMode": True,
            "disableBinaryOutput": True,
            "strictTextCleaning": True,
        }
        if request.max_pages:
            options["maxPages"] = request.max_pages

        pdf_base64 = base64.b64encode(request.document.data).decode("ascii")
        text = await self._gateway.extract(
            pdf_base64,
            options=options,
            correlation_id=request.correlation_id,
        )
        return AttemptSuccess(text=text)


async def run_in_daemon_thread(func: Callable[[bytes], TResult], data: bytes) -> TResult:
    """Run blocking work on a daemon thread that never delays loop or process shutdown."""
    loop = asyncio.get_running_loop()
    future: asyncio.Future[TResult] = loop.create_future()

    def settle(outcome: Callable[[], None]) -> None:
        try:
            loop.call_soon_threadsafe(outcome)
        except RuntimeError:
            LOGGER.debug("event=abandoned_parse_finished detail=event loop already closed")

    def set_result(result: TResult) -> None:
        if not future.done():
            future.set_result(result)

    def set_exception(exc: Exception) -> None:
        if not future.done():
            future.set_exception(exc)

    def worker() -> None:
        try:
            result = func(data)
        except Exception as exc:
            settle(lambda: set_exception(exc))
        else:
            settle(lambda: set_result(result))

    threading.Thread(target=worker, name="pdf-parse", daemon=True).start()
    return await future
