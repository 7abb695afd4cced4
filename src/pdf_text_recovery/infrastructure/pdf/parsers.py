"""Primary/fallback PDF parser adapters producing positioned text fragments."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol

from pdfminer.converter import PDFPageAggregator
from pdfminer.layout import LAParams, LTTextContainer
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdfinterp import PDFPageInterpreter, PDFResourceManager
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser
from pypdf import PageObject, PdfReader

from pdf_text_recovery.application.errors import NoTextFoundError, PdfParseError
from pdf_text_recovery.domain.extraction import PageFragment

LOGGER = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
DEFAULT_MAX_PAGES = 10


def is_pdf_bytes(data: bytes) -> bool:
    """Return whether payload starts with the PDF header."""
    return data[: len(PDF_MAGIC)] == PDF_MAGIC


@dataclass(frozen=True)
class ParsedPdf:
    """Parser output: the document's own page count and lazily read pages."""

    page_count: int
    pages: Iterator[list[PageFragment]]
    strategy: str


class PdfParser(Protocol):
    """Protocol for PDF parser adapters."""

    strategy_name: str

    def parse(self, data: bytes) -> ParsedPdf:
        """Open PDF bytes and return lazily evaluated page fragments."""
        ...


class PyPdfParser:
    """Primary parser using pypdf text visitors."""

    strategy_name = "pypdf"

    def __init__(self, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        _validate_max_pages(max_pages)
        self._max_pages = max_pages

    def parse(self, data: bytes) -> ParsedPdf:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                reader.decrypt("")
            page_count = len(reader.pages)
        except Exception as exc:
            raise PdfParseError("Could not read PDF structure with pypdf.") from exc

        return ParsedPdf(
            page_count=page_count,
            pages=_iter_capped_pages(
                strategy=self.strategy_name,
                pages_to_visit=min(page_count, self._max_pages),
                read_page=lambda index: _read_pypdf_page(reader.pages[index], index + 1),
            ),
            strategy=self.strategy_name,
        )


class PdfMinerParser:
    """Fallback parser using pdfminer.six layout analysis."""

    strategy_name = "pdfminer"

    def __init__(self, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        _validate_max_pages(max_pages)
        self._max_pages = max_pages

    def parse(self, data: bytes) -> ParsedPdf:
        try:
            document = PDFDocument(PDFParser(io.BytesIO(data)))
            pdf_pages = list(PDFPage.create_pages(document))
        except Exception as exc:
            raise PdfParseError("Could not read PDF structure with pdfminer.") from exc

        resource_manager = PDFResourceManager()
        device = PDFPageAggregator(resource_manager, laparams=LAParams())
        interpreter = PDFPageInterpreter(resource_manager, device)

        def read_page(index: int) -> list[PageFragment]:
            interpreter.process_page(pdf_pages[index])
            return _layout_fragments(device.get_result(), index + 1)

        return ParsedPdf(
            page_count=len(pdf_pages),
            pages=_iter_capped_pages(
                strategy=self.strategy_name,
                pages_to_visit=min(len(pdf_pages), self._max_pages),
                read_page=read_page,
            ),
            strategy=self.strategy_name,
        )


def _iter_capped_pages(
    *,
    strategy: str,
    pages_to_visit: int,
    read_page: Callable[[int], list[PageFragment]],
) -> Iterator[list[PageFragment]]:
    failed_pages = 0
    for index in range(pages_to_visit):
        try:
            fragments = read_page(index)
        except Exception:
            failed_pages += 1
            LOGGER.warning(
                "event=pdf_page_skipped strategy=%s page_number=%s",
                strategy,
                index + 1,
                exc_info=True,
            )
            continue
        yield fragments

    if pages_to_visit > 0 and failed_pages == pages_to_visit:
        raise NoTextFoundError("no text found")


def _read_pypdf_page(page: PageObject, page_number: int) -> list[PageFragment]:
    fragments: list[PageFragment] = []

    def visitor(text: str, cm: Any, tm: Any, font_dict: Any, font_size: Any) -> None:
        if text and text.strip():
            fragments.append(
                PageFragment(page_number=page_number, text=text, order=len(fragments))
            )

    page.extract_text(visitor_text=visitor)
    return fragments


def _layout_fragments(layout: Any, page_number: int) -> list[PageFragment]:
    fragments: list[PageFragment] = []
    for element in layout:
        if not isinstance(element, LTTextContainer):
            continue
        text = element.get_text()
        if text.strip():
            fragments.append(
                PageFragment(page_number=page_number, text=text, order=len(fragments))
            )
    return fragments


def _validate_max_pages(max_pages: int) -> None:
    if max_pages < 1:
        raise ValueError("max_pages must be >= 1")
