"""Composite in-process PDF extraction with fallback parser selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pdf_text_recovery.application.errors import ExtractionError
from pdf_text_recovery.application.page_assembler import assemble_pages
from pdf_text_recovery.domain.extraction import AssembledText, QualityVerdict
from pdf_text_recovery.infrastructure.pdf.parsers import PdfParser
from pdf_text_recovery.infrastructure.pdf.quality import classify_text_quality

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalExtractionResult:
    """Selected assembled text and decision metadata."""

    assembled: AssembledText
    verdict: QualityVerdict
    strategy: str
    used_fallback: bool


class CompositePdfExtractor:
    """Orchestrate primary/fallback parsers using the readability verdict."""

    def __init__(self, primary: PdfParser, fallback: PdfParser) -> None:
        self._primary = primary
        self._fallback = fallback

    def extract(self, data: bytes) -> LocalExtractionResult:
        primary_result: LocalExtractionResult | None = None
        try:
            primary_result = _parse_and_assemble(self._primary, data, used_fallback=False)
        except ExtractionError as exc:
            LOGGER.info(
                "event=pdf_primary_parser_failed strategy=%s error=%s",
                self._primary.strategy_name,
                exc,
            )

        if primary_result is not None and not _should_try_fallback(primary_result.verdict):
            return primary_result

        try:
            fallback_result = _parse_and_assemble(self._fallback, data, used_fallback=True)
        except ExtractionError:
            if primary_result is not None:
                return primary_result
            raise

        if primary_result is None or _prefer_fallback(primary_result.verdict, fallback_result.verdict):
            return fallback_result
        return primary_result


def _parse_and_assemble(
    parser: PdfParser,
    data: bytes,
    *,
    used_fallback: bool,
) -> LocalExtractionResult:
    parsed = parser.parse(data)
    assembled = assemble_pages(parsed.pages, page_count=parsed.page_count)
    return LocalExtractionResult(
        assembled=assembled,
        verdict=classify_text_quality(assembled.full_text),
        strategy=parsed.strategy,
        used_fallback=used_fallback,
    )


def _should_try_fallback(verdict: QualityVerdict) -> bool:
    return not verdict.readable


def _prefer_fallback(
    primary_verdict: QualityVerdict,
    fallback_verdict: QualityVerdict,
) -> bool:
    if fallback_verdict.total_length == 0:
        return False
    if primary_verdict.total_length == 0:
        return True
    return fallback_verdict.word_count > primary_verdict.word_count * 1.1
