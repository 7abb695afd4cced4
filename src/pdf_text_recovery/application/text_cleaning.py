"""Staged recovery of readable text from noisy PDF extraction output.

Stages run in order and the first stage whose output passes its acceptance
check wins; later stages are never executed. Stage 1 works on the raw text,
every later stage works on the control-stripped text. Thresholds are
empirically tuned and exposed as module constants.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pdf_text_recovery.domain.extraction import CleaningStageResult
from pdf_text_recovery.infrastructure.pdf.quality import classify_text_quality, is_binary_data

LOGGER = logging.getLogger(__name__)

CONTROL_STRIP_MIN_LENGTH = 300
CHARSET_MIN_LENGTH = 200
WORD_EXTRACTION_MIN_LENGTH = 200
PAGE_PATTERN_MIN_LENGTH = 200
ULTRA_STRIP_MIN_LENGTH = 100

FALLBACK_MESSAGE = (
    "Could not extract readable text from this document. "
    "The document appears to contain binary data or have encoding issues."
)
FALLBACK_STAGE_NAME = "fallback_message"

_CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F\uFFFD]")
_OUTSIDE_CHARSET_PATTERN = re.compile(r"[^\x20-\x7E\r\n\t\u00A0-\u00FF\u2000-\u206F]")
_WHITESPACE_RUN_PATTERN = re.compile(r"\s+")
_TWO_LETTERS_PATTERN = re.compile(r"[A-Za-z]{2,}")
_PAGE_MARKER_PATTERN = re.compile(r"---\s*Page\s+(\d+)[^\n]*?---")
_ULTRA_DISALLOWED_PATTERN = re.compile(r"[^a-zA-Z0-9\s.,;:!?'\"()\-]")


def strip_control_characters(text: str) -> str:
    """Remove control characters and U+FFFD, then trim."""
    return _CONTROL_CHARS_PATTERN.sub("", text).strip()


def restrict_charset(text: str) -> str:
    """Keep ASCII, Latin-1 and general punctuation; collapse whitespace."""
    restricted = _OUTSIDE_CHARSET_PATTERN.sub(" ", text)
    return _collapse_whitespace(restricted)


def extract_words(text: str) -> str:
    """Keep whitespace-delimited tokens carrying at least two letters."""
    words = [
        token
        for token in text.split()
        if len(token) >= 2 and _TWO_LETTERS_PATTERN.search(token)
    ]
    return " ".join(words)


def extract_page_segments(text: str) -> str:
    """Clean each ``--- Page N ---`` segment independently and rejoin.

    Text before the first marker is kept as an unlabelled leading segment.
    """
    parts = _PAGE_MARKER_PATTERN.split(text)
    if len(parts) < 3:
        return ""

    cleaned_pages: list[str] = []
    leading = extract_words(restrict_charset(parts[0]))
    if leading:
        cleaned_pages.append(leading)
    for index in range(1, len(parts) - 1, 2):
        page_number = parts[index]
        segment = extract_words(restrict_charset(parts[index + 1]))
        if segment:
            cleaned_pages.append(f"--- Page {page_number} ---\n{segment}")
    return "\n\n".join(cleaned_pages)


def ultra_strip(text: str) -> str:
    """Keep only alphanumerics and a small punctuation allow-list."""
    return _collapse_whitespace(_ULTRA_DISALLOWED_PATTERN.sub(" ", text))


def _collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RUN_PATTERN.sub(" ", text).strip()


def _readable_and_longer_than(min_length: int) -> Callable[[str], bool]:
    def accepts(output: str) -> bool:
        return len(output) > min_length and classify_text_quality(output).readable

    return accepts


def _longer_than(min_length: int) -> Callable[[str], bool]:
    def accepts(output: str) -> bool:
        return len(output) > min_length

    return accepts


@dataclass(frozen=True)
class CleaningStage:
    """One transform plus its acceptance check."""

    name: str
    transform: Callable[[str], str]
    accepts: Callable[[str], bool]


DEFAULT_STAGES: tuple[CleaningStage, ...] = (
    CleaningStage(
        name="control_char_strip",
        transform=strip_control_characters,
        accepts=_readable_and_longer_than(CONTROL_STRIP_MIN_LENGTH),
    ),
    CleaningStage(
        name="charset_restriction",
        transform=restrict_charset,
        accepts=_readable_and_longer_than(CHARSET_MIN_LENGTH),
    ),
    CleaningStage(
        name="word_extraction",
        transform=extract_words,
        accepts=_longer_than(WORD_EXTRACTION_MIN_LENGTH),
    ),
    CleaningStage(
        name="page_pattern_extraction",
        transform=extract_page_segments,
        accepts=_longer_than(PAGE_PATTERN_MIN_LENGTH),
    ),
    CleaningStage(
        name="ultra_strip",
        transform=ultra_strip,
        accepts=_longer_than(ULTRA_STRIP_MIN_LENGTH),
    ),
)


class TextCleaningPipeline:
    """Run cleaning stages until one output is accepted."""

    def __init__(self, stages: Sequence[CleaningStage] = DEFAULT_STAGES) -> None:
        if not stages:
            raise ValueError("stages must not be empty")
        self._stages = tuple(stages)

    def run(self, raw_text: str) -> CleaningStageResult:
        """Return the first accepted stage result or the fallback result."""
        if not raw_text:
            return CleaningStageResult(stage_name="empty_input", output="", accepted=True)

        try:
            return self._run_stages(raw_text)
        except Exception:
            LOGGER.exception("event=text_cleaning_failed input_length=%s", len(raw_text))
            return _fallback_result()

    def clean(self, raw_text: str) -> str:
        """Return cleaned text; never raises."""
        return self.run(raw_text).output

    def _run_stages(self, raw_text: str) -> CleaningStageResult:
        base_text = raw_text
        for index, stage in enumerate(self._stages):
            output = stage.transform(base_text)
            if stage.accepts(output):
                LOGGER.debug(
                    "event=text_cleaning_stage_accepted stage=%s input_length=%s output_length=%s",
                    stage.name,
                    len(raw_text),
                    len(output),
                )
                return CleaningStageResult(stage_name=stage.name, output=output, accepted=True)
            if index == 0:
                base_text = output

        LOGGER.info(
            "event=text_cleaning_exhausted input_length=%s stages=%s",
            len(raw_text),
            len(self._stages),
        )
        return _fallback_result()


def _fallback_result() -> CleaningStageResult:
    return CleaningStageResult(
        stage_name=FALLBACK_STAGE_NAME,
        output=FALLBACK_MESSAGE,
        accepted=False,
    )


_DEFAULT_PIPELINE = TextCleaningPipeline()


def clean_pdf_text(raw_text: str) -> str:
    """Clean noisy PDF text with the default stage chain."""
    return _DEFAULT_PIPELINE.clean(raw_text)


def extract_plain_text(text: str) -> str:
    """Clean text only when it looks like binary data."""
    if is_binary_data(text):
        return clean_pdf_text(text)
    return text
