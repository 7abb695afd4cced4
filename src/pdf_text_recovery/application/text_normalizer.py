"""Normalization and sanity checks for text that extracted cleanly."""

from __future__ import annotations

import re
from dataclasses import dataclass

MIN_VALID_LENGTH = 20
MIN_VALID_WORDS = 5

LITTLE_TEXT_MESSAGE = (
    "Very little text was extracted. "
    "The PDF may contain mostly images or have accessibility issues."
)

_MULTISPACE_PATTERN = re.compile(r"[ \t]+")
_EXCESS_BREAKS_PATTERN = re.compile(r"\n\s*\n\s*\n")
_SENTENCE_BREAK_PATTERN = re.compile(r"([.!?])\s*\n\s*([A-Z])")
_WORD_PATTERN = re.compile(r"[a-zA-Z]{2,}")


def normalize_extracted_text(raw_text: str) -> str:
    """Normalize whitespace while preserving paragraph breaks."""
    if not raw_text:
        return ""

    normalized = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _MULTISPACE_PATTERN.sub(" ", normalized)
    normalized = _EXCESS_BREAKS_PATTERN.sub("\n\n", normalized)
    normalized = _SENTENCE_BREAK_PATTERN.sub(r"\1\n\n\2", normalized)
    normalized = normalized.strip()

    if not normalized:
        return LITTLE_TEXT_MESSAGE
    return normalized


@dataclass(frozen=True)
class TextValidation:
    """Outcome of a lightweight extracted-text sanity check."""

    is_valid: bool
    message: str | None = None


def validate_extracted_text(text: str) -> TextValidation:
    """Check that extracted text contains a minimum of readable words."""
    if not text.strip():
        return TextValidation(is_valid=False, message="No text was extracted from the PDF.")

    if len(text) < MIN_VALID_LENGTH:
        return TextValidation(
            is_valid=False,
            message="Very little text was extracted. The PDF may be image-based.",
        )

    words = [token for token in text.split() if _WORD_PATTERN.search(token)]
    if len(words) < MIN_VALID_WORDS:
        return TextValidation(
            is_valid=False,
            message="Extracted text doesn't contain enough readable words.",
        )

    return TextValidation(is_valid=True)
