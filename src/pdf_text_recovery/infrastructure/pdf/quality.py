"""Quality heuristics for extracted PDF text."""

from __future__ import annotations

import re

from pdf_text_recovery.domain.extraction import QualityVerdict

MIN_READABLE_WORDS = 10
MAX_CHARACTERS_PER_WORD = 50

BINARY_MIN_LENGTH = 100
BINARY_SUSPICIOUS_RATIO = 0.2
BINARY_MIN_SPACE_FRACTION = 1 / 15

_WORD_LIKE_PATTERN = re.compile(r"[A-Za-z]{3,}")
_STANDARD_CHARS_PATTERN = re.compile(r"""[a-zA-Z0-9\s.,;:!?()\[\]{}'"$%&*+\-=<>|/\\]""")
_SYMBOL_CLUSTER_PATTERN = re.compile(r"[&@#^~*\\/]{2,}")
_HEX_LITERAL_PATTERN = re.compile(r"0x[0-9A-F]{2}", re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\s")


def classify_text_quality(text: str) -> QualityVerdict:
    """Score text readability by counting word-like tokens."""
    total_length = len(text)
    word_count = sum(1 for token in text.split() if _WORD_LIKE_PATTERN.search(token))
    readable = (
        word_count >= MIN_READABLE_WORDS
        and word_count >= total_length / MAX_CHARACTERS_PER_WORD
    )
    return QualityVerdict(
        readable=readable,
        word_count=word_count,
        total_length=total_length,
    )


def is_binary_data(text: str) -> bool:
    """Return whether at least two of four binary-content heuristics fire."""
    if len(text) < BINARY_MIN_LENGTH:
        return False

    suspicious_count = len(text) - len(_STANDARD_CHARS_PATTERN.findall(text))
    space_count = len(_WHITESPACE_PATTERN.findall(text))
    indicators = (
        suspicious_count / len(text) > BINARY_SUSPICIOUS_RATIO,
        space_count < len(text) * BINARY_MIN_SPACE_FRACTION,
        _SYMBOL_CLUSTER_PATTERN.search(text) is not None,
        _HEX_LITERAL_PATTERN.search(text) is not None,
    )
    return sum(indicators) >= 2
