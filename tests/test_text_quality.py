"""Unit tests for readability classification and binary detection."""

from __future__ import annotations

from pdf_text_recovery.domain.extraction import QualityVerdict
from pdf_text_recovery.infrastructure.pdf.quality import classify_text_quality, is_binary_data

PROSE = (
    "The committee reviewed the annual budget and agreed to fund the new library wing. "
    "Members asked for a detailed schedule before construction starts next spring. "
    "The treasurer will publish quarterly reports so residents can follow the spending."
)


def test_classify_empty_text_is_not_readable() -> None:
    assert classify_text_quality("") == QualityVerdict(
        readable=False,
        word_count=0,
        total_length=0,
    )


def test_classify_short_sentence_is_readable() -> None:
    text = "the quick brown fox jumps over the lazy dog and runs fast"

    verdict = classify_text_quality(text)

    assert verdict.readable is True
    assert verdict.word_count == 12
    assert verdict.total_length == len(text)


def test_classify_requires_ten_word_like_tokens() -> None:
    verdict = classify_text_quality("one two three four five six seven eight nine")

    assert verdict.word_count == 9
    assert verdict.readable is False


def test_classify_rejects_sparse_words_in_long_noise() -> None:
    text = "alpha bravo charlie delta echo foxtrot golf hotel india juliet " + "1" * 2000

    verdict = classify_text_quality(text)

    assert verdict.word_count == 10
    assert verdict.readable is False


def test_classify_counts_tokens_with_embedded_letter_runs() -> None:
    verdict = classify_text_quality("x1abc2 ab ab_cd --- ...wordy")

    assert verdict.word_count == 2


def test_is_binary_data_flags_symbol_heavy_text() -> None:
    symbol = chr(0xA4)
    text = ("ab" + symbol * 3) * 40

    assert len(text) == 200
    assert is_binary_data(text) is True


def test_is_binary_data_accepts_prose_of_same_length() -> None:
    text = PROSE[:200]

    assert len(text) == 200
    assert is_binary_data(text) is False


def test_is_binary_data_ignores_short_text() -> None:
    assert is_binary_data(chr(0xA4) * 99) is False


def test_is_binary_data_needs_two_indicators() -> None:
    hex_and_clusters = "0x4F ##@@ " + PROSE

    assert is_binary_data(hex_and_clusters) is True
    assert is_binary_data("0x4F " + PROSE) is False
