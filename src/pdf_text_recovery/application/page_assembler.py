"""Join per-page text fragments into one document text."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pdf_text_recovery.domain.extraction import AssembledText, PageFragment

PAGE_SEPARATOR = "\n\n"
FRAGMENT_SEPARATOR = " "


def assemble_pages(
    pages: Iterable[Sequence[PageFragment]],
    *,
    page_count: int | None = None,
) -> AssembledText:
    """Concatenate fragments in emission order; blank pages are omitted.

    ``page_count`` defaults to the number of pages visited. Pass the parser's
    own count when processing was capped below it.
    """
    page_texts: list[str] = []
    per_page_lengths: list[int] = []
    visited = 0

    for fragments in pages:
        visited += 1
        page_text = FRAGMENT_SEPARATOR.join(fragment.text for fragment in fragments).strip()
        per_page_lengths.append(len(page_text))
        if page_text:
            page_texts.append(page_text)

    return AssembledText(
        full_text=PAGE_SEPARATOR.join(page_texts),
        page_count=visited if page_count is None else page_count,
        per_page_lengths=tuple(per_page_lengths),
    )
