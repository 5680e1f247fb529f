from __future__ import annotations

from typing import List, NamedTuple

DEFAULT_PAGE_SIZE = 500


class PageRange(NamedTuple):
    """Inclusive [start, end] slice of the remote entry range."""

    start: int
    end: int


def get_pages(max_value: int, page_size: int = DEFAULT_PAGE_SIZE) -> List[PageRange]:
    """Split entries 1..max_value into consecutive ranges of at most page_size.

    max_value is the EntryCount reported by /get-events. Nothing is planned
    when max_value <= 1. A trailing single entry gets its own range, e.g.
    (501, 501) for max_value=501, so every entry is fetched exactly once.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if max_value <= 1:
        return []

    pages: List[PageRange] = []
    start = 1
    while start <= max_value:
        pages.append(PageRange(start, min(start + page_size - 1, max_value)))
        start += page_size
    return pages
