from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ._store import PositionStore
from .types import PositionRecord

SORT_FIELDS = ("key", "offset", "accessed")


@dataclass(frozen=True)
class EntryPage:
    items: list[tuple[str, PositionRecord]]
    page: int
    total_pages: int
    total_items: int


def sorted_entries(
    store: PositionStore, *, by: str = "key", descending: bool = False
) -> list[tuple[str, PositionRecord]]:
    if by not in SORT_FIELDS:
        raise ValueError(f"unknown sort field: {by}")
    entries = store.entries()
    if by == "key":
        entries.sort(key=lambda item: item[0], reverse=descending)
    elif by == "accessed":
        entries.sort(key=lambda item: (item[1].last_accessed, item[0]), reverse=descending)
    else:
        # Records without an offset always sort last.
        known = [item for item in entries if item[1].offset is not None]
        unknown = [item for item in entries if item[1].offset is None]
        known.sort(key=lambda item: (item[1].offset, item[0]), reverse=descending)
        unknown.sort(key=lambda item: item[0])
        entries = known + unknown
    return entries


def page_of(
    entries: Sequence[tuple[str, PositionRecord]], page: int, page_size: int
) -> EntryPage:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total_items = len(entries)
    total_pages = math.ceil(total_items / page_size)
    page = min(max(page, 1), max(total_pages, 1))
    start = (page - 1) * page_size
    return EntryPage(
        items=list(entries[start : start + page_size]),
        page=page,
        total_pages=total_pages,
        total_items=total_items,
    )
