from __future__ import annotations

from ._store import DAY_MS, PositionStore, normalize_record, now_ms
from .listing import SORT_FIELDS, EntryPage, page_of, sorted_entries
from .types import ExportEntry, PositionRecord

__all__ = [
    "DAY_MS",
    "SORT_FIELDS",
    "EntryPage",
    "ExportEntry",
    "PositionRecord",
    "PositionStore",
    "normalize_record",
    "now_ms",
    "page_of",
    "sorted_entries",
]
