from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


@dataclass(frozen=True)
class PositionRecord:
    """Last known scroll offset of one document.

    ``offset`` is ``None`` for a known document whose offset was never captured.
    ``last_accessed`` is a millisecond epoch timestamp used only for expiry.
    """

    offset: float | None
    last_accessed: int

    def to_json(self) -> dict[str, Any]:
        return {"height": self.offset, "lastAccessed": self.last_accessed}


class ExportEntry(TypedDict):
    filename: str
    height: float | None
    lastAccessed: int
