from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterator, Mapping
from typing import Any

from .types import PositionRecord

logger = logging.getLogger(__name__)

DAY_MS = 86_400_000


def now_ms() -> int:
    return int(time.time() * 1000)


def _is_number(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def normalize_record(raw: object, *, now: int) -> PositionRecord | None:
    """Turn one persisted entry into a record.

    Accepts the current ``{"height", "lastAccessed"}`` shape (``"offset"`` is
    read as an alias) and the legacy bare number, which gets ``now`` as its
    access time. Returns ``None`` for anything else.
    """

    if raw is None:
        return PositionRecord(offset=None, last_accessed=now)
    if _is_number(raw):
        return PositionRecord(offset=raw, last_accessed=now)  # type: ignore[arg-type]
    if not isinstance(raw, Mapping):
        return None
    offset = raw.get("height", raw.get("offset"))
    if offset is not None and not _is_number(offset):
        return None
    last_accessed = raw.get("lastAccessed")
    if _is_number(last_accessed):
        last_accessed = int(last_accessed)  # type: ignore[arg-type]
    else:
        last_accessed = now
    return PositionRecord(offset=offset, last_accessed=last_accessed)


class PositionStore:
    """Document key -> PositionRecord, with the expiry policy.

    Mutations mark the store dirty; persisting it is the owner's job
    (see ``Settings.flush``).
    """

    def __init__(self, records: Mapping[str, PositionRecord] | None = None) -> None:
        self._records: dict[str, PositionRecord] = dict(records or {})
        self._dirty = False

    @classmethod
    def from_persisted(cls, raw: Mapping[str, Any] | None, *, now: int | None = None) -> PositionStore:
        stamp = now_ms() if now is None else now
        records: dict[str, PositionRecord] = {}
        upgraded = 0
        for key, value in (raw or {}).items():
            if not isinstance(key, str) or not key:
                logger.warning("dropping persisted position with invalid key %r", key)
                continue
            record = normalize_record(value, now=stamp)
            if record is None:
                logger.warning("dropping malformed persisted position for %s: %r", key, value)
                continue
            if not isinstance(value, Mapping):
                upgraded += 1
            records[key] = record
        store = cls(records)
        if upgraded:
            logger.info("upgraded %d legacy scroll positions", upgraded)
            store._dirty = True
        return store

    def to_persisted(self) -> dict[str, dict[str, Any]]:
        return {key: record.to_json() for key, record in self._records.items()}

    @property
    def dirty(self) -> bool:
        return self._dirty

    def mark_clean(self) -> None:
        self._dirty = False

    def get(self, key: str) -> PositionRecord | None:
        return self._records.get(key)

    def put(self, key: str, record: PositionRecord) -> None:
        if not key:
            raise ValueError("document key must be non-empty")
        self._records[key] = record
        self._dirty = True

    def delete(self, key: str) -> bool:
        if key not in self._records:
            return False
        del self._records[key]
        self._dirty = True
        return True

    def entries(self) -> list[tuple[str, PositionRecord]]:
        return list(self._records.items())

    def cleanup(self, max_age_days: float, *, now: int | None = None) -> int:
        """Remove records last accessed more than ``max_age_days`` ago."""

        stamp = now_ms() if now is None else now
        cutoff = stamp - max_age_days * DAY_MS
        expired = [key for key, record in self._records.items() if record.last_accessed < cutoff]
        for key in expired:
            del self._records[key]
        if expired:
            self._dirty = True
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._records))
