from __future__ import annotations

import datetime as dt
import json
import logging
import math
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .errors import ImportParseError, InvalidFormat, NoDataToExport
from .fs_paths import ensure_path
from .store import ExportEntry, PositionRecord, PositionStore, now_ms

logger = logging.getLogger(__name__)

EXPORT_FILENAME_PREFIX = "last-position-export"


def export_filename(today: dt.date | None = None) -> str:
    day = today or dt.date.today()
    return f"{EXPORT_FILENAME_PREFIX}-{day.isoformat()}.txt"


def export_entries(store: PositionStore) -> list[ExportEntry]:
    if len(store) == 0:
        raise NoDataToExport()
    return [
        {"filename": key, "height": record.offset, "lastAccessed": record.last_accessed}
        for key, record in sorted(store.entries(), key=lambda item: item[0])
    ]


def export_positions(store: PositionStore) -> str:
    """Serialize every record as a pretty-printed JSON array."""

    return json.dumps(export_entries(store), ensure_ascii=False, indent=2)


def write_export(
    store: PositionStore, target: Path | str | None = None, *, today: dt.date | None = None
) -> Path:
    """Write the export; a directory target gets the dated default filename."""

    payload = export_positions(store)
    target_path = Path(target).expanduser() if target is not None else Path.cwd()
    if target_path.is_dir():
        output_path = target_path / export_filename(today)
    else:
        output_path = ensure_path(target_path)
    output_path.write_text(payload + "\n", encoding="utf-8")
    logger.info("exported %d scroll positions to %s", len(store), output_path)
    return output_path


def parse_import(text: str) -> list[Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ImportParseError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise InvalidFormat("Import data must be a JSON array")
    return data


def _number(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _accept_entry(item: object, *, now: int) -> tuple[str, PositionRecord] | None:
    if not isinstance(item, dict):
        return None
    filename = item.get("filename")
    if not isinstance(filename, str) or not filename:
        return None
    has_height = "height" in item
    last_accessed = item.get("lastAccessed")
    if not has_height and last_accessed is None:
        return None
    height = item.get("height")
    if height is not None and not _number(height):
        return None
    if last_accessed is None:
        stamp = now
    elif _number(last_accessed):
        stamp = int(last_accessed)  # type: ignore[arg-type]
    else:
        return None
    return filename, PositionRecord(offset=height, last_accessed=stamp)


def accepted_entries(
    data: list[Any], *, now: int | None = None
) -> list[tuple[str, PositionRecord]]:
    stamp = now_ms() if now is None else now
    accepted: list[tuple[str, PositionRecord]] = []
    for item in data:
        entry = _accept_entry(item, now=stamp)
        if entry is not None:
            accepted.append(entry)
    return accepted


def import_positions(
    store: PositionStore, text: str, *, clock: Callable[[], int] = now_ms
) -> int:
    """Merge an exported payload into ``store``, imported records winning.

    Malformed entries are skipped; the return value counts accepted ones.
    A payload that fails to parse leaves the store untouched.
    """

    data = parse_import(text)
    entries = accepted_entries(data, now=clock())
    for key, record in entries:
        store.put(key, record)
    logger.info("imported %d of %d scroll position entries", len(entries), len(data))
    return len(entries)
