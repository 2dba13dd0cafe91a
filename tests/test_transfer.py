from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import pytest

from lastpos.errors import ImportParseError, InvalidFormat, NoDataToExport
from lastpos.store import PositionRecord, PositionStore
from lastpos.transfer import (
    export_filename,
    export_positions,
    import_positions,
    parse_import,
    write_export,
)

T1 = 1_760_000_000_000
NOW = 1_760_000_900_000


def _clock() -> int:
    return NOW


def test_export_empty_store_raises() -> None:
    with pytest.raises(NoDataToExport, match="No scroll position data to export"):
        export_positions(PositionStore())


def test_export_format() -> None:
    store = PositionStore(
        {
            "b.md": PositionRecord(offset=120.5, last_accessed=T1),
            "a.md": PositionRecord(offset=None, last_accessed=T1 + 1),
        }
    )

    payload = json.loads(export_positions(store))

    assert payload == [
        {"filename": "a.md", "height": None, "lastAccessed": T1 + 1},
        {"filename": "b.md", "height": 120.5, "lastAccessed": T1},
    ]


def test_export_then_import_reproduces_store() -> None:
    source = PositionStore(
        {
            "notes/a.md": PositionRecord(offset=300, last_accessed=T1),
            "notes/b.md": PositionRecord(offset=None, last_accessed=T1 + 5),
        }
    )
    target = PositionStore()

    count = import_positions(target, export_positions(source), clock=_clock)

    assert count == 2
    assert dict(target.entries()) == dict(source.entries())


def test_import_entry_without_timestamp_gets_now() -> None:
    store = PositionStore()

    count = import_positions(store, '[{"filename":"x.md","height":10}]', clock=_clock)

    assert count == 1
    assert store.get("x.md") == PositionRecord(offset=10, last_accessed=NOW)


def test_import_entry_with_only_timestamp() -> None:
    store = PositionStore()

    import_positions(store, json.dumps([{"filename": "x.md", "lastAccessed": T1}]), clock=_clock)

    assert store.get("x.md") == PositionRecord(offset=None, last_accessed=T1)


def test_import_overwrites_existing_records() -> None:
    store = PositionStore(
        {
            "a.md": PositionRecord(offset=1, last_accessed=T1),
            "keep.md": PositionRecord(offset=2, last_accessed=T1),
        }
    )
    text = json.dumps([{"filename": "a.md", "height": 999, "lastAccessed": T1 + 10}])

    assert import_positions(store, text, clock=_clock) == 1
    assert store.get("a.md") == PositionRecord(offset=999, last_accessed=T1 + 10)
    assert store.get("keep.md") == PositionRecord(offset=2, last_accessed=T1)


def test_import_skips_malformed_entries() -> None:
    store = PositionStore()
    text = json.dumps(
        [
            {"filename": "good.md", "height": 5, "lastAccessed": T1},
            {"height": 5, "lastAccessed": T1},
            {"filename": "", "height": 5},
            {"filename": "no-data.md"},
            {"filename": "text.md", "height": "top"},
            {"filename": "stamp.md", "height": 1, "lastAccessed": "yesterday"},
            "loose string",
            42,
        ]
    )

    assert import_positions(store, text, clock=_clock) == 1
    assert list(store) == ["good.md"]


@pytest.mark.parametrize(
    ("text", "error"),
    [
        ("not json at all", ImportParseError),
        ('{"filename": "a.md", "height": 1}', InvalidFormat),
    ],
)
def test_unparseable_import_leaves_store_unchanged(text: str, error: type[Exception]) -> None:
    store = PositionStore({"a.md": PositionRecord(offset=1, last_accessed=T1)})

    with pytest.raises(error):
        import_positions(store, text, clock=_clock)

    assert dict(store.entries()) == {"a.md": PositionRecord(offset=1, last_accessed=T1)}
    assert not store.dirty


def test_parse_import_messages() -> None:
    with pytest.raises(ImportParseError, match="Invalid JSON"):
        parse_import("[1, 2")
    with pytest.raises(InvalidFormat, match="must be a JSON array"):
        parse_import('"just a string"')


def test_export_filename_uses_date() -> None:
    assert export_filename(dt.date(2026, 10, 19)) == "last-position-export-2026-10-19.txt"


def test_write_export_to_directory_uses_dated_name(tmp_path: Path) -> None:
    store = PositionStore({"a.md": PositionRecord(offset=3, last_accessed=T1)})

    path = write_export(store, tmp_path, today=dt.date(2026, 10, 19))

    assert path == tmp_path / "last-position-export-2026-10-19.txt"
    assert json.loads(path.read_text()) == [{"filename": "a.md", "height": 3, "lastAccessed": T1}]


def test_write_export_to_file_creates_parent(tmp_path: Path) -> None:
    store = PositionStore({"a.md": PositionRecord(offset=3, last_accessed=T1)})
    target = tmp_path / "backups" / "positions.json"

    path = write_export(store, target)

    assert path == target
    assert path.read_text().endswith("]\n")


def test_write_export_empty_store_writes_nothing(tmp_path: Path) -> None:
    with pytest.raises(NoDataToExport):
        write_export(PositionStore(), tmp_path)
    assert list(tmp_path.iterdir()) == []
