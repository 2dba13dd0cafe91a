from __future__ import annotations

import pytest

from lastpos.store import (
    DAY_MS,
    PositionRecord,
    PositionStore,
    normalize_record,
    page_of,
    sorted_entries,
)

NOW = 1_760_000_000_000


def test_put_get_delete() -> None:
    store = PositionStore()
    assert store.get("notes/a.md") is None

    store.put("notes/a.md", PositionRecord(offset=120, last_accessed=NOW))
    assert store.get("notes/a.md") == PositionRecord(offset=120, last_accessed=NOW)
    assert store.dirty

    store.put("notes/a.md", PositionRecord(offset=300, last_accessed=NOW + 1))
    assert len(store) == 1
    assert store.get("notes/a.md") == PositionRecord(offset=300, last_accessed=NOW + 1)

    assert store.delete("notes/a.md") is True
    assert store.get("notes/a.md") is None
    assert store.delete("notes/a.md") is False


def test_delete_missing_key_does_not_mark_dirty() -> None:
    store = PositionStore({"a.md": PositionRecord(offset=1, last_accessed=NOW)})
    assert not store.dirty
    store.delete("missing.md")
    assert not store.dirty


def test_put_rejects_empty_key() -> None:
    store = PositionStore()
    with pytest.raises(ValueError):
        store.put("", PositionRecord(offset=1, last_accessed=NOW))


def test_cleanup_removes_only_expired_records() -> None:
    store = PositionStore(
        {
            "old.md": PositionRecord(offset=10, last_accessed=NOW - 40 * DAY_MS),
            "recent.md": PositionRecord(offset=20, last_accessed=NOW - 5 * DAY_MS),
        }
    )

    removed = store.cleanup(30, now=NOW)

    assert removed == 1
    assert "old.md" not in store
    assert store.get("recent.md") == PositionRecord(offset=20, last_accessed=NOW - 5 * DAY_MS)
    assert store.dirty


def test_cleanup_with_nothing_expired_stays_clean() -> None:
    store = PositionStore({"a.md": PositionRecord(offset=1, last_accessed=NOW)})
    assert store.cleanup(30, now=NOW) == 0
    assert not store.dirty


def test_from_persisted_upgrades_legacy_numbers() -> None:
    store = PositionStore.from_persisted({"legacy.md": 42}, now=NOW)

    assert store.get("legacy.md") == PositionRecord(offset=42, last_accessed=NOW)
    assert store.dirty
    assert store.to_persisted() == {"legacy.md": {"height": 42, "lastAccessed": NOW}}


def test_from_persisted_reads_record_shapes() -> None:
    store = PositionStore.from_persisted(
        {
            "a.md": {"height": 12.5, "lastAccessed": NOW - 10},
            "b.md": {"offset": 7, "lastAccessed": NOW - 20},
            "c.md": {"height": None, "lastAccessed": NOW - 30},
            "d.md": {"height": 99},
        },
        now=NOW,
    )

    assert store.get("a.md") == PositionRecord(offset=12.5, last_accessed=NOW - 10)
    assert store.get("b.md") == PositionRecord(offset=7, last_accessed=NOW - 20)
    assert store.get("c.md") == PositionRecord(offset=None, last_accessed=NOW - 30)
    assert store.get("d.md") == PositionRecord(offset=99, last_accessed=NOW)
    assert not store.dirty


def test_from_persisted_drops_malformed_entries() -> None:
    store = PositionStore.from_persisted(
        {"bad.md": "far down", "flag.md": True, "shape.md": {"height": "x"}, "ok.md": 3},
        now=NOW,
    )
    assert list(store) == ["ok.md"]


def test_normalize_record_rejects_non_finite() -> None:
    assert normalize_record(float("nan"), now=NOW) is None
    assert normalize_record(None, now=NOW) == PositionRecord(offset=None, last_accessed=NOW)


def test_sorted_entries_by_offset_puts_unknown_last() -> None:
    store = PositionStore(
        {
            "b.md": PositionRecord(offset=200, last_accessed=3),
            "a.md": PositionRecord(offset=None, last_accessed=2),
            "c.md": PositionRecord(offset=100, last_accessed=1),
        }
    )

    assert [k for k, _ in sorted_entries(store, by="offset")] == ["c.md", "b.md", "a.md"]
    assert [k for k, _ in sorted_entries(store, by="offset", descending=True)] == [
        "b.md",
        "c.md",
        "a.md",
    ]
    assert [k for k, _ in sorted_entries(store, by="accessed")] == ["c.md", "a.md", "b.md"]
    assert [k for k, _ in sorted_entries(store)] == ["a.md", "b.md", "c.md"]

    with pytest.raises(ValueError):
        sorted_entries(store, by="size")


def test_page_of_clamps_page_number() -> None:
    entries = [(f"{i:02d}.md", PositionRecord(offset=i, last_accessed=i)) for i in range(12)]

    first = page_of(entries, 1, 5)
    assert [k for k, _ in first.items] == ["00.md", "01.md", "02.md", "03.md", "04.md"]
    assert first.total_pages == 3
    assert first.total_items == 12

    last = page_of(entries, 9, 5)
    assert last.page == 3
    assert [k for k, _ in last.items] == ["10.md", "11.md"]

    assert page_of(entries, 0, 5).page == 1
    assert page_of([], 4, 10).page == 1
