from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest

from lastpos.config import SETTINGS_ENV_OVERRIDES
from lastpos.errors import NoActiveView
from lastpos.host import DocumentInfo


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LASTPOS_SETTINGS", str(tmp_path / "settings.json"))
    for env_var in SETTINGS_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)


class ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class _Entry:
    due: float
    seq: int
    callback: Callable[[], None]
    handle: ManualHandle
    interval: float | None


class ManualScheduler:
    """Virtual-clock scheduler; nothing runs until ``advance`` is called."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.now = 0.0
        self._queue: list[_Entry] = []
        self._seq = 0
        self.shut_down = False

    def _push(
        self, due: float, callback: Callable[[], None], handle: ManualHandle, interval: float | None
    ) -> None:
        self._seq += 1
        self._queue.append(_Entry(due, self._seq, callback, handle, interval))

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle()
        self._push(self.now + delay_s, callback, handle, None)
        return handle

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle()
        self._push(self.now + interval_s, callback, handle, interval_s)
        return handle

    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry.handle.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            self._queue = [entry for entry in self._queue if not entry.handle.cancelled]
            if not self._queue:
                break
            entry = min(self._queue, key=lambda item: (item.due, item.seq))
            if entry.due > target + 1e-9:
                break
            self._queue.remove(entry)
            self.now = entry.due
            if entry.interval is not None:
                self._push(entry.due + entry.interval, entry.callback, entry.handle, entry.interval)
            with self.lock:
                entry.callback()
        self.now = target

    def shutdown(self) -> None:
        self.shut_down = True
        for entry in self._queue:
            entry.handle.cancel()
        self._queue.clear()


class FakeView:
    """Scroll view whose response to writes can be scripted.

    ``lag`` writes are ignored before the view starts honouring them,
    ``max_offset`` clamps every write, ``detached`` makes writes raise.
    """

    def __init__(self, offset: float = 0) -> None:
        self.offset: float = offset
        self.lag = 0
        self.max_offset: float | None = None
        self.detached = False
        self.writes: list[float] = []

    def get_scroll(self) -> float | None:
        return self.offset

    def apply_scroll(self, offset: float) -> None:
        if self.detached:
            raise NoActiveView("view detached")
        self.writes.append(offset)
        if len(self.writes) <= self.lag:
            return
        if self.max_offset is not None:
            offset = min(offset, self.max_offset)
        self.offset = offset


class FakeHost:
    def __init__(self, view: FakeView | None = None) -> None:
        self.view = view
        self.document: DocumentInfo | None = None

    def active_document(self) -> DocumentInfo | None:
        return self.document

    def active_view(self) -> FakeView | None:
        return self.view

    def open(self, key: str | None) -> DocumentInfo:
        self.document = DocumentInfo(key=key)
        return self.document


class RecordingNotifier:
    def __init__(self) -> None:
        self.notices: list[str] = []
        self.offsets: list[float | None] = []
        self.flashes: list[float] = []

    def notice(self, message: str) -> None:
        self.notices.append(message)

    def show_offset(self, offset: float | None) -> None:
        self.offsets.append(offset)

    def flash_saved(self, offset: float) -> None:
        self.flashes.append(offset)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def view() -> FakeView:
    return FakeView()


@pytest.fixture
def host(view: FakeView) -> FakeHost:
    return FakeHost(view)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_view() -> Callable[..., FakeView]:
    return FakeView
