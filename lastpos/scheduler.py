from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Timed deferral for the engine.

    Callbacks run one at a time while holding ``lock``; host entry points take
    the same lock, so the engine only ever sees one logical thread.
    """

    lock: threading.RLock

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle: ...

    def shutdown(self) -> None: ...


class _Delayed:
    def __init__(self, scheduler: ThreadScheduler, delay_s: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._callback = callback
        self._timer = threading.Timer(max(0.0, delay_s), self._fire)
        self._timer.daemon = True
        self.cancelled = False

    def start(self) -> None:
        self._timer.start()

    def _fire(self) -> None:
        self._scheduler.forget(self)
        self._scheduler.run(self._callback, self)

    def cancel(self) -> None:
        self.cancelled = True
        self._timer.cancel()
        self._scheduler.forget(self)

    def join(self, timeout: float | None = None) -> None:
        if self._timer is not threading.current_thread():
            self._timer.join(timeout)

    def is_alive(self) -> bool:
        return self._timer.is_alive()


class _Repeating:
    def __init__(self, scheduler: ThreadScheduler, interval_s: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._interval_s = interval_s
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self._interval_s):
            self._scheduler.run(self._callback, self)

    def cancel(self) -> None:
        self._stop.set()
        self._scheduler.forget(self)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()


class ThreadScheduler:
    def __init__(self, *, join_timeout_s: float = 1.0) -> None:
        self.lock = threading.RLock()
        self.join_timeout_s = join_timeout_s
        self._handles: set[_Delayed | _Repeating] = set()
        self._closed = False

    def run(self, callback: Callable[[], None], handle: _Delayed | _Repeating | None = None) -> None:
        with self.lock:
            # A handle cancelled while this thread waited for the lock must not fire.
            if self._closed or (handle is not None and handle.cancelled):
                return
            try:
                callback()
            except Exception as exc:
                logger.exception("scheduled callback failed", exc_info=exc)

    def forget(self, handle: _Delayed | _Repeating) -> None:
        with self.lock:
            self._handles.discard(handle)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        delayed = _Delayed(self, delay_s, callback)
        with self.lock:
            self._handles.add(delayed)
        delayed.start()
        return delayed

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        if interval_s <= 0:
            raise ValueError("interval must be positive")
        repeating = _Repeating(self, interval_s, callback)
        with self.lock:
            self._handles.add(repeating)
        repeating.start()
        return repeating

    def shutdown(self) -> None:
        """Cancel every outstanding handle and wait briefly for its thread to exit."""

        with self.lock:
            self._closed = True
            handles = list(self._handles)
            self._handles.clear()
        for handle in handles:
            handle.cancel()
        for handle in handles:
            handle.join(self.join_timeout_s)
