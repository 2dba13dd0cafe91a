from __future__ import annotations

import logging
from collections.abc import Callable

from .activation import ActivationTracker
from .config import LISTEN_EVENTS
from .errors import MissingDocumentIdentity
from .host import Host, Notifier, read_offset, resolve_document_key
from .restore import RestoreController
from .scheduler import Scheduler, TimerHandle
from .settings import Settings
from .store import PositionRecord, now_ms

logger = logging.getLogger(__name__)


class CaptureScheduler:
    """Samples the active view's offset and persists it on an interval.

    Interaction events only refresh the in-memory sample; the interval tick is
    the sole writer to the store.
    """

    def __init__(
        self,
        settings: Settings,
        host: Host,
        scheduler: Scheduler,
        tracker: ActivationTracker,
        restorer: RestoreController,
        *,
        interval_s: float,
        listen_event: str,
        notifier: Notifier | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if listen_event not in LISTEN_EVENTS:
            raise ValueError(f"unsupported interaction kind: {listen_event}")
        self._settings = settings
        self._host = host
        self._scheduler = scheduler
        self._tracker = tracker
        self._restorer = restorer
        self.interval_s = interval_s
        self.listen_event = listen_event
        self._notifier = notifier
        self._clock = clock
        self._handle: TimerHandle | None = None
        self.current_offset: float | None = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        self._handle = self._scheduler.call_every(self.interval_s, self.tick)

    def stop(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None

    def reset_sample(self) -> None:
        self.current_offset = None

    def update_sample(self, offset: float | None) -> None:
        self.current_offset = offset
        if self._notifier is not None:
            self._notifier.show_offset(offset)

    def handle_interaction(self, kind: str) -> bool:
        if kind != self.listen_event:
            return False
        self.sample()
        return True

    def sample(self) -> float | None:
        offset = read_offset(self._host)
        self.update_sample(offset)
        return offset

    def tick(self) -> bool:
        """Persist the current sample for the active document; True if written."""

        key = self._tracker.active_key
        if key is None:
            self._tracker.resolve_current()
            logger.debug("capture skipped: no active document")
            return False
        try:
            current = resolve_document_key(self._host.active_document())
        except MissingDocumentIdentity:
            logger.debug("capture skipped: active document has no identity")
            return False
        if current != key:
            logger.debug("capture skipped: host shows %s, tracking %s", current, key)
            return False
        if self._restorer.is_loading(key):
            logger.debug("capture skipped: %s is still restoring", key)
            return False
        offset = self.current_offset
        if offset is None:
            return False
        self._settings.positions.put(key, PositionRecord(offset=offset, last_accessed=self._clock()))
        self._settings.flush()
        if self._notifier is not None:
            self._notifier.flash_saved(offset)
        return True
