from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .errors import NoActiveView, RetryExhausted
from .host import Host, Notifier
from .scheduler import Scheduler, TimerHandle
from .store import PositionStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 30
DEFAULT_RETRY_DELAY_S = 0.1
DEFAULT_TOLERANCE = 1.0


class RestoreState(str, Enum):
    IDLE = "idle"
    RESTORING = "restoring"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    SUPERSEDED = "superseded"


@dataclass
class RestoreSession:
    document_key: str
    target_offset: float
    max_attempts: int
    attempts_so_far: int = 0
    state: RestoreState = RestoreState.RESTORING
    final_offset: float | None = None


class RestoreController:
    """Drives the active view toward a remembered offset.

    A restore writes the target, reads it back, and retries after a fixed
    delay until the readback is within tolerance or the retry ceiling is hit.
    While a session is in flight its document is *loading* and must not be
    captured.
    """

    def __init__(
        self,
        store: PositionStore,
        host: Host,
        scheduler: Scheduler,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay_s: float = DEFAULT_RETRY_DELAY_S,
        tolerance: float = DEFAULT_TOLERANCE,
        notifier: Notifier | None = None,
        on_converged: Callable[[str, float], None] | None = None,
    ) -> None:
        self._store = store
        self._host = host
        self._scheduler = scheduler
        self.max_attempts = max_attempts
        self.retry_delay_s = retry_delay_s
        self.tolerance = tolerance
        self._notifier = notifier
        self._on_converged = on_converged
        self._session: RestoreSession | None = None
        self._pending: TimerHandle | None = None
        self.last_session: RestoreSession | None = None
        self.last_error: RetryExhausted | None = None
        self.current_offset: float | None = None

    @property
    def session(self) -> RestoreSession | None:
        return self._session

    @property
    def state(self) -> RestoreState:
        if self._session is not None:
            return self._session.state
        if self.last_session is not None:
            return self.last_session.state
        return RestoreState.IDLE

    @property
    def loading(self) -> bool:
        return self._session is not None

    def is_loading(self, document_key: str | None) -> bool:
        return self._session is not None and self._session.document_key == document_key

    def restore(self, document_key: str) -> RestoreSession | None:
        """Start restoring ``document_key``, superseding any session in flight.

        Returns the new session, or None when there is no offset to restore.
        """

        self.cancel()
        record = self._store.get(document_key)
        if record is None or record.offset is None:
            logger.debug("no remembered offset for %s", document_key)
            return None
        session = RestoreSession(
            document_key=document_key,
            target_offset=record.offset,
            max_attempts=self.max_attempts,
        )
        self._session = session
        self.last_session = session
        logger.debug("restoring %s to %s", document_key, session.target_offset)
        self._attempt(session)
        return session

    def cancel(self) -> None:
        """Supersede the in-flight session, if any; its pending attempts become no-ops."""

        session = self._session
        if session is None:
            return
        logger.debug(
            "restore of %s superseded after %d attempts",
            session.document_key,
            session.attempts_so_far,
        )
        self._finish(session, RestoreState.SUPERSEDED)

    def _schedule(self, session: RestoreSession) -> None:
        self._pending = self._scheduler.call_later(self.retry_delay_s, lambda: self._attempt(session))

    def _attempt(self, session: RestoreSession) -> None:
        if session is not self._session or session.state is not RestoreState.RESTORING:
            return
        self._pending = None
        if session.attempts_so_far >= session.max_attempts:
            self._exhaust(session)
            return
        session.attempts_so_far += 1

        view = self._host.active_view()
        if view is None:
            self._schedule(session)
            return
        try:
            view.apply_scroll(session.target_offset)
            readback = view.get_scroll()
        except NoActiveView:
            self._schedule(session)
            return
        except Exception:
            logger.exception("restore of %s failed on attempt %d", session.document_key, session.attempts_so_far)
            self._exhaust(session)
            return

        if readback is not None:
            self.current_offset = readback
        if readback is not None and abs(readback - session.target_offset) <= self.tolerance:
            session.final_offset = readback
            self._finish(session, RestoreState.CONVERGED)
            logger.info(
                "restored %s to %s after %d attempts",
                session.document_key,
                readback,
                session.attempts_so_far,
            )
            if self._on_converged is not None:
                self._on_converged(session.document_key, readback)
            return
        self._schedule(session)

    def _exhaust(self, session: RestoreSession) -> None:
        session.final_offset = self.current_offset
        self._finish(session, RestoreState.EXHAUSTED)
        error = RetryExhausted(session.document_key, session.attempts_so_far)
        self.last_error = error
        logger.warning("%s", error)
        if self._notifier is not None:
            self._notifier.notice(str(error))

    def _finish(self, session: RestoreSession, state: RestoreState) -> None:
        session.state = state
        if self._session is session:
            self._session = None
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
