from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from .activation import ActivationTracker
from .capture import CaptureScheduler
from .errors import ImportParseError, NoDataToExport
from .host import DocumentInfo, Host, LoggingNotifier, Notifier
from .restore import RestoreController
from .scheduler import Scheduler, ThreadScheduler
from .settings import Settings
from .store import now_ms
from .transfer import import_positions, write_export

logger = logging.getLogger(__name__)


class LastPositionEngine:
    """Remembers and restores per-document scroll positions for one host.

    All host entry points and timer callbacks run under the scheduler's lock.
    """

    def __init__(
        self,
        host: Host,
        *,
        settings: Settings | None = None,
        settings_path: Path | str | None = None,
        scheduler: Scheduler | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.host = host
        self.settings = settings or Settings.load(settings_path, strict=False, now=clock())
        self._owns_scheduler = scheduler is None
        self.scheduler: Scheduler = scheduler or ThreadScheduler()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._clock = clock
        self._started = False

        cfg = self.settings.effective_config()
        self.config = cfg
        self.tracker = ActivationTracker(host, self._on_activated, self._on_deactivated)
        self.restorer = RestoreController(
            self.settings.positions,
            host,
            self.scheduler,
            max_attempts=cfg.retry_count,
            retry_delay_s=cfg.retry_delay_s,
            tolerance=cfg.scroll_tolerance,
            notifier=self.notifier,
            on_converged=self._on_converged,
        )
        self.capture = CaptureScheduler(
            self.settings,
            host,
            self.scheduler,
            self.tracker,
            self.restorer,
            interval_s=cfg.autosave_interval_s,
            listen_event=cfg.listen_event,
            notifier=self.notifier,
            clock=clock,
        )

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        with self.scheduler.lock:
            if self._started:
                return
            self._started = True
            if self.config.cleanup_enabled:
                self.cleanup(self.config.cleanup_days)
            if self.settings.flush():
                logger.info("saved upgraded settings to %s", self.settings.path)
            self.tracker.resolve_current()
            self.capture.start()

    def stop(self) -> None:
        with self.scheduler.lock:
            if not self._started:
                return
            self._started = False
            self.capture.stop()
            self.restorer.cancel()
            self.settings.flush()
        if self._owns_scheduler:
            self.scheduler.shutdown()

    def document_opened(self, document: DocumentInfo | None) -> None:
        with self.scheduler.lock:
            self.tracker.handle_document_opened(document)

    def interaction(self, kind: str) -> None:
        with self.scheduler.lock:
            self.capture.handle_interaction(kind)

    def forget(self, document_key: str) -> bool:
        with self.scheduler.lock:
            removed = self.settings.positions.delete(document_key)
            self.settings.flush()
            return removed

    def cleanup(self, max_age_days: float) -> int:
        with self.scheduler.lock:
            removed = self.settings.positions.cleanup(max_age_days, now=self._clock())
            if removed:
                logger.info("cleanup removed %d scroll positions older than %s days", removed, max_age_days)
                self.settings.flush()
            return removed

    def export_to(self, target: Path | str | None = None) -> Path | None:
        with self.scheduler.lock:
            try:
                path = write_export(self.settings.positions, target)
            except NoDataToExport as exc:
                self.notifier.notice(str(exc))
                return None
        self.notifier.notice(f"Scroll positions exported to {path}")
        return path

    def import_text(self, text: str) -> int | None:
        with self.scheduler.lock:
            try:
                count = import_positions(self.settings.positions, text, clock=self._clock)
            except ImportParseError as exc:
                logger.warning("import failed: %s", exc)
                self.notifier.notice(f"Import failed: {exc}")
                return None
            self.settings.flush()
        self.notifier.notice(f"Imported {count} scroll position records")
        return count

    def _on_activated(self, document_key: str) -> None:
        self.capture.reset_sample()
        self.restorer.restore(document_key)

    def _on_deactivated(self) -> None:
        self.capture.reset_sample()
        self.restorer.cancel()

    def _on_converged(self, document_key: str, offset: float) -> None:
        self.capture.update_sample(offset)
