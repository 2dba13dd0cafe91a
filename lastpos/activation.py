from __future__ import annotations

import logging
from collections.abc import Callable

from .errors import MissingDocumentIdentity
from .host import DocumentInfo, Host, resolve_document_key

logger = logging.getLogger(__name__)


class ActivationTracker:
    def __init__(
        self,
        host: Host,
        on_activated: Callable[[str], None],
        on_deactivated: Callable[[], None] | None = None,
    ) -> None:
        self._host = host
        self._on_activated = on_activated
        self._on_deactivated = on_deactivated
        self.active_key: str | None = None

    def resolve_current(self) -> str | None:
        """Pick up whatever document the host already has open."""

        document = self._host.active_document()
        if document is None:
            logger.debug("no active document to resolve")
            return None
        self.handle_document_opened(document)
        return self.active_key

    def handle_document_opened(self, document: DocumentInfo | None) -> bool:
        """Track a host "document opened" notification; True on a transition.

        A document without identity replaces the tracked one, so nothing is
        captured under the previous key while it is shown.
        """

        try:
            key = resolve_document_key(document)
        except MissingDocumentIdentity:
            logger.debug("ignoring document without identity: %r", document)
            self.clear()
            return False
        if key is None:
            return False
        if key == self.active_key:
            return False
        self.active_key = key
        self._on_activated(key)
        return True

    def clear(self) -> None:
        if self.active_key is None:
            return
        self.active_key = None
        if self._on_deactivated is not None:
            self._on_deactivated()
