"""Interfaces the engine consumes from the host editor, and status notifiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .errors import MissingDocumentIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentInfo:
    key: str | None
    size: int | None = None


class ScrollView(Protocol):
    def get_scroll(self) -> float | None: ...

    def apply_scroll(self, offset: float) -> None:
        """Request a scroll; may be asynchronous or inexact.

        May raise NoActiveView if the view went away.
        """
        ...


class Host(Protocol):
    def active_document(self) -> DocumentInfo | None: ...

    def active_view(self) -> ScrollView | None: ...


class Notifier(Protocol):
    def notice(self, message: str) -> None: ...

    def show_offset(self, offset: float | None) -> None: ...

    def flash_saved(self, offset: float) -> None: ...


def resolve_document_key(document: DocumentInfo | None) -> str | None:
    """Key of ``document``, or None when nothing is open.

    Raises MissingDocumentIdentity when a document is open but has no key.
    """

    if document is None:
        return None
    key = (document.key or "").strip()
    if not key:
        raise MissingDocumentIdentity("active document has no path")
    return key


def read_offset(host: Host) -> float | None:
    view = host.active_view()
    if view is None:
        return None
    return view.get_scroll()


class LoggingNotifier:
    """Notifier for hosts without a status area: everything goes to the log."""

    def notice(self, message: str) -> None:
        logger.info("%s", message)

    def show_offset(self, offset: float | None) -> None:
        logger.debug("current offset: %s", offset)

    def flash_saved(self, offset: float) -> None:
        logger.debug("saved offset %s", offset)
