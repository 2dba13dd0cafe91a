"""
Errors raised or signalled by the position engine.

None of these are fatal to a running session: the worst outcome is that one
document is not restored or one export/import does not complete.
"""

from __future__ import annotations


class LastPositionError(Exception):
    """Base exception for position engine errors."""


class RetryExhausted(LastPositionError):
    """Restoration did not converge within the retry ceiling."""

    def __init__(self, document_key: str, attempts: int) -> None:
        super().__init__(
            f"Scroll position for {document_key} not restored after {attempts} attempts"
        )
        self.document_key = document_key
        self.attempts = attempts


class NoActiveView(LastPositionError):
    """No view is available to read or write a scroll offset right now."""


class MissingDocumentIdentity(LastPositionError):
    """The host reported a document without a usable key."""


class NoDataToExport(LastPositionError):
    """Export was requested while the store is empty."""

    def __init__(self) -> None:
        super().__init__("No scroll position data to export")


class ImportParseError(LastPositionError):
    """Import payload could not be parsed; nothing was imported."""


class InvalidFormat(ImportParseError):
    """Import payload parsed, but its top level is not an array."""
