"""Error taxonomy for translation and mirroring.

Every error is scoped to the single event (or card) being processed; the caller
decides whether to report it, retry it or move on to the next event.
"""

from __future__ import annotations

from typing import Any


class SyncError(RuntimeError):
    """Base class for sync failures."""


class EventValidationError(SyncError):
    """Raised when a delivery fails signature or decryption checks at the boundary."""


class UnsupportedEventError(SyncError):
    """Raised inside adapters for event types or resources they do not handle."""


class NoDefaultActorError(SyncError):
    """Raised when the configured default actor cannot be resolved."""

    def __init__(self, handle: str | None) -> None:
        message = (
            f"Default actor {handle!r} could not be resolved"
            if handle
            else "No default actor configured"
        )
        super().__init__(message)
        self.handle = handle


class RemoteRequestError(SyncError):
    """Raised when a remote service answers with an unexpected status."""

    def __init__(self, message: str, *, code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.body = body


class RemoteAuthError(SyncError):
    """Raised when the acting user has no usable authorization for a remote service."""

    expected = True


class InvalidInstructionError(SyncError):
    """Raised when a mutation instruction cannot be applied as given."""
