"""Exception types shared across the TakeNote core."""

from __future__ import annotations


class TakeNoteError(Exception):
    """Base class for errors raised by this package."""


class SessionValidationError(TakeNoteError, ValueError):
    """Raised when an action violates a required-field or state constraint."""


class UpgradeRequiredError(TakeNoteError):
    """The action needs the Pro tier."""


class StorageError(TakeNoteError):
    """A remote read or write failed (network, auth, quota)."""


__all__ = ["SessionValidationError", "StorageError", "TakeNoteError", "UpgradeRequiredError"]
