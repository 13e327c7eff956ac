"""Errors raised by the notification core."""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for notification core failures."""


class ValidationError(NotificationError, ValueError):
    """Malformed input rejected before any I/O takes place."""


class StorageError(NotificationError):
    """Persistence is unavailable or a write/read failed."""


class PreferenceLookupError(StorageError):
    """Preferences could not be read; dispatch fails open on this error."""


class ChannelError(NotificationError):
    """A live event channel was dropped and the subscriber must resync."""


__all__ = [
    "NotificationError",
    "ValidationError",
    "StorageError",
    "PreferenceLookupError",
    "ChannelError",
]
