"""Pydantic schemas exposed by the HTTP interface."""

from .notification import (
    BulkDispatchRead,
    DispatchRead,
    NotificationBulkCreate,
    NotificationCreate,
    NotificationRead,
    ReadAllResult,
    ReadResult,
    UnreadCountRead,
)
from .preference import PreferencesRead, PreferencesUpdate

__all__ = [
    "BulkDispatchRead",
    "DispatchRead",
    "NotificationBulkCreate",
    "NotificationCreate",
    "NotificationRead",
    "PreferencesRead",
    "PreferencesUpdate",
    "ReadAllResult",
    "ReadResult",
    "UnreadCountRead",
]
