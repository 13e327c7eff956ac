"""Domain entities exposed by the application."""

from .dispatch_result import BulkDispatchResult, DispatchResult, DispatchStatus
from .notification import Notification
from .notification_event import NotificationEvent, NotificationEventKind
from .notification_type import (
    APPLICATION_STATUS_TYPES,
    PREFERENCE_KEYS,
    NotificationType,
    known_preference_keys,
    preference_key_for,
    resolve_notification_type,
)
from .preference import PreferenceRecord

__all__ = [
    "APPLICATION_STATUS_TYPES",
    "BulkDispatchResult",
    "DispatchResult",
    "DispatchStatus",
    "Notification",
    "NotificationEvent",
    "NotificationEventKind",
    "NotificationType",
    "PREFERENCE_KEYS",
    "PreferenceRecord",
    "known_preference_keys",
    "preference_key_for",
    "resolve_notification_type",
]
