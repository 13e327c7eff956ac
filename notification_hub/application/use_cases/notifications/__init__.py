"""Public helpers for creating, reading and configuring notifications."""

from .dispatch import (
    NotificationDispatcher,
    NotificationTemplate,
    SKIPPED_BY_PREFERENCES,
    create_bulk_notifications,
    create_notification,
)
from .inbox import (
    delete_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
    purge_notifications,
)
from .preferences import PreferenceGate, get_preferences, update_preferences

__all__ = [
    "NotificationDispatcher",
    "NotificationTemplate",
    "PreferenceGate",
    "SKIPPED_BY_PREFERENCES",
    "create_bulk_notifications",
    "create_notification",
    "delete_notification",
    "get_preferences",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
    "purge_notifications",
    "update_preferences",
]
