"""Domain entity describing a change on a user's notification channel."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .notification import Notification


class NotificationEventKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class NotificationEvent:
    """Change applied to the store for ``recipient_id``."""

    kind: NotificationEventKind
    recipient_id: str
    notification_id: int
    notification: Notification | None = None
    was_unread: bool = False

    @classmethod
    def insert(cls, notification: Notification) -> "NotificationEvent":
        return cls._for_record(NotificationEventKind.INSERT, notification)

    @classmethod
    def update(cls, notification: Notification) -> "NotificationEvent":
        return cls._for_record(NotificationEventKind.UPDATE, notification)

    @classmethod
    def delete(
        cls, notification_id: int, *, recipient_id: str, was_unread: bool
    ) -> "NotificationEvent":
        return cls(
            kind=NotificationEventKind.DELETE,
            recipient_id=recipient_id,
            notification_id=notification_id,
            was_unread=was_unread,
        )

    @classmethod
    def _for_record(
        cls, kind: NotificationEventKind, notification: Notification
    ) -> "NotificationEvent":
        if notification.id is None:
            raise ValueError("Only persisted notifications can be published")
        return cls(
            kind=kind,
            recipient_id=notification.recipient_id,
            notification_id=notification.id,
            notification=notification,
            was_unread=not notification.read,
        )


__all__ = ["NotificationEvent", "NotificationEventKind"]
