"""Utility helpers to push notification changes to live subscribers."""

from __future__ import annotations

import threading
from typing import Any

from notification_hub.domain.entities import Notification, NotificationEvent

from .manager import EventBus, event_bus


class NotificationPublisher:
    """Turn store changes into :class:`NotificationEvent` publications."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus

    @property
    def bus(self) -> EventBus:
        return self._bus

    def ordering(self, user_id: str) -> threading.RLock:
        return self._bus.ordering(user_id)

    def publish(self, event: NotificationEvent) -> int:
        return self._bus.publish(event)

    def publish_insert(self, notification: Notification) -> int:
        return self.publish(NotificationEvent.insert(notification))

    def publish_update(self, notification: Notification) -> int:
        return self.publish(NotificationEvent.update(notification))

    def publish_delete(self, notification: Notification) -> int:
        return self.publish(
            NotificationEvent.delete(
                notification.id,
                recipient_id=notification.recipient_id,
                was_unread=not notification.read,
            )
        )


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "recipient_id": notification.recipient_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "metadata": notification.metadata or {},
        "link": notification.link,
        "read": notification.read,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "expires_at": notification.expires_at.isoformat()
        if notification.expires_at
        else None,
    }


def serialize_event(event: NotificationEvent) -> dict[str, Any]:
    """Return the websocket message carrying ``event``."""

    if event.notification is not None:
        data: dict[str, Any] = serialize_notification(event.notification)
    else:
        data = {"id": event.notification_id, "was_unread": event.was_unread}
    return {"type": event.kind.value, "data": data}


notification_publisher = NotificationPublisher(event_bus)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "serialize_event",
    "serialize_notification",
]
