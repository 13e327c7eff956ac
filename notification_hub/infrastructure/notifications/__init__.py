"""Realtime notification helpers for the infrastructure layer."""

from .manager import EventBus, Subscription, event_bus
from .publisher import (
    NotificationPublisher,
    notification_publisher,
    serialize_event,
    serialize_notification,
)

__all__ = [
    "EventBus",
    "Subscription",
    "event_bus",
    "NotificationPublisher",
    "notification_publisher",
    "serialize_event",
    "serialize_notification",
]
