"""Aggregate application use cases."""

from .notifications import create_bulk_notifications, create_notification

__all__ = ["create_bulk_notifications", "create_notification"]
