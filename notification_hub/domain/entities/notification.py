"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from notification_hub.utils import is_past

from .notification_type import NotificationType


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    recipient_id: str
    type: NotificationType
    title: str
    message: str
    metadata: dict[str, Any] = field(default_factory=dict)
    link: str | None = None
    read: bool = False
    created_at: datetime | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once ``expires_at`` has passed."""

        return is_past(self.expires_at, now)

    def sort_key(self) -> tuple[datetime, int]:
        """Key giving the total newest-first order used for listings."""

        return (self.created_at or _EPOCH, self.id or 0)


__all__ = ["Notification"]
