"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from notification_hub.domain.entities import (
    DispatchResult,
    DispatchStatus,
    Notification,
    NotificationType,
)


class NotificationTemplateFields(BaseModel):
    title: str = Field(..., description="Short headline shown to the user")
    message: str = Field(default="", description="Body text, opaque to the service")
    type: str = Field(
        default=NotificationType.INFO.value,
        description="Notification type or application status",
    )
    metadata: dict[str, Any] = Field(default_factory=dict)
    link: str | None = None
    expires_at: datetime | None = None


class NotificationCreate(NotificationTemplateFields):
    """Payload to create one notification."""

    recipient_id: str = Field(..., description="User receiving the notification")


class NotificationBulkCreate(NotificationTemplateFields):
    """Payload to send the same notification to many recipients."""

    recipient_ids: list[str] = Field(..., description="Users receiving the notification")


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    recipient_id: str
    type: NotificationType
    title: str
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    link: str | None = None
    read: bool
    created_at: datetime
    expires_at: datetime | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id or 0,
            recipient_id=notification.recipient_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            metadata=notification.metadata or {},
            link=notification.link,
            read=notification.read,
            created_at=notification.created_at,
            expires_at=notification.expires_at,
        )


class DispatchRead(BaseModel):
    status: DispatchStatus
    id: int | None = None
    reason: str | None = None

    @classmethod
    def from_result(cls, result: DispatchResult) -> "DispatchRead":
        return cls(status=result.status, id=result.id, reason=result.reason)


class BulkDispatchRead(BaseModel):
    results: dict[str, DispatchRead]
    failed: list[str] = Field(
        default_factory=list, description="Recipients that can be retried"
    )


class UnreadCountRead(BaseModel):
    unread_count: int


class ReadResult(BaseModel):
    changed: bool


class ReadAllResult(BaseModel):
    updated: int


__all__ = [
    "BulkDispatchRead",
    "DispatchRead",
    "NotificationBulkCreate",
    "NotificationCreate",
    "NotificationRead",
    "ReadAllResult",
    "ReadResult",
    "UnreadCountRead",
]
