"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, JSON, String, Text

from notification_hub.infrastructure.database import Base
from notification_hub.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_created", "recipient_id", "created_at", "id"),
        Index("ix_notification_recipient_read", "recipient_id", "read"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_id = Column(String(64), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False, default="")
    # ``metadata`` is reserved on declarative classes.
    payload = Column("metadata", JSON, nullable=False, default=dict)
    link = Column(String(500), nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    expires_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationModel"]
