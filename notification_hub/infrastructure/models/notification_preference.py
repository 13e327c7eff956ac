"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import Column, DateTime, JSON, String

from notification_hub.infrastructure.database import Base
from notification_hub.utils import now_in_app_naive_datetime


class NotificationPreferenceModel(Base):
    """One row per user, created on the first preference write."""

    __tablename__ = "notification_preference"

    user_id = Column(String(64), primary_key=True)
    preferences = Column(JSON, nullable=False, default=dict)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationPreferenceModel"]
