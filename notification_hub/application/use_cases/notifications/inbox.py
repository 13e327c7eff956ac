"""Use cases reading and changing a user's stored notifications."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notification_hub.config import get_settings
from notification_hub.domain.entities import Notification
from notification_hub.domain.exceptions import ValidationError
from notification_hub.infrastructure.notifications import (
    NotificationPublisher,
    notification_publisher,
)
from notification_hub.infrastructure.repositories import NotificationRepository


def _ensure_user(user_id: str) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("User id is required")
    return user_id


def list_notifications(
    session: Session,
    user_id: str,
    *,
    limit: int | None = None,
    page: int = 1,
    unread_only: bool = False,
) -> Sequence[Notification]:
    """Return a page of active notifications, newest first."""

    settings = get_settings()
    limit = settings.notification_page_size if limit is None else limit
    if limit < 1 or limit > settings.notification_max_page_size:
        raise ValidationError(
            f"limit must be between 1 and {settings.notification_max_page_size}"
        )
    if page < 1:
        raise ValidationError("page must be 1 or greater")
    return NotificationRepository(session).list_for_user(
        _ensure_user(user_id), limit=limit, page=page, unread_only=unread_only
    )


def get_unread_count(session: Session, user_id: str) -> int:
    return NotificationRepository(session).count_unread(_ensure_user(user_id))


def mark_notification_read(
    session: Session,
    notification_id: int,
    *,
    user_id: str,
    publisher: NotificationPublisher | None = None,
) -> bool:
    """Mark one notification as read.

    Returns ``True`` only when this call flipped the flag, so counters are
    adjusted exactly once; an ``update`` event is published in that case.
    """

    publisher = publisher or notification_publisher
    repository = NotificationRepository(session)
    with publisher.ordering(_ensure_user(user_id)):
        changed = repository.mark_read(notification_id, user_id=user_id)
        if changed:
            updated = repository.get(notification_id)
            if updated is not None:
                publisher.publish_update(updated)
    return changed


def mark_all_notifications_read(
    session: Session,
    user_id: str,
    *,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Mark every notification unread at call time as read; return the count."""

    publisher = publisher or notification_publisher
    with publisher.ordering(_ensure_user(user_id)):
        updated = NotificationRepository(session).mark_all_read(user_id)
        for notification in updated:
            publisher.publish_update(notification)
    return len(updated)


def delete_notification(
    session: Session,
    notification_id: int,
    *,
    user_id: str,
    publisher: NotificationPublisher | None = None,
) -> bool:
    """Delete one notification; return whether it was still unread.

    Raises :class:`LookupError` when ``user_id`` owns no such notification.
    """

    publisher = publisher or notification_publisher
    with publisher.ordering(_ensure_user(user_id)):
        removed = NotificationRepository(session).delete(notification_id, user_id=user_id)
        if removed is None:
            raise LookupError(f"Notification {notification_id} not found")
        publisher.publish_delete(removed)
    return not removed.read


def purge_notifications(
    session: Session,
    user_id: str,
    *,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Delete every notification of ``user_id``."""

    publisher = publisher or notification_publisher
    with publisher.ordering(_ensure_user(user_id)):
        removed = NotificationRepository(session).delete_for_user(user_id)
        for notification in removed:
            publisher.publish_delete(notification)
    return len(removed)


__all__ = [
    "delete_notification",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
    "purge_notifications",
]
