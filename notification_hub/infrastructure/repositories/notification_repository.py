"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from notification_hub.domain.entities import Notification, resolve_notification_type
from notification_hub.domain.exceptions import StorageError
from notification_hub.infrastructure.models import NotificationModel
from notification_hub.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)

logger = logging.getLogger(__name__)


class NotificationRepository:
    """Provide CRUD and read-state operations for :class:`Notification` objects.

    Every method runs in its own transaction on ``session``. Database errors
    roll the session back and surface as :class:`StorageError`, so the same
    session stays usable for the next call.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _storage(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Notification store failed to %s: %s", action, exc)
            raise StorageError(f"Could not {action}") from exc

    def create(self, notification: Notification) -> Notification:
        with self._storage("create notification"):
            model = NotificationModel()
            self._apply_entity_to_model(model, notification)
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
            return self._to_entity(model)

    def get(self, notification_id: int) -> Notification | None:
        with self._storage("load notification"):
            model = self.session.get(NotificationModel, notification_id)
            return self._to_entity(model) if model is not None else None

    def list_for_user(
        self,
        user_id: str,
        *,
        limit: int = 50,
        page: int = 1,
        include_expired: bool = False,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        """Return one page of ``user_id``'s notifications, newest first."""

        with self._storage("list notifications"):
            query = self.session.query(NotificationModel).filter(
                NotificationModel.recipient_id == user_id
            )
            if not include_expired:
                query = self._active(query)
            if unread_only:
                query = query.filter(NotificationModel.read.is_(False))
            query = query.order_by(
                NotificationModel.created_at.desc(), NotificationModel.id.desc()
            )
            query = query.offset((page - 1) * limit).limit(limit)
            return [self._to_entity(model) for model in query.all()]

    def count_unread(self, user_id: str) -> int:
        with self._storage("count unread notifications"):
            query = self.session.query(func.count(NotificationModel.id)).filter(
                NotificationModel.recipient_id == user_id,
                NotificationModel.read.is_(False),
            )
            return int(self._active(query).scalar() or 0)

    def mark_read(self, notification_id: int, *, user_id: str) -> bool:
        """Flag one notification as read; ``True`` only if it was unread."""

        with self._storage("mark notification as read"):
            updated = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.id == notification_id,
                    NotificationModel.recipient_id == user_id,
                    NotificationModel.read.is_(False),
                )
                .update({NotificationModel.read: True}, synchronize_session=False)
            )
            self.session.commit()
            return updated == 1

    def mark_all_read(self, user_id: str) -> list[Notification]:
        """Mark the user's currently unread notifications as read.

        The set of rows is fixed when the call starts; notifications created
        while it runs keep ``read = false``.
        """

        with self._storage("mark notifications as read"):
            snapshot = [
                row.id
                for row in self.session.query(NotificationModel.id).filter(
                    NotificationModel.recipient_id == user_id,
                    NotificationModel.read.is_(False),
                )
            ]
            if not snapshot:
                self.session.rollback()
                return []
            self.session.query(NotificationModel).filter(
                NotificationModel.id.in_(snapshot),
                NotificationModel.read.is_(False),
            ).update({NotificationModel.read: True}, synchronize_session=False)
            self.session.commit()
            models = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.id.in_(snapshot))
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .all()
            )
            return [self._to_entity(model) for model in models]

    def delete(self, notification_id: int, *, user_id: str) -> Notification | None:
        """Remove a notification owned by ``user_id`` and return it."""

        with self._storage("delete notification"):
            model = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.id == notification_id,
                    NotificationModel.recipient_id == user_id,
                )
                .one_or_none()
            )
            if model is None:
                return None
            removed = self._to_entity(model)
            self.session.delete(model)
            self.session.commit()
            return removed

    def delete_for_user(self, user_id: str) -> list[Notification]:
        """Remove every notification of ``user_id`` and return them."""

        with self._storage("delete user notifications"):
            models = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.recipient_id == user_id)
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .all()
            )
            removed = [self._to_entity(model) for model in models]
            for model in models:
                self.session.delete(model)
            self.session.commit()
            return removed

    @staticmethod
    def _active(query: Query) -> Query:
        return query.filter(
            or_(
                NotificationModel.expires_at.is_(None),
                NotificationModel.expires_at > now_in_app_naive_datetime(),
            )
        )

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.recipient_id = notification.recipient_id
        model.type = resolve_notification_type(notification.type).value
        model.title = notification.title
        model.message = notification.message or ""
        model.payload = dict(notification.metadata or {})
        model.link = notification.link
        model.read = bool(notification.read)
        model.created_at = ensure_app_naive_datetime(
            notification.created_at
        ) or now_in_app_naive_datetime()
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.recipient_id,
            type=resolve_notification_type(model.type),
            title=model.title,
            message=model.message,
            metadata=dict(model.payload or {}),
            link=model.link,
            read=bool(model.read),
            created_at=ensure_app_timezone(model.created_at),
            expires_at=ensure_app_timezone(model.expires_at),
        )


__all__ = ["NotificationRepository"]
