"""Persistence helpers for notification preference records."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notification_hub.domain.entities import PreferenceRecord
from notification_hub.domain.exceptions import PreferenceLookupError, StorageError
from notification_hub.infrastructure.models import NotificationPreferenceModel
from notification_hub.utils import ensure_app_timezone, now_in_app_naive_datetime

logger = logging.getLogger(__name__)


class PreferenceRepository:
    """Read and upsert :class:`PreferenceRecord` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> PreferenceRecord | None:
        try:
            model = self.session.get(NotificationPreferenceModel, user_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PreferenceLookupError(
                f"Could not load notification preferences for user {user_id}"
            ) from exc
        return self._to_entity(model) if model is not None else None

    def upsert(self, user_id: str, changes: Mapping[str, bool]) -> PreferenceRecord:
        """Store ``changes`` for ``user_id`` keeping every other stored key."""

        try:
            model = self.session.get(NotificationPreferenceModel, user_id)
            if model is None:
                model = NotificationPreferenceModel(user_id=user_id, preferences={})
                self.session.add(model)
            # Assign a new dict so the JSON column is flagged as modified.
            model.preferences = {**(model.preferences or {}), **dict(changes)}
            model.updated_at = now_in_app_naive_datetime()
            self.session.commit()
            self.session.refresh(model)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Failed to store preferences for user %s: %s", user_id, exc)
            raise StorageError(
                f"Could not store notification preferences for user {user_id}"
            ) from exc
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: NotificationPreferenceModel) -> PreferenceRecord:
        return PreferenceRecord(
            user_id=model.user_id,
            preferences={key: bool(value) for key, value in (model.preferences or {}).items()},
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
