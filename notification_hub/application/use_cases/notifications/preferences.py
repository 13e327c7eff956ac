"""Preference lookups and the gate consulted before every dispatch."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notification_hub.domain.entities import (
    NotificationType,
    known_preference_keys,
    preference_key_for,
    resolve_notification_type,
)
from notification_hub.domain.exceptions import PreferenceLookupError, ValidationError
from notification_hub.infrastructure.repositories import PreferenceRepository

logger = logging.getLogger(__name__)


class PreferenceGate:
    """Decide whether a notification type may be delivered to a user.

    The gate fails open: a missing record, a missing key or an unreadable
    preference store all mean "allowed". Only an explicit ``False`` stored
    for the type's preference key blocks delivery.
    """

    def __init__(self, session: Session) -> None:
        self._repository = PreferenceRepository(session)

    def allows(self, user_id: str, notification_type: NotificationType | str) -> bool:
        key = preference_key_for(resolve_notification_type(notification_type))
        if key is None:
            return True

        try:
            record = self._repository.get(user_id)
        except (PreferenceLookupError, SQLAlchemyError) as exc:
            logger.warning(
                "Preference lookup failed for user %s, allowing '%s': %s",
                user_id,
                key,
                exc,
            )
            return True

        if record is None:
            return True
        return record.is_enabled(key)


def get_preferences(session: Session, user_id: str) -> dict[str, bool]:
    """Return the effective preference map of ``user_id``.

    Every known key is present; keys the user never configured read as
    enabled.
    """

    record = PreferenceRepository(session).get(user_id)
    effective = {key: True for key in known_preference_keys()}
    if record is not None:
        effective.update(record.preferences)
    return effective


def update_preferences(
    session: Session, user_id: str, changes: Mapping[str, object]
) -> dict[str, bool]:
    """Upsert ``changes`` for ``user_id`` and return the effective map."""

    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("User id is required")
    if not isinstance(changes, Mapping):
        raise ValidationError("Preferences must be a mapping of key to boolean")

    allowed = set(known_preference_keys())
    unknown = sorted(key for key in changes if key not in allowed)
    if unknown:
        raise ValidationError(f"Unknown preference keys: {', '.join(unknown)}")
    invalid = sorted(key for key, value in changes.items() if not isinstance(value, bool))
    if invalid:
        raise ValidationError(f"Preference values must be booleans: {', '.join(invalid)}")

    if changes:
        PreferenceRepository(session).upsert(user_id, dict(changes))
    return get_preferences(session, user_id)


__all__ = ["PreferenceGate", "get_preferences", "update_preferences"]
