"""Endpoints reading and updating notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from notification_hub.application.use_cases.notifications import (
    get_preferences,
    update_preferences,
)
from notification_hub.domain.exceptions import NotificationError
from notification_hub.interfaces.api.dependencies import domain_error_to_http, get_db
from notification_hub.interfaces.api.schemas import PreferencesRead, PreferencesUpdate

router = APIRouter(prefix="/users/{user_id}/notification-preferences", tags=["preferences"])


@router.get("", response_model=PreferencesRead)
def read_preferences(user_id: str, db: Session = Depends(get_db)) -> PreferencesRead:
    """Return the user's effective preferences; unset keys read as enabled."""

    try:
        preferences = get_preferences(db, user_id)
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc
    return PreferencesRead(user_id=user_id, preferences=preferences)


@router.put("", response_model=PreferencesRead)
def write_preferences(
    user_id: str,
    preferences_in: PreferencesUpdate,
    db: Session = Depends(get_db),
) -> PreferencesRead:
    """Upsert the provided keys, leaving the others untouched."""

    try:
        preferences = update_preferences(db, user_id, preferences_in.preferences)
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc
    return PreferencesRead(user_id=user_id, preferences=preferences)
