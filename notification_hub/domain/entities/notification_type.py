"""Closed set of notification categories and their preference keys."""

from __future__ import annotations

from enum import Enum
from typing import Final, Mapping

from notification_hub.domain.exceptions import ValidationError


class NotificationType(str, Enum):
    """Category tag used for preference filtering and client styling."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    MESSAGE = "message"
    EVENT = "event"
    ASSIGNMENT = "assignment"
    ANNOUNCEMENT = "announcement"
    GRADE = "grade"
    FRIEND_REQUEST = "friend_request"
    CLUB_INVITATION = "club_invitation"
    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_REVIEWED = "application_reviewed"
    APPLICATION_SHORTLISTED = "application_shortlisted"
    APPLICATION_INTERVIEW = "application_interview"
    APPLICATION_HIRED = "application_hired"
    APPLICATION_REJECTED = "application_rejected"
    JOB_FILLED = "job_filled"
    SYSTEM = "system"


# Every type maps to exactly one preference key; ``None`` means always allowed.
PREFERENCE_KEYS: Final[Mapping[NotificationType, str | None]] = {
    NotificationType.INFO: "info",
    NotificationType.SUCCESS: "success",
    NotificationType.WARNING: "warning",
    NotificationType.ERROR: "error",
    NotificationType.MESSAGE: "new_message",
    NotificationType.EVENT: "event_reminder",
    NotificationType.ASSIGNMENT: "assignment_due",
    NotificationType.ANNOUNCEMENT: "class_announcement",
    NotificationType.GRADE: "grade_posted",
    NotificationType.FRIEND_REQUEST: "friend_request",
    NotificationType.CLUB_INVITATION: "club_invitation",
    NotificationType.APPLICATION_SUBMITTED: "new_application_received",
    NotificationType.APPLICATION_REVIEWED: None,
    NotificationType.APPLICATION_SHORTLISTED: "application_shortlisted",
    NotificationType.APPLICATION_INTERVIEW: "application_interview",
    NotificationType.APPLICATION_HIRED: "application_hired",
    NotificationType.APPLICATION_REJECTED: "application_rejected",
    NotificationType.JOB_FILLED: "job_filled",
    NotificationType.SYSTEM: None,
}

APPLICATION_STATUS_TYPES: Final[Mapping[str, NotificationType]] = {
    "pending": NotificationType.APPLICATION_SUBMITTED,
    "reviewed": NotificationType.APPLICATION_REVIEWED,
    "shortlisted": NotificationType.APPLICATION_SHORTLISTED,
    "interviewing": NotificationType.APPLICATION_INTERVIEW,
    "hired": NotificationType.APPLICATION_HIRED,
    "rejected": NotificationType.APPLICATION_REJECTED,
    "filled": NotificationType.JOB_FILLED,
}


def resolve_notification_type(value: NotificationType | str | None) -> NotificationType:
    """Return the :class:`NotificationType` named by ``value``.

    Accepts an enum member, a type value such as ``"info"`` or an application
    status such as ``"hired"``.
    """

    if isinstance(value, NotificationType):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Notification type is required")

    normalized = value.strip().lower()
    try:
        return NotificationType(normalized)
    except ValueError:
        pass
    status_type = APPLICATION_STATUS_TYPES.get(normalized)
    if status_type is None:
        raise ValidationError(f"Unknown notification type '{value}'")
    return status_type


def preference_key_for(notification_type: NotificationType) -> str | None:
    """Return the preference key gating ``notification_type``."""

    return PREFERENCE_KEYS[notification_type]


def known_preference_keys() -> list[str]:
    """Return every configurable preference key in declaration order."""

    keys: list[str] = []
    for key in PREFERENCE_KEYS.values():
        if key is not None and key not in keys:
            keys.append(key)
    return keys


__all__ = [
    "APPLICATION_STATUS_TYPES",
    "NotificationType",
    "PREFERENCE_KEYS",
    "known_preference_keys",
    "preference_key_for",
    "resolve_notification_type",
]
