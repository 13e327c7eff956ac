"""Tests for notification type resolution and the preference key table."""

import pytest

from notification_hub.domain.entities import (
    PREFERENCE_KEYS,
    NotificationType,
    known_preference_keys,
    preference_key_for,
    resolve_notification_type,
)
from notification_hub.domain.exceptions import ValidationError


def test_every_type_has_a_preference_entry() -> None:
    """The table must be total so the gate never guesses."""

    assert set(PREFERENCE_KEYS) == set(NotificationType)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (NotificationType.GRADE, NotificationType.GRADE),
        ("info", NotificationType.INFO),
        (" Message ", NotificationType.MESSAGE),
        ("hired", NotificationType.APPLICATION_HIRED),
        ("interviewing", NotificationType.APPLICATION_INTERVIEW),
        ("filled", NotificationType.JOB_FILLED),
    ],
)
def test_resolve_notification_type(value, expected) -> None:
    assert resolve_notification_type(value) is expected


@pytest.mark.parametrize("value", [None, "", "   ", "carrier_pigeon", 42])
def test_resolve_notification_type_rejects_unknown_values(value) -> None:
    with pytest.raises(ValidationError):
        resolve_notification_type(value)


def test_fine_grained_and_coarse_keys() -> None:
    """Status changes use per-status keys, other types use type-level keys."""

    assert preference_key_for(NotificationType.APPLICATION_HIRED) == "application_hired"
    assert preference_key_for(NotificationType.APPLICATION_SUBMITTED) == "new_application_received"
    assert preference_key_for(NotificationType.ASSIGNMENT) == "assignment_due"
    assert preference_key_for(NotificationType.SYSTEM) is None
    assert preference_key_for(NotificationType.APPLICATION_REVIEWED) is None


def test_known_preference_keys_are_unique_and_exclude_always_allowed() -> None:
    keys = known_preference_keys()

    assert len(keys) == len(set(keys))
    assert None not in keys
    assert "info" in keys and "new_message" in keys
