"""Tests for the notification preference endpoints."""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from notification_hub.domain.entities import known_preference_keys
from notification_hub.interfaces.api.dependencies import get_session_factory


@pytest.fixture()
def client(session_factory):
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return TestClient(app)


def test_unconfigured_user_has_everything_enabled(client) -> None:
    response = client.get("/users/u1/notification-preferences")

    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == "u1"
    assert set(body["preferences"]) == set(known_preference_keys())
    assert all(body["preferences"].values())


def test_update_merges_with_stored_preferences(client) -> None:
    client.put(
        "/users/u1/notification-preferences",
        json={"preferences": {"new_message": False, "grade_posted": False}},
    )
    response = client.put(
        "/users/u1/notification-preferences",
        json={"preferences": {"grade_posted": True}},
    )

    preferences = response.json()["preferences"]
    assert preferences["new_message"] is False
    assert preferences["grade_posted"] is True


def test_unknown_preference_key_is_rejected(client) -> None:
    response = client.put(
        "/users/u1/notification-preferences",
        json={"preferences": {"carrier_pigeon": True}},
    )

    assert response.status_code == 400
    assert "carrier_pigeon" in response.json()["detail"]
