"""Shared fixtures for the notification service tests."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# The module level engine is only touched by the app lifespan during tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from notification_hub.application.use_cases.notifications import NotificationDispatcher
from notification_hub.domain.entities import Notification, NotificationType
from notification_hub.infrastructure.database import (
    build_engine,
    build_session_factory,
    initialize_database,
)
from notification_hub.infrastructure.notifications import EventBus, NotificationPublisher
from notification_hub.utils import now_in_app_timezone


@pytest.fixture()
def engine(tmp_path):
    """Return an engine bound to a fresh SQLite database file."""

    engine = build_engine(f"sqlite:///{tmp_path / 'notifications.db'}")
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def bus():
    bus = EventBus()
    yield bus
    bus.close_all()


@pytest.fixture()
def publisher(bus):
    return NotificationPublisher(bus)


@pytest.fixture()
def dispatcher(session, publisher):
    return NotificationDispatcher(session, publisher=publisher)


@pytest.fixture()
def make_notification():
    """Build in-memory notifications with increasing ids and timestamps."""

    base = now_in_app_timezone() - timedelta(hours=1)
    counter = {"next": 0}

    def factory(**overrides) -> Notification:
        counter["next"] += 1
        values = {
            "id": counter["next"],
            "recipient_id": "u1",
            "type": NotificationType.INFO,
            "title": f"Notification {counter['next']}",
            "message": "",
            "read": False,
            "created_at": base + timedelta(seconds=counter["next"]),
        }
        values.update(overrides)
        return Notification(**values)

    return factory


@pytest.fixture()
def future() -> datetime:
    return now_in_app_timezone() + timedelta(days=1)


@pytest.fixture()
def past() -> datetime:
    return now_in_app_timezone() - timedelta(minutes=5)
