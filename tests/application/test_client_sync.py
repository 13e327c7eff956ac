"""Tests for the subscriber-side notification cache."""

from __future__ import annotations

import threading

import pytest

from notification_hub.application.sync import ClientSync
from notification_hub.application.use_cases.notifications import (
    NotificationDispatcher,
    delete_notification,
    get_unread_count,
    mark_notification_read,
)
from notification_hub.domain.exceptions import StorageError
from notification_hub.infrastructure.notifications import EventBus, NotificationPublisher
from notification_hub.infrastructure.repositories import NotificationRepository


@pytest.fixture()
def client(session_factory, publisher):
    sync = ClientSync("u1", session_factory=session_factory, publisher=publisher, limit=10)
    yield sync
    sync.close()


def _create(dispatcher, title: str, recipient_id: str = "u1"):
    return dispatcher.create_one(recipient_id=recipient_id, title=title).notification


def test_open_loads_baseline_and_subscribes(client, dispatcher, bus) -> None:
    first = _create(dispatcher, "First")
    second = _create(dispatcher, "Second")

    client.open()

    assert [item.id for item in client.notifications] == [second.id, first.id]
    assert client.unread_count == 2
    assert client.subscribed
    assert bus.subscriber_count("u1") == 1


def test_live_insert_is_prepended(client, dispatcher) -> None:
    _create(dispatcher, "Old")
    client.open()

    created = _create(dispatcher, "New")

    assert client.notifications[0].id == created.id
    assert client.unread_count == 2


def test_other_users_events_are_ignored(client, dispatcher) -> None:
    client.open()

    _create(dispatcher, "Not yours", recipient_id="u2")

    assert client.notifications == []
    assert client.unread_count == 0


def test_read_elsewhere_updates_cache(client, dispatcher, session, publisher) -> None:
    created = _create(dispatcher, "X")
    client.open()

    mark_notification_read(session, created.id, user_id="u1", publisher=publisher)

    assert client.notifications[0].read is True
    assert client.unread_count == 0


def test_delete_elsewhere_of_unread_notification(client, dispatcher, session, publisher) -> None:
    kept = _create(dispatcher, "Keep")
    removed = _create(dispatcher, "Remove")
    client.open()
    assert client.unread_count == 2

    delete_notification(session, removed.id, user_id="u1", publisher=publisher)

    assert [item.id for item in client.notifications] == [kept.id]
    assert client.unread_count == 1


def test_local_mark_read_is_counted_once(client, dispatcher) -> None:
    created = _create(dispatcher, "X")
    _create(dispatcher, "Y")
    client.open()

    assert client.mark_as_read(created.id) is True
    # The echoed update event must not decrement again.
    assert client.unread_count == 1
    assert client.mark_as_read(created.id) is False
    assert client.unread_count == 1


def test_local_mark_all_read(client, dispatcher, session) -> None:
    for title in ("A", "B", "C"):
        _create(dispatcher, title)
    client.open()

    assert client.mark_all_as_read() == 3

    assert client.unread_count == 0
    assert all(item.read for item in client.notifications)
    assert get_unread_count(session, "u1") == 0


def test_local_delete(client, dispatcher, session) -> None:
    created = _create(dispatcher, "X")
    client.open()

    assert client.delete_notification(created.id) is True
    assert client.notifications == []
    assert client.unread_count == 0
    assert get_unread_count(session, "u1") == 0
    assert client.delete_notification(created.id) is False


def test_limit_keeps_newest_entries(session_factory, publisher, dispatcher) -> None:
    for title in ("A", "B", "C"):
        _create(dispatcher, title)

    with ClientSync("u1", session_factory=session_factory, publisher=publisher, limit=2) as sync:
        assert len(sync.notifications) == 2
        assert sync.unread_count == 2

        newest = _create(dispatcher, "D")

        assert [item.id for item in sync.notifications][0] == newest.id
        assert len(sync.notifications) == 2
        assert sync.unread_count == 2


def test_close_unsubscribes(session_factory, publisher, bus) -> None:
    with ClientSync("u1", session_factory=session_factory, publisher=publisher) as sync:
        assert bus.subscriber_count("u1") == 1
    assert bus.subscriber_count("u1") == 0
    assert not sync.subscribed


def test_dropped_channel_resyncs_missed_events(client, dispatcher, session, bus) -> None:
    _create(dispatcher, "Seen")
    client.open()

    # Events published on another bus never reach this client.
    detached = NotificationDispatcher(session, publisher=NotificationPublisher(EventBus()))
    missed = detached.create_one(recipient_id="u1", title="Missed").notification
    assert client.unread_count == 1

    bus.drop("u1")

    assert client.subscribed
    assert client.notifications[0].id == missed.id
    assert client.unread_count == 2

    live = _create(dispatcher, "After reconnect")
    assert client.notifications[0].id == live.id
    assert client.unread_count == 3


def test_events_during_resync_are_merged(client, dispatcher, monkeypatch) -> None:
    real_list = NotificationRepository.list_for_user
    arrived = {}

    def list_then_insert(self, user_id, **kwargs):
        records = real_list(self, user_id, **kwargs)
        if not arrived:
            arrived["notification"] = _create(dispatcher, "During fetch")
        return records

    monkeypatch.setattr(NotificationRepository, "list_for_user", list_then_insert)
    client.open()

    assert [item.id for item in client.notifications] == [arrived["notification"].id]
    assert client.unread_count == 1


def test_failed_store_call_keeps_optimistic_change(client, dispatcher, monkeypatch, caplog) -> None:
    created = _create(dispatcher, "X")
    client.open()

    def unavailable(*args, **kwargs):
        raise StorageError("Could not mark notification as read")

    monkeypatch.setattr(
        "notification_hub.application.sync.client_sync.mark_notification_read", unavailable
    )

    with caplog.at_level("ERROR"), pytest.raises(StorageError):
        client.mark_as_read(created.id)

    assert isinstance(client.last_error, StorageError)
    assert "Failed to mark notification as read" in caplog.text
    assert client.unread_count == 0

    client.resync()

    assert client.unread_count == 1
    assert client.last_error is None


def test_resync_failure_is_reported(client, dispatcher, monkeypatch) -> None:
    _create(dispatcher, "X")
    client.open()

    def unavailable(self, user_id, **kwargs):
        raise StorageError("Could not list notifications")

    monkeypatch.setattr(NotificationRepository, "list_for_user", unavailable)

    with pytest.raises(StorageError):
        client.resync()

    assert isinstance(client.last_error, StorageError)
    assert client.unread_count == 1


def test_overlapping_resyncs_keep_live_events(client, dispatcher, monkeypatch) -> None:
    client.open()
    real_list = NotificationRepository.list_for_user
    fetched = {"first": threading.Event(), "second": threading.Event()}
    release = {"first": threading.Event(), "second": threading.Event()}

    def paused_list(self, user_id, **kwargs):
        records = real_list(self, user_id, **kwargs)
        name = threading.current_thread().name
        if name in fetched:
            fetched[name].set()
            assert release[name].wait(5)
        return records

    monkeypatch.setattr(NotificationRepository, "list_for_user", paused_list)
    first = threading.Thread(target=client.resync, name="first")
    second = threading.Thread(target=client.resync, name="second")

    first.start()
    assert fetched["first"].wait(5)
    second.start()
    assert fetched["second"].wait(5)
    release["first"].set()
    first.join(5)

    live = _create(dispatcher, "Live")
    release["second"].set()
    second.join(5)

    assert not first.is_alive() and not second.is_alive()
    assert [item.id for item in client.notifications] == [live.id]
    assert client.unread_count == 1
