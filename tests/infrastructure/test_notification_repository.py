"""Tests for the SQLAlchemy backed notification store."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from notification_hub.domain.entities import Notification, NotificationType
from notification_hub.domain.exceptions import StorageError
from notification_hub.infrastructure.repositories import NotificationRepository
from notification_hub.utils import now_in_app_timezone


def _new(recipient_id: str = "u1", **overrides) -> Notification:
    values = {
        "id": None,
        "recipient_id": recipient_id,
        "type": NotificationType.INFO,
        "title": "Hello",
        "message": "World",
    }
    values.update(overrides)
    return Notification(**values)


@pytest.fixture()
def repository(session) -> NotificationRepository:
    return NotificationRepository(session)


def test_create_assigns_id_and_timestamp(repository) -> None:
    saved = repository.create(
        _new(metadata={"jobId": 7, "nested": {"a": [1, 2]}}, link="/jobs/7")
    )

    assert saved.id is not None
    assert saved.created_at is not None
    assert saved.read is False
    assert saved.metadata == {"jobId": 7, "nested": {"a": [1, 2]}}
    assert repository.get(saved.id) == saved


def test_list_is_newest_first_with_id_tie_break(repository) -> None:
    stamp = now_in_app_timezone()
    first = repository.create(_new(title="first", created_at=stamp))
    second = repository.create(_new(title="second", created_at=stamp))
    third = repository.create(_new(title="third", created_at=stamp + timedelta(seconds=1)))
    repository.create(_new("someone-else"))

    listed = repository.list_for_user("u1", limit=10)

    assert [item.id for item in listed] == [third.id, second.id, first.id]


def test_list_paginates(repository) -> None:
    created = [repository.create(_new(title=str(index))) for index in range(5)]

    page_one = repository.list_for_user("u1", limit=2, page=1)
    page_three = repository.list_for_user("u1", limit=2, page=3)

    assert [item.id for item in page_one] == [created[4].id, created[3].id]
    assert [item.id for item in page_three] == [created[0].id]


def test_expired_notifications_are_hidden_but_kept(repository) -> None:
    expired = repository.create(_new(expires_at=now_in_app_timezone() - timedelta(minutes=1)))
    active = repository.create(_new(expires_at=now_in_app_timezone() + timedelta(days=1)))

    assert [item.id for item in repository.list_for_user("u1", limit=10)] == [active.id]
    assert repository.count_unread("u1") == 1
    assert repository.get(expired.id) is not None
    assert len(repository.list_for_user("u1", limit=10, include_expired=True)) == 2


def test_mark_read_checks_owner_and_reports_transition(repository) -> None:
    saved = repository.create(_new())

    assert repository.mark_read(saved.id, user_id="intruder") is False
    assert repository.get(saved.id).read is False
    assert repository.mark_read(saved.id, user_id="u1") is True
    assert repository.mark_read(saved.id, user_id="u1") is False
    assert repository.count_unread("u1") == 0


def test_mark_all_read_is_scoped_to_user(repository) -> None:
    repository.create(_new())
    repository.create(_new())
    other = repository.create(_new("u2"))

    updated = repository.mark_all_read("u1")

    assert len(updated) == 2
    assert all(item.read for item in updated)
    assert repository.get(other.id).read is False
    assert repository.mark_all_read("u1") == []


def test_mark_all_read_leaves_rows_committed_after_snapshot(
    session, session_factory, monkeypatch
) -> None:
    """A notification committed while mark-all-read runs stays unread."""

    repository = NotificationRepository(session)
    repository.create(_new(title="before"))
    real_query = session.query
    calls: list[tuple] = []

    def query(*entities, **kwargs):
        calls.append(entities)
        if len(calls) == 2:
            with session_factory() as other:
                NotificationRepository(other).create(_new(title="during"))
        return real_query(*entities, **kwargs)

    monkeypatch.setattr(session, "query", query)
    updated = repository.mark_all_read("u1")
    monkeypatch.undo()

    assert [item.title for item in updated] == ["before"]
    assert repository.count_unread("u1") == 1
    assert [item.title for item in repository.list_for_user("u1", unread_only=True)] == ["during"]


def test_delete_checks_owner_and_returns_removed_record(repository) -> None:
    saved = repository.create(_new())

    assert repository.delete(saved.id, user_id="intruder") is None
    removed = repository.delete(saved.id, user_id="u1")

    assert removed is not None and removed.read is False
    assert repository.get(saved.id) is None
    assert repository.delete(saved.id, user_id="u1") is None


def test_delete_for_user_cascades(repository) -> None:
    repository.create(_new())
    repository.create(_new())
    kept = repository.create(_new("u2"))

    removed = repository.delete_for_user("u1")

    assert len(removed) == 2
    assert repository.list_for_user("u1", limit=10) == []
    assert repository.get(kept.id) is not None


def test_storage_failures_raise_storage_error(session, monkeypatch) -> None:
    repository = NotificationRepository(session)

    def broken_commit():
        raise OperationalError("INSERT INTO notification", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", broken_commit)

    with pytest.raises(StorageError):
        repository.create(_new())

    monkeypatch.undo()
    assert repository.list_for_user("u1", limit=10) == []
    assert repository.create(_new()).id is not None
