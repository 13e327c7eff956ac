"""Merge rules keeping a subscriber's cached view consistent with the store.

A :class:`SyncState` is the subscriber-side cache: the newest ``limit``
active notifications of one user and the number of unread entries among
them. Every function here is pure, ``(state, change) -> state``, and
matches records by id so duplicated or replayed events are harmless:

* ``read`` is merged monotonically, a cached ``True`` is never turned back
  into ``False`` by a stale event;
* ``unread_count`` is only ever adjusted by the read delta of the records
  actually entering, changing in or leaving the list, and never drops
  below zero.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable

from .entities import Notification, NotificationEvent, NotificationEventKind


@dataclass(frozen=True)
class SyncState:
    notifications: tuple[Notification, ...] = ()
    unread_count: int = 0
    limit: int = 20

    def ids(self) -> list[int | None]:
        return [notification.id for notification in self.notifications]

    def find(self, notification_id: int) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None


def _unread(records: Iterable[Notification]) -> int:
    return sum(1 for record in records if not record.read)


def _with(state: SyncState, notifications: list[Notification], delta: int) -> SyncState:
    return replace(
        state,
        notifications=tuple(notifications),
        unread_count=max(0, state.unread_count + delta),
    )


def empty_state(limit: int) -> SyncState:
    if limit < 1:
        raise ValueError("limit must be positive")
    return SyncState(limit=limit)


def from_snapshot(
    records: Iterable[Notification], limit: int, now: datetime | None = None
) -> SyncState:
    """Build the state from a full fetch; this is the resynchronization point."""

    if limit < 1:
        raise ValueError("limit must be positive")
    active = [record for record in records if not record.is_expired(now)]
    active.sort(key=Notification.sort_key, reverse=True)
    kept = active[:limit]
    return SyncState(notifications=tuple(kept), unread_count=_unread(kept), limit=limit)


def apply_insert(
    state: SyncState, record: Notification, now: datetime | None = None
) -> SyncState:
    existing = state.find(record.id) if record.id is not None else None
    if existing is not None:
        return _replace_record(state, existing, record)
    if record.is_expired(now):
        return state

    notifications = list(state.notifications)
    position = len(notifications)
    for index, current in enumerate(notifications):
        if record.sort_key() > current.sort_key():
            position = index
            break
    if position >= state.limit:
        # Older than everything a full list keeps.
        return state
    notifications.insert(position, record)

    kept = notifications[: state.limit]
    dropped = notifications[state.limit :]
    delta = (0 if record.read else 1) - _unread(dropped)
    return _with(state, kept, delta)


def apply_update(state: SyncState, record: Notification) -> SyncState:
    existing = state.find(record.id) if record.id is not None else None
    if existing is None:
        return state
    return _replace_record(state, existing, record)


def apply_delete(
    state: SyncState, notification_id: int, *, was_unread: bool = False
) -> SyncState:
    """Drop ``notification_id`` from the list.

    The counter only tracks listed records, so an id that is not cached
    leaves it untouched. For a cached record the cached flag decides; the
    event's ``was_unread`` can confirm but never override a cached read.
    """

    existing = state.find(notification_id)
    if existing is None:
        return state
    notifications = [item for item in state.notifications if item.id != notification_id]
    delta = -1 if not existing.read else 0
    return _with(state, notifications, delta)


def apply_event(
    state: SyncState, event: NotificationEvent, now: datetime | None = None
) -> SyncState:
    """Merge a live channel event into ``state``."""

    if event.kind is NotificationEventKind.INSERT and event.notification is not None:
        return apply_insert(state, event.notification, now)
    if event.kind is NotificationEventKind.UPDATE and event.notification is not None:
        return apply_update(state, event.notification)
    if event.kind is NotificationEventKind.DELETE:
        return apply_delete(state, event.notification_id, was_unread=event.was_unread)
    return state


def apply_local_mark_read(state: SyncState, notification_id: int) -> SyncState:
    existing = state.find(notification_id)
    if existing is None or existing.read:
        return state
    return _replace_record(state, existing, replace(existing, read=True))


def apply_local_mark_all_read(state: SyncState) -> SyncState:
    notifications = [
        item if item.read else replace(item, read=True) for item in state.notifications
    ]
    return replace(state, notifications=tuple(notifications), unread_count=0)


def apply_local_delete(state: SyncState, notification_id: int) -> SyncState:
    return apply_delete(state, notification_id)


def prune_expired(state: SyncState, now: datetime | None = None) -> SyncState:
    """Remove entries whose expiry has passed since they were cached."""

    expired = [item for item in state.notifications if item.is_expired(now)]
    if not expired:
        return state
    notifications = [item for item in state.notifications if not item.is_expired(now)]
    return _with(state, notifications, -_unread(expired))


def _replace_record(
    state: SyncState, existing: Notification, incoming: Notification
) -> SyncState:
    merged = replace(incoming, read=existing.read or incoming.read)
    notifications = [merged if item.id == existing.id else item for item in state.notifications]
    delta = -1 if merged.read and not existing.read else 0
    return _with(state, notifications, delta)


__all__ = [
    "SyncState",
    "apply_delete",
    "apply_event",
    "apply_insert",
    "apply_local_delete",
    "apply_local_mark_all_read",
    "apply_local_mark_read",
    "apply_update",
    "empty_state",
    "from_snapshot",
    "prune_expired",
]
