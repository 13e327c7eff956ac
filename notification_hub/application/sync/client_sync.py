"""Subscriber-side cache of a user's notifications and unread counter."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from sqlalchemy.orm import Session

from notification_hub.application.use_cases.notifications import (
    delete_notification,
    mark_all_notifications_read,
    mark_notification_read,
)
from notification_hub.config import get_settings
from notification_hub.domain import reconciliation
from notification_hub.domain.entities import Notification, NotificationEvent
from notification_hub.domain.exceptions import ChannelError, StorageError
from notification_hub.domain.reconciliation import SyncState
from notification_hub.infrastructure.notifications import (
    NotificationPublisher,
    Subscription,
    notification_publisher,
)
from notification_hub.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class ClientSync:
    """Keep a local ``(notifications, unread_count)`` view of one user.

    The view is rebuilt from a full fetch whenever the live channel is
    (re)established and otherwise follows channel events through the merge
    rules in :mod:`notification_hub.domain.reconciliation`. Local mutations
    are applied optimistically before the store call; a failed store call is
    reported but not rolled back, the next resync repairs the view.
    """

    def __init__(
        self,
        user_id: str,
        *,
        session_factory: SessionFactory,
        publisher: NotificationPublisher | None = None,
        limit: int | None = None,
    ) -> None:
        self.user_id = user_id
        self.limit = limit or get_settings().notification_page_size
        self.last_error: Exception | None = None
        self._session_factory = session_factory
        self._publisher = publisher or notification_publisher
        self._state = reconciliation.empty_state(self.limit)
        self._lock = threading.RLock()
        self._subscription: Subscription | None = None
        self._resyncing = False
        self._pending: list[NotificationEvent] = []
        self._generation = 0
        self._closed = False

    def __enter__(self) -> "ClientSync":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def state(self) -> SyncState:
        with self._lock:
            self._state = reconciliation.prune_expired(self._state)
            return self._state

    @property
    def notifications(self) -> list[Notification]:
        return list(self.state.notifications)

    @property
    def unread_count(self) -> int:
        return self.state.unread_count

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def open(self) -> None:
        """Subscribe to the user's channel and load the baseline view."""

        self._closed = False
        self._subscribe()
        self.resync()

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def resync(self) -> None:
        """Discard the cached view and rebuild it from the store.

        Events arriving while the fetch runs are merged after the snapshot.
        When resyncs overlap only the most recently started one installs its
        snapshot; events buffered since the first of them are kept for it.
        Raises :class:`StorageError` when the store cannot be read.
        """

        with self._lock:
            if not self._resyncing:
                self._pending = []
            self._resyncing = True
            self._generation += 1
            generation = self._generation
        try:
            with self._session_factory() as session:
                records = NotificationRepository(session).list_for_user(
                    self.user_id, limit=self.limit, page=1
                )
        except StorageError as exc:
            self.last_error = exc
            with self._lock:
                if generation == self._generation:
                    self._finish_resync(self._state)
            raise

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding superseded snapshot for user %s", self.user_id)
                return
            self._finish_resync(reconciliation.from_snapshot(records, self.limit))
        self.last_error = None

    def mark_as_read(self, notification_id: int) -> bool:
        with self._lock:
            self._state = reconciliation.apply_local_mark_read(self._state, notification_id)
        return self._store_call(
            "mark notification as read",
            lambda session: mark_notification_read(
                session, notification_id, user_id=self.user_id, publisher=self._publisher
            ),
        )

    def mark_all_as_read(self) -> int:
        with self._lock:
            self._state = reconciliation.apply_local_mark_all_read(self._state)
        return self._store_call(
            "mark all notifications as read",
            lambda session: mark_all_notifications_read(
                session, self.user_id, publisher=self._publisher
            ),
        )

    def delete_notification(self, notification_id: int) -> bool:
        with self._lock:
            self._state = reconciliation.apply_local_delete(self._state, notification_id)
        try:
            return self._store_call(
                "delete notification",
                lambda session: delete_notification(
                    session, notification_id, user_id=self.user_id, publisher=self._publisher
                ),
            )
        except LookupError:
            # Already removed elsewhere; the local view agrees.
            return False

    def handle_event(self, event: NotificationEvent) -> None:
        """Merge a live channel event into the cached view."""

        with self._lock:
            if self._closed:
                return
            if self._resyncing:
                self._pending.append(event)
                return
            self._state = reconciliation.apply_event(self._state, event)

    def handle_drop(self, error: ChannelError) -> None:
        """Re-subscribe and resync after the live channel was lost."""

        if self._closed:
            return
        logger.info("Notification channel for user %s dropped (%s); resyncing", self.user_id, error)
        self._subscription = None
        self._subscribe()
        try:
            self.resync()
        except StorageError:
            logger.exception("Resync after dropped channel failed for user %s", self.user_id)

    def _subscribe(self) -> None:
        if self._subscription is not None and not self._subscription.closed:
            return
        self._subscription = self._publisher.bus.subscribe(
            self.user_id, self.handle_event, on_drop=self.handle_drop
        )

    def _finish_resync(self, state: SyncState) -> None:
        for event in self._pending:
            state = reconciliation.apply_event(state, event)
        self._state = state
        self._pending = []
        self._resyncing = False

    def _store_call(self, action: str, call: Callable[[Session], object]):
        try:
            with self._session_factory() as session:
                result = call(session)
        except StorageError as exc:
            self.last_error = exc
            logger.error("Failed to %s for user %s: %s", action, self.user_id, exc)
            raise
        return result


__all__ = ["ClientSync", "SessionFactory"]
