"""Per-user event channels for live notification subscribers."""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import weakref
from collections import defaultdict
from typing import Any, Callable, DefaultDict

from notification_hub.domain.entities import NotificationEvent
from notification_hub.domain.exceptions import ChannelError

logger = logging.getLogger(__name__)

EventCallback = Callable[[NotificationEvent], Any]
DropCallback = Callable[[ChannelError], None]

_CLOSED = object()


class Subscription:
    """Handle for one live stream of a user's notification events.

    Synchronous subscriptions run ``on_event`` on the publishing thread.
    Asynchronous ones queue events on the loop they were created on and
    deliver them from :meth:`run`, so a slow consumer never blocks the
    publisher or other users' subscribers.
    """

    def __init__(
        self,
        bus: "EventBus",
        user_id: str,
        on_event: EventCallback,
        *,
        on_drop: DropCallback | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.user_id = user_id
        self._bus = bus
        self._on_event = on_event
        self._on_drop = on_drop
        self._loop = loop
        self._queue: asyncio.Queue[Any] | None = asyncio.Queue() if loop is not None else None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: NotificationEvent) -> None:
        if self._closed:
            return
        if self._loop is None:
            try:
                self._on_event(event)
            except Exception as exc:
                logger.warning(
                    "Dropping subscriber of user %s after callback failure: %s",
                    self.user_id,
                    exc,
                )
                self._finish(ChannelError(f"subscriber callback failed: {exc}"))
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            self._finish(ChannelError("subscriber event loop is closed"))

    async def run(self) -> None:
        """Deliver queued events in order until the subscription ends."""

        if self._queue is None:
            raise RuntimeError("Synchronous subscriptions are delivered on publish")
        while True:
            event = await self._queue.get()
            if event is _CLOSED or self._closed:
                return
            try:
                result = self._on_event(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.warning(
                    "Dropping subscriber of user %s after delivery failure: %s",
                    self.user_id,
                    exc,
                )
                self._finish(ChannelError(f"event delivery failed: {exc}"))
                return

    def close(self) -> None:
        """Stop delivery immediately. Safe to call more than once."""

        self._finish(None)

    def drop(self, reason: str) -> None:
        """End the subscription as a lost connection, notifying ``on_drop``."""

        self._finish(ChannelError(reason))

    def _finish(self, error: ChannelError | None) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._bus._remove(self)
        if self._queue is not None:
            try:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)
            except RuntimeError:
                pass
        if error is not None and self._on_drop is not None:
            self._on_drop(error)


class EventBus:
    """Fan out notification events to the subscribers of each user."""

    def __init__(self) -> None:
        self._subscriptions: DefaultDict[str, list[Subscription]] = defaultdict(list)
        self._registry_lock = threading.RLock()
        # Entries disappear once no caller holds the lock.
        self._ordering_locks: weakref.WeakValueDictionary[str, threading.RLock] = (
            weakref.WeakValueDictionary()
        )

    def subscribe(
        self,
        user_id: str,
        on_event: EventCallback,
        *,
        on_drop: DropCallback | None = None,
    ) -> Subscription:
        """Register a synchronous subscriber for events published from now on."""

        return self._register(Subscription(self, user_id, on_event, on_drop=on_drop))

    def subscribe_async(
        self,
        user_id: str,
        on_event: EventCallback,
        *,
        on_drop: DropCallback | None = None,
    ) -> Subscription:
        """Register a subscriber bound to the running event loop."""

        loop = asyncio.get_running_loop()
        return self._register(
            Subscription(self, user_id, on_event, on_drop=on_drop, loop=loop)
        )

    def ordering(self, user_id: str) -> threading.RLock:
        """Lock serializing store mutations and publishes for ``user_id``."""

        with self._registry_lock:
            lock = self._ordering_locks.get(user_id)
            if lock is None:
                lock = self._ordering_locks[user_id] = threading.RLock()
            return lock

    def publish(self, event: NotificationEvent) -> int:
        """Deliver ``event`` to the current subscribers of its recipient."""

        with self._registry_lock:
            targets = list(self._subscriptions.get(event.recipient_id, ()))
        for subscription in targets:
            subscription.deliver(event)
        return len(targets)

    def subscriber_count(self, user_id: str) -> int:
        with self._registry_lock:
            return len(self._subscriptions.get(user_id, ()))

    def drop(self, user_id: str, reason: str = "connection lost") -> int:
        """Terminate every subscription of ``user_id`` as a dropped channel."""

        with self._registry_lock:
            targets = list(self._subscriptions.get(user_id, ()))
        for subscription in targets:
            subscription.drop(reason)
        return len(targets)

    def close_all(self) -> None:
        with self._registry_lock:
            targets = [sub for subs in self._subscriptions.values() for sub in subs]
        for subscription in targets:
            subscription.close()

    def _register(self, subscription: Subscription) -> Subscription:
        with self._registry_lock:
            self._subscriptions[subscription.user_id].append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._registry_lock:
            subscriptions = self._subscriptions.get(subscription.user_id)
            if subscriptions is None:
                return
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                self._subscriptions.pop(subscription.user_id, None)


event_bus = EventBus()


__all__ = ["EventBus", "Subscription", "event_bus"]
