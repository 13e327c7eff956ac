"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging
from typing import Any

import anyio
from anyio import to_thread
from fastapi import (
    APIRouter,
    Depends,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session, sessionmaker

from notification_hub.config import get_settings
from notification_hub.application.use_cases.notifications import (
    NotificationDispatcher,
    delete_notification as delete_notification_uc,
    get_unread_count,
    list_notifications as list_notifications_uc,
    mark_all_notifications_read,
    mark_notification_read,
    purge_notifications as purge_notifications_uc,
)
from notification_hub.domain.entities import DispatchStatus, NotificationEvent
from notification_hub.domain.exceptions import NotificationError, StorageError
from notification_hub.infrastructure.notifications import (
    NotificationPublisher,
    serialize_event,
    serialize_notification,
)
from notification_hub.infrastructure.repositories import NotificationRepository
from notification_hub.interfaces.api.dependencies import (
    domain_error_to_http,
    get_db,
    get_publisher,
    get_session_factory,
)
from notification_hub.interfaces.api.schemas import (
    BulkDispatchRead,
    DispatchRead,
    NotificationBulkCreate,
    NotificationCreate,
    NotificationRead,
    ReadAllResult,
    ReadResult,
    UnreadCountRead,
)

router = APIRouter(tags=["notifications"])
logger = logging.getLogger(__name__)


@router.post("/notifications/", response_model=DispatchRead)
def create_notification(
    notification_in: NotificationCreate,
    response: Response,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> DispatchRead:
    """Create one notification unless the recipient opted out of its type."""

    try:
        result = NotificationDispatcher(db, publisher=publisher).create_one(
            **notification_in.model_dump()
        )
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc

    if result.status is DispatchStatus.CREATED:
        response.status_code = status.HTTP_201_CREATED
    return DispatchRead.from_result(result)


@router.post("/notifications/bulk", response_model=BulkDispatchRead)
def create_bulk_notifications(
    bulk_in: NotificationBulkCreate,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> BulkDispatchRead:
    """Send one notification to many recipients, reporting each outcome."""

    template = bulk_in.model_dump(exclude={"recipient_ids"})
    try:
        outcome = NotificationDispatcher(db, publisher=publisher).create_bulk(
            bulk_in.recipient_ids, **template
        )
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc

    return BulkDispatchRead(
        results={
            recipient: DispatchRead.from_result(result)
            for recipient, result in outcome.results.items()
        },
        failed=outcome.failed_recipients(),
    )


@router.get("/users/{user_id}/notifications", response_model=list[NotificationRead])
def list_notifications(
    user_id: str,
    limit: int | None = Query(None, ge=1),
    page: int = Query(1, ge=1),
    unread_only: bool = False,
    db: Session = Depends(get_db),
) -> list[NotificationRead]:
    """Return one page of the user's active notifications, newest first."""

    try:
        notifications = list_notifications_uc(
            db, user_id, limit=limit, page=page, unread_only=unread_only
        )
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc
    return [NotificationRead.from_entity(notification) for notification in notifications]


@router.get("/users/{user_id}/notifications/unread-count", response_model=UnreadCountRead)
def read_unread_count(user_id: str, db: Session = Depends(get_db)) -> UnreadCountRead:
    """Return how many active notifications of the user are unread."""

    try:
        return UnreadCountRead(unread_count=get_unread_count(db, user_id))
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc


@router.post("/users/{user_id}/notifications/read-all", response_model=ReadAllResult)
def mark_all_read(
    user_id: str,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> ReadAllResult:
    """Mark every notification that is unread right now as read."""

    try:
        updated = mark_all_notifications_read(db, user_id, publisher=publisher)
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc
    return ReadAllResult(updated=updated)


@router.post(
    "/users/{user_id}/notifications/{notification_id}/read", response_model=ReadResult
)
def mark_read(
    user_id: str,
    notification_id: int,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> ReadResult:
    """Mark one notification as read; ``changed`` tells whether it was unread."""

    try:
        changed = mark_notification_read(
            db, notification_id, user_id=user_id, publisher=publisher
        )
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc
    return ReadResult(changed=changed)


@router.delete(
    "/users/{user_id}/notifications/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_notification(
    user_id: str,
    notification_id: int,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> Response:
    """Delete one notification owned by the user."""

    try:
        delete_notification_uc(db, notification_id, user_id=user_id, publisher=publisher)
    except (NotificationError, LookupError) as exc:
        raise domain_error_to_http(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/users/{user_id}/notifications", response_model=ReadAllResult)
def purge_notifications(
    user_id: str,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> ReadAllResult:
    """Delete every notification of the user."""

    try:
        removed = purge_notifications_uc(db, user_id, publisher=publisher)
    except NotificationError as exc:
        raise domain_error_to_http(exc) from exc
    return ReadAllResult(updated=removed)


def _load_snapshot(session_factory: sessionmaker, user_id: str, limit: int) -> list[dict[str, Any]]:
    with session_factory() as session:
        notifications = NotificationRepository(session).list_for_user(
            user_id, limit=limit, page=1
        )
    return [serialize_notification(notification) for notification in notifications]


def _acknowledge(
    session_factory: sessionmaker,
    publisher: NotificationPublisher,
    user_id: str,
    ids: list[Any],
) -> None:
    with session_factory() as session:
        for notification_id in ids:
            if isinstance(notification_id, int) and not isinstance(notification_id, bool):
                mark_notification_read(
                    session, notification_id, user_id=user_id, publisher=publisher
                )


@router.websocket("/users/{user_id}/notifications/ws")
async def notifications_websocket(
    websocket: WebSocket,
    user_id: str,
    session_factory: sessionmaker = Depends(get_session_factory),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> None:
    """Stream the user's notification events.

    The first message is an ``init`` snapshot, the resync point for the
    client; ``insert``/``update``/``delete`` events follow in store order.
    Clients may send ``{"type": "ping"}`` and ``{"type": "ack", "ids": [...]}``.
    """

    await websocket.accept()

    async def forward(event: NotificationEvent) -> None:
        await websocket.send_json(serialize_event(event))

    # Subscribe before the snapshot so nothing committed in between is lost.
    subscription = publisher.bus.subscribe_async(user_id, forward)
    limit = get_settings().notification_page_size
    try:
        snapshot = await to_thread.run_sync(_load_snapshot, session_factory, user_id, limit)
    except StorageError:
        logger.exception("Could not load notification snapshot for user %s", user_id)
        subscription.close()
        await websocket.close(code=1011)
        return

    await websocket.send_json(
        {
            "type": "init",
            "data": snapshot,
            "unread_count": sum(1 for item in snapshot if not item["read"]),
        }
    )

    async def receive_messages(cancel_scope: anyio.CancelScope) -> None:
        try:
            while True:
                try:
                    message = await websocket.receive_json()
                except ValueError:
                    continue
                if not isinstance(message, dict):
                    continue
                message_type = message.get("type")
                if message_type == "ping":
                    await websocket.send_json({"type": "pong"})
                elif message_type == "ack":
                    ids = message.get("ids", [])
                    if not isinstance(ids, list) or not ids:
                        continue
                    try:
                        await to_thread.run_sync(
                            _acknowledge, session_factory, publisher, user_id, ids
                        )
                    except StorageError:
                        logger.exception("Could not acknowledge notifications for user %s", user_id)
                        await websocket.send_json({"type": "error", "data": {"ids": ids}})
        except WebSocketDisconnect:
            pass
        finally:
            subscription.close()
            cancel_scope.cancel()

    try:
        async with anyio.create_task_group() as task_group:
            task_group.start_soon(receive_messages, task_group.cancel_scope)
            await subscription.run()
            task_group.cancel_scope.cancel()
    finally:
        subscription.close()
