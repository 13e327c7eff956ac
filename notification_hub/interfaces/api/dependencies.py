"""FastAPI dependency utilities."""

from collections.abc import Generator

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session, sessionmaker

from notification_hub.domain.exceptions import StorageError, ValidationError
from notification_hub.infrastructure import database
from notification_hub.infrastructure.notifications import (
    NotificationPublisher,
    notification_publisher,
)


def get_session_factory() -> sessionmaker:
    """Return the factory used for request and websocket sessions."""

    return database.SessionLocal


def get_db(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def get_publisher() -> NotificationPublisher:
    return notification_publisher


def domain_error_to_http(exc: Exception) -> HTTPException:
    """Translate a notification core error into an HTTP error response."""

    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, StorageError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification storage is unavailable",
        )
    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
