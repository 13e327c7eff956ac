"""Use cases creating notifications for one or many recipients."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from notification_hub.config import get_settings
from notification_hub.domain.entities import (
    BulkDispatchResult,
    DispatchResult,
    Notification,
    NotificationType,
    resolve_notification_type,
)
from notification_hub.domain.exceptions import ValidationError
from notification_hub.infrastructure.notifications import (
    NotificationPublisher,
    notification_publisher,
)
from notification_hub.infrastructure.repositories import NotificationRepository

from .preferences import PreferenceGate

logger = logging.getLogger(__name__)

SKIPPED_BY_PREFERENCES = "disabled by user preferences"


@dataclass
class NotificationTemplate:
    """Validated content shared by every recipient of a dispatch."""

    title: str
    message: str
    type: NotificationType
    metadata: dict[str, Any] = field(default_factory=dict)
    link: str | None = None
    expires_at: datetime | None = None

    @classmethod
    def build(
        cls,
        *,
        title: str | None,
        message: str | None,
        type: NotificationType | str | None,
        metadata: Mapping[str, Any] | None = None,
        link: str | None = None,
        expires_at: datetime | None = None,
    ) -> "NotificationTemplate":
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Notification title is required")
        if metadata is not None and not isinstance(metadata, Mapping):
            raise ValidationError("Notification metadata must be a mapping")
        if link is not None and not isinstance(link, str):
            raise ValidationError("Notification link must be a string")
        if expires_at is not None and not isinstance(expires_at, datetime):
            raise ValidationError("Notification expiry must be a datetime")
        return cls(
            title=title.strip(),
            message=message or "",
            type=resolve_notification_type(type),
            metadata=dict(metadata or {}),
            link=link or None,
            expires_at=expires_at,
        )

    def for_recipient(self, recipient_id: str) -> Notification:
        return Notification(
            id=None,
            recipient_id=recipient_id,
            type=self.type,
            title=self.title,
            message=self.message,
            metadata=dict(self.metadata),
            link=self.link,
            read=False,
            expires_at=self.expires_at,
        )


def _normalize_recipient(recipient_id: object) -> str:
    if recipient_id is None:
        raise ValidationError("Recipient id is required")
    normalized = str(recipient_id).strip()
    if not normalized:
        raise ValidationError("Recipient id is required")
    return normalized


class NotificationDispatcher:
    """Create notifications after consulting the recipient's preferences."""

    def __init__(
        self,
        session: Session,
        *,
        gate: PreferenceGate | None = None,
        publisher: NotificationPublisher | None = None,
    ) -> None:
        self._repository = NotificationRepository(session)
        self._gate = gate or PreferenceGate(session)
        self._publisher = publisher or notification_publisher

    def create_one(
        self,
        *,
        recipient_id: str | None,
        title: str | None,
        message: str | None = "",
        type: NotificationType | str | None = NotificationType.INFO,
        metadata: Mapping[str, Any] | None = None,
        link: str | None = None,
        expires_at: datetime | None = None,
    ) -> DispatchResult:
        """Create one notification.

        Raises :class:`ValidationError` for malformed input before touching
        storage and lets :class:`StorageError` propagate. A recipient who
        opted out yields a ``skipped`` result, not an error.
        """

        recipient = _normalize_recipient(recipient_id)
        template = NotificationTemplate.build(
            title=title,
            message=message,
            type=type,
            metadata=metadata,
            link=link,
            expires_at=expires_at,
        )
        return self._deliver(recipient, template)

    def create_bulk(
        self,
        recipient_ids: Iterable[str],
        *,
        title: str | None,
        message: str | None = "",
        type: NotificationType | str | None = NotificationType.INFO,
        metadata: Mapping[str, Any] | None = None,
        link: str | None = None,
        expires_at: datetime | None = None,
    ) -> BulkDispatchResult:
        """Send the same notification to every recipient independently.

        A failure for one recipient is recorded as ``failed`` and never
        aborts or rolls back the others, so callers can retry exactly
        :meth:`BulkDispatchResult.failed_recipients`.
        """

        template = NotificationTemplate.build(
            title=title,
            message=message,
            type=type,
            metadata=metadata,
            link=link,
            expires_at=expires_at,
        )
        if recipient_ids is None or isinstance(recipient_ids, (str, bytes)):
            raise ValidationError("Recipient ids must be a collection of user ids")
        plan = self._plan_recipients(recipient_ids)
        if not plan:
            raise ValidationError("At least one recipient is required")
        max_recipients = get_settings().bulk_max_recipients
        if len(plan) > max_recipients:
            raise ValidationError(
                f"Bulk dispatch accepts at most {max_recipients} recipients"
            )

        outcome = BulkDispatchResult()
        for recipient, rejection in plan.items():
            if rejection is not None:
                outcome.add(DispatchResult.failed(recipient, rejection))
                continue
            try:
                result = self._deliver(recipient, template)
            except Exception as exc:
                logger.exception("Bulk notification failed for recipient %s", recipient)
                result = DispatchResult.failed(recipient, str(exc) or exc.__class__.__name__)
            outcome.add(result)

        logger.info(
            "Bulk '%s' notification: %d created, %d skipped, %d failed",
            template.type.value,
            len(outcome.created_recipients()),
            len(outcome.skipped_recipients()),
            len(outcome.failed_recipients()),
        )
        return outcome

    @staticmethod
    def _plan_recipients(recipient_ids: Iterable[object]) -> dict[str, str | None]:
        """Map each distinct recipient, in request order, to its rejection reason.

        Ids are deduplicated after normalization. Malformed entries are keyed
        by their ``repr`` so each one gets its own ``failed`` result.
        """

        plan: dict[str, str | None] = {}
        for raw_recipient in recipient_ids:
            try:
                plan.setdefault(_normalize_recipient(raw_recipient), None)
            except ValidationError as exc:
                plan.setdefault(repr(raw_recipient), str(exc))
        return plan

    def _deliver(self, recipient_id: str, template: NotificationTemplate) -> DispatchResult:
        if not self._gate.allows(recipient_id, template.type):
            logger.debug(
                "Skipping '%s' notification for user %s", template.type.value, recipient_id
            )
            return DispatchResult.skipped(recipient_id, SKIPPED_BY_PREFERENCES)

        with self._publisher.ordering(recipient_id):
            saved = self._repository.create(template.for_recipient(recipient_id))
            self._publisher.publish_insert(saved)
        return DispatchResult.created(saved)


def create_notification(session: Session, **fields: Any) -> DispatchResult:
    """Create one notification with the default gate and publisher."""

    return NotificationDispatcher(session).create_one(**fields)


def create_bulk_notifications(
    session: Session, recipient_ids: Iterable[str], **template: Any
) -> BulkDispatchResult:
    """Create the same notification for each of ``recipient_ids``."""

    return NotificationDispatcher(session).create_bulk(recipient_ids, **template)


__all__ = [
    "NotificationDispatcher",
    "NotificationTemplate",
    "SKIPPED_BY_PREFERENCES",
    "create_bulk_notifications",
    "create_notification",
]
