"""Outcome of dispatching notifications to one or many recipients."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .notification import Notification


class DispatchStatus(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DispatchResult:
    """Per-recipient result of a dispatch.

    ``SKIPPED`` counts as a success: the recipient opted out and nothing was
    stored.
    """

    recipient_id: str
    status: DispatchStatus
    notification: Notification | None = None
    reason: str | None = None

    @property
    def success(self) -> bool:
        return self.status is not DispatchStatus.FAILED

    @property
    def id(self) -> int | None:
        return self.notification.id if self.notification is not None else None

    @classmethod
    def created(cls, notification: Notification) -> "DispatchResult":
        return cls(
            recipient_id=notification.recipient_id,
            status=DispatchStatus.CREATED,
            notification=notification,
        )

    @classmethod
    def skipped(cls, recipient_id: str, reason: str) -> "DispatchResult":
        return cls(recipient_id=recipient_id, status=DispatchStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, recipient_id: str, reason: str) -> "DispatchResult":
        return cls(recipient_id=recipient_id, status=DispatchStatus.FAILED, reason=reason)


@dataclass
class BulkDispatchResult:
    """Results of a bulk dispatch keyed by recipient, in request order."""

    results: dict[str, DispatchResult] = field(default_factory=dict)

    def add(self, result: DispatchResult) -> None:
        self.results[result.recipient_id] = result

    def statuses(self) -> dict[str, DispatchStatus]:
        return {recipient: result.status for recipient, result in self.results.items()}

    def _with_status(self, status: DispatchStatus) -> list[str]:
        return [
            recipient
            for recipient, result in self.results.items()
            if result.status is status
        ]

    def created_recipients(self) -> list[str]:
        return self._with_status(DispatchStatus.CREATED)

    def skipped_recipients(self) -> list[str]:
        return self._with_status(DispatchStatus.SKIPPED)

    def failed_recipients(self) -> list[str]:
        """Recipients whose dispatch failed and may be retried."""

        return self._with_status(DispatchStatus.FAILED)


__all__ = ["BulkDispatchResult", "DispatchResult", "DispatchStatus"]
