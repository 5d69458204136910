# ruff: noqa: TC003
"""Notification sink collaborator.

The core hands notifications over only after its transaction has committed
and never lets a delivery failure propagate back into a transition.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from leave_engine.models.base import now_utc
from leave_engine.models.enums import NotificationKind

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    """A notification as handed to the sink."""

    employee_id: uuid.UUID
    title: str
    message: str
    action_url: str
    kind: NotificationKind
    created_at: datetime = Field(default_factory=now_utc)


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for the notification delivery service (UI, email, push)."""

    async def notify(
        self,
        employee_id: uuid.UUID,
        title: str,
        message: str,
        action_url: str,
        kind: NotificationKind,
    ) -> None:
        """Deliver a notification. Fire-and-forget from the caller's perspective."""
        ...


class InMemoryNotificationSink:
    """In-memory stub that records every notification it receives."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def notify(
        self,
        employee_id: uuid.UUID,
        title: str,
        message: str,
        action_url: str,
        kind: NotificationKind,
    ) -> None:
        self.sent.append(
            Notification(employee_id=employee_id, title=title, message=message, action_url=action_url, kind=kind)
        )

    def for_employee(self, employee_id: uuid.UUID) -> list[Notification]:
        return [n for n in self.sent if n.employee_id == employee_id]


_notification_sink: NotificationSink = InMemoryNotificationSink()


def get_notification_sink() -> NotificationSink:
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink


async def send_notification(
    employee_id: uuid.UUID,
    title: str,
    message: str,
    action_url: str,
    kind: NotificationKind,
) -> bool:
    """Hand a notification to the configured sink. Returns False if delivery failed."""
    try:
        await get_notification_sink().notify(employee_id, title, message, action_url, kind)
    except Exception:
        logger.exception("Notification delivery failed: kind=%s employee=%s", kind, employee_id)
        return False
    return True
