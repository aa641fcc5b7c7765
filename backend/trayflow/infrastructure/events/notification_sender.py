"""Notification sender adapters."""

from typing import Any
from uuid import UUID

from trayflow.core.observability import get_logger
from trayflow.domain.trays.repositories.notification_sender import NotificationSender

logger = get_logger(__name__)


class LoggingNotificationSender(NotificationSender):
    """Writes notifications to the structured log instead of delivering them."""

    async def notify(
        self, recipient_ids: list[UUID], title: str, payload: dict[str, Any]
    ) -> None:
        logger.info(
            "Notification queued",
            recipients=[str(r) for r in recipient_ids],
            title=title,
            **payload,
        )


class InMemoryNotificationSender(NotificationSender):
    """Keeps every notification in memory, one entry per recipient."""

    def __init__(self) -> None:
        self.sent: list[tuple[UUID, str, dict[str, Any]]] = []

    async def notify(
        self, recipient_ids: list[UUID], title: str, payload: dict[str, Any]
    ) -> None:
        for recipient_id in recipient_ids:
            self.sent.append((recipient_id, title, dict(payload)))
