"""Notification Sender Interface. Delivery itself happens elsewhere."""

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID


class NotificationSender(ABC):
    @abstractmethod
    async def notify(
        self, recipient_ids: list[UUID], title: str, payload: dict[str, Any]
    ) -> None:
        """Queue a notification for each recipient."""
        pass
