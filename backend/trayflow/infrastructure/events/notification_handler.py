"""
Technician notifications for routed trays.

Bridges ``TrayRouted`` domain events to a ``NotificationSender``. Delivery is
best effort: failures are logged and never affect the routing result.
"""

from trayflow.core.observability import get_logger
from trayflow.domain.shared.exceptions import DomainError
from trayflow.domain.trays.events.domain_events import (
    DomainEvent,
    DomainEventHandler,
    TrayRouted,
)
from trayflow.domain.trays.repositories.notification_sender import NotificationSender

logger = get_logger(__name__)


class TechnicianNotificationHandler(DomainEventHandler):
    """Notifies every technician with work on a tray that it reached a department."""

    def __init__(self, sender: NotificationSender) -> None:
        self._sender = sender

    def can_handle(self, event: DomainEvent) -> bool:
        return isinstance(event, TrayRouted)

    async def handle(self, event: DomainEvent) -> None:
        if not isinstance(event, TrayRouted) or not event.technician_ids:
            return
        try:
            await self._sender.notify(
                list(event.technician_ids),
                f"Tray {event.tray_number} sent to {event.department_name}",
                {
                    "tray_id": str(event.tray_id),
                    "service_order_id": str(event.service_order_id),
                    "pipeline_id": str(event.pipeline_id),
                    "stage_id": str(event.stage_id),
                },
            )
        except DomainError as e:
            logger.warning(
                "Technician notification failed",
                tray_id=str(event.tray_id),
                recipients=len(event.technician_ids),
                error=e.message,
            )
