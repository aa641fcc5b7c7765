"""
Domain Events

Events raised by the trays domain after a mutation has been persisted, and the
dispatcher that hands them to registered handlers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from trayflow.core.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.utcnow)
    actor: str = ""


@dataclass(frozen=True, kw_only=True)
class TrayRouted(DomainEvent):
    """Raised when a tray is placed in a department pipeline."""

    tray_id: UUID
    tray_number: str
    service_order_id: UUID
    department_name: str
    pipeline_id: UUID
    stage_id: UUID
    technician_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True, kw_only=True)
class TraySplit(DomainEvent):
    """Raised when a tray is split into per-technician real trays."""

    original_tray_id: UUID
    resulting_tray_ids: tuple[UUID, ...]
    owner_ids: tuple[UUID, ...]


@dataclass(frozen=True, kw_only=True)
class ItemsMovedToTechnician(DomainEvent):
    """Raised when item quantities move to another technician on the same tray."""

    tray_id: UUID
    from_technician_id: UUID | None
    to_technician_id: UUID
    item_ids: tuple[UUID, ...]
    merged_count: int = 0


@dataclass(frozen=True, kw_only=True)
class LineItemsConsolidated(DomainEvent):
    tray_id: UUID
    technician_id: UUID | None
    merged_count: int


@dataclass(frozen=True, kw_only=True)
class SplitTraysReunited(DomainEvent):
    tray_id: UUID
    removed_tray_ids: tuple[UUID, ...]


@dataclass(frozen=True, kw_only=True)
class InstrumentMoved(DomainEvent):
    instrument_id: UUID
    source_tray_id: UUID
    target_tray_id: UUID
    item_ids: tuple[UUID, ...]
    deleted_tray_id: UUID | None = None


# Event Handler Interface
class DomainEventHandler:
    """Base interface for domain event handlers."""

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can handle the given event."""
        raise NotImplementedError

    async def handle(self, event: DomainEvent) -> None:
        """Handle the domain event."""
        raise NotImplementedError


class DomainEventDispatcher:
    """Dispatches domain events to registered handlers.

    Handlers run after the originating change is committed, so a failing
    handler is logged and never undoes or blocks that change.
    """

    def __init__(self) -> None:
        self._handlers: list[DomainEventHandler] = []

    def register_handler(self, handler: DomainEventHandler) -> None:
        """Register an event handler."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unregister_handler(self, handler: DomainEventHandler) -> None:
        """Unregister an event handler."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def dispatch(self, event: DomainEvent) -> None:
        """Dispatch an event to all capable handlers."""
        for handler in self._handlers:
            if not handler.can_handle(event):
                continue
            try:
                await handler.handle(event)
            except Exception as e:
                logger.warning(
                    "Event handler failed",
                    event_type=type(event).__name__,
                    event_id=str(event.event_id),
                    handler=type(handler).__name__,
                    error=str(e),
                )

    async def dispatch_all(self, events: list[DomainEvent]) -> None:
        """Dispatch multiple events."""
        for event in events:
            await self.dispatch(event)
