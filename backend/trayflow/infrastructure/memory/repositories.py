"""
Dict-backed repositories.

All repositories of one unit of work share an ``InMemoryState``. Entities are
copied on the way in and out so callers never mutate stored state directly.
"""

from uuid import UUID

from trayflow.domain.trays.entities.audit_event import AuditEvent
from trayflow.domain.trays.entities.directory import (
    Department,
    Instrument,
    Pipeline,
    Stage,
    Technician,
)
from trayflow.domain.trays.entities.line_item import LineItem
from trayflow.domain.trays.entities.tray import Tray
from trayflow.domain.trays.repositories.audit_event_sink import AuditEventSink
from trayflow.domain.trays.repositories.directory_repository import DirectoryRepository
from trayflow.domain.trays.repositories.line_item_repository import LineItemRepository
from trayflow.domain.trays.repositories.placement_repository import PlacementRepository
from trayflow.domain.trays.repositories.tray_repository import TrayRepository
from trayflow.domain.trays.value_objects.routing import Placement


class InMemoryState:
    """Everything an in-memory unit of work stores."""

    def __init__(self) -> None:
        self.trays: dict[UUID, Tray] = {}
        self.items: dict[UUID, LineItem] = {}
        self.placements: dict[tuple[UUID, UUID], Placement] = {}
        self.events: list[AuditEvent] = []
        # Directory
        self.departments: list[Department] = []
        self.pipelines: list[Pipeline] = []
        self.stages: list[Stage] = []
        self.instruments: dict[UUID, Instrument] = {}
        self.technicians: dict[UUID, Technician] = {}
        self.return_markers: set[UUID] = set()

    def writable(self) -> dict[str, object]:
        """The parts a transaction may change."""
        return {
            "trays": self.trays,
            "items": self.items,
            "placements": self.placements,
            "events": self.events,
        }


class InMemoryTrayRepository(TrayRepository):
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    async def save(self, tray: Tray) -> Tray:
        self._state.trays[tray.id] = tray.model_copy(deep=True)
        return tray

    async def get_by_id(self, tray_id: UUID) -> Tray | None:
        tray = self._state.trays.get(tray_id)
        return tray.model_copy(deep=True) if tray else None

    async def get_by_number(self, number: str) -> Tray | None:
        key = number.strip().casefold()
        for tray in self._state.trays.values():
            if tray.number is not None and tray.number.casefold() == key:
                return tray.model_copy(deep=True)
        return None

    async def get_by_service_order(self, service_order_id: UUID) -> list[Tray]:
        return [
            tray.model_copy(deep=True)
            for tray in self._state.trays.values()
            if tray.service_order_id == service_order_id
        ]

    async def get_children(self, parent_tray_id: UUID) -> list[Tray]:
        return [
            tray.model_copy(deep=True)
            for tray in self._state.trays.values()
            if tray.parent_tray_id == parent_tray_id
        ]

    async def delete(self, tray_id: UUID) -> bool:
        return self._state.trays.pop(tray_id, None) is not None


class InMemoryLineItemRepository(LineItemRepository):
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    async def save(self, item: LineItem) -> LineItem:
        self._state.items[item.id] = item.model_copy(deep=True)
        return item

    async def get_by_id(self, item_id: UUID) -> LineItem | None:
        item = self._state.items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def get_by_tray(self, tray_id: UUID) -> list[LineItem]:
        return [
            item.model_copy(deep=True)
            for item in self._state.items.values()
            if item.tray_id == tray_id
        ]

    async def delete(self, item_id: UUID) -> bool:
        return self._state.items.pop(item_id, None) is not None


class InMemoryDirectoryRepository(DirectoryRepository):
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    async def get_departments(self) -> list[Department]:
        return list(self._state.departments)

    async def get_pipelines(self) -> list[Pipeline]:
        return list(self._state.pipelines)

    async def get_stages(self, pipeline_id: UUID) -> list[Stage]:
        stages = [s for s in self._state.stages if s.pipeline_id == pipeline_id]
        return sorted(stages, key=lambda s: s.position)

    async def get_instruments(self, instrument_ids: list[UUID]) -> list[Instrument]:
        return [
            self._state.instruments[i] for i in instrument_ids if i in self._state.instruments
        ]

    async def get_technicians(self, technician_ids: list[UUID]) -> list[Technician]:
        return [
            self._state.technicians[t] for t in technician_ids if t in self._state.technicians
        ]

    async def has_return_marker(self, service_order_id: UUID) -> bool:
        return service_order_id in self._state.return_markers


class InMemoryPlacementRepository(PlacementRepository):
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    async def get_by_tray(self, tray_id: UUID) -> list[Placement]:
        return [p for (t, _), p in self._state.placements.items() if t == tray_id]

    async def place(self, placement: Placement) -> Placement:
        self._state.placements[(placement.tray_id, placement.pipeline_id)] = placement
        return placement

    async def remove(self, tray_id: UUID, pipeline_id: UUID) -> bool:
        return self._state.placements.pop((tray_id, pipeline_id), None) is not None


class InMemoryAuditEventSink(AuditEventSink):
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    async def append(self, event: AuditEvent) -> AuditEvent:
        self._state.events.append(event.model_copy(deep=True))
        return event

    async def exists(self, subject_id: UUID, event_kind: str) -> bool:
        return any(
            e.subject_id == subject_id and e.event_kind == event_kind
            for e in self._state.events
        )

    async def get_by_subject(self, subject_id: UUID) -> list[AuditEvent]:
        return [e.model_copy(deep=True) for e in self._state.events if e.subject_id == subject_id]
