"""
In-memory Unit of Work.

``transaction()`` snapshots the writable state on entry and restores it when
the block raises, giving the same all-or-nothing behavior as the database
adapter. Nested transactions join the outermost one.
"""

import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from trayflow.core.observability import get_logger
from trayflow.domain.trays.entities.directory import (
    Department,
    Instrument,
    Pipeline,
    Stage,
    Technician,
)
from trayflow.domain.trays.entities.line_item import LineItem
from trayflow.domain.trays.entities.tray import Tray
from trayflow.domain.trays.repositories.unit_of_work import TrayUnitOfWork
from trayflow.domain.trays.value_objects.routing import Placement

from .repositories import (
    InMemoryAuditEventSink,
    InMemoryDirectoryRepository,
    InMemoryLineItemRepository,
    InMemoryPlacementRepository,
    InMemoryState,
    InMemoryTrayRepository,
)

logger = get_logger(__name__)


class InMemoryUnitOfWork(TrayUnitOfWork):
    """Unit of work over plain dictionaries, used by tests and local tooling."""

    def __init__(self, state: InMemoryState | None = None) -> None:
        self.state = state or InMemoryState()
        self.trays = InMemoryTrayRepository(self.state)
        self.items = InMemoryLineItemRepository(self.state)
        self.directory = InMemoryDirectoryRepository(self.state)
        self.placements = InMemoryPlacementRepository(self.state)
        self.audit = InMemoryAuditEventSink(self.state)
        self._depth = 0
        self.commits = 0
        self.rollbacks = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryUnitOfWork"]:
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        saved = copy.deepcopy(self.state.writable())
        self._depth = 1
        try:
            yield self
        except BaseException:
            for name, value in saved.items():
                setattr(self.state, name, value)
            self.rollbacks += 1
            logger.debug("Rolled back in-memory transaction")
            raise
        else:
            self.commits += 1
        finally:
            self._depth = 0

    # Seeding helpers for fixtures

    def add_tray(self, tray: Tray) -> Tray:
        self.state.trays[tray.id] = tray
        return tray

    def add_items(self, *items: LineItem) -> list[LineItem]:
        for item in items:
            self.state.items[item.id] = item
        return list(items)

    def add_departments(self, *departments: Department) -> None:
        self.state.departments.extend(departments)

    def add_pipelines(self, *pipelines: Pipeline) -> None:
        self.state.pipelines.extend(pipelines)

    def add_stages(self, *stages: Stage) -> None:
        self.state.stages.extend(stages)

    def add_instruments(self, *instruments: Instrument) -> None:
        for instrument in instruments:
            self.state.instruments[instrument.id] = instrument

    def add_technicians(self, *technicians: Technician) -> None:
        for technician in technicians:
            self.state.technicians[technician.id] = technician

    def add_placement(self, placement: Placement) -> None:
        self.state.placements[(placement.tray_id, placement.pipeline_id)] = placement

    def mark_return(self, service_order_id: UUID) -> None:
        self.state.return_markers.add(service_order_id)
