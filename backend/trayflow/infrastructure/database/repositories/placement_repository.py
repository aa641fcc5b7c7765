"""Placement repository implementation using SQLModel."""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.domain.trays.repositories.placement_repository import PlacementRepository
from trayflow.domain.trays.value_objects.routing import Placement
from trayflow.infrastructure.database.sqlmodel_entities import PlacementRow

from .base import SqlRepository
from .mappers.tray_mapper import PlacementMapper


class SqlPlacementRepository(SqlRepository, PlacementRepository):
    def _find(self, tray_id: UUID, pipeline_id: UUID) -> PlacementRow | None:
        statement = select(PlacementRow).where(
            PlacementRow.tray_id == tray_id, PlacementRow.pipeline_id == pipeline_id
        )
        return self.session.exec(statement).first()

    async def get_by_tray(self, tray_id: UUID) -> list[Placement]:
        try:
            statement = select(PlacementRow).where(PlacementRow.tray_id == tray_id)
            return [PlacementMapper.sql_to_domain(r) for r in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise self._error(f"loading placements of tray {tray_id}", e) from e

    async def place(self, placement: Placement) -> Placement:
        action = f"placing tray {placement.tray_id}"
        try:
            row = self._find(placement.tray_id, placement.pipeline_id)
            if row is None:
                row = PlacementRow(
                    tray_id=placement.tray_id,
                    pipeline_id=placement.pipeline_id,
                    stage_id=placement.stage_id,
                )
            else:
                row.stage_id = placement.stage_id
            self.session.add(row)
        except SQLAlchemyError as e:
            raise self._error(action, e) from e
        self._flush(action)
        return placement

    async def remove(self, tray_id: UUID, pipeline_id: UUID) -> bool:
        action = f"removing tray {tray_id} from pipeline {pipeline_id}"
        try:
            row = self._find(tray_id, pipeline_id)
            if row is None:
                return False
            self.session.delete(row)
        except SQLAlchemyError as e:
            raise self._error(action, e) from e
        self._flush(action)
        return True
