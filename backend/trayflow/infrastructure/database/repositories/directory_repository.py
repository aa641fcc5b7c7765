"""Read-only directory repository implementation using SQLModel."""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from trayflow.domain.trays.entities.directory import (
    Department,
    Instrument,
    Pipeline,
    Stage,
    Technician,
)
from trayflow.domain.trays.repositories.directory_repository import DirectoryRepository
from trayflow.infrastructure.database.sqlmodel_entities import (
    DepartmentRow,
    InstrumentRow,
    PipelineRow,
    ServiceOrderRow,
    StageRow,
    TechnicianRow,
)

from .base import SqlRepository
from .mappers.tray_mapper import DirectoryMapper


class SqlDirectoryRepository(SqlRepository, DirectoryRepository):
    async def get_departments(self) -> list[Department]:
        try:
            statement = select(DepartmentRow).order_by(DepartmentRow.position, DepartmentRow.name)
            return [DirectoryMapper.department(r) for r in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise self._error("loading departments", e) from e

    async def get_pipelines(self) -> list[Pipeline]:
        try:
            statement = select(PipelineRow).order_by(PipelineRow.position, PipelineRow.name)
            return [DirectoryMapper.pipeline(r) for r in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise self._error("loading pipelines", e) from e

    async def get_stages(self, pipeline_id: UUID) -> list[Stage]:
        try:
            statement = (
                select(StageRow)
                .where(StageRow.pipeline_id == pipeline_id)
                .order_by(StageRow.position)
            )
            return [DirectoryMapper.stage(r) for r in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise self._error(f"loading stages of pipeline {pipeline_id}", e) from e

    async def get_instruments(self, instrument_ids: list[UUID]) -> list[Instrument]:
        if not instrument_ids:
            return []
        try:
            statement = select(InstrumentRow).where(col(InstrumentRow.id).in_(instrument_ids))
            return [DirectoryMapper.instrument(r) for r in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise self._error("loading instruments", e) from e

    async def get_technicians(self, technician_ids: list[UUID]) -> list[Technician]:
        if not technician_ids:
            return []
        try:
            statement = select(TechnicianRow).where(col(TechnicianRow.id).in_(technician_ids))
            return [DirectoryMapper.technician(r) for r in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise self._error("loading technicians", e) from e

    async def has_return_marker(self, service_order_id: UUID) -> bool:
        try:
            row = self.session.get(ServiceOrderRow, service_order_id)
        except SQLAlchemyError as e:
            raise self._error(f"loading service order {service_order_id}", e) from e
        return bool(row and row.has_return_marker)
