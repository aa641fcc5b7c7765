"""Tray repository implementation using SQLModel."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.domain.trays.entities.tray import Tray
from trayflow.domain.trays.repositories.tray_repository import TrayRepository
from trayflow.infrastructure.database.sqlmodel_entities import TrayRow

from .base import SqlRepository
from .mappers.tray_mapper import TrayMapper


class SqlTrayRepository(SqlRepository, TrayRepository):
    """Repository implementation for trays."""

    async def save(self, tray: Tray) -> Tray:
        try:
            row = self.session.get(TrayRow, tray.id)
            data = TrayMapper.domain_to_sql(tray)
            if row is None:
                self.session.add(data)
            else:
                for field in TrayRow.model_fields:
                    setattr(row, field, getattr(data, field))
                self.session.add(row)
        except SQLAlchemyError as e:
            raise self._error(f"saving tray {tray.id}", e) from e
        self._flush(f"saving tray {tray.id}")
        return tray

    async def get_by_id(self, tray_id: UUID) -> Tray | None:
        try:
            row = self.session.get(TrayRow, tray_id)
        except SQLAlchemyError as e:
            raise self._error(f"loading tray {tray_id}", e) from e
        return TrayMapper.sql_to_domain(row) if row else None

    async def get_by_number(self, number: str) -> Tray | None:
        try:
            statement = select(TrayRow).where(
                func.lower(TrayRow.number) == number.strip().lower()
            )
            row = self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise self._error(f"finding tray number {number}", e) from e
        return TrayMapper.sql_to_domain(row) if row else None

    async def get_by_service_order(self, service_order_id: UUID) -> list[Tray]:
        try:
            statement = (
                select(TrayRow)
                .where(TrayRow.service_order_id == service_order_id)
                .order_by(TrayRow.created_at)
            )
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise self._error(f"loading trays of service order {service_order_id}", e) from e
        return [TrayMapper.sql_to_domain(row) for row in rows]

    async def get_children(self, parent_tray_id: UUID) -> list[Tray]:
        try:
            statement = (
                select(TrayRow)
                .where(TrayRow.parent_tray_id == parent_tray_id)
                .order_by(TrayRow.created_at)
            )
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise self._error(f"loading split trays of {parent_tray_id}", e) from e
        return [TrayMapper.sql_to_domain(row) for row in rows]

    async def delete(self, tray_id: UUID) -> bool:
        try:
            row = self.session.get(TrayRow, tray_id)
            if row is None:
                return False
            self.session.delete(row)
        except SQLAlchemyError as e:
            raise self._error(f"deleting tray {tray_id}", e) from e
        self._flush(f"deleting tray {tray_id}")
        return True
