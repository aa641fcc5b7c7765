"""Line item repository implementation using SQLModel."""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from trayflow.domain.trays.entities.line_item import LineItem
from trayflow.domain.trays.repositories.line_item_repository import LineItemRepository
from trayflow.infrastructure.database.sqlmodel_entities import (
    BrandRow,
    LineItemRow,
    SerialRow,
)

from .base import SqlRepository
from .mappers.line_item_mapper import LineItemMapper


class SqlLineItemRepository(SqlRepository, LineItemRepository):
    """
    Repository implementation for line items.

    Saving an item replaces all of its brand and serial rows.
    """

    def _delete_identity(self, item_ids: list[UUID]) -> None:
        brands = self.session.exec(
            select(BrandRow).where(col(BrandRow.item_id).in_(item_ids))
        ).all()
        if brands:
            serials = self.session.exec(
                select(SerialRow).where(col(SerialRow.brand_id).in_([b.id for b in brands]))
            ).all()
            for serial in serials:
                self.session.delete(serial)
            self.session.flush()
        for brand in brands:
            self.session.delete(brand)

    def _to_domain(self, rows: list[LineItemRow]) -> list[LineItem]:
        if not rows:
            return []
        brands = self.session.exec(
            select(BrandRow).where(col(BrandRow.item_id).in_([r.id for r in rows]))
        ).all()
        serials = (
            self.session.exec(
                select(SerialRow).where(col(SerialRow.brand_id).in_([b.id for b in brands]))
            ).all()
            if brands
            else []
        )
        brands_by_item: dict[UUID, list[BrandRow]] = {}
        for brand in brands:
            brands_by_item.setdefault(brand.item_id, []).append(brand)
        serials_by_brand: dict[UUID, list[SerialRow]] = {}
        for serial in serials:
            serials_by_brand.setdefault(serial.brand_id, []).append(serial)

        items = []
        for row in rows:
            item_brands = brands_by_item.get(row.id, [])
            item_serials = [s for b in item_brands for s in serials_by_brand.get(b.id, [])]
            items.append(LineItemMapper.sql_to_domain(row, item_brands, item_serials))
        return items

    async def save(self, item: LineItem) -> LineItem:
        action = f"saving line item {item.id}"
        data, identity = LineItemMapper.domain_to_sql(item)
        try:
            row = self.session.get(LineItemRow, item.id)
            if row is None:
                self.session.add(data)
            else:
                for field in LineItemRow.model_fields:
                    setattr(row, field, getattr(data, field))
                self.session.add(row)
                self._delete_identity([item.id])
            self.session.flush()
            for brand, _ in identity:
                self.session.add(brand)
            self.session.flush()
            for _, serials in identity:
                self.session.add_all(serials)
        except SQLAlchemyError as e:
            raise self._error(action, e) from e
        self._flush(action)
        return item

    async def get_by_id(self, item_id: UUID) -> LineItem | None:
        try:
            row = self.session.get(LineItemRow, item_id)
            items = self._to_domain([row]) if row else []
        except SQLAlchemyError as e:
            raise self._error(f"loading line item {item_id}", e) from e
        return items[0] if items else None

    async def get_by_tray(self, tray_id: UUID) -> list[LineItem]:
        try:
            statement = (
                select(LineItemRow)
                .where(LineItemRow.tray_id == tray_id)
                .order_by(LineItemRow.created_at)
            )
            return self._to_domain(list(self.session.exec(statement).all()))
        except SQLAlchemyError as e:
            raise self._error(f"loading items of tray {tray_id}", e) from e

    async def delete(self, item_id: UUID) -> bool:
        action = f"deleting line item {item_id}"
        try:
            row = self.session.get(LineItemRow, item_id)
            if row is None:
                return False
            self._delete_identity([item_id])
            self.session.flush()
            self.session.delete(row)
        except SQLAlchemyError as e:
            raise self._error(action, e) from e
        self._flush(action)
        return True
