"""
SQLModel table definitions.

Row shapes follow the existing storage layout: line items keep their pricing
and legacy identity fields in a ``notes`` JSON document, while brands and
serial numbers live in their own child tables.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Column, Field, SQLModel


class TimestampedRow(SQLModel):
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime | None = Field(default=None)


class ServiceOrderRow(SQLModel, table=True):
    __tablename__ = "service_orders"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    has_return_marker: bool = Field(default=False)


class TrayRow(TimestampedRow, table=True):
    __tablename__ = "trays"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    service_order_id: UUID = Field(index=True)
    number: str | None = Field(default=None, max_length=64, index=True)
    status: str = Field(default="new", max_length=20)
    parent_tray_id: UUID | None = Field(default=None, foreign_key="trays.id", index=True)
    technician_id: UUID | None = Field(default=None)
    attachment_count: int = Field(default=0, ge=0)


class LineItemRow(TimestampedRow, table=True):
    __tablename__ = "tray_items"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tray_id: UUID = Field(foreign_key="trays.id", index=True)
    service_id: UUID | None = Field(default=None)
    part_id: UUID | None = Field(default=None)
    instrument_id: UUID | None = Field(default=None, index=True)
    department_id: UUID | None = Field(default=None)
    technician_id: UUID | None = Field(default=None, index=True)
    qty: int = Field(default=1, ge=0)
    unrepaired_qty: int = Field(default=0, ge=0)
    notes: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))


class BrandRow(SQLModel, table=True):
    __tablename__ = "tray_item_brands"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    item_id: UUID = Field(foreign_key="tray_items.id", index=True)
    position: int = Field(default=0)
    brand: str | None = Field(default=None, max_length=255)
    garantie: bool = Field(default=False)


class SerialRow(SQLModel, table=True):
    __tablename__ = "tray_item_brand_serials"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    brand_id: UUID = Field(foreign_key="tray_item_brands.id", index=True)
    position: int = Field(default=0)
    serial_number: str = Field(default="", max_length=255)


class DepartmentRow(SQLModel, table=True):
    __tablename__ = "departments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100)
    pipeline_id: UUID | None = Field(default=None)
    position: int = Field(default=0)


class PipelineRow(SQLModel, table=True):
    __tablename__ = "pipelines"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100)
    department_id: UUID | None = Field(default=None)
    position: int = Field(default=0)


class StageRow(SQLModel, table=True):
    __tablename__ = "stages"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    pipeline_id: UUID = Field(foreign_key="pipelines.id", index=True)
    name: str = Field(max_length=100)
    position: int = Field(default=0, ge=0)


class InstrumentRow(SQLModel, table=True):
    __tablename__ = "instruments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)
    department_id: UUID | None = Field(default=None)
    # Pipeline id or free-text pipeline name
    pipeline: str | None = Field(default=None, max_length=255)


class TechnicianRow(SQLModel, table=True):
    __tablename__ = "technicians"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)
    username: str = Field(default="", max_length=100)


class PlacementRow(SQLModel, table=True):
    __tablename__ = "pipeline_items"
    __table_args__ = (UniqueConstraint("tray_id", "pipeline_id"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tray_id: UUID = Field(index=True)
    pipeline_id: UUID = Field(index=True)
    stage_id: UUID


class EventRow(SQLModel, table=True):
    __tablename__ = "items_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    type: str = Field(max_length=30)
    item_id: UUID = Field(index=True)
    event_type: str = Field(max_length=80, index=True)
    message: str = Field(default="")
    payload: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    actor: str = Field(default="", max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
