"""
Line item entities.

A line item is a service or a part applied to an instrument within a tray.
Items are tagged variants discriminated by ``kind``; an instrument that has
been received but has no service attached yet is a ``BareInstrumentLineItem``
and cannot be split.
"""

from decimal import Decimal
from typing import Annotated, Any, Literal
from uuid import UUID, uuid4

from pydantic import Field, TypeAdapter, model_validator

from ...shared.base import Entity, utcnow
from ..value_objects.allocation import ItemSignature
from ..value_objects.enums import LineItemKind
from ..value_objects.identity import IdentityGroup, total_units
from ..value_objects.snapshot import SnapshotEntry


class LineItem(Entity):
    """Common fields of every line item variant."""

    tray_id: UUID
    kind: LineItemKind
    catalog_id: UUID | None = None
    instrument_id: UUID | None = None
    department_id: UUID | None = None
    technician_id: UUID | None = None
    name: str = ""
    quantity: int = Field(default=1, ge=0)
    unrepairable_quantity: int = Field(default=0, ge=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    discount_pct: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    urgent: bool = False
    identity_groups: list[IdentityGroup] = Field(default_factory=list)

    @model_validator(mode="after")
    def unrepairable_within_quantity(self) -> "LineItem":
        if self.unrepairable_quantity > self.quantity:
            raise ValueError(
                f"unrepairable quantity {self.unrepairable_quantity} exceeds "
                f"quantity {self.quantity}"
            )
        return self

    @property
    def signature(self) -> ItemSignature:
        return ItemSignature(
            kind=self.kind,
            catalog_id=self.catalog_id,
            instrument_id=self.instrument_id,
        )

    @property
    def is_splittable(self) -> bool:
        return self.kind != LineItemKind.BARE_INSTRUMENT

    @property
    def serial_count(self) -> int:
        return total_units(self.identity_groups)

    @property
    def has_identity(self) -> bool:
        return bool(self.identity_groups)

    @property
    def label(self) -> str:
        return self.name or f"{self.kind.value} {self.id}"

    def evolve(self, **changes: Any) -> "LineItem":
        """Validated copy with ``changes`` applied, keeping the variant type."""
        data = self.model_dump()
        data.update(changes)
        if "updated_at" not in changes:
            data["updated_at"] = utcnow()
        return type(self).model_validate(data)

    def spawn(self, **changes: Any) -> "LineItem":
        """A new item (fresh id) with the same signature and ``changes`` applied."""
        changes.setdefault("id", uuid4())
        changes.setdefault("created_at", utcnow())
        changes.setdefault("updated_at", None)
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def to_snapshot(self) -> SnapshotEntry:
        return SnapshotEntry(
            id=self.id,
            tray_id=self.tray_id,
            kind=self.kind,
            catalog_id=self.catalog_id,
            instrument_id=self.instrument_id,
            name=self.name,
            quantity=self.quantity,
            unrepairable_quantity=self.unrepairable_quantity,
            price=self.price,
            discount_pct=self.discount_pct,
            urgent=self.urgent,
            department_id=self.department_id,
            technician_id=self.technician_id,
            identity_groups=tuple(self.identity_groups),
        )


class ServiceLineItem(LineItem):
    """A catalog service performed on an instrument."""

    kind: Literal[LineItemKind.SERVICE] = LineItemKind.SERVICE
    catalog_id: UUID


class PartLineItem(LineItem):
    """A spare part fitted to an instrument."""

    kind: Literal[LineItemKind.PART] = LineItemKind.PART
    catalog_id: UUID


class BareInstrumentLineItem(LineItem):
    """An instrument received without a service or part yet."""

    kind: Literal[LineItemKind.BARE_INSTRUMENT] = LineItemKind.BARE_INSTRUMENT
    catalog_id: None = None
    instrument_id: UUID


AnyLineItem = Annotated[
    ServiceLineItem | PartLineItem | BareInstrumentLineItem,
    Field(discriminator="kind"),
]

line_item_adapter = TypeAdapter(AnyLineItem)


def parse_line_item(data: dict[str, Any]) -> LineItem:
    """Build the right variant from a plain mapping."""
    return line_item_adapter.validate_python(data)
