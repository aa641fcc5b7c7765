"""
Typed ``notes`` documents stored on line item rows.

The document is validated at the persistence boundary into one variant per
line item kind, discriminated by ``item_type``.
"""

from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ItemNotes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    price: Decimal = Field(default=Decimal("0"), ge=0)
    discount_pct: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    urgent: bool = False
    name: str = ""
    # Legacy single-brand fields, still read when no brand rows exist
    brand: str | None = None
    serial_number: str | None = None
    garantie: bool = False


class ServiceNotes(ItemNotes):
    item_type: Literal["service"] = "service"


class PartNotes(ItemNotes):
    item_type: Literal["part"] = "part"


class BareInstrumentNotes(ItemNotes):
    item_type: Literal["bare-instrument"] = "bare-instrument"


AnyNotes = Annotated[
    ServiceNotes | PartNotes | BareInstrumentNotes,
    Field(discriminator="item_type"),
]

notes_adapter = TypeAdapter(AnyNotes)


def parse_notes(raw: dict[str, Any] | None, fallback_type: str) -> ItemNotes:
    """Validate a stored notes document, filling in ``item_type`` if absent."""
    data = dict(raw or {})
    if not data.get("item_type"):
        data["item_type"] = fallback_type
    return notes_adapter.validate_python(data)
