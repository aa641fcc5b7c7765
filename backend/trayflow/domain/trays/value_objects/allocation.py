"""Value objects describing where units go during splits and moves."""

from uuid import UUID

from pydantic import Field, model_validator

from ...shared.base import ValueObject
from .enums import LineItemKind


class ItemSignature(ValueObject):
    """Items with equal signatures on the same tray and technician can merge."""

    kind: LineItemKind
    catalog_id: UUID | None = None
    instrument_id: UUID | None = None


class Destination(ValueObject):
    """A split target: another tray, another technician, or both.

    Unset fields mean "same as the source item".
    """

    tray_id: UUID | None = None
    technician_id: UUID | None = None

    @model_validator(mode="after")
    def require_target(self) -> "Destination":
        if self.tray_id is None and self.technician_id is None:
            raise ValueError("destination needs a tray or a technician")
        return self

    def label(self) -> str:
        parts = []
        if self.tray_id is not None:
            parts.append(f"tray:{self.tray_id}")
        if self.technician_id is not None:
            parts.append(f"technician:{self.technician_id}")
        return "/".join(parts)


class AllocationRequest(ValueObject):
    """Move ``quantity`` units of an item to ``destination``."""

    destination: Destination
    quantity: int


class ClaimedItem(ValueObject):
    """Part of a real-tray split assignment: units claimed from one item."""

    item_id: UUID
    quantity: int = Field(ge=1)


class SplitAssignment(ValueObject):
    """One resulting tray of a real-tray split and the units it receives."""

    owner_id: UUID
    display_name: str = ""
    claims: tuple[ClaimedItem, ...] = ()


class ItemMove(ValueObject):
    """Move ``quantity`` units of ``item_id`` to another technician."""

    item_id: UUID
    quantity: int = Field(ge=0)
