"""Persisted-state summaries used as the audit baseline."""

from decimal import Decimal
from typing import Any
from uuid import UUID

from ...shared.base import ValueObject
from .enums import LineItemKind
from .identity import IdentityGroup

TRACKED_FIELDS: tuple[str, ...] = (
    "quantity",
    "unrepairable_quantity",
    "price",
    "discount_pct",
    "urgent",
    "department_id",
    "technician_id",
    "identity_groups",
)


class SnapshotEntry(ValueObject):
    """Summary of one line item as it was last persisted."""

    id: UUID
    tray_id: UUID
    kind: LineItemKind
    catalog_id: UUID | None = None
    instrument_id: UUID | None = None
    name: str = ""
    quantity: int
    unrepairable_quantity: int = 0
    price: Decimal = Decimal("0")
    discount_pct: Decimal = Decimal("0")
    urgent: bool = False
    department_id: UUID | None = None
    technician_id: UUID | None = None
    identity_groups: tuple[IdentityGroup, ...] = ()

    def tracked_values(self) -> dict[str, Any]:
        return {field: getattr(self, field) for field in TRACKED_FIELDS}

    def payload(self) -> dict[str, Any]:
        """JSON-safe rendering for audit payloads."""
        return self.model_dump(mode="json")


class FieldChange(ValueObject):
    old: Any = None
    new: Any = None


class ItemUpdate(ValueObject):
    before: SnapshotEntry
    after: SnapshotEntry
    changes: dict[str, FieldChange]


class ItemDiff(ValueObject):
    """Created, updated and deleted items between two states of a tray."""

    created: tuple[SnapshotEntry, ...] = ()
    updated: tuple[ItemUpdate, ...] = ()
    deleted: tuple[SnapshotEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.created or self.updated or self.deleted)

    @property
    def delta_count(self) -> int:
        return len(self.created) + len(self.updated) + len(self.deleted)
