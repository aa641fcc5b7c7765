"""
Consolidator

Merges line items with identical signature (kind, catalog id, instrument id)
held by the same technician on the same tray back into a single row.
"""

from uuid import UUID

from trayflow.core.observability import get_logger

from ...shared.base import DomainService
from ..entities.line_item import LineItem
from ..item_store import ItemStore
from ..repositories.unit_of_work import TrayUnitOfWork
from ..value_objects.allocation import ItemSignature
from ..value_objects.identity import (
    IdentityGroup,
    SerialUnit,
    brand_only_groups,
    flatten_units,
    group_units,
)

logger = get_logger(__name__)


class MergeResult:
    """Rows written and removed by a consolidation."""

    def __init__(
        self,
        tray_id: UUID,
        technician_id: UUID | None,
        consolidated: list[LineItem],
        removed_ids: list[UUID],
    ) -> None:
        self.tray_id = tray_id
        self.technician_id = technician_id
        self.consolidated = consolidated
        self.removed_ids = removed_ids

    @property
    def merged_count(self) -> int:
        """Number of rows merged away."""
        return len(self.removed_ids)

    def apply_to(self, store: ItemStore) -> None:
        for item_id in self.removed_ids:
            store.remove(item_id)
        for item in self.consolidated:
            store.upsert(item)


def merge_identity(members: list[LineItem]) -> list[IdentityGroup]:
    """
    Union the identity units of ``members``.

    Units are de-duplicated by (brand, serial); a duplicate serial keeps its
    first position and its warranty flag becomes the logical OR of every
    copy. Each dropped duplicate is replaced by a blank placeholder unit, and
    a member carrying fewer units than its quantity is padded with blank
    units, so the unit count matches the summed quantity.
    """
    merged: list[SerialUnit] = []
    positions: dict[tuple[str, str], int] = {}
    padding: list[SerialUnit] = []
    for member in members:
        units = flatten_units(member.identity_groups)
        padding.extend(SerialUnit() for _ in range(member.quantity - len(units)))
        for unit in units:
            if unit.is_placeholder:
                merged.append(unit)
                continue
            seen = positions.get(unit.key)
            if seen is None:
                positions[unit.key] = len(merged)
                merged.append(unit)
                continue
            first = merged[seen]
            if unit.warranty and not first.warranty:
                merged[seen] = first.model_copy(update={"warranty": True})
            padding.append(SerialUnit(brand=unit.brand, serial="", warranty=unit.warranty))

    brand_only: list[IdentityGroup] = []
    brand_keys: set[tuple[str, bool]] = set()
    for member in members:
        for group in brand_only_groups(member.identity_groups):
            key = ((group.brand or "").casefold(), group.warranty)
            if key not in brand_keys:
                brand_keys.add(key)
                brand_only.append(group)

    return group_units(merged + padding, brand_only)


class Consolidator(DomainService):
    """
    Service for merging same-signature line items.

    The first member of a group (insertion order) keeps its id and receives
    the summed quantities; every other member is deleted. All writes for one
    call happen in a single transaction, so readers never observe a state in
    which duplicates are gone but the consolidated row is not yet written.
    """

    def __init__(self, unit_of_work: TrayUnitOfWork) -> None:
        self._uow = unit_of_work

    def plan(
        self, items: list[LineItem], technician_id: UUID | None
    ) -> tuple[list[LineItem], list[UUID]]:
        """Consolidated rows and ids to delete for the given technician's items."""
        groups: dict[ItemSignature, list[LineItem]] = {}
        for item in items:
            if item.technician_id != technician_id:
                continue
            groups.setdefault(item.signature, []).append(item)

        consolidated: list[LineItem] = []
        removed: list[UUID] = []
        for members in groups.values():
            if len(members) < 2:
                continue
            keeper = members[0]
            has_identity = any(member.has_identity for member in members)
            consolidated.append(
                keeper.evolve(
                    quantity=sum(m.quantity for m in members),
                    unrepairable_quantity=sum(m.unrepairable_quantity for m in members),
                    urgent=any(m.urgent for m in members),
                    identity_groups=merge_identity(members) if has_identity else [],
                )
            )
            removed.extend(member.id for member in members[1:])
        return consolidated, removed

    async def merge(self, tray_id: UUID, technician_id: UUID | None) -> MergeResult:
        """
        Merge same-signature items of a tray and technician.

        Args:
            tray_id: Tray whose items are consolidated
            technician_id: Only items held by this technician are considered

        Returns:
            Merge result; ``merged_count`` is zero when nothing was merged
        """
        async with self._uow.transaction():
            items = await self._uow.items.get_by_tray(tray_id)
            consolidated, removed = self.plan(items, technician_id)
            for item in consolidated:
                await self._uow.items.save(item)
            for item_id in removed:
                await self._uow.items.delete(item_id)

        if removed:
            logger.info(
                "Consolidated line items",
                tray_id=str(tray_id),
                technician_id=str(technician_id) if technician_id else None,
                merged_count=len(removed),
                groups=len(consolidated),
            )
        return MergeResult(tray_id, technician_id, consolidated, removed)
