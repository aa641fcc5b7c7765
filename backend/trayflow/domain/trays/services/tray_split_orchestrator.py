"""
Tray Split Orchestrator

Top-level tray workflows: splitting a tray into per-technician real trays,
moving item quantities between technicians, reuniting finalized split trays,
moving an instrument between trays and creating trays. Every workflow
validates first, writes inside one transaction, then records the audit
trail and publishes its domain event.
"""

from collections.abc import Sequence
from uuid import UUID

from trayflow.core.config import Settings, get_settings
from trayflow.core.observability import bind_operation, get_logger

from ...shared.base import DomainService
from ...shared.exceptions import (
    ConservationViolationError,
    DuplicatePlaceholderError,
    LineItemNotFoundError,
    NotSplittableError,
    PartialSplitError,
    PersistenceError,
    QuantityConflictError,
    TargetEqualsSourceError,
    TrayNotFoundError,
    TrayNumberUnavailableError,
    ValidationError,
)
from ..entities.line_item import LineItem
from ..entities.tray import Tray
from ..events.domain_events import (
    DomainEventDispatcher,
    InstrumentMoved,
    ItemsMovedToTechnician,
    LineItemsConsolidated,
    SplitTraysReunited,
    TraySplit,
)
from ..item_store import ItemStore
from ..repositories.unit_of_work import TrayUnitOfWork
from ..value_objects.allocation import (
    AllocationRequest,
    Destination,
    ItemMove,
    SplitAssignment,
)
from ..value_objects.enums import EventKind, SplitMode, SubjectType, TrayStatus
from .consolidator import Consolidator, MergeResult
from .directory_cache import DirectoryCache
from .reconciliation_log import ReconciliationLog
from .split_allocator import SplitAllocator, SplitPlan, SplitResult

logger = get_logger(__name__)


class RealTraySplitResult:
    """Trays produced by splitting a tray into real trays."""

    def __init__(self, original: Tray, created: list[Tray], items: ItemStore) -> None:
        self.original = original
        self.created = created
        self.items = items

    @property
    def tray_ids(self) -> list[UUID]:
        return [self.original.id] + [tray.id for tray in self.created]


class TechnicianMoveResult:
    def __init__(
        self,
        tray_id: UUID,
        technician_id: UUID,
        moved_item_ids: list[UUID],
        merged_count: int = 0,
    ) -> None:
        self.tray_id = tray_id
        self.technician_id = technician_id
        self.moved_item_ids = moved_item_ids
        self.merged_count = merged_count


class ReunionResult:
    def __init__(
        self,
        tray_id: UUID,
        reunited: bool,
        removed_tray_ids: list[UUID] | None = None,
        merged_count: int = 0,
    ) -> None:
        self.tray_id = tray_id
        self.reunited = reunited
        self.removed_tray_ids = removed_tray_ids or []
        self.merged_count = merged_count


class InstrumentMoveResult:
    def __init__(
        self,
        target_tray: Tray,
        moved_item_ids: list[UUID],
        deleted_tray_id: UUID | None = None,
    ) -> None:
        self.target_tray = target_tray
        self.moved_item_ids = moved_item_ids
        self.deleted_tray_id = deleted_tray_id


class _ItemPlan:
    """What a real-tray split does with one item: move it whole or split it."""

    def __init__(
        self,
        item: LineItem,
        whole_move: Destination | None = None,
        requests: list[AllocationRequest] | None = None,
        split: SplitPlan | None = None,
    ) -> None:
        self.item = item
        self.whole_move = whole_move
        self.requests = requests or []
        self.split = split


class TraySplitOrchestrator(DomainService):
    """
    Service coordinating multi-step tray workflows.

    All preconditions, including the conservation check for every claimed
    item, are verified before the first write. Writes run in a single unit of
    work transaction; if storage fails midway the caller receives a
    ``PartialSplitError`` describing what was and was not applied.
    """

    def __init__(
        self,
        unit_of_work: TrayUnitOfWork,
        allocator: SplitAllocator | None = None,
        consolidator: Consolidator | None = None,
        audit_log: ReconciliationLog | None = None,
        dispatcher: DomainEventDispatcher | None = None,
        config: Settings | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            unit_of_work: Repositories and transactional boundary
            allocator: Split allocator, created over ``unit_of_work`` if omitted
            consolidator: Consolidator, created over ``unit_of_work`` if omitted
            audit_log: Audit writer holding the per-tray baselines
            dispatcher: Receives the workflow domain events
            config: Settings override, defaults to the process settings
        """
        self._uow = unit_of_work
        self._config = config or get_settings()
        self._allocator = allocator or SplitAllocator(
            unit_of_work, set(self._config.EXEMPT_DEPARTMENTS)
        )
        self._consolidator = consolidator or Consolidator(unit_of_work)
        self._audit = audit_log or ReconciliationLog(unit_of_work)
        self._dispatcher = dispatcher or DomainEventDispatcher()

    @property
    def audit_log(self) -> ReconciliationLog:
        return self._audit

    # Helpers

    async def _get_tray(self, tray_id: UUID) -> Tray:
        tray = await self._uow.trays.get_by_id(tray_id)
        if tray is None:
            raise TrayNotFoundError(tray_id)
        return tray

    async def _load_items(self, tray_id: UUID) -> list[LineItem]:
        items = await self._uow.items.get_by_tray(tray_id)
        self._audit.ensure_baseline(tray_id, items)
        return items

    async def _reconcile(self, tray_ids: Sequence[UUID], actor: str) -> ItemStore:
        store = ItemStore()
        loaded = await self._uow.items.get_by_trays(list(dict.fromkeys(tray_ids)))
        for tray_id, items in loaded.items():
            store.load(tray_id, items)
            await self._audit.diff_and_log(tray_id, items, actor)
        return store

    async def _move_whole(
        self, item: LineItem, tray_id: UUID, technician_id: UUID | None
    ) -> LineItem:
        """Reassign an entire item, refusing if its stored quantity changed."""
        stored = await self._uow.items.get_by_id(item.id)
        if stored is None:
            raise LineItemNotFoundError(item.id)
        if stored.quantity != item.quantity:
            raise QuantityConflictError(item.id, item.quantity, stored.quantity)
        moved = item.evolve(tray_id=tray_id, technician_id=technician_id)
        return await self._uow.items.save(moved)

    async def _tracks_identity(self, item: LineItem, directory: DirectoryCache) -> bool:
        return not await directory.is_exempt_department(
            item.department_id, self._config.exempt_department_keys
        )

    async def _owner_label(
        self, assignment: SplitAssignment, directory: DirectoryCache
    ) -> str:
        if assignment.display_name.strip():
            return assignment.display_name.strip()
        technicians = await directory.technicians([assignment.owner_id])
        technician = technicians.get(assignment.owner_id)
        return technician.label if technician else str(assignment.owner_id)[:8]

    # Item-level operations

    async def split_item(
        self,
        item_id: UUID,
        requests: Sequence[AllocationRequest],
        actor: str | None = None,
        expected_quantity: int | None = None,
    ) -> SplitResult:
        """
        Split one item across destinations and log the resulting deltas.

        Args:
            item_id: Item to split
            requests: Destinations and quantities, in application order
            actor: User performing the split
            expected_quantity: Quantity the caller last saw, for conflict detection

        Raises:
            LineItemNotFoundError: If the item does not exist
            QuantityConflictError: If the item changed since the caller read it
            ValidationError: If a split precondition fails
        """
        actor = actor or self._config.SYSTEM_ACTOR
        source = await self._uow.items.get_by_id(item_id)
        if source is None:
            raise LineItemNotFoundError(item_id)
        if expected_quantity is not None and expected_quantity != source.quantity:
            raise QuantityConflictError(item_id, expected_quantity, source.quantity)
        await self._load_items(source.tray_id)
        for request in requests:
            if request.destination.tray_id is not None:
                await self._get_tray(request.destination.tray_id)
                await self._load_items(request.destination.tray_id)

        result = await self._allocator.split(source, requests)
        await self._reconcile([source.tray_id] + [i.tray_id for i in result.created], actor)
        return result

    async def consolidate(
        self, tray_id: UUID, technician_id: UUID | None, actor: str | None = None
    ) -> MergeResult:
        """Merge same-signature items of a technician on a tray."""
        actor = actor or self._config.SYSTEM_ACTOR
        await self._get_tray(tray_id)
        await self._load_items(tray_id)
        result = await self._consolidator.merge(tray_id, technician_id)
        if result.merged_count:
            await self._reconcile([tray_id], actor)
            await self._audit.log(
                SubjectType.TRAY,
                tray_id,
                EventKind.ITEMS_CONSOLIDATED,
                f"{result.merged_count} duplicate items merged",
                {
                    "technician_id": str(technician_id) if technician_id else None,
                    "item_ids": [str(item.id) for item in result.consolidated],
                    "removed_ids": [str(i) for i in result.removed_ids],
                },
                actor,
            )
            await self._dispatcher.dispatch(
                LineItemsConsolidated(
                    actor=actor,
                    tray_id=tray_id,
                    technician_id=technician_id,
                    merged_count=result.merged_count,
                )
            )
        return result

    # Real-tray split

    async def split_to_real_trays(
        self,
        original_tray_id: UUID,
        assignments: Sequence[SplitAssignment],
        actor: str | None = None,
    ) -> RealTraySplitResult:
        """
        Split a tray into 2 or 3 trays, one per owning technician.

        The first assignment keeps the original tray; each further assignment
        gets a new tray numbered after the original and the owner. Claimed
        quantities must add up exactly to each referenced item's quantity.

        Args:
            original_tray_id: Tray being split
            assignments: Owners and the item quantities each one receives
            actor: User performing the split

        Returns:
            The original tray, the created trays and their items

        Raises:
            TrayNotFoundError: If the tray does not exist
            ValidationError: If any precondition fails; nothing is written
            PartialSplitError: If storage failed after writing started
        """
        actor = actor or self._config.SYSTEM_ACTOR
        bind_operation(actor)
        original = await self._get_tray(original_tray_id)
        items = {item.id: item for item in await self._load_items(original.id)}
        directory = DirectoryCache(self._uow.directory)

        self._validate_assignments(original, assignments, items)

        new_trays: list[Tray] = []
        for assignment in assignments[1:]:
            number = f"{original.number}-{await self._owner_label(assignment, directory)}"
            existing = await self._uow.trays.get_by_number(number)
            if existing is not None or any(t.number == number for t in new_trays):
                raise TrayNumberUnavailableError(number, existing.id if existing else None)
            new_trays.append(
                Tray(
                    service_order_id=original.service_order_id,
                    number=number,
                    status=TrayStatus.SPLIT,
                    parent_tray_id=original.id,
                    technician_id=assignment.owner_id,
                )
            )
        targets = [(original.id, assignments[0].owner_id)] + [
            (tray.id, tray.technician_id) for tray in new_trays
        ]

        plans = await self._plan_real_split(assignments, targets, items, directory)

        completed: list[str] = []
        pending: list[str] = [f"tray {tray.number}" for tray in new_trays] + [
            f"item {plan.item.id}" for plan in plans
        ]
        split_original = original.model_copy(deep=True)
        try:
            async with self._uow.transaction():
                for tray in new_trays:
                    await self._uow.trays.save(tray)
                    completed.append(pending.pop(0))
                split_original.mark_split(assignments[0].owner_id)
                await self._uow.trays.save(split_original)
                for plan in plans:
                    if plan.whole_move is not None:
                        await self._move_whole(
                            plan.item,
                            plan.whole_move.tray_id or original.id,
                            plan.whole_move.technician_id,
                        )
                    else:
                        await self._allocator.split(plan.item, plan.requests, directory)
                    completed.append(pending.pop(0))
        except PersistenceError as e:
            logger.error(
                "Real-tray split failed",
                tray_id=str(original.id),
                completed=completed,
                pending=pending,
                error=e.message,
            )
            raise PartialSplitError(
                original.id, completed, pending, self._uow.atomic, e.message
            ) from e
        original = split_original

        tray_ids = [original.id] + [tray.id for tray in new_trays]
        store = await self._reconcile(tray_ids, actor)
        await self._audit.log(
            SubjectType.TRAY,
            original.id,
            EventKind.TRAY_SPLIT,
            f"Tray {original.number} split into {len(tray_ids)} trays",
            {
                "resulting_tray_ids": [str(tray_id) for tray_id in tray_ids],
                "owners": [str(a.owner_id) for a in assignments],
                "numbers": [original.number] + [tray.number for tray in new_trays],
            },
            actor,
        )
        await self._dispatcher.dispatch(
            TraySplit(
                actor=actor,
                original_tray_id=original.id,
                resulting_tray_ids=tuple(tray_ids),
                owner_ids=tuple(a.owner_id for a in assignments),
            )
        )
        logger.info(
            "Split tray into real trays",
            tray_id=str(original.id),
            resulting_tray_ids=[str(t) for t in tray_ids],
        )
        return RealTraySplitResult(original, new_trays, store)

    def _validate_assignments(
        self,
        original: Tray,
        assignments: Sequence[SplitAssignment],
        items: dict[UUID, LineItem],
    ) -> None:
        low, high = self._config.MIN_SPLIT_TRAYS, self._config.MAX_SPLIT_TRAYS
        if not low <= len(assignments) <= high:
            raise ValidationError(
                f"A tray splits into {low} to {high} trays, got {len(assignments)}",
                {"assignments": len(assignments)},
                original.id,
            )
        if original.is_placeholder:
            raise ValidationError(
                "A tray without a number cannot be split into real trays",
                {},
                original.id,
            )
        owners = [a.owner_id for a in assignments]
        if len(set(owners)) != len(owners):
            raise ValidationError(
                "Each resulting tray needs a different owner",
                {"owners": [str(o) for o in owners]},
                original.id,
            )

        claimed: dict[UUID, int] = {}
        for index, assignment in enumerate(assignments):
            if not assignment.claims:
                raise ValidationError(
                    f"Assignment {index + 1} claims no items",
                    {"owner_id": str(assignment.owner_id)},
                    original.id,
                )
            for claim in assignment.claims:
                if claim.item_id not in items:
                    raise ValidationError(
                        f"Item {claim.item_id} is not on tray {original.number}",
                        {"item_id": str(claim.item_id)},
                        original.id,
                    )
                claimed[claim.item_id] = claimed.get(claim.item_id, 0) + claim.quantity

        for item_id, total in claimed.items():
            if total != items[item_id].quantity:
                raise ConservationViolationError(item_id, total, items[item_id].quantity)

    async def _plan_real_split(
        self,
        assignments: Sequence[SplitAssignment],
        targets: list[tuple[UUID, UUID | None]],
        items: dict[UUID, LineItem],
        directory: DirectoryCache,
    ) -> list[_ItemPlan]:
        per_item: dict[UUID, list[tuple[Destination, int]]] = {}
        for (tray_id, owner_id), assignment in zip(targets, assignments):
            for claim in assignment.claims:
                shares = per_item.setdefault(claim.item_id, [])
                for index, (destination, quantity) in enumerate(shares):
                    if destination.tray_id == tray_id:
                        shares[index] = (destination, quantity + claim.quantity)
                        break
                else:
                    shares.append(
                        (Destination(tray_id=tray_id, technician_id=owner_id), claim.quantity)
                    )

        plans: list[_ItemPlan] = []
        for item_id, shares in per_item.items():
            item = items[item_id]
            if len(shares) == 1:
                destination = shares[0][0]
                if (
                    destination.tray_id == item.tray_id
                    and destination.technician_id == item.technician_id
                ):
                    continue
                plans.append(_ItemPlan(item, whole_move=destination))
                continue
            if not item.is_splittable:
                raise NotSplittableError(item.id, item.kind.value)
            # The share matching the current holder is what stays on the source.
            requests = [
                AllocationRequest(destination=destination, quantity=quantity)
                for destination, quantity in shares
                if not (
                    destination.tray_id == item.tray_id
                    and destination.technician_id == item.technician_id
                )
            ]
            tracked = await self._tracks_identity(item, directory)
            split = self._allocator.plan(item, requests, identity_tracked=tracked)
            plans.append(_ItemPlan(item, requests=requests, split=split))
        return plans

    # Technician split / merge

    async def split_items_to_technician(
        self,
        tray_id: UUID,
        target_technician_id: UUID,
        moves: Sequence[ItemMove],
        mode: SplitMode = SplitMode.SPLIT,
        actor: str | None = None,
    ) -> TechnicianMoveResult:
        """
        Move quantities of several items to another technician on the same tray.

        In ``merge`` mode the target technician's rows are consolidated
        afterwards, inside the same transaction.

        Raises:
            TrayNotFoundError: If the tray does not exist
            LineItemNotFoundError: If an item is not on the tray
            TargetEqualsSourceError: If an item already belongs to the target
            ValidationError: If nothing is moved or a quantity is invalid
        """
        actor = actor or self._config.SYSTEM_ACTOR
        await self._get_tray(tray_id)
        items = {item.id: item for item in await self._load_items(tray_id)}
        directory = DirectoryCache(self._uow.directory)

        effective = [move for move in moves if move.quantity > 0]
        if not effective:
            raise ValidationError("Nothing to move: every quantity is zero", {}, tray_id)
        if len({move.item_id for move in effective}) != len(effective):
            raise ValidationError("An item appears in more than one move", {}, tray_id)

        destination = Destination(technician_id=target_technician_id)
        planned: list[tuple[LineItem, int]] = []
        for move in effective:
            item = items.get(move.item_id)
            if item is None:
                raise LineItemNotFoundError(move.item_id)
            if item.technician_id == target_technician_id:
                raise TargetEqualsSourceError(item.id, destination.label())
            if move.quantity < item.quantity:
                tracked = await self._tracks_identity(item, directory)
                self._allocator.plan(
                    item,
                    [AllocationRequest(destination=destination, quantity=move.quantity)],
                    identity_tracked=tracked,
                )
            elif move.quantity > item.quantity:
                raise ValidationError(
                    f"Cannot move {move.quantity} units of item {item.id}, "
                    f"it holds {item.quantity}",
                    {"requested": move.quantity, "available": item.quantity},
                    item.id,
                )
            planned.append((item, move.quantity))

        merged = 0
        moved_ids: list[UUID] = []
        async with self._uow.transaction():
            for item, quantity in planned:
                if quantity == item.quantity:
                    moved = await self._move_whole(item, tray_id, target_technician_id)
                    moved_ids.append(moved.id)
                else:
                    result = await self._allocator.split(
                        item,
                        [AllocationRequest(destination=destination, quantity=quantity)],
                        directory,
                    )
                    moved_ids.extend(i.id for i in result.created)
            if mode == SplitMode.MERGE:
                merged = (await self._consolidator.merge(tray_id, target_technician_id)).merged_count

        await self._reconcile([tray_id], actor)
        kind = (
            EventKind.TRAY_ITEMS_MERGED_TO_TECHNICIAN
            if mode == SplitMode.MERGE
            else EventKind.TRAY_ITEMS_SPLIT_TO_TECHNICIAN
        )
        await self._audit.log(
            SubjectType.TRAY,
            tray_id,
            kind,
            f"{sum(q for _, q in planned)} units moved to technician {target_technician_id}",
            {
                "target_technician_id": str(target_technician_id),
                "moves": [
                    {"item_id": str(item.id), "quantity": quantity}
                    for item, quantity in planned
                ],
                "mode": mode.value,
                "merged_count": merged,
            },
            actor,
        )
        from_technicians = {item.technician_id for item, _ in planned}
        await self._dispatcher.dispatch(
            ItemsMovedToTechnician(
                actor=actor,
                tray_id=tray_id,
                from_technician_id=(
                    next(iter(from_technicians)) if len(from_technicians) == 1 else None
                ),
                to_technician_id=target_technician_id,
                item_ids=tuple(moved_ids),
                merged_count=merged,
            )
        )
        return TechnicianMoveResult(tray_id, target_technician_id, moved_ids, merged)

    # Reunion

    async def reunite_split_trays(
        self, tray_id: UUID, actor: str | None = None
    ) -> ReunionResult:
        """
        Fold finalized split trays back into their original tray.

        ``tray_id`` may be the original or any of its split children. Nothing
        happens unless the original and every child are finalized.
        """
        actor = actor or self._config.SYSTEM_ACTOR
        tray = await self._get_tray(tray_id)
        original = (
            await self._get_tray(tray.parent_tray_id) if tray.parent_tray_id else tray
        )
        children = await self._uow.trays.get_children(original.id)
        if not children or not all(t.is_finalized for t in [original, *children]):
            return ReunionResult(original.id, reunited=False)

        await self._load_items(original.id)
        child_items = {child.id: await self._load_items(child.id) for child in children}

        merged = 0
        async with self._uow.transaction():
            for child in children:
                for item in child_items[child.id]:
                    await self._move_whole(item, original.id, item.technician_id)
                for placement in await self._uow.placements.get_by_tray(child.id):
                    await self._uow.placements.remove(child.id, placement.pipeline_id)
                await self._uow.trays.delete(child.id)
            technicians = {
                item.technician_id for item in await self._uow.items.get_by_tray(original.id)
            }
            for technician_id in technicians:
                merged += (await self._consolidator.merge(original.id, technician_id)).merged_count
            original.reunite()
            await self._uow.trays.save(original)

        removed = [child.id for child in children]
        await self._reconcile([original.id, *removed], actor)
        for child_id in removed:
            self._audit.forget(child_id)
        await self._audit.log(
            SubjectType.TRAY,
            original.id,
            EventKind.SPLIT_TRAYS_REUNITED,
            f"Split trays {', '.join(c.number or '' for c in children)} "
            f"merged back into {original.number}",
            {"removed_tray_ids": [str(i) for i in removed], "merged_count": merged},
            actor,
        )
        await self._dispatcher.dispatch(
            SplitTraysReunited(actor=actor, tray_id=original.id, removed_tray_ids=tuple(removed))
        )
        return ReunionResult(original.id, True, removed, merged)

    # Instrument move and tray creation

    async def move_instrument(
        self,
        source_tray_id: UUID,
        instrument_id: UUID,
        target_tray_id: UUID | None = None,
        new_tray_number: str | None = None,
        actor: str | None = None,
    ) -> InstrumentMoveResult:
        """
        Move every item of an instrument to another tray.

        The target is an existing tray or a new one created with
        ``new_tray_number``. Afterwards the service order's placeholder tray
        is deleted if it was left without items and without attachments.

        Raises:
            TrayNotFoundError: If a tray does not exist
            TargetEqualsSourceError: If the target is the source tray
            TrayNumberUnavailableError: If the new number is taken
            ValidationError: If the instrument has no items on the source tray
        """
        actor = actor or self._config.SYSTEM_ACTOR
        if (target_tray_id is None) == (new_tray_number is None):
            raise ValidationError(
                "Give either a target tray or a new tray number", {}, source_tray_id
            )
        source = await self._get_tray(source_tray_id)
        items = [
            item
            for item in await self._load_items(source.id)
            if item.instrument_id == instrument_id
        ]
        if not items:
            raise ValidationError(
                f"Instrument {instrument_id} has no items on tray {source.number}",
                {"instrument_id": str(instrument_id)},
                source.id,
            )

        create_target = target_tray_id is None
        if target_tray_id is not None:
            if target_tray_id == source.id:
                raise TargetEqualsSourceError(instrument_id, f"tray:{target_tray_id}")
            target = await self._get_tray(target_tray_id)
            if target.service_order_id != source.service_order_id:
                raise ValidationError(
                    "Instruments only move between trays of the same service order",
                    {"target_tray_id": str(target.id)},
                    source.id,
                )
        else:
            target = await self._new_tray(source.service_order_id, new_tray_number)
        await self._load_items(target.id)

        moved_ids: list[UUID] = []
        async with self._uow.transaction():
            if create_target:
                await self._uow.trays.save(target)
            for item in items:
                moved = await self._move_whole(item, target.id, item.technician_id)
                moved_ids.append(moved.id)

        await self._reconcile([source.id, target.id], actor)
        payload = {
            "instrument_id": str(instrument_id),
            "source_tray_id": str(source.id),
            "target_tray_id": str(target.id),
            "item_ids": [str(i) for i in moved_ids],
        }
        for tray in (source, target):
            await self._audit.log(
                SubjectType.TRAY,
                tray.id,
                EventKind.INSTRUMENT_MOVED,
                f"Instrument moved from tray {source.number or '(unassigned)'} "
                f"to tray {target.number or '(unassigned)'}",
                payload,
                actor,
            )

        deleted = await self._cleanup_placeholder(source.service_order_id)
        await self._dispatcher.dispatch(
            InstrumentMoved(
                actor=actor,
                instrument_id=instrument_id,
                source_tray_id=source.id,
                target_tray_id=target.id,
                item_ids=tuple(moved_ids),
                deleted_tray_id=deleted,
            )
        )
        return InstrumentMoveResult(target, moved_ids, deleted)

    async def _cleanup_placeholder(self, service_order_id: UUID) -> UUID | None:
        """Delete the service order's placeholder tray if it is empty and has no attachments."""
        trays = await self._uow.trays.get_by_service_order(service_order_id)
        placeholder = next((t for t in trays if t.is_placeholder), None)
        if placeholder is None or placeholder.has_attachments:
            return None
        if await self._uow.items.get_by_tray(placeholder.id):
            return None
        async with self._uow.transaction():
            await self._uow.trays.delete(placeholder.id)
        self._audit.forget(placeholder.id)
        logger.info(
            "Deleted empty placeholder tray",
            tray_id=str(placeholder.id),
            service_order_id=str(service_order_id),
        )
        return placeholder.id

    async def _new_tray(self, service_order_id: UUID, number: str | None) -> Tray:
        tray = Tray(service_order_id=service_order_id, number=number)
        if tray.number is None:
            trays = await self._uow.trays.get_by_service_order(service_order_id)
            existing = next((t for t in trays if t.is_placeholder), None)
            if existing is not None:
                raise DuplicatePlaceholderError(service_order_id, existing.id)
        else:
            existing = await self._uow.trays.get_by_number(tray.number)
            if existing is not None:
                raise TrayNumberUnavailableError(tray.number, existing.id)
        return tray

    async def create_tray(
        self, service_order_id: UUID, number: str | None = None
    ) -> Tray:
        """
        Create a tray for a service order.

        A tray without a number is the service order's placeholder; there is
        at most one.

        Raises:
            TrayNumberUnavailableError: If the number is already in use
            DuplicatePlaceholderError: If the service order already has a placeholder
        """
        tray = await self._new_tray(service_order_id, number)
        async with self._uow.transaction():
            await self._uow.trays.save(tray)
        self._audit.set_baseline(tray.id, [])
        logger.info(
            "Created tray",
            tray_id=str(tray.id),
            number=tray.number,
            service_order_id=str(service_order_id),
        )
        return tray
