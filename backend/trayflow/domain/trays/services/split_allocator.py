"""
Split Allocator

Partitions one line item's quantity, together with its serial units and
unrepairable units, across several destinations (other technicians, other
trays, or both) without creating or losing units.
"""

from collections.abc import Sequence

from trayflow.core.config import Settings, get_settings
from trayflow.core.observability import get_logger

from ...shared.base import DomainService
from ...shared.exceptions import (
    ConservationViolationError,
    LineItemNotFoundError,
    NotSplittableError,
    OverAllocationError,
    QuantityConflictError,
    TargetEqualsSourceError,
    ValidationError,
)
from ..entities.line_item import LineItem
from ..item_store import ItemStore
from ..repositories.unit_of_work import TrayUnitOfWork
from ..value_objects.allocation import AllocationRequest
from ..value_objects.identity import brand_only_groups, flatten_units, group_units
from .directory_cache import DirectoryCache

logger = get_logger(__name__)


class SplitPlan:
    """Outcome of a split computed in memory, before anything is written."""

    def __init__(
        self,
        source: LineItem,
        created: list[LineItem],
        remaining: LineItem | None,
    ) -> None:
        self.source = source
        self.created = created
        self.remaining = remaining

    @property
    def remaining_quantity(self) -> int:
        return self.remaining.quantity if self.remaining else 0

    @property
    def source_deleted(self) -> bool:
        return self.remaining is None


class SplitResult:
    """Items written by a split."""

    def __init__(self, plan: SplitPlan) -> None:
        self.source_id = plan.source.id
        self.original_quantity = plan.source.quantity
        self.created = list(plan.created)
        self.updated = [plan.remaining] if plan.remaining else []
        self.source_deleted = plan.source_deleted

    @property
    def items(self) -> list[LineItem]:
        """Newly created items followed by the reduced source, if it survived."""
        return self.created + self.updated

    def apply_to(self, store: ItemStore) -> None:
        """Fold the written items into a working set."""
        if self.source_deleted:
            store.remove(self.source_id)
        for item in self.items:
            store.upsert(item)


class SplitAllocator(DomainService):
    """
    Service for splitting a line item across destinations.

    Requests are applied in caller order. Each destination receives the next
    N serial units of the source in insertion order, so a split is stable and
    reproducible. Unrepairable units stay on the source while they fit; the
    overflow travels with the destinations in request order.
    """

    def __init__(
        self,
        unit_of_work: TrayUnitOfWork,
        exempt_departments: set[str] | None = None,
        config: Settings | None = None,
    ) -> None:
        """
        Initialize the split allocator.

        Args:
            unit_of_work: Repositories and transactional boundary
            exempt_departments: Department names or ids without identity
                tracking; defaults to the configured set
            config: Settings override, defaults to the process settings
        """
        self._uow = unit_of_work
        self._config = config or get_settings()
        self._exempt = (
            self._config.exempt_department_keys
            if exempt_departments is None
            else {d.strip().lower() for d in exempt_departments}
        )

    def plan(
        self,
        source: LineItem,
        requests: Sequence[AllocationRequest],
        identity_tracked: bool = True,
    ) -> SplitPlan:
        """
        Compute a split without touching storage.

        Args:
            source: Item to split
            requests: Destinations and quantities, in application order
            identity_tracked: Whether serial count must equal quantity

        Returns:
            The planned created items and the reduced source (None if emptied)

        Raises:
            NotSplittableError: If the item has no service or part
            ValidationError: If a quantity is negative or nothing is requested
            TargetEqualsSourceError: If a destination is the current holder
            OverAllocationError: If more units are requested than held
            ConservationViolationError: If tracked serials do not match quantity
        """
        if not source.is_splittable:
            raise NotSplittableError(source.id, source.kind.value)

        for request in requests:
            if request.quantity < 0:
                raise ValidationError(
                    f"Split quantity must not be negative (got {request.quantity})",
                    {"quantity": request.quantity},
                    source.id,
                )
        effective = [r for r in requests if r.quantity > 0]
        if not effective:
            raise ValidationError(
                "Nothing to split: every requested quantity is zero",
                {"requests": len(requests)},
                source.id,
            )

        for request in effective:
            tray_id = request.destination.tray_id or source.tray_id
            technician_id = (
                request.destination.technician_id
                if request.destination.technician_id is not None
                else source.technician_id
            )
            if tray_id == source.tray_id and technician_id == source.technician_id:
                raise TargetEqualsSourceError(source.id, request.destination.label())

        requested = sum(r.quantity for r in effective)
        if requested > source.quantity:
            raise OverAllocationError(source.id, requested, source.quantity)

        units = flatten_units(source.identity_groups)
        if identity_tracked and source.has_identity and len(units) != source.quantity:
            raise ConservationViolationError(
                source.id,
                len(units),
                source.quantity,
                f"Item {source.id} carries {len(units)} serial entries for "
                f"quantity {source.quantity}",
            )
        brand_only = brand_only_groups(source.identity_groups)

        remaining = source.quantity - requested
        kept_unrepairable = min(source.unrepairable_quantity, remaining)
        overflow = source.unrepairable_quantity - kept_unrepairable

        created: list[LineItem] = []
        cursor = 0
        for request in effective:
            unrepairable = min(overflow, request.quantity)
            overflow -= unrepairable
            taken = units[cursor : cursor + request.quantity]
            cursor += request.quantity
            created.append(
                source.spawn(
                    tray_id=request.destination.tray_id or source.tray_id,
                    technician_id=(
                        request.destination.technician_id
                        if request.destination.technician_id is not None
                        else source.technician_id
                    ),
                    quantity=request.quantity,
                    unrepairable_quantity=unrepairable,
                    identity_groups=(
                        group_units(taken, brand_only) if source.has_identity else []
                    ),
                )
            )

        reduced: LineItem | None = None
        if remaining > 0:
            reduced = source.evolve(
                quantity=remaining,
                unrepairable_quantity=kept_unrepairable,
                identity_groups=(
                    group_units(units[cursor:], brand_only) if source.has_identity else []
                ),
            )

        moved = sum(item.quantity for item in created)
        if moved + remaining != source.quantity:
            raise ConservationViolationError(source.id, moved + remaining, source.quantity)

        return SplitPlan(source, created, reduced)

    async def split(
        self,
        source: LineItem,
        requests: Sequence[AllocationRequest],
        directory: DirectoryCache | None = None,
    ) -> SplitResult:
        """
        Split an item and persist the result atomically.

        The stored row is re-read first; if its quantity no longer matches
        the caller's copy the split is refused so the caller can reload.

        Args:
            source: Caller's copy of the item to split
            requests: Destinations and quantities, in application order
            directory: Optional directory cache shared with the caller

        Returns:
            Created items and the reduced source

        Raises:
            LineItemNotFoundError: If the item no longer exists
            QuantityConflictError: If the stored quantity changed
            ValidationError: If any precondition fails (see ``plan``)
        """
        directory = directory or DirectoryCache(self._uow.directory)
        tracked = not await directory.is_exempt_department(
            source.department_id, self._exempt
        )
        plan = self.plan(source, requests, identity_tracked=tracked)

        async with self._uow.transaction():
            stored = await self._uow.items.get_by_id(source.id)
            if stored is None:
                raise LineItemNotFoundError(source.id)
            if stored.quantity != source.quantity:
                raise QuantityConflictError(source.id, source.quantity, stored.quantity)

            for item in plan.created:
                await self._uow.items.save(item)
            if plan.remaining is None:
                await self._uow.items.delete(source.id)
            else:
                await self._uow.items.save(plan.remaining)

        logger.info(
            "Split line item",
            item_id=str(source.id),
            tray_id=str(source.tray_id),
            destinations=len(plan.created),
            moved=source.quantity - plan.remaining_quantity,
            remaining=plan.remaining_quantity,
        )
        return SplitResult(plan)
