"""
Reconciliation Log

Diffs a tray's current items against the last persisted snapshot and turns
every difference into exactly one audit event. Unchanged items produce no
event, so logging the same state twice is a no-op.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from trayflow.core.config import Settings, get_settings
from trayflow.core.observability import get_logger

from ...shared.exceptions import DomainError
from ..entities.audit_event import AuditEvent
from ..entities.line_item import LineItem
from ..repositories.unit_of_work import TrayUnitOfWork
from ..value_objects.enums import EventKind, SubjectType
from ..value_objects.snapshot import (
    TRACKED_FIELDS,
    FieldChange,
    ItemDiff,
    ItemUpdate,
    SnapshotEntry,
)

logger = get_logger(__name__)

FIELD_LABELS = {
    "quantity": "quantity",
    "unrepairable_quantity": "unrepairable quantity",
    "price": "price",
    "discount_pct": "discount",
    "urgent": "urgency",
    "department_id": "department",
    "technician_id": "technician",
    "identity_groups": "brands/serials",
}


def _entry(item: LineItem | SnapshotEntry) -> SnapshotEntry:
    return item if isinstance(item, SnapshotEntry) else item.to_snapshot()


def _json(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_json(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if value is None or isinstance(value, bool | int | str):
        return value
    return str(value)


class ReconciliationLog:
    """
    Audit trail writer with per-tray baselines.

    A baseline is the snapshot of a tray as last persisted. ``diff_and_log``
    compares the current items with it, logs the deltas and makes the
    current items the new baseline.
    """

    def __init__(
        self, unit_of_work: TrayUnitOfWork, config: Settings | None = None
    ) -> None:
        self._uow = unit_of_work
        self._config = config or get_settings()
        self._baselines: dict[UUID, list[SnapshotEntry]] = {}

    def baseline(self, tray_id: UUID) -> list[SnapshotEntry]:
        return list(self._baselines.get(tray_id, []))

    def has_baseline(self, tray_id: UUID) -> bool:
        return tray_id in self._baselines

    def set_baseline(
        self, tray_id: UUID, items: Sequence[LineItem | SnapshotEntry]
    ) -> None:
        self._baselines[tray_id] = [_entry(item) for item in items]

    def ensure_baseline(
        self, tray_id: UUID, items: Sequence[LineItem | SnapshotEntry]
    ) -> None:
        """Seed the baseline from freshly read items unless one is already held."""
        if tray_id not in self._baselines:
            self.set_baseline(tray_id, items)

    def forget(self, tray_id: UUID) -> None:
        self._baselines.pop(tray_id, None)

    @staticmethod
    def diff(
        previous: Sequence[LineItem | SnapshotEntry],
        current: Sequence[LineItem | SnapshotEntry],
    ) -> ItemDiff:
        """
        Match items by id and classify them.

        Args:
            previous: Baseline snapshot
            current: Items as they are now

        Returns:
            Created, updated (with per-field old/new values) and deleted items
        """
        before = {entry.id: entry for entry in map(_entry, previous)}
        after = {entry.id: entry for entry in map(_entry, current)}

        created = [entry for item_id, entry in after.items() if item_id not in before]
        deleted = [entry for item_id, entry in before.items() if item_id not in after]
        updated: list[ItemUpdate] = []
        for item_id, new in after.items():
            old = before.get(item_id)
            if old is None:
                continue
            old_values, new_values = old.tracked_values(), new.tracked_values()
            changes = {
                field: FieldChange(old=old_values[field], new=new_values[field])
                for field in TRACKED_FIELDS
                if old_values[field] != new_values[field]
            }
            if changes:
                updated.append(ItemUpdate(before=old, after=new, changes=changes))

        return ItemDiff(created=tuple(created), updated=tuple(updated), deleted=tuple(deleted))

    def events_for(self, tray_id: UUID, diff: ItemDiff, actor: str) -> list[AuditEvent]:
        """One audit event per delta."""
        events: list[AuditEvent] = []
        for entry in diff.created:
            events.append(
                AuditEvent(
                    subject_type=SubjectType.LINE_ITEM,
                    subject_id=entry.id,
                    event_kind=EventKind.ITEM_CREATED.value,
                    message=f"Added {entry.name or entry.kind.value} x{entry.quantity}",
                    payload={"tray_id": str(tray_id), "before": None, "after": entry.payload()},
                    actor=actor,
                )
            )
        for update in diff.updated:
            described = ", ".join(
                f"{FIELD_LABELS[field]} {_json(change.old)} -> {_json(change.new)}"
                if field != "identity_groups"
                else f"{FIELD_LABELS[field]} changed"
                for field, change in update.changes.items()
            )
            events.append(
                AuditEvent(
                    subject_type=SubjectType.LINE_ITEM,
                    subject_id=update.after.id,
                    event_kind=EventKind.ITEM_UPDATED.value,
                    message=f"Updated {update.after.name or update.after.kind.value}: {described}",
                    payload={
                        "tray_id": str(tray_id),
                        "before": update.before.payload(),
                        "after": update.after.payload(),
                        "changes": {
                            field: {"old": _json(change.old), "new": _json(change.new)}
                            for field, change in update.changes.items()
                        },
                    },
                    actor=actor,
                )
            )
        for entry in diff.deleted:
            events.append(
                AuditEvent(
                    subject_type=SubjectType.LINE_ITEM,
                    subject_id=entry.id,
                    event_kind=EventKind.ITEM_DELETED.value,
                    message=f"Removed {entry.name or entry.kind.value} x{entry.quantity}",
                    payload={"tray_id": str(tray_id), "before": entry.payload(), "after": None},
                    actor=actor,
                )
            )
        return events

    async def diff_and_log(
        self,
        tray_id: UUID,
        current_items: Sequence[LineItem],
        actor: str | None = None,
    ) -> ItemDiff:
        """
        Log the deltas between the stored baseline and ``current_items``.

        Call this after the items were persisted; ``current_items`` then
        becomes the baseline, even if some audit writes failed.
        """
        actor = actor or self._config.SYSTEM_ACTOR
        diff = self.diff(self.baseline(tray_id), current_items)
        for event in self.events_for(tray_id, diff, actor):
            await self.record(event)
        self.set_baseline(tray_id, current_items)
        if not diff.is_empty:
            logger.debug(
                "Reconciled tray items",
                tray_id=str(tray_id),
                created=len(diff.created),
                updated=len(diff.updated),
                deleted=len(diff.deleted),
            )
        return diff

    async def record(self, event: AuditEvent) -> bool:
        """
        Append an event, best effort.

        A failing sink never fails the operation being audited: the error is
        logged and False is returned.
        """
        try:
            async with self._uow.transaction():
                await self._uow.audit.append(event)
        except DomainError as e:
            logger.warning(
                "Audit event not recorded",
                event_kind=event.event_kind,
                subject_id=str(event.subject_id),
                error=e.message,
            )
            return False
        return True

    async def log(
        self,
        subject_type: SubjectType,
        subject_id: UUID,
        event_kind: EventKind | str,
        message: str,
        payload: dict[str, Any] | None = None,
        actor: str | None = None,
    ) -> AuditEvent:
        event = AuditEvent(
            subject_type=subject_type,
            subject_id=subject_id,
            event_kind=(
                event_kind.value if isinstance(event_kind, EventKind) else event_kind
            ),
            message=message,
            payload=payload or {},
            actor=actor or self._config.SYSTEM_ACTOR,
        )
        await self.record(event)
        return event

    async def log_first_occurrence(
        self,
        subject_type: SubjectType,
        subject_id: UUID,
        event_kind: EventKind | str,
        message: str,
        payload: dict[str, Any] | None = None,
        actor: str | None = None,
    ) -> AuditEvent | None:
        """
        Log an event only if none of the same kind exists for the subject.

        The existence check precedes the write so retried operations do not
        duplicate entries. Returns None when the event was already logged.
        """
        kind = event_kind.value if isinstance(event_kind, EventKind) else event_kind
        try:
            if await self._uow.audit.exists(subject_id, kind):
                logger.debug(
                    "First-occurrence event already logged",
                    event_kind=kind,
                    subject_id=str(subject_id),
                )
                return None
        except DomainError as e:
            logger.warning(
                "Audit existence check failed",
                event_kind=kind,
                subject_id=str(subject_id),
                error=e.message,
            )
            return None
        return await self.log(subject_type, subject_id, kind, message, payload, actor)
