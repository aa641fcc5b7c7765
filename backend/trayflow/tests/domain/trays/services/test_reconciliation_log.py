"""
Unit tests for the reconciliation log.

Tests diffing against the stored baseline, one event per delta, idempotent
re-logging and best-effort audit writes.
"""

from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from trayflow.core.config import Settings
from trayflow.domain.shared.exceptions import PersistenceError
from trayflow.domain.trays.services.reconciliation_log import ReconciliationLog
from trayflow.domain.trays.value_objects.enums import EventKind, SubjectType

from ....factories import LineItemFactory


class TestDiff:
    """Test pure diffing."""

    def test_created_updated_deleted(self, tray):
        kept = LineItemFactory.service(tray.id, quantity=2)
        removed = LineItemFactory.part(tray.id)
        added = LineItemFactory.part(tray.id)

        diff = ReconciliationLog.diff([kept, removed], [kept.evolve(quantity=3), added])

        assert [e.id for e in diff.created] == [added.id]
        assert [e.id for e in diff.deleted] == [removed.id]
        (update,) = diff.updated
        assert update.changes["quantity"].old == 2
        assert update.changes["quantity"].new == 3
        assert diff.delta_count == 3

    def test_untracked_changes_are_ignored(self, tray):
        item = LineItemFactory.service(tray.id)

        diff = ReconciliationLog.diff([item], [item.evolve(name="Renamed")])

        assert diff.is_empty

    def test_identity_change_is_tracked(self, tray):
        item = LineItemFactory.service(tray.id, quantity=1, serials=["A"])

        diff = ReconciliationLog.diff(
            [item], [item.evolve(identity_groups=LineItemFactory.identity(["B"]))]
        )

        assert list(diff.updated[0].changes) == ["identity_groups"]


class TestDiffAndLog:
    """Test logging deltas against the baseline."""

    @pytest.mark.asyncio
    async def test_one_event_per_delta(self, uow, audit_log, tray):
        item = LineItemFactory.service(tray.id, quantity=2)
        audit_log.set_baseline(tray.id, [])

        await audit_log.diff_and_log(tray.id, [item], "alice")
        await audit_log.diff_and_log(
            tray.id, [item.evolve(quantity=1, price=Decimal("10"))], "alice"
        )
        await audit_log.diff_and_log(tray.id, [], "alice")

        events = await uow.audit.get_by_subject(item.id)
        assert [e.event_kind for e in events] == [
            EventKind.ITEM_CREATED.value,
            EventKind.ITEM_UPDATED.value,
            EventKind.ITEM_DELETED.value,
        ]
        assert all(e.actor == "alice" for e in events)
        assert all(e.subject_type == SubjectType.LINE_ITEM for e in events)
        assert set(events[1].payload["changes"]) == {"quantity", "price"}
        assert events[1].payload["changes"]["price"] == {"old": "0", "new": "10"}

    @pytest.mark.asyncio
    async def test_logging_same_state_twice_is_noop(self, uow, audit_log, tray):
        item = LineItemFactory.service(tray.id)
        audit_log.set_baseline(tray.id, [])

        await audit_log.diff_and_log(tray.id, [item])
        diff = await audit_log.diff_and_log(tray.id, [item])

        assert diff.is_empty
        assert len(uow.state.events) == 1

    @pytest.mark.asyncio
    async def test_baseline_advances_even_when_sink_fails(self, uow, audit_log, tray):
        uow.audit.append = AsyncMock(side_effect=PersistenceError("disk full"))
        item = LineItemFactory.service(tray.id)
        audit_log.set_baseline(tray.id, [])

        diff = await audit_log.diff_and_log(tray.id, [item])

        assert len(diff.created) == 1
        assert [e.id for e in audit_log.baseline(tray.id)] == [item.id]

    @pytest.mark.asyncio
    async def test_record_reports_failure(self, uow, audit_log):
        uow.audit.append = AsyncMock(side_effect=PersistenceError("disk full"))

        event = await audit_log.log(SubjectType.TRAY, uuid4(), EventKind.TRAY_SPLIT, "split")

        assert event.actor == "system"
        assert await audit_log.record(event) is False

    @pytest.mark.asyncio
    async def test_default_actor_comes_from_injected_settings(self, uow, tray):
        audit_log = ReconciliationLog(uow, Settings(_env_file=None, SYSTEM_ACTOR="intake"))
        item = LineItemFactory.service(tray.id)

        event = await audit_log.log(SubjectType.TRAY, tray.id, EventKind.TRAY_SPLIT, "split")
        await audit_log.diff_and_log(tray.id, [item])

        assert event.actor == "intake"
        created = await uow.audit.get_by_subject(item.id)
        assert [e.actor for e in created] == ["intake"]

    def test_ensure_baseline_does_not_overwrite(self, audit_log, tray):
        item = LineItemFactory.service(tray.id)
        audit_log.set_baseline(tray.id, [item])

        audit_log.ensure_baseline(tray.id, [])
        assert len(audit_log.baseline(tray.id)) == 1

        audit_log.forget(tray.id)
        assert not audit_log.has_baseline(tray.id)


class TestFirstOccurrence:
    """Test events logged at most once per subject."""

    @pytest.mark.asyncio
    async def test_second_call_is_skipped(self, uow, audit_log, tray):
        first = await audit_log.log_first_occurrence(
            SubjectType.TRAY, tray.id, EventKind.TRAY_MOVED_TO_DEPARTMENT, "sent"
        )
        second = await audit_log.log_first_occurrence(
            SubjectType.TRAY, tray.id, EventKind.TRAY_MOVED_TO_DEPARTMENT, "sent again"
        )

        assert first is not None
        assert second is None
        assert [e.message for e in await uow.audit.get_by_subject(tray.id)] == ["sent"]

    @pytest.mark.asyncio
    async def test_other_kinds_are_independent(self, uow, audit_log, tray):
        await audit_log.log_first_occurrence(
            SubjectType.TRAY, tray.id, EventKind.TRAY_MOVED_TO_DEPARTMENT, "sent"
        )
        logged = await audit_log.log_first_occurrence(
            SubjectType.TRAY, tray.id, EventKind.TRAY_SPLIT, "split"
        )

        assert logged is not None
        assert len(await uow.audit.get_by_subject(tray.id)) == 2
