"""
Property-based tests for allocation invariants.

Splits never create or lose units, serials or unrepairable units, and
consolidation preserves quantities while keeping each serial once.
"""

from collections import Counter
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from trayflow.domain.trays.entities.line_item import ServiceLineItem
from trayflow.domain.trays.services.consolidator import Consolidator
from trayflow.domain.trays.services.reconciliation_log import ReconciliationLog
from trayflow.domain.trays.services.split_allocator import SplitAllocator
from trayflow.domain.trays.value_objects.allocation import AllocationRequest, Destination
from trayflow.domain.trays.value_objects.identity import (
    SerialUnit,
    flatten_units,
    group_units,
)
from trayflow.infrastructure.memory.unit_of_work import InMemoryUnitOfWork

BRANDS = ["Wahl", "wahl", "Moser", None]


@st.composite
def serial_units(draw, count: int, pool: list[str] | None = None):
    units = []
    for index in range(count):
        serial = draw(st.sampled_from(pool)) if pool else draw(
            st.sampled_from([f"SN{index}", ""])
        )
        units.append(
            SerialUnit(
                brand=draw(st.sampled_from(BRANDS)),
                serial=serial,
                warranty=draw(st.booleans()),
            )
        )
    return units


@st.composite
def split_cases(draw):
    """An item with a consistent identity and a partition of part of its quantity."""
    quantity = draw(st.integers(min_value=1, max_value=20))
    unrepairable = draw(st.integers(min_value=0, max_value=quantity))
    units = draw(serial_units(quantity))
    tray_id, catalog_id, technician_id = uuid4(), uuid4(), uuid4()
    item = ServiceLineItem(
        tray_id=tray_id,
        catalog_id=catalog_id,
        technician_id=technician_id,
        quantity=quantity,
        unrepairable_quantity=unrepairable,
        identity_groups=group_units(units),
    )

    total = draw(st.integers(min_value=1, max_value=quantity))
    parts = draw(st.integers(min_value=1, max_value=4))
    cuts = sorted(
        draw(st.lists(st.integers(min_value=0, max_value=total), min_size=parts - 1, max_size=parts - 1))
    )
    bounds = [0, *cuts, total]
    shares = [high - low for low, high in zip(bounds, bounds[1:])]
    requests = [
        AllocationRequest(destination=Destination(technician_id=uuid4()), quantity=share)
        for share in shares
    ]
    return item, requests


@st.composite
def merge_cases(draw):
    """Same-signature items of one technician whose serials may collide."""
    tray_id, catalog_id, technician_id = uuid4(), uuid4(), uuid4()
    members = []
    for _ in range(draw(st.integers(min_value=2, max_value=4))):
        quantity = draw(st.integers(min_value=1, max_value=5))
        units = draw(serial_units(quantity, pool=["A", "B", "C", ""]))
        members.append(
            ServiceLineItem(
                tray_id=tray_id,
                catalog_id=catalog_id,
                technician_id=technician_id,
                quantity=quantity,
                identity_groups=group_units(units),
            )
        )
    return members


def unit_counter(items):
    return Counter(
        (unit.brand, unit.serial, unit.warranty)
        for item in items
        for unit in flatten_units(item.identity_groups)
    )


@pytest.mark.property
class TestSplitProperties:
    """Conservation under arbitrary splits."""

    @given(split_cases())
    @settings(max_examples=150, deadline=None)
    def test_split_conserves_everything(self, case):
        item, requests = case
        allocator = SplitAllocator(InMemoryUnitOfWork(), set())

        plan = allocator.plan(item, requests)

        results = plan.created + ([plan.remaining] if plan.remaining else [])
        assert sum(i.quantity for i in results) == item.quantity
        assert sum(i.unrepairable_quantity for i in results) == item.unrepairable_quantity
        assert unit_counter(results) == unit_counter([item])
        for result in results:
            assert result.serial_count == result.quantity
            assert result.unrepairable_quantity <= result.quantity
            assert result.signature == item.signature

    @given(split_cases())
    @settings(max_examples=50, deadline=None)
    def test_split_is_reproducible(self, case):
        item, requests = case
        allocator = SplitAllocator(InMemoryUnitOfWork(), set())

        first = allocator.plan(item, requests)
        second = allocator.plan(item, requests)

        assert [i.identity_groups for i in first.created] == [
            i.identity_groups for i in second.created
        ]


@pytest.mark.property
class TestMergeProperties:
    """Consolidation invariants."""

    @given(merge_cases())
    @settings(max_examples=150, deadline=None)
    def test_merge_keeps_quantity_and_unit_count(self, members):
        consolidator = Consolidator(InMemoryUnitOfWork())

        consolidated, removed = consolidator.plan(members, members[0].technician_id)

        (merged,) = consolidated
        assert merged.id == members[0].id
        assert len(removed) == len(members) - 1
        assert merged.quantity == sum(m.quantity for m in members)
        assert merged.serial_count == merged.quantity

    @given(merge_cases())
    @settings(max_examples=150, deadline=None)
    def test_merged_serials_are_unique_and_warranty_is_ored(self, members):
        consolidator = Consolidator(InMemoryUnitOfWork())

        (merged,), _ = consolidator.plan(members, members[0].technician_id)

        units = [u for u in flatten_units(merged.identity_groups) if not u.is_placeholder]
        keys = [u.key for u in units]
        assert len(keys) == len(set(keys))

        claimed_warranty = {
            unit.key
            for member in members
            for unit in flatten_units(member.identity_groups)
            if unit.warranty and not unit.is_placeholder
        }
        for unit in units:
            assert unit.warranty == (unit.key in claimed_warranty)


@pytest.mark.property
class TestDiffProperties:
    @given(merge_cases())
    @settings(max_examples=50, deadline=None)
    def test_diff_of_identical_states_is_empty(self, items):
        assert ReconciliationLog.diff(items, list(items)).is_empty
