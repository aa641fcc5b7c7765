"""
Unit tests for the consolidator.

Tests merging same-signature items per technician, including the identity
union with warranty and duplicate-serial handling.
"""

from uuid import uuid4

import pytest

from trayflow.domain.trays.services.consolidator import merge_identity
from trayflow.domain.trays.value_objects.allocation import AllocationRequest, Destination
from trayflow.domain.trays.value_objects.identity import IdentityGroup, flatten_units

from ....factories import LineItemFactory


@pytest.fixture
def technician_id():
    return uuid4()


class TestMergeIdentity:
    """Test identity unions."""

    def test_units_are_concatenated(self, tray):
        first = LineItemFactory.service(tray.id, quantity=2, serials=["A", "B"])
        second = LineItemFactory.service(tray.id, quantity=1, serials=["C"])

        groups = merge_identity([first, second])

        assert [u.serial for u in flatten_units(groups)] == ["A", "B", "C"]

    def test_duplicate_serial_keeps_first_and_pads(self, tray):
        first = LineItemFactory.service(
            tray.id,
            quantity=2,
            identity_groups=[IdentityGroup(brand="Wahl", serials=("A", "B"))],
        )
        second = LineItemFactory.service(
            tray.id,
            quantity=1,
            identity_groups=[IdentityGroup(brand="WAHL", serials=("A",), warranty=True)],
        )

        units = flatten_units(merge_identity([first, second]))

        assert len(units) == 3
        assert units[0].serial == "A" and units[0].warranty
        assert [u.serial for u in units].count("A") == 1
        assert sum(1 for u in units if u.is_placeholder) == 1

    def test_blank_serials_are_never_deduplicated(self, tray):
        first = LineItemFactory.service(tray.id, quantity=2, serials=["", ""])
        second = LineItemFactory.service(tray.id, quantity=1, serials=[""])

        assert len(flatten_units(merge_identity([first, second]))) == 3

    def test_brand_only_groups_are_unioned(self, tray):
        first = LineItemFactory.service(
            tray.id, quantity=1, identity_groups=[IdentityGroup(brand="Dewal")]
        )
        second = LineItemFactory.service(
            tray.id,
            quantity=1,
            identity_groups=[IdentityGroup(brand="dewal"), IdentityGroup(brand="Moser")],
        )

        groups = merge_identity([first, second])

        assert [g.brand for g in groups if g.unit_count == 0] == ["Dewal", "Moser"]
        assert len(flatten_units(groups)) == 2

    def test_member_without_serials_is_padded(self, tray):
        serialized = LineItemFactory.service(tray.id, quantity=2, serials=["S1", "S2"])
        plain = LineItemFactory.service(tray.id, quantity=3)

        units = flatten_units(merge_identity([serialized, plain]))

        assert [u.serial for u in units] == ["S1", "S2", "", "", ""]


class TestConsolidatorPlan:
    """Test consolidation planning."""

    def test_same_signature_items_merge(self, consolidator, tray, technician_id):
        catalog_id = uuid4()
        first = LineItemFactory.service(
            tray.id, quantity=2, catalog_id=catalog_id, technician_id=technician_id
        )
        second = LineItemFactory.service(
            tray.id,
            quantity=3,
            catalog_id=catalog_id,
            technician_id=technician_id,
            unrepairable_quantity=1,
            urgent=True,
        )

        consolidated, removed = consolidator.plan([first, second], technician_id)

        (merged,) = consolidated
        assert merged.id == first.id
        assert merged.quantity == 5
        assert merged.unrepairable_quantity == 1
        assert merged.urgent
        assert removed == [second.id]

    def test_other_technicians_are_left_alone(self, consolidator, tray, technician_id):
        catalog_id = uuid4()
        mine = LineItemFactory.service(tray.id, catalog_id=catalog_id, technician_id=technician_id)
        theirs = LineItemFactory.service(tray.id, catalog_id=catalog_id, technician_id=uuid4())

        consolidated, removed = consolidator.plan([mine, theirs], technician_id)

        assert consolidated == []
        assert removed == []

    def test_different_signatures_stay_apart(self, consolidator, tray, technician_id):
        items = [
            LineItemFactory.service(tray.id, technician_id=technician_id),
            LineItemFactory.service(tray.id, technician_id=technician_id),
            LineItemFactory.part(tray.id, technician_id=technician_id),
        ]

        consolidated, removed = consolidator.plan(items, technician_id)

        assert consolidated == []
        assert removed == []


class TestConsolidatorMerge:
    """Test merging through the unit of work."""

    @pytest.mark.asyncio
    async def test_merge_two_and_three_into_five(self, uow, consolidator, tray, technician_id):
        catalog_id = uuid4()
        first, second = uow.add_items(
            LineItemFactory.service(
                tray.id, quantity=2, catalog_id=catalog_id, technician_id=technician_id,
                serials=["A", "B"],
            ),
            LineItemFactory.service(
                tray.id, quantity=3, catalog_id=catalog_id, technician_id=technician_id,
                serials=["C", "D", "E"],
            ),
        )

        result = await consolidator.merge(tray.id, technician_id)

        stored = await uow.items.get_by_tray(tray.id)
        assert len(stored) == 1
        assert stored[0].id == first.id
        assert stored[0].quantity == 5
        assert stored[0].serial_count == 5
        assert result.merged_count == 1
        assert result.removed_ids == [second.id]

    @pytest.mark.asyncio
    async def test_merge_without_duplicates_is_noop(self, uow, consolidator, tray, technician_id):
        uow.add_items(LineItemFactory.service(tray.id, technician_id=technician_id))

        result = await consolidator.merge(tray.id, technician_id)

        assert result.merged_count == 0
        assert len(await uow.items.get_by_tray(tray.id)) == 1

    @pytest.mark.asyncio
    async def test_merged_row_with_partial_identity_can_be_split(
        self, uow, consolidator, allocator, tray, technician_id
    ):
        catalog_id = uuid4()
        uow.add_items(
            LineItemFactory.service(
                tray.id, quantity=2, catalog_id=catalog_id, technician_id=technician_id,
                serials=["S1", "S2"],
            ),
            LineItemFactory.service(
                tray.id, quantity=3, catalog_id=catalog_id, technician_id=technician_id,
            ),
        )

        await consolidator.merge(tray.id, technician_id)
        (merged,) = await uow.items.get_by_tray(tray.id)
        assert merged.quantity == 5
        assert merged.serial_count == 5

        other = uuid4()
        result = await allocator.split(
            merged,
            [AllocationRequest(destination=Destination(technician_id=other), quantity=1)],
        )

        (moved,) = result.created
        assert [u.serial for u in flatten_units(moved.identity_groups)] == ["S1"]
        assert result.updated[0].quantity == 4
        assert result.updated[0].serial_count == 4
