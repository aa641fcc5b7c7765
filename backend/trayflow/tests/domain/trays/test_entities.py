"""
Unit tests for tray and line item entities.

Tests variant parsing, validation rules and the copy helpers used by the
allocation services.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from trayflow.domain.trays.entities.line_item import (
    BareInstrumentLineItem,
    PartLineItem,
    ServiceLineItem,
    parse_line_item,
)
from trayflow.domain.trays.entities.tray import Tray
from trayflow.domain.trays.value_objects.enums import LineItemKind, TrayStatus
from trayflow.domain.trays.value_objects.identity import IdentityGroup

from ...factories import LineItemFactory, TrayFactory


class TestLineItemVariants:
    """Test discriminated line item variants."""

    def test_parse_selects_variant_by_kind(self):
        tray_id = uuid4()

        service = parse_line_item({"tray_id": tray_id, "kind": "service", "catalog_id": uuid4()})
        part = parse_line_item({"tray_id": tray_id, "kind": "part", "catalog_id": uuid4()})
        bare = parse_line_item(
            {"tray_id": tray_id, "kind": "bare-instrument", "instrument_id": uuid4()}
        )

        assert isinstance(service, ServiceLineItem)
        assert isinstance(part, PartLineItem)
        assert isinstance(bare, BareInstrumentLineItem)

    def test_service_requires_catalog_id(self):
        with pytest.raises(ValidationError):
            ServiceLineItem(tray_id=uuid4())

    def test_bare_instrument_requires_instrument(self):
        with pytest.raises(ValidationError):
            BareInstrumentLineItem(tray_id=uuid4())

    def test_bare_instrument_is_not_splittable(self):
        item = LineItemFactory.bare(uuid4(), uuid4())

        assert item.kind == LineItemKind.BARE_INSTRUMENT
        assert not item.is_splittable
        assert LineItemFactory.part(uuid4()).is_splittable


class TestLineItemRules:
    """Test line item validation rules."""

    def test_unrepairable_cannot_exceed_quantity(self):
        with pytest.raises(ValidationError):
            LineItemFactory.service(uuid4(), quantity=2, unrepairable_quantity=3)

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            LineItemFactory.service(uuid4(), quantity=-1)

    def test_discount_bounds(self):
        with pytest.raises(ValidationError):
            LineItemFactory.service(uuid4(), discount_pct=Decimal("120"))

    def test_serial_count(self):
        item = LineItemFactory.service(uuid4(), quantity=3, serials=["A", "B", ""])

        assert item.serial_count == 3
        assert item.has_identity

    def test_signature_ignores_technician(self):
        tray_id, catalog_id = uuid4(), uuid4()
        first = LineItemFactory.service(tray_id, catalog_id=catalog_id, technician_id=uuid4())
        second = LineItemFactory.service(tray_id, catalog_id=catalog_id, technician_id=uuid4())

        assert first.signature == second.signature


class TestLineItemCopies:
    """Test evolve and spawn."""

    def test_evolve_keeps_id_and_variant(self):
        item = LineItemFactory.part(uuid4(), quantity=4)

        changed = item.evolve(quantity=2)

        assert isinstance(changed, PartLineItem)
        assert changed.id == item.id
        assert changed.quantity == 2
        assert changed.updated_at is not None
        assert item.quantity == 4

    def test_evolve_revalidates(self):
        item = LineItemFactory.part(uuid4(), quantity=4, unrepairable_quantity=3)

        with pytest.raises(ValidationError):
            item.evolve(quantity=2)

    def test_spawn_gets_fresh_identity(self):
        item = LineItemFactory.service(uuid4(), quantity=4)

        child = item.spawn(quantity=1)

        assert child.id != item.id
        assert child.signature == item.signature
        assert child.updated_at is None

    def test_snapshot_freezes_identity(self):
        item = LineItemFactory.service(
            uuid4(), quantity=1, identity_groups=[IdentityGroup(brand="Wahl", serials=("W1",))]
        )

        entry = item.to_snapshot()

        assert entry.identity_groups == (IdentityGroup(brand="Wahl", serials=("W1",)),)
        assert entry.payload()["quantity"] == 1


class TestTray:
    """Test tray entity rules."""

    def test_blank_number_is_placeholder(self):
        tray = TrayFactory.create(number="   ")

        assert tray.number is None
        assert tray.is_placeholder
        assert tray.is_exempt(["vanzare"])

    def test_sales_prefix_ignores_case(self):
        tray = TrayFactory.create(number="VANZARE-3")

        assert tray.is_sales(["vanzare"])
        assert not TrayFactory.create(number="12").is_sales(["vanzare"])

    def test_mark_split_and_reunite(self):
        tray = TrayFactory.create()
        owner = uuid4()

        tray.mark_split(owner)
        assert tray.status == TrayStatus.SPLIT
        assert tray.technician_id == owner

        tray.finalize()
        tray.reunite()
        assert tray.is_finalized
        assert tray.technician_id is None

    def test_split_child_has_parent(self):
        parent = TrayFactory.create()
        child = TrayFactory.create(number="12-bob", parent_tray_id=parent.id)

        assert child.is_split_child
        assert not parent.is_split_child

    def test_entities_compare_by_id(self):
        tray = TrayFactory.create()
        copy = tray.model_copy(update={"number": "99"})

        assert tray == copy
        assert not tray.same_state(copy)
        assert isinstance(hash(tray), int)
        assert tray != Tray(service_order_id=tray.service_order_id)
