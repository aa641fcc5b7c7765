"""
Unit tests for identity value objects.

Tests brand/serial normalization, flattening groups into units and
regrouping units in first-seen order.
"""

import pytest
from pydantic import ValidationError

from trayflow.domain.trays.value_objects.identity import (
    IdentityGroup,
    SerialUnit,
    brand_only_groups,
    flatten_units,
    group_units,
    total_units,
)


class TestIdentityGroup:
    """Test identity group normalization."""

    def test_brand_and_serials_are_stripped(self):
        group = IdentityGroup(brand="  Wahl ", serials=[" A1", None, "  "])

        assert group.brand == "Wahl"
        assert group.serials == ("A1", "", "")
        assert group.unit_count == 3

    def test_blank_brand_becomes_none(self):
        assert IdentityGroup(brand="   ").brand is None

    def test_group_is_immutable(self):
        group = IdentityGroup(brand="Wahl", serials=("A1",))

        with pytest.raises(ValidationError):
            group.brand = "Moser"

    def test_units_carry_brand_and_warranty(self):
        group = IdentityGroup(brand="Wahl", serials=("A1", ""), warranty=True)

        units = group.units()

        assert [u.serial for u in units] == ["A1", ""]
        assert all(u.brand == "Wahl" and u.warranty for u in units)
        assert units[1].is_placeholder
        assert not units[0].is_placeholder


class TestSerialUnit:
    def test_key_ignores_brand_case(self):
        assert SerialUnit(brand="WAHL", serial="A1").key == SerialUnit(brand="wahl", serial="A1").key

    def test_key_keeps_serial_case(self):
        assert SerialUnit(brand="Wahl", serial="a1").key != SerialUnit(brand="Wahl", serial="A1").key


class TestGrouping:
    """Test flattening and regrouping."""

    def test_flatten_keeps_insertion_order(self):
        groups = [
            IdentityGroup(brand="Wahl", serials=("W1", "W2")),
            IdentityGroup(brand="Moser", serials=("M1",), warranty=True),
        ]

        assert [u.serial for u in flatten_units(groups)] == ["W1", "W2", "M1"]
        assert total_units(groups) == 3

    def test_group_units_merges_same_brand_and_warranty(self):
        units = [
            SerialUnit(brand="Wahl", serial="W1"),
            SerialUnit(brand="Moser", serial="M1"),
            SerialUnit(brand="Wahl", serial="W2"),
            SerialUnit(brand="Wahl", serial="W3", warranty=True),
        ]

        groups = group_units(units)

        assert [(g.brand, g.serials, g.warranty) for g in groups] == [
            ("Wahl", ("W1", "W2"), False),
            ("Moser", ("M1",), False),
            ("Wahl", ("W3",), True),
        ]

    def test_brand_only_groups_are_kept_after_units(self):
        brand_only = [IdentityGroup(brand="Dewal"), IdentityGroup(brand="Wahl")]

        groups = group_units([SerialUnit(brand="Wahl", serial="W1")], brand_only)

        assert [(g.brand, g.serials) for g in groups] == [("Wahl", ("W1",)), ("Dewal", ())]

    def test_brand_only_groups_filter(self):
        groups = [IdentityGroup(brand="Dewal"), IdentityGroup(brand="Wahl", serials=("W1",))]

        assert brand_only_groups(groups) == [IdentityGroup(brand="Dewal")]

    def test_round_trip_preserves_groups(self):
        groups = [
            IdentityGroup(brand="Wahl", serials=("W1", "")),
            IdentityGroup(brand=None, serials=("X",), warranty=True),
        ]

        assert group_units(flatten_units(groups)) == groups
