"""Identity metadata attached to line items: brands, serials and warranty."""

from collections.abc import Iterable, Sequence

from pydantic import field_validator

from ...shared.base import ValueObject


class IdentityGroup(ValueObject):
    """A brand plus an ordered list of serial numbers sharing one warranty flag.

    Serial entries may be empty strings: they stand for units whose serial
    has not been captured yet but still count towards the item quantity.
    """

    brand: str | None = None
    serials: tuple[str, ...] = ()
    warranty: bool = False

    @field_validator("brand")
    @classmethod
    def normalize_brand(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("serials", mode="before")
    @classmethod
    def normalize_serials(cls, v: Iterable[str | None]) -> tuple[str, ...]:
        return tuple((s or "").strip() for s in v)

    @property
    def unit_count(self) -> int:
        return len(self.serials)

    def units(self) -> list["SerialUnit"]:
        return [
            SerialUnit(brand=self.brand, serial=serial, warranty=self.warranty)
            for serial in self.serials
        ]


class SerialUnit(ValueObject):
    """One physical unit: a serial (possibly blank) with its brand and warranty."""

    brand: str | None = None
    serial: str = ""
    warranty: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.serial == ""

    @property
    def key(self) -> tuple[str, str]:
        """De-duplication key; brand comparison ignores case."""
        return ((self.brand or "").casefold(), self.serial)


def flatten_units(groups: Sequence[IdentityGroup]) -> list[SerialUnit]:
    """All serial units of the given groups, in insertion order."""
    units: list[SerialUnit] = []
    for group in groups:
        units.extend(group.units())
    return units


def group_units(
    units: Sequence[SerialUnit],
    brand_only: Sequence[IdentityGroup] = (),
) -> list[IdentityGroup]:
    """Regroup units by (brand, warranty), keeping first-seen order.

    ``brand_only`` groups (no serials) carry no units; they are kept after the
    unit-bearing groups unless a unit-bearing group already has the same
    brand and warranty flag.
    """
    order: list[tuple[str | None, bool]] = []
    serials: dict[tuple[str | None, bool], list[str]] = {}
    for unit in units:
        key = (unit.brand, unit.warranty)
        if key not in serials:
            order.append(key)
            serials[key] = []
        serials[key].append(unit.serial)

    groups = [
        IdentityGroup(brand=brand, serials=tuple(serials[(brand, warranty)]), warranty=warranty)
        for brand, warranty in order
    ]
    for group in brand_only:
        if (group.brand, group.warranty) not in serials:
            groups.append(group)
    return groups


def brand_only_groups(groups: Sequence[IdentityGroup]) -> list[IdentityGroup]:
    return [group for group in groups if group.unit_count == 0]


def total_units(groups: Sequence[IdentityGroup]) -> int:
    return sum(group.unit_count for group in groups)
