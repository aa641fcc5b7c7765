"""
Mapper for converting between line item domain variants and SQL rows.

A line item spans three tables: the item row (with its ``notes`` document),
one brand row per identity group and one serial row per serial entry.
"""

from uuid import UUID, uuid4

from trayflow.domain.trays.entities.line_item import LineItem, parse_line_item
from trayflow.domain.trays.value_objects.enums import LineItemKind
from trayflow.domain.trays.value_objects.identity import IdentityGroup
from trayflow.infrastructure.database.notes import (
    BareInstrumentNotes,
    ItemNotes,
    PartNotes,
    ServiceNotes,
    parse_notes,
)
from trayflow.infrastructure.database.sqlmodel_entities import (
    BrandRow,
    LineItemRow,
    SerialRow,
)

NOTES_BY_KIND: dict[LineItemKind, type[ItemNotes]] = {
    LineItemKind.SERVICE: ServiceNotes,
    LineItemKind.PART: PartNotes,
    LineItemKind.BARE_INSTRUMENT: BareInstrumentNotes,
}


class LineItemMapper:
    """
    Mapper class for converting between LineItem domain entities and SQL rows.
    """

    @staticmethod
    def kind_of(row: LineItemRow) -> LineItemKind:
        """Infer the kind from which catalog column is set."""
        if row.service_id is not None:
            return LineItemKind.SERVICE
        if row.part_id is not None:
            return LineItemKind.PART
        return LineItemKind.BARE_INSTRUMENT

    @staticmethod
    def domain_to_sql(
        item: LineItem,
    ) -> tuple[LineItemRow, list[tuple[BrandRow, list[SerialRow]]]]:
        """
        Convert a domain line item to its item row and identity rows.

        Args:
            item: Domain line item to convert

        Returns:
            The item row and, per identity group, its brand row with serial rows
        """
        first = item.identity_groups[0] if item.identity_groups else None
        notes = NOTES_BY_KIND[item.kind](
            price=item.price,
            discount_pct=item.discount_pct,
            urgent=item.urgent,
            name=item.name,
            brand=first.brand if first else None,
            serial_number=next((s for s in first.serials if s), None) if first else None,
            garantie=first.warranty if first else False,
        )
        row = LineItemRow(
            id=item.id,
            tray_id=item.tray_id,
            service_id=item.catalog_id if item.kind == LineItemKind.SERVICE else None,
            part_id=item.catalog_id if item.kind == LineItemKind.PART else None,
            instrument_id=item.instrument_id,
            department_id=item.department_id,
            technician_id=item.technician_id,
            qty=item.quantity,
            unrepaired_qty=item.unrepairable_quantity,
            notes=notes.model_dump(mode="json"),
            created_at=item.created_at,
            updated_at=item.updated_at,
        )

        identity: list[tuple[BrandRow, list[SerialRow]]] = []
        for position, group in enumerate(item.identity_groups):
            brand = BrandRow(
                id=uuid4(),
                item_id=item.id,
                position=position,
                brand=group.brand,
                garantie=group.warranty,
            )
            serials = [
                SerialRow(brand_id=brand.id, position=index, serial_number=serial)
                for index, serial in enumerate(group.serials)
            ]
            identity.append((brand, serials))
        return row, identity

    @staticmethod
    def sql_to_domain(
        row: LineItemRow,
        brands: list[BrandRow],
        serials: list[SerialRow],
    ) -> LineItem:
        """
        Convert rows back to the matching domain variant.

        Items stored before brand rows existed carry their brand and serial
        in the notes document only; those become a single identity group.
        """
        kind = LineItemMapper.kind_of(row)
        notes = parse_notes(row.notes, kind.value)

        by_brand: dict[UUID, list[str]] = {}
        for serial in sorted(serials, key=lambda s: s.position):
            by_brand.setdefault(serial.brand_id, []).append(serial.serial_number)
        groups = [
            IdentityGroup(
                brand=brand.brand,
                serials=tuple(by_brand.get(brand.id, [])),
                warranty=brand.garantie,
            )
            for brand in sorted(brands, key=lambda b: b.position)
        ]
        if not groups and (notes.brand or notes.serial_number):
            groups = [
                IdentityGroup(
                    brand=notes.brand,
                    serials=(notes.serial_number,) if notes.serial_number else (),
                    warranty=notes.garantie,
                )
            ]

        return parse_line_item(
            {
                "id": row.id,
                "tray_id": row.tray_id,
                "kind": kind,
                "catalog_id": row.service_id or row.part_id,
                "instrument_id": row.instrument_id,
                "department_id": row.department_id,
                "technician_id": row.technician_id,
                "name": notes.name,
                "quantity": row.qty,
                "unrepairable_quantity": row.unrepaired_qty,
                "price": notes.price,
                "discount_pct": notes.discount_pct,
                "urgent": notes.urgent,
                "identity_groups": groups,
                "created_at": row.created_at,
                "updated_at": row.updated_at,
            }
        )
