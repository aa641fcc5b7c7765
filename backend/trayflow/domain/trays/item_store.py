"""In-memory working set of line items, keyed by tray."""

from collections.abc import Iterable, Iterator
from uuid import UUID

from .entities.line_item import LineItem
from .value_objects.allocation import ItemSignature
from .value_objects.snapshot import SnapshotEntry


class ItemStore:
    """
    Working set of line items for one or several trays.

    Items keep their insertion order; replacing an item keeps its position.
    The store performs no I/O: callers load it from repositories and write
    its contents back.
    """

    def __init__(self, items: Iterable[LineItem] = ()) -> None:
        self._items: dict[UUID, LineItem] = {}
        for item in items:
            self.upsert(item)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[LineItem]:
        return iter(list(self._items.values()))

    def get(self, tray_id: UUID) -> list[LineItem]:
        """Items of a tray in insertion order."""
        return [item for item in self._items.values() if item.tray_id == tray_id]

    def get_item(self, item_id: UUID) -> LineItem | None:
        return self._items.get(item_id)

    def upsert(self, item: LineItem) -> LineItem | None:
        """Insert or replace an item. Returns the replaced item, if any."""
        previous = self._items.get(item.id)
        self._items[item.id] = item
        return previous

    def remove(self, item_id: UUID) -> LineItem | None:
        return self._items.pop(item_id, None)

    def find_by_signature(
        self, tray_id: UUID, signature: ItemSignature
    ) -> list[LineItem]:
        return [item for item in self.get(tray_id) if item.signature == signature]

    def load(self, tray_id: UUID, items: Iterable[LineItem]) -> None:
        """Replace the working set of one tray.

        Used to fold in results that arrive after the caller moved on; other
        trays are left untouched. Nothing changes if any item belongs to
        another tray.
        """
        incoming = list(items)
        for item in incoming:
            if item.tray_id != tray_id:
                raise ValueError(
                    f"item {item.id} belongs to tray {item.tray_id}, not {tray_id}"
                )
        for item in self.get(tray_id):
            del self._items[item.id]
        for item in incoming:
            self._items[item.id] = item

    def tray_ids(self) -> list[UUID]:
        seen: dict[UUID, None] = {}
        for item in self._items.values():
            seen.setdefault(item.tray_id)
        return list(seen)

    def snapshot(self, tray_id: UUID) -> list[SnapshotEntry]:
        return [item.to_snapshot() for item in self.get(tray_id)]
