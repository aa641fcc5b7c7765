"""
Line Item Repository Interface

Defines the contract for line item data access, including the identity
(brand / serial) rows attached to each item.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.line_item import LineItem


class LineItemRepository(ABC):
    """Abstract repository interface for line items."""

    @abstractmethod
    async def save(self, item: LineItem) -> LineItem:
        """
        Insert or update a line item together with its identity groups.

        Existing identity rows of the item are replaced.

        Raises:
            PersistenceError: If save operation fails
        """
        pass

    @abstractmethod
    async def get_by_id(self, item_id: UUID) -> LineItem | None:
        """Retrieve a line item by its ID, or None."""
        pass

    @abstractmethod
    async def get_by_tray(self, tray_id: UUID) -> list[LineItem]:
        """Retrieve the items of a tray in insertion order."""
        pass

    @abstractmethod
    async def delete(self, item_id: UUID) -> bool:
        """Delete an item and its identity rows. Returns True if it existed."""
        pass

    async def get_by_trays(self, tray_ids: list[UUID]) -> dict[UUID, list[LineItem]]:
        """Items of several trays keyed by tray id."""
        return {tray_id: await self.get_by_tray(tray_id) for tray_id in tray_ids}
