"""
Tray Repository Interface

Defines the contract for tray data access operations.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.tray import Tray


class TrayRepository(ABC):
    """
    Abstract repository interface for Tray entities.

    Defines the contract that infrastructure layer must implement
    for tray persistence and retrieval operations.
    """

    @abstractmethod
    async def save(self, tray: Tray) -> Tray:
        """
        Insert or update a tray.

        Args:
            tray: Tray entity to save

        Returns:
            Saved tray entity

        Raises:
            PersistenceError: If save operation fails
        """
        pass

    @abstractmethod
    async def get_by_id(self, tray_id: UUID) -> Tray | None:
        """
        Retrieve a tray by its ID.

        Args:
            tray_id: Unique tray identifier

        Returns:
            Tray entity or None if not found
        """
        pass

    @abstractmethod
    async def get_by_number(self, number: str) -> Tray | None:
        """
        Retrieve a tray by its number (case-insensitive).

        Args:
            number: Tray number as printed on the tray

        Returns:
            Tray entity or None if the number is free
        """
        pass

    @abstractmethod
    async def get_by_service_order(self, service_order_id: UUID) -> list[Tray]:
        """
        Retrieve every tray of a service order, oldest first.

        Args:
            service_order_id: Owning service order identifier

        Returns:
            List of trays, possibly empty
        """
        pass

    @abstractmethod
    async def get_children(self, parent_tray_id: UUID) -> list[Tray]:
        """Retrieve trays created by splitting ``parent_tray_id``."""
        pass

    @abstractmethod
    async def delete(self, tray_id: UUID) -> bool:
        """
        Delete a tray.

        Returns:
            True if a tray was deleted
        """
        pass
