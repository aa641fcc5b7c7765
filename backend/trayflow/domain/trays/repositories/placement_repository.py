"""Placement Repository Interface: which pipeline stage a tray sits in."""

from abc import ABC, abstractmethod
from uuid import UUID

from ..value_objects.routing import Placement


class PlacementRepository(ABC):
    """Abstract repository for tray placements in department pipelines."""

    @abstractmethod
    async def get_by_tray(self, tray_id: UUID) -> list[Placement]:
        """Every pipeline placement of a tray."""
        pass

    @abstractmethod
    async def place(self, placement: Placement) -> Placement:
        """Put a tray in a pipeline stage, replacing its stage in that pipeline."""
        pass

    @abstractmethod
    async def remove(self, tray_id: UUID, pipeline_id: UUID) -> bool:
        """Take a tray out of a pipeline. Returns True if it was there."""
        pass
