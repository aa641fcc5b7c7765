"""
Directory Repository Interface

Read-only access to departments, pipelines, stages, instruments and
technicians. The engine never writes through this interface.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.directory import Department, Instrument, Pipeline, Stage, Technician


class DirectoryRepository(ABC):
    """Abstract read-only directory."""

    @abstractmethod
    async def get_departments(self) -> list[Department]:
        """All departments in directory order."""
        pass

    @abstractmethod
    async def get_pipelines(self) -> list[Pipeline]:
        """All pipelines in directory order."""
        pass

    @abstractmethod
    async def get_stages(self, pipeline_id: UUID) -> list[Stage]:
        """Stages of a pipeline ordered by position."""
        pass

    @abstractmethod
    async def get_instruments(self, instrument_ids: list[UUID]) -> list[Instrument]:
        """Instruments with the given ids; unknown ids are left out."""
        pass

    @abstractmethod
    async def get_technicians(self, technician_ids: list[UUID]) -> list[Technician]:
        pass

    @abstractmethod
    async def has_return_marker(self, service_order_id: UUID) -> bool:
        """Whether the customer behind a service order is flagged as a return."""
        pass
