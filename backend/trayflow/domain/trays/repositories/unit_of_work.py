"""
Unit of Work Interface

Groups the repositories the engine writes through and defines the
transactional boundary around multi-row mutations.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from .audit_event_sink import AuditEventSink
from .directory_repository import DirectoryRepository
from .line_item_repository import LineItemRepository
from .placement_repository import PlacementRepository
from .tray_repository import TrayRepository


class TrayUnitOfWork(ABC):
    """
    Abstract unit of work for the trays domain.

    ``transaction()`` opens a transactional boundary. Writes issued inside it
    become visible together when the block exits normally and are undone when
    it raises. Nested calls join the outermost transaction.
    """

    trays: TrayRepository
    items: LineItemRepository
    directory: DirectoryRepository
    placements: PlacementRepository
    audit: AuditEventSink

    # Adapters that cannot undo writes report False so callers can tell
    # whether a failed transaction left partial state behind.
    atomic: bool = True

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager["TrayUnitOfWork"]:
        """Open (or join) a transaction."""
        pass
