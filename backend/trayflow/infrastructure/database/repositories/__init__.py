"""SQLModel repository implementations."""

from .audit_event_sink import SqlAuditEventSink
from .base import SqlRepository
from .directory_repository import SqlDirectoryRepository
from .line_item_repository import SqlLineItemRepository
from .placement_repository import SqlPlacementRepository
from .tray_repository import SqlTrayRepository

__all__ = [
    "SqlAuditEventSink",
    "SqlDirectoryRepository",
    "SqlLineItemRepository",
    "SqlPlacementRepository",
    "SqlRepository",
    "SqlTrayRepository",
]
