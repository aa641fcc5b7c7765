"""Repository interfaces for the trays domain."""

from .audit_event_sink import AuditEventSink
from .directory_repository import DirectoryRepository
from .line_item_repository import LineItemRepository
from .notification_sender import NotificationSender
from .placement_repository import PlacementRepository
from .tray_repository import TrayRepository
from .unit_of_work import TrayUnitOfWork

__all__ = [
    "AuditEventSink",
    "DirectoryRepository",
    "LineItemRepository",
    "NotificationSender",
    "PlacementRepository",
    "TrayRepository",
    "TrayUnitOfWork",
]
