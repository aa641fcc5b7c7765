"""Domain <-> row mappers."""

from .line_item_mapper import LineItemMapper
from .tray_mapper import DirectoryMapper, EventMapper, PlacementMapper, TrayMapper

__all__ = [
    "DirectoryMapper",
    "EventMapper",
    "LineItemMapper",
    "PlacementMapper",
    "TrayMapper",
]
