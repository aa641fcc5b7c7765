"""Enumerations for the trays domain."""

from enum import Enum


class LineItemKind(str, Enum):
    """What a line item applies to its instrument."""

    SERVICE = "service"
    PART = "part"
    BARE_INSTRUMENT = "bare-instrument"


class TrayStatus(str, Enum):
    """Tray lifecycle status."""

    NEW = "new"
    SPLIT = "split"
    FINALIZED = "finalized"


class SplitMode(str, Enum):
    """How moved items land on the target technician."""

    SPLIT = "split"
    MERGE = "merge"


class SubjectType(str, Enum):
    """Kind of record an audit event is about."""

    TRAY = "tray"
    LINE_ITEM = "line_item"
    SERVICE_ORDER = "service_order"


class EventKind(str, Enum):
    """Audit event kinds written by the engine."""

    ITEM_CREATED = "item_created"
    ITEM_UPDATED = "item_updated"
    ITEM_DELETED = "item_deleted"
    TRAY_SPLIT = "tray_split"
    TRAY_ITEMS_SPLIT_TO_TECHNICIAN = "tray_items_split_to_technician"
    TRAY_ITEMS_MERGED_TO_TECHNICIAN = "tray_items_merged_to_technician"
    TRAY_MOVED_TO_DEPARTMENT = "tray_moved_to_department"
    SPLIT_TRAYS_REUNITED = "split_trays_reunited"
    INSTRUMENT_MOVED = "instrument_moved"
    ITEMS_CONSOLIDATED = "items_consolidated"
