"""Value objects for the trays domain."""

from .allocation import (
    AllocationRequest,
    ClaimedItem,
    Destination,
    ItemMove,
    ItemSignature,
    SplitAssignment,
)
from .enums import EventKind, LineItemKind, SplitMode, SubjectType, TrayStatus
from .identity import (
    IdentityGroup,
    SerialUnit,
    brand_only_groups,
    flatten_units,
    group_units,
    total_units,
)
from .routing import (
    DispatchFailure,
    DispatchReport,
    Placement,
    RouteDestination,
    RoutedTray,
)
from .snapshot import (
    TRACKED_FIELDS,
    FieldChange,
    ItemDiff,
    ItemUpdate,
    SnapshotEntry,
)

__all__ = [
    # Allocation
    "AllocationRequest",
    "ClaimedItem",
    "Destination",
    "ItemMove",
    "ItemSignature",
    "SplitAssignment",
    # Enums
    "EventKind",
    "LineItemKind",
    "SplitMode",
    "SubjectType",
    "TrayStatus",
    # Identity
    "IdentityGroup",
    "SerialUnit",
    "brand_only_groups",
    "flatten_units",
    "group_units",
    "total_units",
    # Routing
    "DispatchFailure",
    "DispatchReport",
    "Placement",
    "RouteDestination",
    "RoutedTray",
    # Snapshot
    "TRACKED_FIELDS",
    "FieldChange",
    "ItemDiff",
    "ItemUpdate",
    "SnapshotEntry",
]
