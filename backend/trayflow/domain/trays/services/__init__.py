"""Domain services for the trays domain."""

from .consolidator import Consolidator, MergeResult, merge_identity
from .department_router import DepartmentRouter
from .directory_cache import DirectoryCache
from .reconciliation_log import ReconciliationLog
from .split_allocator import SplitAllocator, SplitPlan, SplitResult
from .tray_split_orchestrator import (
    InstrumentMoveResult,
    RealTraySplitResult,
    ReunionResult,
    TechnicianMoveResult,
    TraySplitOrchestrator,
)

__all__ = [
    "Consolidator",
    "DepartmentRouter",
    "DirectoryCache",
    "InstrumentMoveResult",
    "MergeResult",
    "RealTraySplitResult",
    "ReconciliationLog",
    "ReunionResult",
    "SplitAllocator",
    "SplitPlan",
    "SplitResult",
    "TechnicianMoveResult",
    "TraySplitOrchestrator",
    "merge_identity",
]
