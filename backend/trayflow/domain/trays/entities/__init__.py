"""Entities for the trays domain."""

from .audit_event import AuditEvent
from .directory import Department, Instrument, Pipeline, Stage, Technician
from .line_item import (
    AnyLineItem,
    BareInstrumentLineItem,
    LineItem,
    PartLineItem,
    ServiceLineItem,
    parse_line_item,
)
from .tray import Tray

__all__ = [
    "AnyLineItem",
    "AuditEvent",
    "BareInstrumentLineItem",
    "Department",
    "Instrument",
    "LineItem",
    "PartLineItem",
    "Pipeline",
    "ServiceLineItem",
    "Stage",
    "Technician",
    "Tray",
    "parse_line_item",
]
