"""
Domain Events Module

Exports all domain events and event handling infrastructure.
"""

from .domain_events import (
    DomainEvent,
    DomainEventDispatcher,
    DomainEventHandler,
    InstrumentMoved,
    ItemsMovedToTechnician,
    LineItemsConsolidated,
    SplitTraysReunited,
    TrayRouted,
    TraySplit,
)

__all__ = [
    # Base classes
    "DomainEvent",
    "DomainEventDispatcher",
    "DomainEventHandler",
    # Tray events
    "InstrumentMoved",
    "ItemsMovedToTechnician",
    "LineItemsConsolidated",
    "SplitTraysReunited",
    "TrayRouted",
    "TraySplit",
]
