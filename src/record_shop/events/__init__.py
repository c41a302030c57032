"""
Event System - Domain Events Architecture

This package implements an event-driven architecture for loose coupling
between the write side of the record shop and its read-side cache.
"""

from .event_bus import EventBus, DomainEvent, EventHandler, EventPriority
from .domain_events import (
    CatalogChanged,
    RecordCreated,
    RecordUpdated,
    RecordDeleted,
    StockReserved,
    StockReleased,
    StockCompensationFailed,
)

__all__ = [
    # Core event system
    "EventBus",
    "DomainEvent",
    "EventHandler",
    "EventPriority",
    # Domain events
    "CatalogChanged",
    "RecordCreated",
    "RecordUpdated",
    "RecordDeleted",
    "StockReserved",
    "StockReleased",
    "StockCompensationFailed",
]
