"""
Domain Events - Specific event implementations.

Catalog events describe record mutations; stock events describe quantity
changes made while creating orders.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .event_bus import DomainEvent


@dataclass(kw_only=True)
class CatalogChanged(DomainEvent):
    """Base for every event after which cached catalog pages may be stale."""
    record_id: str
    aggregate_type: str = "CatalogRecord"

    def __post_init__(self):
        if self.aggregate_id is None:
            self.aggregate_id = self.record_id


@dataclass(kw_only=True)
class RecordCreated(CatalogChanged):
    """Event fired when a record is added to the catalog."""
    artist: str
    album: str

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "artist": self.artist,
            "album": self.album,
        }


@dataclass(kw_only=True)
class RecordUpdated(CatalogChanged):
    """Event fired when a record's attributes are modified."""
    modified_fields: List[str] = field(default_factory=list)

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "modified_fields": self.modified_fields,
        }


@dataclass(kw_only=True)
class RecordDeleted(CatalogChanged):
    """Event fired when a record is tombstoned."""

    def _get_event_data(self) -> Dict[str, Any]:
        return {"record_id": self.record_id}


@dataclass(kw_only=True)
class StockReserved(CatalogChanged):
    """Event fired when units are reserved for a committed order."""
    quantity: int
    remaining: int
    order_id: str

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "quantity": self.quantity,
            "remaining": self.remaining,
            "order_id": self.order_id,
        }


@dataclass(kw_only=True)
class StockReleased(CatalogChanged):
    """Event fired when reserved units are returned after a failed order."""
    quantity: int

    def _get_event_data(self) -> Dict[str, Any]:
        return {"record_id": self.record_id, "quantity": self.quantity}


@dataclass(kw_only=True)
class StockCompensationFailed(CatalogChanged):
    """Event fired when reserved units could not be returned.

    Stock for the record is under-counted by ``quantity`` until an
    operator reconciles it. The reservation itself changed stock, so
    cached pages are stale as well.
    """
    quantity: int
    reason: str

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "quantity": self.quantity,
            "reason": self.reason,
        }
