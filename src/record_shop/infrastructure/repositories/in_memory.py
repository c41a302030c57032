"""
In-memory store implementations for testing and development.

The catalog store guards its table with a lock so that the conditional
stock update is a compare-and-swap even when the store is shared by
several threads.
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ...domain.catalog.entities import CatalogRecord
from ...domain.catalog.repositories import CatalogStore
from ...domain.ordering.entities import Order
from ...domain.ordering.repositories import OrderStore
from ...domain.result import DuplicateRecordError
from ...domain.value_objects import RecordFilter
from ...exceptions import StorageError


def matches_filter(record: CatalogRecord, record_filter: RecordFilter) -> bool:
    """Check a record against the non-pagination part of a filter."""
    if record.is_deleted:
        return False

    if record_filter.q:
        needle = record_filter.q.lower()
        haystacks = (record.artist, record.album, record.category.value)
        if not any(needle in value.lower() for value in haystacks):
            return False
    if record_filter.artist and record_filter.artist.lower() not in record.artist.lower():
        return False
    if record_filter.album and record_filter.album.lower() not in record.album.lower():
        return False
    if record_filter.format and record.format != record_filter.format:
        return False
    if record_filter.category and record.category != record_filter.category:
        return False
    return True


class InMemoryCatalogStore(CatalogStore):
    """In-memory implementation of CatalogStore."""

    def __init__(self):
        self._records: Dict[str, CatalogRecord] = {}
        self._lock = threading.Lock()

    async def insert(self, record: CatalogRecord) -> CatalogRecord:
        with self._lock:
            if record.id in self._records:
                raise StorageError(f"Record {record.id} already stored")
            self._check_unique(record)
            self._records[record.id] = record
        return record

    async def find_by_id(self, record_id: str) -> Optional[CatalogRecord]:
        record = self._records.get(record_id)
        if record is None or record.is_deleted:
            return None
        return record

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[CatalogRecord]:
        if "id" in changes or "deleted_at" in changes:
            raise StorageError("id and deleted_at cannot be updated")
        with self._lock:
            current = self._records.get(record_id)
            if current is None or current.is_deleted:
                return None
            updated = current.with_changes(**changes)
            self._check_unique(updated)
            self._records[record_id] = updated
        return updated

    async def soft_delete(self, record_id: str) -> Optional[CatalogRecord]:
        with self._lock:
            current = self._records.get(record_id)
            if current is None or current.is_deleted:
                return None
            deleted = current.with_changes(deleted_at=datetime.now(timezone.utc))
            self._records[record_id] = deleted
        return deleted

    async def conditional_update(
        self,
        record_id: str,
        delta: int,
        min_qty: int = 0,
    ) -> Optional[CatalogRecord]:
        # Yield first so concurrent callers really contend for the record
        await asyncio.sleep(0)
        with self._lock:
            current = self._records.get(record_id)
            if current is None or current.is_deleted or current.qty < min_qty:
                return None
            updated = current.with_changes(qty=current.qty + delta)
            self._records[record_id] = updated
        return updated

    async def list(self, record_filter: RecordFilter) -> Tuple[List[CatalogRecord], int]:
        with self._lock:
            matching = [r for r in self._records.values() if matches_filter(r, record_filter)]
        matching.sort(key=lambda r: (r.artist, r.album, r.id))
        start = record_filter.offset
        return matching[start:start + record_filter.limit], len(matching)

    def _check_unique(self, record: CatalogRecord) -> None:
        for other in self._records.values():
            if (other.id != record.id and not other.is_deleted
                    and other.identity_key == record.identity_key):
                raise DuplicateRecordError(record.artist, record.album, record.format.value)


class InMemoryOrderStore(OrderStore):
    """In-memory implementation of OrderStore."""

    def __init__(self):
        self._orders: Dict[str, Order] = {}

    async def insert(self, order: Order) -> Order:
        if order.id in self._orders:
            raise StorageError(f"Order {order.id} already stored")
        self._orders[order.id] = order
        return order

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    async def find_by_record(self, record_id: str) -> List[Order]:
        orders = [o for o in self._orders.values() if o.record_id == record_id]
        return sorted(orders, key=lambda o: (o.created_at, o.id))
