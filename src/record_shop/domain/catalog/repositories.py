"""Catalog Context Repository Interfaces.

The catalog store holds record entities and exposes the one atomic
primitive the ordering context relies on: a conditional stock update.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from .entities import CatalogRecord
from ..value_objects import RecordFilter


class CatalogStore(ABC):
    """Storage for CatalogRecord entities."""

    @abstractmethod
    async def insert(self, record: CatalogRecord) -> CatalogRecord:
        """Insert a new record.

        Raises:
            DuplicateRecordError: If a live record has the same artist,
                album and format.
        """
        pass

    @abstractmethod
    async def find_by_id(self, record_id: str) -> Optional[CatalogRecord]:
        """Find a live record by its ID. Tombstoned records are not returned."""
        pass

    @abstractmethod
    async def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[CatalogRecord]:
        """Write only the given attributes of a live record.

        Attributes not named in ``changes`` keep their stored value, so an
        edit never overwrites a concurrent stock change with a stale one.
        Returns the stored record, or None if it is missing or tombstoned.

        Raises:
            DuplicateRecordError: If the change collides with another live record.
        """
        pass

    @abstractmethod
    async def soft_delete(self, record_id: str) -> Optional[CatalogRecord]:
        """Tombstone a live record. Returns None if there was no live record."""
        pass

    @abstractmethod
    async def conditional_update(
        self,
        record_id: str,
        delta: int,
        min_qty: int = 0,
    ) -> Optional[CatalogRecord]:
        """Atomically apply ``qty += delta`` if the live record has ``qty >= min_qty``.

        The check and the write are one indivisible operation against the
        store. Returns the post-update record, or None when the record is
        missing, tombstoned, or the predicate does not hold.
        """
        pass

    @abstractmethod
    async def list(self, record_filter: RecordFilter) -> Tuple[List[CatalogRecord], int]:
        """Return one page of live records matching the filter and the total match count."""
        pass
