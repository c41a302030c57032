"""Record-related queries."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ...queries.base import Query, QueryHandler
from ....domain.catalog.entities import CatalogRecord
from ....domain.catalog.repositories import CatalogStore
from ....domain.value_objects import RecordFilter


@dataclass(frozen=True, slots=True, kw_only=True)
class ListRecordsQuery(Query):
    """Query for one filtered page of catalog records."""

    record_filter: RecordFilter = field(default_factory=RecordFilter)


@dataclass(frozen=True, slots=True)
class RecordPage:
    """One page of records plus the total number of matches."""

    data: Tuple[CatalogRecord, ...]
    total: int
    limit: int
    offset: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": [record.to_dict() for record in self.data],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }


class ListRecordsHandler(QueryHandler[ListRecordsQuery, RecordPage]):
    """Handler for listing records; results are cacheable by filter."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def handle(self, query: ListRecordsQuery) -> RecordPage:
        """Handle the list records query."""
        record_filter = query.record_filter
        records, total = await self.store.list(record_filter)
        return RecordPage(
            data=tuple(records),
            total=total,
            limit=record_filter.limit,
            offset=record_filter.offset,
        )

    def can_handle(self, query_type: type) -> bool:
        return query_type == ListRecordsQuery

    def get_cache_key(self, query: ListRecordsQuery) -> Optional[str]:
        return query.record_filter.cache_key
