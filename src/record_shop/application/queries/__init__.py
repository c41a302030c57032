"""Query side of the record shop."""

from .base import Query, QueryHandler, QueryResult, QueryBus, QueryCache, CacheEntry
from .catalog import (
    ListRecordsQuery,
    ListRecordsHandler,
    RecordPage,
)

__all__ = [
    "Query",
    "QueryHandler",
    "QueryResult",
    "QueryBus",
    "QueryCache",
    "CacheEntry",
    "ListRecordsQuery",
    "ListRecordsHandler",
    "RecordPage",
]
