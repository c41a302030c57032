"""
Application Layer - CQRS read side.

Queries are dispatched through a QueryBus backed by the record list cache;
the cache is kept consistent by event-driven invalidation.
"""

from .queries import (
    QueryBus,
    QueryCache,
    QueryResult,
    ListRecordsQuery,
    RecordPage,
)
from .read_models import CacheInvalidationHandler

__all__ = [
    "QueryBus",
    "QueryCache",
    "QueryResult",
    "ListRecordsQuery",
    "RecordPage",
    "CacheInvalidationHandler",
]
