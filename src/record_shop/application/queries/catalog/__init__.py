"""Catalog queries."""

from .record_queries import (
    ListRecordsQuery,
    ListRecordsHandler,
    RecordPage,
)

__all__ = [
    "ListRecordsQuery",
    "ListRecordsHandler",
    "RecordPage",
]
