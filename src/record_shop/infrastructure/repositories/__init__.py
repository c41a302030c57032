"""
Repository Implementations.

SQLite-backed stores for production use and in-memory stores for tests
and development.
"""

from .sqlite_database import SQLiteDatabase
from .sqlite_catalog_store import SQLiteCatalogStore
from .sqlite_order_store import SQLiteOrderStore
from .in_memory import InMemoryCatalogStore, InMemoryOrderStore

__all__ = [
    "SQLiteDatabase",
    "SQLiteCatalogStore",
    "SQLiteOrderStore",
    "InMemoryCatalogStore",
    "InMemoryOrderStore",
]
