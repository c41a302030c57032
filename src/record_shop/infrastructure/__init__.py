"""
Infrastructure Layer - External Concerns and Adapters.

This layer contains implementations of the store interfaces and adapters
for external services.
"""

from .repositories import (
    SQLiteDatabase,
    SQLiteCatalogStore,
    SQLiteOrderStore,
    InMemoryCatalogStore,
    InMemoryOrderStore,
)
from .external import MusicBrainzAdapter, MusicBrainzRelease

__all__ = [
    "SQLiteDatabase",
    "SQLiteCatalogStore",
    "SQLiteOrderStore",
    "InMemoryCatalogStore",
    "InMemoryOrderStore",
    "MusicBrainzAdapter",
    "MusicBrainzRelease",
]
