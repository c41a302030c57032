"""
Catalog Context - Managing the records offered for sale.

This bounded context is responsible for:
- Managing catalog records and their stock quantities
- Enriching records with MusicBrainz tracklists
- Providing the atomic stock primitive used by the ordering context
"""

from .entities import CatalogRecord
from .repositories import CatalogStore
from .services import CatalogService

__all__ = [
    "CatalogRecord",
    "CatalogStore",
    "CatalogService",
]
