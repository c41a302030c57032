"""Record Shop

Catalog, stock and order management for a record store.
"""

__version__ = "0.1.0"

from .app import RecordShop
from .domain import (
    CatalogRecord,
    Order,
    RecordFilter,
    RecordFormat,
    RecordCategory,
    InsufficientStock,
    RecordNotFound,
    DuplicateRecordError,
    PersistenceFailure,
    CompensationFailure,
)
from .application.queries import RecordPage
from .exceptions import RecordShopError, ConfigurationError, StorageError, ExternalServiceError

__all__ = [
    "RecordShop",
    "CatalogRecord",
    "Order",
    "RecordFilter",
    "RecordFormat",
    "RecordCategory",
    "RecordPage",
    "InsufficientStock",
    "RecordNotFound",
    "DuplicateRecordError",
    "PersistenceFailure",
    "CompensationFailure",
    "RecordShopError",
    "ConfigurationError",
    "StorageError",
    "ExternalServiceError",
]
