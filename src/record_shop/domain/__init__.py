"""
Domain Layer - Record Shop

Bounded Contexts:
- Catalog: records offered for sale and their stock
- Ordering: stock reservation and order creation
"""

from .value_objects import (
    RecordFormat,
    RecordCategory,
    RecordFilter,
    Track,
)

from .catalog import CatalogRecord, CatalogStore, CatalogService

from .ordering import (
    Order,
    OrderCreationState,
    OrderStore,
    StockLedger,
    OrderCoordinator,
)

# Result pattern for error handling
from .result import (
    Result,
    Success,
    Failure,
    success,
    failure,
    DomainError,
    ValidationError,
    NotFoundError,
    DuplicateError,
    RecordNotFound,
    DuplicateRecordError,
    InsufficientStock,
    PersistenceFailure,
    CompensationFailure,
)

__all__ = [
    # Value objects
    "RecordFormat",
    "RecordCategory",
    "RecordFilter",
    "Track",
    # Catalog context
    "CatalogRecord",
    "CatalogStore",
    "CatalogService",
    # Ordering context
    "Order",
    "OrderCreationState",
    "OrderStore",
    "StockLedger",
    "OrderCoordinator",
    # Result pattern
    "Result",
    "Success",
    "Failure",
    "success",
    "failure",
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "DuplicateError",
    "RecordNotFound",
    "DuplicateRecordError",
    "InsufficientStock",
    "PersistenceFailure",
    "CompensationFailure",
]
