"""
Ordering Context - Turning stock into orders without overselling.

This bounded context is responsible for:
- Reserving and releasing stock through the catalog store's atomic update
- Capturing the unit price at purchase time
- Compensating reservations whose order could not be stored
"""

from .entities import Order, OrderCreationState
from .repositories import OrderStore
from .stock_ledger import StockLedger
from .coordinator import OrderCoordinator

__all__ = [
    "Order",
    "OrderCreationState",
    "OrderStore",
    "StockLedger",
    "OrderCoordinator",
]
