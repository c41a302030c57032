"""Ordering Context Repository Interfaces."""

from abc import ABC, abstractmethod
from typing import List, Optional

from .entities import Order


class OrderStore(ABC):
    """Append-only storage for orders."""

    @abstractmethod
    async def insert(self, order: Order) -> Order:
        """Persist a new order.

        Raises:
            StorageError: If the order could not be stored.
        """
        pass

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[Order]:
        """Find an order by its ID."""
        pass

    @abstractmethod
    async def find_by_record(self, record_id: str) -> List[Order]:
        """Find all orders placed against a record, oldest first."""
        pass
