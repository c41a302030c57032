"""
Stock Ledger - reserve and release units of catalog records.

Correctness rests entirely on the catalog store's conditional update:
the ledger holds no locks of its own, so it is safe across threads,
tasks and processes sharing one store.
"""

import logging
from typing import Union

from ..catalog.entities import CatalogRecord
from ..catalog.repositories import CatalogStore
from ..result import (
    Failure,
    InsufficientStock,
    RecordNotFound,
    Result,
    Success,
    ValidationError,
)

logger = logging.getLogger(__name__)

ReserveError = Union[InsufficientStock, RecordNotFound]


class StockLedger:
    """Atomic stock reservations on top of a CatalogStore."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def reserve(self, record_id: str, quantity: int) -> Result[CatalogRecord, ReserveError]:
        """Take ``quantity`` units of a record if at least that many are in stock.

        The check and the decrement are a single conditional update, so two
        callers racing for the last units cannot both succeed.

        Returns:
            Success with the record after the decrement, Failure with
            InsufficientStock when stock is short, or Failure with
            RecordNotFound when the record is missing or deleted.
        """
        _check_quantity(quantity)

        updated = await self.store.conditional_update(record_id, -quantity, min_qty=quantity)
        if updated is not None:
            logger.debug(f"Reserved {quantity} of record {record_id}, {updated.qty} left")
            return Success(updated)

        # The update did not apply; find out why. The observed stock is
        # informational only and may already be out of date.
        current = await self.store.find_by_id(record_id)
        if current is None:
            logger.warning(f"Reservation for unknown record {record_id}")
            return Failure(RecordNotFound(record_id))

        logger.warning(
            f"Insufficient stock for record {record_id}: requested {quantity}, available {current.qty}"
        )
        return Failure(InsufficientStock(record_id, quantity, current.qty))

    async def release(self, record_id: str, quantity: int) -> Result[CatalogRecord, RecordNotFound]:
        """Return ``quantity`` previously reserved units to stock.

        Only used to compensate a reservation whose order could not be
        stored. Not idempotent: call it at most once per failed reservation.
        """
        _check_quantity(quantity)

        updated = await self.store.conditional_update(record_id, quantity, min_qty=0)
        if updated is None:
            logger.warning(f"Cannot release {quantity} of record {record_id}: record not found")
            return Failure(RecordNotFound(record_id))

        logger.debug(f"Released {quantity} of record {record_id}, {updated.qty} in stock")
        return Success(updated)


def _check_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError(f"quantity must be a positive integer, got {quantity!r}")
