"""
Order Coordinator - reserve, persist, compensate.

Creating an order is a two-step saga over two stores. Stock is reserved
first; the order is then persisted, which is the sole commit point. If
persistence fails the reservation is released exactly once and the
failure is re-raised. From the outside, stock is either consumed by a
stored order or returned.
"""

import asyncio
import logging
from typing import Optional, Set

from .entities import Order, OrderCreationState
from .repositories import OrderStore
from .stock_ledger import ReserveError, StockLedger
from ..catalog.entities import CatalogRecord
from ..result import (
    CompensationFailure,
    PersistenceFailure,
    Result,
    Success,
)
from ...events import (
    EventBus,
    EventPriority,
    StockCompensationFailed,
    StockReleased,
    StockReserved,
)

logger = logging.getLogger(__name__)


class OrderCoordinator:
    """Orchestrates stock reservation and order persistence."""

    def __init__(
        self,
        ledger: StockLedger,
        order_store: OrderStore,
        event_bus: Optional[EventBus] = None,
    ):
        self.ledger = ledger
        self.order_store = order_store
        self.event_bus = event_bus
        # Stock bookkeeping that outlived a cancelled caller
        self._background: Set[asyncio.Task] = set()

    async def create(self, record_id: str, quantity: int) -> Result[Order, ReserveError]:
        """Create an order for ``quantity`` units of a record.

        Store calls may run in worker threads that keep going after the
        caller is cancelled, so both steps are shielded. A cancelled caller
        still gets CancelledError, but only once the outcome of the step in
        flight is known: a reservation that went through is released, and
        an order that was stored keeps its stock.

        Returns:
            Success with the stored order, or Failure with InsufficientStock
            or RecordNotFound. A rejected reservation has no side effects
            and is not retried.

        Raises:
            ValidationError: If quantity is not a positive integer.
            PersistenceFailure: If the order could not be stored. The
                reservation has been compensated (or the compensation
                failure logged) before this is raised.
        """
        state = self._advance(record_id, OrderCreationState.START, OrderCreationState.RESERVING)
        reserving = asyncio.ensure_future(self.ledger.reserve(record_id, quantity))
        try:
            reservation = await asyncio.shield(reserving)
        except asyncio.CancelledError:
            logger.warning(f"Order creation for record {record_id} cancelled while reserving stock")
            await self._in_background(self._settle_reservation(record_id, quantity, reserving))
            raise

        if reservation.is_failure():
            self._advance(record_id, state, OrderCreationState.REJECTED)
            return reservation

        record = reservation.value()
        state = self._advance(record_id, state, OrderCreationState.RESERVED)

        order = Order(record_id=record.id, quantity=quantity, price=record.price)
        state = self._advance(record_id, state, OrderCreationState.PERSISTING)

        persisting = asyncio.ensure_future(self.order_store.insert(order))
        try:
            stored = await asyncio.shield(persisting)
        except asyncio.CancelledError:
            logger.warning(f"Order creation for record {record_id} cancelled while storing order {order.id}")
            await self._in_background(self._settle_persist(record, quantity, persisting))
            raise
        except Exception as e:
            state = self._advance(record_id, state, OrderCreationState.PERSIST_FAILED)
            logger.error(f"Order creation failed, rolling back stock: {e}")
            compensated = await self._in_background(self._release_and_report(record_id, quantity, state))
            if isinstance(e, PersistenceFailure):
                e.compensated = compensated
                raise
            raise PersistenceFailure(
                f"Failed to store order for record {record_id}: {e}",
                compensated=compensated,
            ) from e

        await self._commit(record, stored)
        return Success(stored)

    async def wait_for_compensations(self) -> None:
        """Wait for compensations still running after their caller was cancelled."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _in_background(self, coro):
        """Run ``coro`` to completion even if the caller is cancelled."""
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            logger.warning("Caller cancelled during stock bookkeeping; it continues in the background")
            raise

    async def _settle_reservation(self, record_id: str, quantity: int, reserving: asyncio.Future) -> None:
        try:
            reservation = await reserving
        except Exception as e:
            logger.warning(f"Cancelled reservation for record {record_id} did not apply: {e}")
            return

        if reservation.is_failure():
            self._advance(record_id, OrderCreationState.RESERVING, OrderCreationState.REJECTED)
            return

        state = self._advance(record_id, OrderCreationState.RESERVING, OrderCreationState.RESERVED)
        logger.warning(f"Releasing {quantity} of record {record_id} reserved for a cancelled order")
        await self._release_and_report(record_id, quantity, state)

    async def _settle_persist(self, record: CatalogRecord, quantity: int, persisting: asyncio.Future) -> None:
        try:
            stored = await persisting
        except Exception as e:
            state = self._advance(record.id, OrderCreationState.PERSISTING, OrderCreationState.PERSIST_FAILED)
            logger.error(f"Order creation failed, rolling back stock: {e}")
            await self._release_and_report(record.id, quantity, state)
            return

        logger.warning(f"Order {stored.id} was stored after its caller was cancelled")
        await self._commit(record, stored)

    async def _commit(self, record: CatalogRecord, stored: Order) -> None:
        self._advance(record.id, OrderCreationState.PERSISTING, OrderCreationState.COMMITTED)
        logger.info(
            f"Created order {stored.id}: {stored.quantity} x record {record.id} at {stored.price}"
        )
        if self.event_bus:
            await self.event_bus.publish(StockReserved(
                record_id=record.id,
                quantity=stored.quantity,
                remaining=record.qty,
                order_id=stored.id,
            ))

    async def _release_and_report(
        self,
        record_id: str,
        quantity: int,
        state: OrderCreationState,
    ) -> bool:
        """Release a reservation once. Returns True when the stock was returned."""
        state = self._advance(record_id, state, OrderCreationState.COMPENSATING)
        try:
            released = await self.ledger.release(record_id, quantity)
        except Exception as e:
            incident = CompensationFailure(record_id, quantity, e)
        else:
            if released.is_success():
                self._advance(record_id, state, OrderCreationState.COMPENSATED)
                if self.event_bus:
                    await self.event_bus.publish(StockReleased(record_id=record_id, quantity=quantity))
                return True
            incident = CompensationFailure(record_id, quantity, released.error())

        self._advance(record_id, state, OrderCreationState.COMPENSATION_FAILED)
        logger.critical(
            f"Data integrity incident: {incident}. Stock of record {record_id} is "
            f"under-counted by {quantity} until reconciled"
        )
        if self.event_bus:
            await self.event_bus.publish(
                StockCompensationFailed(record_id=record_id, quantity=quantity, reason=str(incident.cause)),
                priority=EventPriority.CRITICAL,
            )
        return False

    @staticmethod
    def _advance(
        record_id: str,
        current: OrderCreationState,
        target: OrderCreationState,
    ) -> OrderCreationState:
        if not current.can_transition_to(target):
            raise RuntimeError(
                f"Illegal order state transition for record {record_id}: {current.value} -> {target.value}"
            )
        logger.debug(f"Order for record {record_id}: {current.value} -> {target.value}")
        return target
