"""SQLite Order Store."""

import asyncio
import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .sqlite_database import SQLiteDatabase
from ...domain.ordering.entities import Order
from ...domain.ordering.repositories import OrderStore
from ...exceptions import StorageError


class SQLiteOrderStore(OrderStore):
    """OrderStore backed by a SQLite database file."""

    def __init__(self, database: SQLiteDatabase):
        self.database = database
        self.database.initialize()

    async def insert(self, order: Order) -> Order:
        return await asyncio.to_thread(self._insert, order)

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        return await asyncio.to_thread(self._find_by_id, order_id)

    async def find_by_record(self, record_id: str) -> List[Order]:
        return await asyncio.to_thread(self._find_by_record, record_id)

    def _insert(self, order: Order) -> Order:
        try:
            with self.database.transaction() as conn:
                conn.execute(
                    "INSERT INTO orders (id, record_id, quantity, price, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        order.id,
                        order.record_id,
                        order.quantity,
                        str(order.price),
                        order.created_at.isoformat(),
                    ),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to insert order {order.id}: {e}") from e
        return order

    def _find_by_id(self, order_id: str) -> Optional[Order]:
        try:
            with self.database.connect() as conn:
                row = conn.execute("SELECT * FROM orders WHERE id = ?", (order_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read order {order_id}: {e}") from e
        return self._from_row(row) if row else None

    def _find_by_record(self, record_id: str) -> List[Order]:
        try:
            with self.database.connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM orders WHERE record_id = ? ORDER BY created_at, id",
                    (record_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read orders of record {record_id}: {e}") from e
        return [self._from_row(row) for row in rows]

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Order:
        return Order(
            id=row["id"],
            record_id=row["record_id"],
            quantity=row["quantity"],
            price=Decimal(row["price"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
