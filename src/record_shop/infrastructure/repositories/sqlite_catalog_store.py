"""
SQLite Catalog Store.

Stock changes are a single conditional UPDATE executed inside a
``BEGIN IMMEDIATE`` transaction: SQLite serialises writers on the
database lock, so the ``qty >= n`` check and the decrement cannot
interleave with another writer in any thread or process.
"""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .sqlite_database import SQLiteDatabase, escape_like
from ...domain.catalog.entities import CatalogRecord
from ...domain.catalog.repositories import CatalogStore
from ...domain.result import DuplicateRecordError
from ...domain.value_objects import RecordCategory, RecordFilter, RecordFormat, Track
from ...exceptions import StorageError

logger = logging.getLogger(__name__)

COLUMNS = (
    "id", "artist", "album", "price", "qty", "format", "category",
    "mbid", "tracklist", "created_at", "updated_at", "deleted_at",
)


class SQLiteCatalogStore(CatalogStore):
    """CatalogStore backed by a SQLite database file."""

    def __init__(self, database: SQLiteDatabase):
        self.database = database
        self.database.initialize()

    async def insert(self, record: CatalogRecord) -> CatalogRecord:
        return await asyncio.to_thread(self._insert, record)

    async def find_by_id(self, record_id: str) -> Optional[CatalogRecord]:
        return await asyncio.to_thread(self._find_by_id, record_id)

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[CatalogRecord]:
        return await asyncio.to_thread(self._update, record_id, changes)

    async def soft_delete(self, record_id: str) -> Optional[CatalogRecord]:
        return await asyncio.to_thread(self._soft_delete, record_id)

    async def conditional_update(
        self,
        record_id: str,
        delta: int,
        min_qty: int = 0,
    ) -> Optional[CatalogRecord]:
        return await asyncio.to_thread(self._conditional_update, record_id, delta, min_qty)

    async def list(self, record_filter: RecordFilter) -> Tuple[List[CatalogRecord], int]:
        return await asyncio.to_thread(self._list, record_filter)

    def _insert(self, record: CatalogRecord) -> CatalogRecord:
        values = self._to_row(record)
        placeholders = ", ".join("?" for _ in COLUMNS)
        try:
            with self.database.transaction() as conn:
                conn.execute(
                    f"INSERT INTO records ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                    tuple(values[c] for c in COLUMNS),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateRecordError(record.artist, record.album, record.format.value) from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to insert record {record.id}: {e}") from e
        return record

    def _find_by_id(self, record_id: str) -> Optional[CatalogRecord]:
        try:
            with self.database.connect() as conn:
                row = conn.execute(
                    "SELECT * FROM records WHERE id = ? AND deleted_at IS NULL",
                    (record_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read record {record_id}: {e}") from e
        return self._from_row(row) if row else None

    def _update(self, record_id: str, changes: Dict[str, Any]) -> Optional[CatalogRecord]:
        if not changes:
            return self._find_by_id(record_id)

        values = self._to_row_values(changes)
        assignments = ", ".join(f"{column} = ?" for column in values)

        try:
            with self.database.transaction(immediate=True) as conn:
                cursor = conn.execute(
                    f"UPDATE records SET {assignments} WHERE id = ? AND deleted_at IS NULL",
                    (*values.values(), record_id),
                )
                if cursor.rowcount != 1:
                    return None
                row = conn.execute("SELECT * FROM records WHERE id = ?", (record_id,)).fetchone()
        except sqlite3.IntegrityError as e:
            current = self._find_by_id(record_id)
            if current is None:
                raise StorageError(f"Failed to update record {record_id}: {e}") from e
            fmt = changes.get("format", current.format)
            raise DuplicateRecordError(
                changes.get("artist", current.artist),
                changes.get("album", current.album),
                fmt.value if isinstance(fmt, RecordFormat) else str(fmt),
            ) from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update record {record_id}: {e}") from e
        return self._from_row(row)

    def _soft_delete(self, record_id: str) -> Optional[CatalogRecord]:
        now = _now()
        try:
            with self.database.transaction(immediate=True) as conn:
                cursor = conn.execute(
                    "UPDATE records SET deleted_at = ?, updated_at = ? "
                    "WHERE id = ? AND deleted_at IS NULL",
                    (now, now, record_id),
                )
                if cursor.rowcount != 1:
                    return None
                row = conn.execute("SELECT * FROM records WHERE id = ?", (record_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete record {record_id}: {e}") from e
        return self._from_row(row)

    def _conditional_update(self, record_id: str, delta: int, min_qty: int) -> Optional[CatalogRecord]:
        try:
            with self.database.transaction(immediate=True) as conn:
                cursor = conn.execute(
                    "UPDATE records SET qty = qty + ?, updated_at = ? "
                    "WHERE id = ? AND deleted_at IS NULL AND qty >= ?",
                    (delta, _now(), record_id, min_qty),
                )
                if cursor.rowcount != 1:
                    return None
                row = conn.execute("SELECT * FROM records WHERE id = ?", (record_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to change stock of record {record_id}: {e}") from e
        return self._from_row(row)

    def _list(self, record_filter: RecordFilter) -> Tuple[List[CatalogRecord], int]:
        where, params = self._build_where(record_filter)
        try:
            # One read transaction so the page and the total agree
            with self.database.transaction() as conn:
                total = conn.execute(f"SELECT COUNT(*) FROM records WHERE {where}", params).fetchone()[0]
                rows = conn.execute(
                    f"SELECT * FROM records WHERE {where} "
                    f"ORDER BY artist, album, id LIMIT ? OFFSET ?",
                    (*params, record_filter.limit, record_filter.offset),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list records: {e}") from e
        return [self._from_row(row) for row in rows], total

    @staticmethod
    def _build_where(record_filter: RecordFilter) -> Tuple[str, List[Any]]:
        clauses = ["deleted_at IS NULL"]
        params: List[Any] = []

        if record_filter.q:
            pattern = f"%{escape_like(record_filter.q)}%"
            clauses.append(
                "(artist LIKE ? ESCAPE '\\' OR album LIKE ? ESCAPE '\\' OR category LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])
        if record_filter.artist:
            clauses.append("artist LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(record_filter.artist)}%")
        if record_filter.album:
            clauses.append("album LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(record_filter.album)}%")
        if record_filter.format:
            clauses.append("format = ?")
            params.append(record_filter.format.value)
        if record_filter.category:
            clauses.append("category = ?")
            params.append(record_filter.category.value)

        return " AND ".join(clauses), params

    @classmethod
    def _to_row(cls, record: CatalogRecord) -> Dict[str, Any]:
        return {c: cls._encode(c, getattr(record, c)) for c in COLUMNS}

    @classmethod
    def _to_row_values(cls, changes: Dict[str, Any]) -> Dict[str, Any]:
        for column in changes:
            if column not in COLUMNS or column in ("id", "deleted_at"):
                raise StorageError(f"Column cannot be updated: {column}")
        return {c: cls._encode(c, v) for c, v in changes.items()}

    @staticmethod
    def _encode(column: str, value: Any) -> Any:
        if value is None:
            return None
        if column == "tracklist":
            return json.dumps([track.to_dict() for track in value])
        if isinstance(value, (RecordFormat, RecordCategory)):
            return value.value
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Decimal):
            return str(value)
        return value

    @staticmethod
    def _from_row(row: sqlite3.Row) -> CatalogRecord:
        tracklist = json.loads(row["tracklist"]) if row["tracklist"] else []
        return CatalogRecord(
            id=row["id"],
            artist=row["artist"],
            album=row["album"],
            price=Decimal(row["price"]),
            qty=row["qty"],
            format=RecordFormat(row["format"]),
            category=RecordCategory(row["category"]),
            mbid=row["mbid"],
            tracklist=tuple(Track.from_dict(t) for t in tracklist),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            deleted_at=datetime.fromisoformat(row["deleted_at"]) if row["deleted_at"] else None,
        )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
