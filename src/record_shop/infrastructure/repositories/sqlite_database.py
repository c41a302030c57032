"""SQLite database shared by the catalog and order stores.

Every call opens its own connection, so the stores can be used from
worker threads and from several processes pointing at the same file.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from ...exceptions import StorageError

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS records (
        id TEXT PRIMARY KEY,
        artist TEXT NOT NULL,
        album TEXT NOT NULL,
        price TEXT NOT NULL,
        qty INTEGER NOT NULL CHECK (qty >= 0),
        format TEXT NOT NULL,
        category TEXT NOT NULL,
        mbid TEXT,
        tracklist TEXT,  -- JSON array
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        deleted_at TEXT
    );

    -- A live record is unique on artist + album + format
    CREATE UNIQUE INDEX IF NOT EXISTS idx_records_identity
        ON records(lower(artist), lower(album), format)
        WHERE deleted_at IS NULL;

    CREATE INDEX IF NOT EXISTS idx_records_category ON records(category);
    CREATE INDEX IF NOT EXISTS idx_records_listing ON records(artist, album, id);

    CREATE TABLE IF NOT EXISTS orders (
        id TEXT PRIMARY KEY,
        record_id TEXT NOT NULL,
        quantity INTEGER NOT NULL CHECK (quantity >= 1),
        price TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (record_id) REFERENCES records(id)
    );

    CREATE INDEX IF NOT EXISTS idx_orders_record_id ON orders(record_id);
"""


class SQLiteDatabase:
    """Location, connection settings and schema of the shop database."""

    def __init__(self, db_path: Union[str, Path], busy_timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout
        self._initialized = False

    def initialize(self) -> None:
        """Create the database file and schema if they do not exist."""
        if self._initialized:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self.connect() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot initialize database at {self.db_path}: {e}") from e
        self._initialized = True
        logger.debug(f"Initialized database at {self.db_path}")

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Open an autocommit connection; callers manage transactions explicitly."""
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """Run a block inside one transaction.

        ``immediate`` takes the write lock up front so that a read inside
        the block observes the state the block's own writes are based on.
        """
        with self.connect() as conn:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


