"""SQLite database storage for records.

This module handles persistence of records to a SQLite database. Records get an
integer primary key from SQLite on first save; the hashid column is written
later by the lookup adapter and is never replaced once set.
"""

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from entity_hashids.mixins import HashidMixin

# Configure logging
logger = logging.getLogger(__name__)

COLUMNS = ("id", "name", "payload", "created_at", "hashid")
MAX_RECORD_ID = 2**63 - 1


class StorageError(Exception):
    """Raised when storage operations fail."""

    pass


class NotFoundError(StorageError):
    """Raised when a required record does not exist."""

    pass


@dataclass
class Record(HashidMixin):
    """Represents a stored record.

    Attributes:
        name: Short human readable name
        payload: Record content
        created_at: Creation timestamp (ISO 8601 format)
        hashid: Public identifier, empty until the record is first saved
        id: Primary key assigned by storage, None until first saved
    """

    name: str
    payload: str
    created_at: str
    hashid: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Record":
        """Create Record from a database row."""
        return cls(**{column: row[column] for column in COLUMNS})


class Query:
    """Immutable, composable equality filter over the records table.

    Every ``where`` returns a new query, so a base query can be shared and
    narrowed independently by several callers.
    """

    def __init__(self, storage: "Storage", filters: tuple = ()):
        self.storage = storage
        self.filters = filters

    def where(self, column: str, value: Any) -> "Query":
        """Return a new query additionally requiring ``column == value``.

        Raises:
            StorageError: If column is not a records column
        """
        if column not in COLUMNS:
            raise StorageError(f"Unknown column: {column}")
        return Query(self.storage, self.filters + ((column, value),))

    def _where_clause(self) -> tuple[str, list]:
        if not self.filters:
            return "", []
        clause = " AND ".join(f"{column} = ?" for column, _ in self.filters)
        return f" WHERE {clause}", [value for _, value in self.filters]

    def all(self) -> list[Record]:
        """Fetch all matching records ordered by primary key."""
        clause, params = self._where_clause()
        rows = self.storage._fetch(
            f"SELECT {', '.join(COLUMNS)} FROM records{clause} ORDER BY id", params
        )
        return [Record.from_row(row) for row in rows]

    def first(self) -> Optional[Record]:
        """Fetch the first matching record, or None."""
        clause, params = self._where_clause()
        rows = self.storage._fetch(
            f"SELECT {', '.join(COLUMNS)} FROM records{clause} ORDER BY id LIMIT 1",
            params,
        )
        return Record.from_row(rows[0]) if rows else None

    def count(self) -> int:
        """Count matching records."""
        clause, params = self._where_clause()
        rows = self.storage._fetch(f"SELECT COUNT(*) AS n FROM records{clause}", params)
        return rows[0]["n"]

    def __repr__(self) -> str:
        return f"Query(filters={self.filters!r})"


class Storage:
    """SQLite database storage for records.

    Stores records in a SQLite database with schema:
    CREATE TABLE records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        payload TEXT NOT NULL,
        created_at TEXT NOT NULL,
        hashid TEXT UNIQUE
    )
    """

    def __init__(self, database_path: str):
        """Initialize storage with database path.

        Args:
            database_path: Path to SQLite database file

        Raises:
            StorageError: If database initialization fails
        """
        self.database_path = Path(database_path)

        # Ensure parent directory exists
        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Storage initialized at: {self.database_path}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}")
            raise StorageError(f"Failed to create database directory: {e}")

        # Initialize database schema
        self.initialize()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.database_path))
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create database and schema if not exists.

        Raises:
            StorageError: If schema initialization fails
        """
        try:
            conn = self._connect()
            conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    hashid TEXT UNIQUE
                )
            """)
            conn.commit()
            conn.close()
            logger.debug("Database schema initialized successfully")

        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database schema: {e}")
            raise StorageError(f"Failed to initialize database schema: {e}")

    def save(self, record: Record) -> Record:
        """Save a record to database.

        Inserts the record when it has no primary key yet, assigning one, and
        updates it otherwise. An update never replaces a hashid that is already
        stored.

        Args:
            record: Record to save

        Returns:
            The same record, with ``id`` set

        Raises:
            StorageError: If save operation fails
        """
        try:
            conn = self._connect()
            try:
                if record.id is None:
                    cursor = conn.execute(
                        """
                        INSERT INTO records (name, payload, created_at, hashid)
                        VALUES (?, ?, ?, ?)
                    """,
                        (
                            record.name,
                            record.payload,
                            record.created_at,
                            record.hashid or None,
                        ),
                    )
                    conn.commit()
                    record.id = cursor.lastrowid
                    logger.debug(f"Record inserted with id {record.id}")
                else:
                    cursor = conn.execute(
                        """
                        UPDATE records
                        SET name = ?, payload = ?, created_at = ?,
                            hashid = CASE
                                WHEN hashid IS NULL OR hashid = '' THEN ?
                                ELSE hashid
                            END
                        WHERE id = ?
                    """,
                        (
                            record.name,
                            record.payload,
                            record.created_at,
                            record.hashid or None,
                            record.id,
                        ),
                    )
                    if cursor.rowcount == 0:
                        raise NotFoundError(f"Record not found: {record.id}")
                    conn.commit()
                    logger.debug(f"Record updated: {record.id}")
            finally:
                conn.close()
            return record

        except StorageError:
            raise
        except sqlite3.IntegrityError as e:
            logger.warning(f"Integrity error saving record {record.id}: {e}")
            raise StorageError(
                f"Record {record.id} conflicts with a stored record: {e}"
            )
        except sqlite3.Error as e:
            logger.error(f"Database error saving record {record.id}: {e}")
            raise StorageError(f"Failed to save record {record.id}: {e}")

    def get(self, record_id: int) -> Optional[Record]:
        """Fetch a record by primary key.

        Args:
            record_id: Primary key

        Returns:
            Record, or None if it doesn't exist

        Raises:
            StorageError: If the query fails
        """
        # SQLite keys are signed 64-bit, larger ids can't be stored
        if not 0 <= record_id <= MAX_RECORD_ID:
            logger.debug(f"Record id out of range: {record_id}")
            return None
        rows = self._fetch(
            f"SELECT {', '.join(COLUMNS)} FROM records WHERE id = ?", [record_id]
        )
        if not rows:
            logger.debug(f"Record not found in database: {record_id}")
            return None
        return Record.from_row(rows[0])

    def load(self, record_id: int) -> Record:
        """Load a record by primary key.

        Args:
            record_id: Primary key

        Returns:
            Record with content and metadata

        Raises:
            NotFoundError: If the record doesn't exist
            StorageError: If the query fails
        """
        record = self.get(record_id)
        if record is None:
            raise NotFoundError(f"Record not found: {record_id}")
        return record

    def query(self) -> Query:
        """Start a query over all records."""
        return Query(self)

    def _fetch(self, sql: str, params: list) -> list[sqlite3.Row]:
        try:
            conn = self._connect()
            try:
                return conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Database error running query: {e}")
            raise StorageError(f"Query failed: {e}")
