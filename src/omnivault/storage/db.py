"""Durable key-value medium backing the vault stores."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Generator, Protocol

from omnivault.core.config import DATABASE_PATH
from omnivault.core.errors import StorageWriteError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String-keyed medium holding fully serialized JSON documents."""

    def get(self, key: str) -> str | None:
        pass

    def set(self, key: str, value: str) -> None:
        pass

    def remove(self, key: str) -> None:
        pass


class SqliteKeyValueStore:
    """Key-value medium persisted in a single SQLite table."""

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database (defaults to ~/.omnivault/omnivault.db)
        """
        self.db_path = Path(db_path) if db_path else DATABASE_PATH
        self._connection: sqlite3.Connection | None = None
        self._connection_lock = Lock()
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        """Create database schema if not exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with row factory."""
        with self._connection_lock:
            if self._connection is None:
                self._connection = sqlite3.connect(
                    self.db_path, check_same_thread=False
                )
                self._connection.row_factory = sqlite3.Row
            try:
                yield self._connection
                self._connection.commit()
            except Exception:
                self._connection.rollback()
                raise

    def close(self) -> None:
        """Close the shared database connection."""
        with self._connection_lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    def get(self, key: str) -> str | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT (key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, datetime.now().isoformat()),
                )
        except sqlite3.Error as exc:
            logger.error("Write to %s failed: %s", self.db_path, exc)
            raise StorageWriteError(key, str(exc)) from exc

    def remove(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))


class MemoryKeyValueStore:
    """In-process medium, optionally limited to a byte quota."""

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def _used_bytes(self, excluding: str | None = None) -> int:
        return sum(
            len(k.encode()) + len(v.encode())
            for k, v in self._items.items()
            if k != excluding
        )

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            needed = self._used_bytes(excluding=key) + len(key.encode()) + len(value.encode())
            if needed > self.quota_bytes:
                raise StorageWriteError(
                    key, f"quota exceeded ({needed} > {self.quota_bytes} bytes)"
                )
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


# Default instance
_store: KeyValueStore | None = None
_store_lock = Lock()


def get_store() -> KeyValueStore:
    """Get or create the default key-value store instance."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = SqliteKeyValueStore()
    return _store


def set_store(store: KeyValueStore) -> None:
    """Set the default key-value store instance (for testing)."""
    global _store
    _store = store
