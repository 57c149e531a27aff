"""
Local key/value persistence.

- SqliteLocalStorage: portable on-disk storage (~/.quizstate/state.db)
- MemoryLocalStorage: process-lifetime storage for tests and throwaway runs

Values are opaque strings; the synchronized store owns serialization.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from loguru import logger


class MemoryLocalStorage:
    """Dict-backed storage. Contents vanish with the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class SqliteLocalStorage:
    """
    SQLite-backed key/value storage.

    One table, one row per key. Every write commits immediately so a crash
    never loses an acknowledged set_item().
    """

    DEFAULT_DB_PATH = Path.home() / ".quizstate" / "state.db"

    def __init__(self, db_path: Path | None = None):
        """
        Initialize the storage.

        Args:
            db_path: Custom database path (defaults to ~/.quizstate/state.db)
        """
        self.db_path = db_path or self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.debug(f"SqliteLocalStorage initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self.conn.commit()

    def get_item(self, key: str) -> str | None:
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else row["value"]

    def set_item(self, key: str, value: str) -> None:
        self.conn.execute(
            """
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """,
            (key, value),
        )
        self.conn.commit()

    def remove_item(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self.conn.commit()

    def keys(self) -> list[str]:
        return [row["key"] for row in self.conn.execute("SELECT key FROM kv ORDER BY key")]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
