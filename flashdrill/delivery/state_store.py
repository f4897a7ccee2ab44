"""
SQLite State Store for flashdrill.

A small get/set key-value store holding:
- the card array (JSON)
- the raw user lesson text
- the list of opted-in built-in lesson sections (JSON)

Database location: ~/.flashdrill/state.db (see Settings.db_path)
Writes are last-write-wins; there are no transactions spanning keys.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from loguru import logger

# Well-known keys
CARDS_KEY = "flashcards"
RAW_TEXT_KEY = "rawdata"
BUILTIN_SELECTION_KEY = "builtin-lessons"


class StateStore:
    """
    Base key-value store. Subclasses implement get/set on strings.

    JSON helpers are provided on top of the string interface.
    """

    def get(self, key: str) -> str | None:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt JSON under '{key}': {e}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))


class MemoryStateStore(StateStore):
    """In-memory store, used for tests and dry runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SQLiteStateStore(StateStore):
    """SQLite-backed key-value persistence."""

    def __init__(self, db_path: Path):
        """
        Initialize the state store.

        Args:
            db_path: Database file path (parent directories are created)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.info(f"StateStore initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        """Initialize database schema."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self.conn.commit()

    def get(self, key: str) -> str | None:
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cursor.fetchone()
        return None if row is None else row["value"]

    def set(self, key: str, value: str) -> None:
        self.conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """,
            (key, value),
        )
        self.conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
