"""
Settings stores - key/value persistence of opaque text values.

The admin only needs one key (the saved model display order), but the
stores are generic: ``get(key)`` returns the stored text or None and
``upsert(key, value)`` creates or replaces it.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class SettingsStore(Protocol):
    """Get-by-key / upsert-by-key persistence for text values."""

    def get(self, key: str) -> str | None: ...

    def upsert(self, key: str, value: str) -> None: ...


class InMemorySettingsStore:
    """Process-local settings store, for tests and single-process setups."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def upsert(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value


class SQLiteSettingsStore:
    """
    Settings persisted in a SQLite table.

    Each call opens its own connection, so the store is safe to share between
    request handlers.
    """

    TABLE = "settings"

    def __init__(self, db_path: str | Path = ".dazzle/admin.db"):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._ensure_directory()
        self.create_table()

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Get a database connection context manager.

        Yields:
            SQLite connection
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def create_table(self) -> None:
        """Create the settings table if it doesn't exist."""
        with self.connection() as conn:
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {self.TABLE} "
                "(key TEXT PRIMARY KEY NOT NULL, value TEXT NOT NULL)"
            )

    def get(self, key: str) -> str | None:
        with self.connection() as conn:
            row = conn.execute(
                f"SELECT value FROM {self.TABLE} WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def upsert(self, key: str, value: str) -> None:
        with self.connection() as conn:
            conn.execute(
                f"INSERT INTO {self.TABLE} (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
