"""Key-value persistence used for the image cache, progress and results history."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

SCHEMA_VERSION = 1


class StorageError(Exception):
    """Raised when the underlying store cannot be read or written."""


class KeyValueStore(Protocol):
    """String-to-string persistent mapping."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def list_keys(self) -> list[str]: ...

    def remove_many(self, keys: Iterable[str]) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store for tests and throwaway runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self) -> list[str]:
        return sorted(self._data)

    def remove_many(self, keys: Iterable[str]) -> None:
        for key in list(keys):
            self._data.pop(key, None)

    def close(self) -> None:
        """Nothing to release."""


class SQLiteKeyValueStore:
    """SQLite-backed key-value table."""

    def __init__(self, db_path: Path | str) -> None:
        """Open the database and bring its schema up to date."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(target, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._apply_migrations()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not open key-value store at {target}: {exc}") from exc

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise StorageError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create the key-value table."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def get(self, key: str) -> str | None:
        try:
            with self._lock:
                row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not read key {key!r}: {exc}") from exc
        if row is None:
            return None
        return str(row["value"])

    def set(self, key: str, value: str) -> None:
        now = datetime.now(UTC).isoformat()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, now),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Could not write key {key!r}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Could not remove key {key!r}: {exc}") from exc

    def list_keys(self) -> list[str]:
        try:
            with self._lock:
                rows = self._conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not list keys: {exc}") from exc
        return [str(row["key"]) for row in rows]

    def remove_many(self, keys: Iterable[str]) -> None:
        batch = [(key,) for key in keys]
        if not batch:
            return
        try:
            with self._lock, self._conn:
                self._conn.executemany("DELETE FROM kv WHERE key = ?", batch)
        except sqlite3.Error as exc:
            raise StorageError(f"Could not remove {len(batch)} keys: {exc}") from exc

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass
