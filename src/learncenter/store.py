"""Persisted learner state: key/value storage media and the user state store."""

from __future__ import annotations

import dataclasses
import json
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from .models import ProgressRecord, UserState, default_state

logger = logging.getLogger(__name__)

STORAGE_KEY = "dsq-user"
SCHEMA_VERSION = 1


class StorageUnavailableError(RuntimeError):
    """The storage medium cannot be read or written."""


class Storage(Protocol):
    """String key/value medium holding persisted blobs."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; contents do not survive a restart."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def close(self) -> None:
        return None


class SqliteStorage:
    """SQLite-backed key/value storage."""

    def __init__(self, db_path: Path | str) -> None:
        """Open the database and bring its schema up to date."""
        try:
            if isinstance(db_path, Path):
                db_path.parent.mkdir(parents=True, exist_ok=True)
                target = str(db_path)
            else:
                target = db_path
            self._conn = sqlite3.connect(target)
        except (sqlite3.Error, OSError) as exc:
            raise StorageUnavailableError(f"Cannot open state database {db_path}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        try:
            self._apply_migrations()
        except sqlite3.Error as exc:
            self._conn.close()
            raise StorageUnavailableError(f"Cannot use state database {db_path}: {exc}") from exc

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise sqlite3.DatabaseError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")

    def _migrate_to_v1(self) -> None:
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS items (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def get_item(self, key: str) -> str | None:
        try:
            row = self._conn.execute("SELECT value FROM items WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageUnavailableError(str(exc)) from exc
        if row is None:
            return None
        return str(row["value"])

    def set_item(self, key: str, value: str) -> None:
        now = datetime.now(UTC).isoformat()
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO items (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, now),
                )
        except sqlite3.Error as exc:
            raise StorageUnavailableError(str(exc)) from exc

    def remove_item(self, key: str) -> None:
        try:
            with self._conn:
                self._conn.execute("DELETE FROM items WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageUnavailableError(str(exc)) from exc

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()


def open_storage(db_path: Path | str | None) -> SqliteStorage | MemoryStorage:
    """Open SQLite storage, degrading to memory when the medium is unavailable."""
    if db_path is None:
        return MemoryStorage()
    try:
        return SqliteStorage(db_path)
    except StorageUnavailableError as exc:
        logger.warning("State storage unavailable, keeping state in memory only: %s", exc)
        return MemoryStorage()


class UserStateStore:
    """Owns the user state blob: loads it once and persists every update whole."""

    def __init__(self, storage: Storage, key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._state = self.load()

    @property
    def state(self) -> UserState:
        return self._state

    @property
    def storage(self) -> Storage:
        return self._storage

    def load(self) -> UserState:
        """Read the persisted state, falling back to the demo default.

        A missing entry, malformed JSON and a shape mismatch all resolve to the
        default state without raising.
        """
        try:
            raw = self._storage.get_item(self._key)
        except StorageUnavailableError as exc:
            self._degrade(exc)
            raw = None
        if raw is None:
            logger.debug("No persisted state under %r; using default", self._key)
            return default_state()
        try:
            return UserState.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning("Ignoring unreadable persisted state under %r: %s", self._key, exc)
            return default_state()

    def update(self, **patch: Any) -> UserState:
        """Merge top-level fields over the current state and persist the result.

        Fields are replaced whole; pass the complete `progress` map when any
        record changes. Unknown field names raise `TypeError`.
        """
        merged = dataclasses.replace(self._state, **patch)
        merged = UserState(
            name=merged.name,
            purchased=tuple(merged.purchased),
            progress=dict(merged.progress),
            logged_in=bool(merged.logged_in),
        )
        for key, record in merged.progress.items():
            if not isinstance(record, ProgressRecord):
                raise TypeError(f"Progress for {key!r} must be a ProgressRecord, not {type(record).__name__}.")
        payload = json.dumps(merged.to_dict(), ensure_ascii=False)
        self._state = merged
        self._persist(payload)
        return merged

    def set_record(self, course_key: str, record: ProgressRecord) -> UserState:
        """Replace one course's record, carrying the rest of the progress map over."""
        progress = dict(self._state.progress)
        progress[course_key] = record
        return self.update(progress=progress)

    def _persist(self, payload: str) -> None:
        try:
            self._storage.set_item(self._key, payload)
        except StorageUnavailableError as exc:
            self._degrade(exc)
            self._storage.set_item(self._key, payload)

    def _degrade(self, exc: StorageUnavailableError) -> None:
        logger.warning("State storage failed, continuing in memory only: %s", exc)
        self._storage = MemoryStorage()

    def close(self) -> None:
        close = getattr(self._storage, "close", None)
        if close is not None:
            close()
