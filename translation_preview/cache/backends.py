"""Persistent key-value store implementations for the translation cache.

This module provides two store implementations behind one async contract:

- InMemoryStore: Process-local dictionary store.
  Best for: Tests, ``--no-persist`` runs, short-lived sessions.

- SqliteStore: Durable SQLite-backed store with WAL mode.
  Best for: Persistence across sessions on a single machine.

The contract covers point ``get``/``set``/``delete`` on
string keys with JSON-compatible values. Stores offer no enumeration, no
expiry and no size bound; the translation cache keeps its own index and
policies on top of them.
"""
from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from functools import partial
from pathlib import Path
from threading import Lock, local
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CACHE_DIR = Path.home() / ".translation_preview" / "cache"
DEFAULT_DB_NAME = "translations.db"


class CacheStoreError(Exception):
    """Raised when a store cannot read or persist a value."""


class KeyValueStore(ABC):
    """Abstract async key-value store used by the translation cache."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get a value by key.

        Args:
            key: Store key

        Returns:
            Stored value or None if absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value under key, replacing any previous value.

        Raises:
            CacheStoreError: If the value cannot be persisted
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if a value was removed
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the store."""
        return None


def _encode(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise CacheStoreError(f"Value is not JSON serializable: {e}") from e


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store.

    Values are kept in their serialized JSON form so that callers never share
    mutable state with the store, matching the semantics of the durable store.
    """

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class SqliteStore(KeyValueStore):
    """Persistent, thread-safe key-value store using SQLite with WAL mode.

    Blocking SQLite calls run in the event loop's default executor so that
    awaiting coroutines never block the loop.

    Thread Safety:
        Uses thread-local storage for SQLite connections (one per executor
        thread) since SQLite connections are not thread-safe. All operations
        are additionally serialized by a Lock.

    Attributes:
        cache_dir (Path): Directory containing the database
        db_path (Path): Path to the SQLite database file
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None, db_name: str = DEFAULT_DB_NAME):
        """Initialize the store and create the schema if needed.

        Args:
            cache_dir: Store directory (string or Path object)
            db_name: Database file name inside ``cache_dir``

        Raises:
            CacheStoreError: If the database cannot be created
        """
        if cache_dir is None:
            self.cache_dir = DEFAULT_CACHE_DIR
        else:
            self.cache_dir = Path(cache_dir) if isinstance(cache_dir, str) else cache_dir
        self.db_path = self.cache_dir / db_name
        self._lock = Lock()

        # Thread-local storage for connections (SQLite connections aren't thread-safe)
        self._local = local()
        self._connections: List[sqlite3.Connection] = []

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._init_database()
        except (OSError, sqlite3.Error) as e:
            raise CacheStoreError(f"Failed to open translation store at {self.db_path}: {e}") from e
        logger.info(f"Initialized SqliteStore at {self.db_path} (WAL mode)")

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the thread-local database connection."""
        if not hasattr(self._local, "conn"):
            # Connections are only touched under self._lock, close() may run on another thread
            self._local.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._connections.append(self._local.conn)
            # WAL allows readers while a writer is active
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
            self._local.conn.execute("PRAGMA temp_store=MEMORY")
        return self._local.conn

    def _init_database(self) -> None:
        """Create the kv_store table. Safe to call multiple times."""
        conn = self._get_connection()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """
        )
        conn.commit()

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    def _get_sync(self, key: str) -> Optional[Any]:
        with self._lock:
            try:
                row = (
                    self._get_connection()
                    .execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                    .fetchone()
                )
            except sqlite3.Error as e:
                raise CacheStoreError(f"Failed to read '{key}': {e}") from e

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise CacheStoreError(f"Corrupted value stored under '{key}': {e}") from e

    def _set_sync(self, key: str, encoded: str) -> None:
        with self._lock:
            conn = self._get_connection()
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                    (key, encoded),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise CacheStoreError(f"Failed to write '{key}': {e}") from e

    def _delete_sync(self, key: str) -> bool:
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise CacheStoreError(f"Failed to delete '{key}': {e}") from e
            return cursor.rowcount > 0

    def _close_sync(self) -> None:
        with self._lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
            self._local = local()

    async def get(self, key: str) -> Optional[Any]:
        return await self._run(self._get_sync, key)

    async def set(self, key: str, value: Any) -> None:
        await self._run(self._set_sync, key, _encode(value))

    async def delete(self, key: str) -> bool:
        return await self._run(self._delete_sync, key)

    async def close(self) -> None:
        self._close_sync()
