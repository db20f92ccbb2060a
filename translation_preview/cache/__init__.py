"""Translation cache: content-addressed keys, stores, index and façade."""

from .backends import (
    CacheStoreError,
    InMemoryStore,  # Process-local store
    KeyValueStore,
    SqliteStore,  # Durable SQLite store
)
from .index import INDEX_KEY, CacheIndex, select_oldest
from .keys import derive_key
from .translation_cache import (
    CACHE_KEY_PREFIX,
    CACHE_TTL_MS,
    MAX_CACHE_SIZE,
    CacheEntry,
    CacheStats,
    TranslationCache,
)

__all__ = [
    "CACHE_KEY_PREFIX",
    "CACHE_TTL_MS",
    "INDEX_KEY",
    "MAX_CACHE_SIZE",
    "CacheEntry",
    "CacheIndex",
    "CacheStats",
    "CacheStoreError",
    "InMemoryStore",
    "KeyValueStore",
    "SqliteStore",
    "TranslationCache",
    "derive_key",
    "select_oldest",
]
