"""Persistent translation cache with TTL expiry and a size bound.

This module provides the cache façade that sits between the streaming
orchestrator and a point-operation key-value store:

- Content-based keys (SHA-256 of source text + model)
- Lazy TTL expiry discovered on read (7 days)
- Size-bounded, timestamp-ordered eviction swept after every write
- An explicit key index, because stores cannot enumerate their contents

Architecture:
    TranslationCache (façade)
    ├── KeyValueStore (InMemoryStore | SqliteStore)
    ├── CacheIndex (live keys, stored under ``translation_cache_index``)
    ├── CacheEntry (one translated document or section)
    └── CacheStats (entry count / character footprint)

Eviction is timestamp based rather than LRU: only ``set`` refreshes an
entry's timestamp, a ``get`` never does.

Example:
    ```python
    cache = TranslationCache(SqliteStore())

    translated = await cache.get(text, "LongCat-Flash-Chat-2512")
    if translated is None:
        translated = await translate(text)
        await cache.set(text, translated, "LongCat-Flash-Chat-2512")
    ```
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .backends import KeyValueStore
from .index import CacheIndex, select_oldest
from .keys import derive_key

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "translation_cache_"
CACHE_TTL_MS = 7 * 24 * 60 * 60 * 1000  # 7 days
MAX_CACHE_SIZE = 1000  # entries

Clock = Callable[[], int]


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CacheEntry:
    """One cached translation.

    Attributes:
        key: Derived key for (source_text, model)
        source_text: Text submitted for translation
        translated_text: Complete translation result
        model: Model identifier that produced the translation
        timestamp: Epoch milliseconds of the last write
    """

    key: str
    source_text: str
    translated_text: str
    model: str
    timestamp: int

    def is_expired(self, now: int, ttl_ms: int = CACHE_TTL_MS) -> bool:
        return now - self.timestamp > ttl_ms

    @property
    def size(self) -> int:
        """Character-count footprint of the entry."""
        return len(self.source_text) + len(self.translated_text)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "sourceText": self.source_text,
            "translatedText": self.translated_text,
            "model": self.model,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create from dictionary.

        Raises:
            KeyError: If a required field is missing
        """
        return cls(
            key=data["key"],
            source_text=data["sourceText"],
            translated_text=data["translatedText"],
            model=data["model"],
            timestamp=int(data["timestamp"]),
        )


@dataclass
class CacheStats:
    """Cache statistics."""

    entry_count: int = 0
    total_size: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"entryCount": self.entry_count, "totalSize": self.total_size}


class TranslationCache:
    """Translation cache façade over a key-value store.

    The cache exclusively owns entry and index lifecycle; nothing else should
    write the underlying store under the ``translation_cache_`` prefix.

    Failure policy:
        - ``get``/``has`` never raise; store failures are logged and treated
          as a miss.
        - ``set`` propagates store failures so a non-functional cache is
          visible to the caller.
        - ``clear`` logs per-key failures and keeps going.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Clock] = None,
        ttl_ms: int = CACHE_TTL_MS,
        max_entries: int = MAX_CACHE_SIZE,
    ):
        """Initialize translation cache.

        Args:
            store: Persistent key-value store
            clock: Callable returning epoch milliseconds (defaults to wall clock)
            ttl_ms: Entry time-to-live in milliseconds
            max_entries: Maximum number of live entries kept after a write
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_ms < 0:
            raise ValueError("ttl_ms must be non-negative")

        self.store = store
        self.ttl_ms = ttl_ms
        self.max_entries = max_entries
        self._clock = clock or _now_ms
        self._index = CacheIndex(store)

    @staticmethod
    def _record_key(key: str) -> str:
        return f"{CACHE_KEY_PREFIX}{key}"

    async def _load_entry(self, key: str) -> Optional[CacheEntry]:
        """Load an entry record, returning None for absent or malformed records."""
        raw = await self.store.get(self._record_key(key))
        if raw is None:
            return None
        try:
            return CacheEntry.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cache entry {key[:16]}...: {e}")
            return None

    async def get(self, source_text: str, model: str) -> Optional[str]:
        """Get cached translation.

        Args:
            source_text: Text that was translated
            model: Model identifier used for the translation

        Returns:
            Translated text or None if absent or expired
        """
        key = derive_key(source_text, model)

        try:
            entry = await self._load_entry(key)
            if entry is None:
                logger.debug(f"Cache miss for {key[:16]}...")
                return None

            if entry.is_expired(self._clock(), self.ttl_ms):
                logger.debug(f"Cache entry expired for {key[:16]}...")
                await self._remove(key)
                return None

            logger.debug(f"Cache hit for {key[:16]}...")
            return entry.translated_text

        except Exception as e:
            logger.error(f"Error retrieving from translation cache: {e}")
            return None

    async def set(self, source_text: str, translated_text: str, model: str) -> None:
        """Store a translation, replacing any previous entry for (source_text, model).

        Args:
            source_text: Text that was translated
            translated_text: Complete translation
            model: Model identifier used for the translation

        Raises:
            CacheStoreError: If the store rejects the write
        """
        key = derive_key(source_text, model)
        entry = CacheEntry(
            key=key,
            source_text=source_text,
            translated_text=translated_text,
            model=model,
            timestamp=self._clock(),
        )

        await self.store.set(self._record_key(key), entry.to_dict())
        await self._index.add(key)
        logger.debug(f"Cached translation for {key[:16]}... ({entry.size} chars)")

        await self._evict_if_needed()

    async def has(self, source_text: str, model: str) -> bool:
        """Check whether a live translation is cached. Does not extend TTL."""
        return await self.get(source_text, model) is not None

    async def clear(self) -> int:
        """Clear all cached translations.

        Entries whose record could not be deleted stay in the index, so they
        remain counted and a later clear or eviction can still reach them.

        Returns:
            Number of entries removed from the store
        """
        keys = await self._index.load()
        removed = 0
        failed: List[str] = []
        for key in keys:
            try:
                if await self.store.delete(self._record_key(key)):
                    removed += 1
            except Exception as e:
                logger.error(f"Failed to remove cache entry {key[:16]}...: {e}")
                failed.append(key)

        await self._index.replace(failed)
        if failed:
            logger.warning(f"{len(failed)} cache entries could not be removed")
        logger.info(f"Cleared {removed} cache entries")
        return removed

    async def get_stats(self) -> CacheStats:
        """Get cache statistics.

        ``entry_count`` is the index length; ``total_size`` sums the character
        length of source and translated text over live entries.
        """
        stats = CacheStats()
        try:
            keys = await self._index.load()
            stats.entry_count = len(keys)
            for key in keys:
                entry = await self._load_entry(key)
                if entry is not None:
                    stats.total_size += entry.size
        except Exception as e:
            logger.error(f"Error getting cache stats: {e}")
            return CacheStats()
        return stats

    async def _remove(self, key: str) -> None:
        """Delete an entry record and its index record."""
        await self.store.delete(self._record_key(key))
        await self._index.remove(key)

    async def _evict_if_needed(self) -> List[str]:
        """Sweep oldest entries until the index holds at most ``max_entries`` keys.

        Indexed keys whose record is missing are dropped from the index.

        Returns:
            Keys evicted from the store
        """
        keys = await self._index.load()
        if len(keys) <= self.max_entries:
            return []

        entries: List[Tuple[str, int]] = []
        for key in keys:
            entry = await self._load_entry(key)
            if entry is not None:
                entries.append((key, entry.timestamp))

        victims, survivors = select_oldest(entries, self.max_entries)
        for key in victims:
            await self.store.delete(self._record_key(key))

        await self._index.replace(survivors)
        if victims:
            logger.info(f"Evicted {len(victims)} cache entries (max_entries={self.max_entries})")
        return victims
