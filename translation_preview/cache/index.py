"""Explicit key index for stores that cannot enumerate their contents.

The translation cache needs to count, sweep and clear its entries, but the
key-value store only supports point operations. The index is an ordered list
of active cache keys persisted in the same store under a reserved key.
"""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .backends import KeyValueStore

logger = logging.getLogger(__name__)

INDEX_KEY = "translation_cache_index"


def select_oldest(
    entries: Sequence[Tuple[str, int]], max_entries: int
) -> Tuple[List[str], List[str]]:
    """Split entries into eviction victims and survivors by timestamp.

    Entries are stably sorted by ascending timestamp; the first
    ``len(entries) - max_entries`` are victims. Ties keep index order.

    Args:
        entries: (key, timestamp_ms) pairs in index order
        max_entries: Number of entries allowed to survive

    Returns:
        Tuple of (victim keys, survivor keys)
    """
    ordered = sorted(entries, key=lambda item: item[1])
    excess = max(0, len(ordered) - max_entries)
    victims = [key for key, _ in ordered[:excess]]
    survivors = [key for key, _ in ordered[excess:]]
    return victims, survivors


class CacheIndex:
    """Ordered list of live cache keys stored under ``INDEX_KEY``."""

    def __init__(self, store: KeyValueStore, index_key: str = INDEX_KEY):
        self._store = store
        self._index_key = index_key

    async def load(self) -> List[str]:
        """Load the index, treating a missing or malformed record as empty."""
        raw = await self._store.get(self._index_key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning(f"Ignoring malformed cache index of type {type(raw).__name__}")
            return []
        return [str(key) for key in raw]

    async def replace(self, keys: Sequence[str]) -> None:
        await self._store.set(self._index_key, list(keys))

    async def add(self, key: str) -> bool:
        """Append key if absent.

        Returns:
            True if the index changed
        """
        keys = await self.load()
        if key in keys:
            return False
        keys.append(key)
        await self.replace(keys)
        return True

    async def remove(self, key: str) -> bool:
        """Remove key if present.

        Returns:
            True if the index changed
        """
        keys = await self.load()
        if key not in keys:
            return False
        keys.remove(key)
        await self.replace(keys)
        return True

    async def clear(self) -> None:
        await self.replace([])
