"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- A controllable millisecond clock for TTL and eviction tests
- In-memory and SQLite-backed stores
- Scripted translation providers with deterministic chunk streams
- Isolation from the user's environment and settings singleton
"""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import AsyncIterator, List, Optional

import pytest

from translation_preview.cache.backends import CacheStoreError, InMemoryStore, SqliteStore
from translation_preview.cache.translation_cache import TranslationCache
from translation_preview.config.settings import ENV_PREFIX, reset_settings
from translation_preview.models.translation import TranslationUpdate
from translation_preview.providers.base import BaseTranslationProvider

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ScriptedProvider(BaseTranslationProvider):
    """Provider that yields a fixed list of chunks, optionally failing afterwards."""

    def __init__(
        self,
        chunks: List[str],
        error: Optional[Exception] = None,
        default_model: str = "real-model",
        delay: float = 0.0,
    ):
        super().__init__()
        self.chunks = chunks
        self.error = error
        self.default_model = default_model
        self.delay = delay
        self.calls: List[tuple] = []

    async def translate(self, text: str, model: Optional[str] = None) -> AsyncIterator[str]:
        self.calls.append((text, model))
        for chunk in self.chunks:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield chunk
        if self.error is not None:
            raise self.error

    def is_available(self) -> bool:
        return True

    def get_default_model(self) -> str:
        return self.default_model

    def get_provider_name(self) -> str:
        return "Scripted"


class FailingStore(InMemoryStore):
    """In-memory store whose reads and/or writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False
        self.fail_deletes_for: set = set()

    async def get(self, key: str):
        if self.fail_reads:
            raise CacheStoreError("read failed")
        return await super().get(key)

    async def set(self, key: str, value) -> None:
        if self.fail_writes:
            raise CacheStoreError("write failed")
        await super().set(key, value)

    async def delete(self, key: str) -> bool:
        if key in self.fail_deletes_for:
            raise CacheStoreError("delete failed")
        return await super().delete(key)


class UpdateRecorder:
    """Consumer callback that records every snapshot."""

    def __init__(self) -> None:
        self.updates: List[TranslationUpdate] = []

    def __call__(self, update: TranslationUpdate) -> None:
        self.updates.append(update)

    @property
    def snapshots(self) -> List[tuple]:
        return [(u.text, u.is_streaming) for u in self.updates]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Clear translation env vars and the settings singleton around each test."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SqliteStore:
    """SQLite store in a temporary directory.

    Returns:
        SqliteStore instance
    """
    return SqliteStore(cache_dir=tmp_path / "cache")


@pytest.fixture
def cache(memory_store: InMemoryStore, clock: FakeClock) -> TranslationCache:
    """Translation cache over an in-memory store with a fake clock."""
    return TranslationCache(memory_store, clock=clock)


@pytest.fixture
def recorder() -> UpdateRecorder:
    return UpdateRecorder()


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider
