"""Offline stand-in translation provider.

Produces a deterministic, prefix-tagged echo of the input in fixed-size
chunks with an artificial delay per chunk. Used when the live backend is not
configured, and throughout the test suite.
"""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, List, Optional

from .base import BaseTranslationProvider

logger = logging.getLogger(__name__)

MOCK_MODEL = "mock-model"
MOCK_TRANSLATION_PREFIX = "[模拟翻译]"
MOCK_CHUNK_SIZE = 20
MOCK_CHUNK_DELAY = 0.1  # seconds


def split_into_chunks(text: str, chunk_size: int = MOCK_CHUNK_SIZE) -> List[str]:
    """Split text into consecutive chunks of at most ``chunk_size`` characters."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    return [text[i : i + chunk_size] for i in range(0, len(text), chunk_size)]


class MockTranslationProvider(BaseTranslationProvider):
    """Stand-in provider that tags its output with ``MOCK_TRANSLATION_PREFIX``."""

    def __init__(self, chunk_delay: float = MOCK_CHUNK_DELAY, chunk_size: int = MOCK_CHUNK_SIZE):
        super().__init__()
        self.chunk_delay = chunk_delay
        self.chunk_size = chunk_size

    async def translate(self, text: str, model: Optional[str] = None) -> AsyncIterator[str]:
        translation = f"{MOCK_TRANSLATION_PREFIX} {text}"
        chunks = split_into_chunks(translation, self.chunk_size)
        logger.debug(f"Mock translation of {len(text)} chars in {len(chunks)} chunks")

        for chunk in chunks:
            await asyncio.sleep(self.chunk_delay)
            yield chunk

    def is_available(self) -> bool:
        return True

    def get_default_model(self) -> str:
        return MOCK_MODEL

    def get_provider_name(self) -> str:
        return "Mock Translator"
