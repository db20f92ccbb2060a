"""Streaming orchestrator: cache check, chunk streaming and commit.

Per request the orchestrator walks a small state machine::

    IDLE -> CACHE_CHECK -> HIT_DELIVERED
                        -> STREAMING -> COMMITTED
    (any non-terminal state) -> FAILED

After every chunk the consumer receives the whole accumulated text with
``is_streaming=True``. On normal completion the text is committed to the
cache first and only then delivered once more with ``is_streaming=False``,
so the last snapshot a consumer sees always equals the cached value.
Stream failures never commit anything.
"""
from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from ..cache.backends import CacheStoreError
from ..cache.translation_cache import TranslationCache
from ..errors import ErrorKind, TranslationError
from ..models.translation import RequestState, TranslationOutcome, TranslationUpdate
from ..providers.base import BaseTranslationProvider
from ..providers.mock import MOCK_MODEL, MOCK_TRANSLATION_PREFIX

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[TranslationUpdate], Union[None, Awaitable[None]]]


def is_poisoned_hit(cached_text: str, model: str) -> bool:
    """Check whether a cache hit is stand-in output replayed for a real model.

    A value produced by the offline stand-in carries MOCK_TRANSLATION_PREFIX.
    Served under any model other than MOCK_MODEL it is a false hit.
    """
    return cached_text.startswith(MOCK_TRANSLATION_PREFIX) and model != MOCK_MODEL


async def _deliver(on_update: UpdateCallback, update: TranslationUpdate) -> None:
    result = on_update(update)
    if inspect.isawaitable(result):
        await result


class _RequestTracker:
    """State of a single request; requests may overlap on one orchestrator."""

    def __init__(self) -> None:
        self.state = RequestState.IDLE

    def transition(self, state: RequestState) -> None:
        if self.state.is_terminal:
            raise RuntimeError(
                f"Translation request already finished ({self.state.value}), "
                f"cannot move to {state.value}"
            )
        logger.debug(f"Translation request {self.state.value} -> {state.value}")
        self.state = state


class TranslationOrchestrator:
    """Coordinates a translation provider, the cache and a consumer callback."""

    def __init__(self, provider: BaseTranslationProvider, cache: TranslationCache):
        self.provider = provider
        self.cache = cache

    async def translate(
        self,
        text: str,
        on_update: UpdateCallback,
        model: Optional[str] = None,
        force_bypass_cache: bool = False,
    ) -> TranslationOutcome:
        """Translate text, delivering snapshots to ``on_update``.

        Args:
            text: Source Markdown text
            on_update: Callback (sync or async) receiving TranslationUpdate snapshots
            model: Model identifier (defaults to the provider's default model)
            force_bypass_cache: Skip the cache lookup and always re-translate

        Returns:
            TranslationOutcome in a terminal state (HIT_DELIVERED or COMMITTED)

        Raises:
            TranslationError: If streaming or committing fails; state is FAILED
        """
        model_to_use = model or self.provider.get_default_model()
        request = _RequestTracker()

        if not force_bypass_cache:
            request.transition(RequestState.CACHE_CHECK)
            cached = await self.cache.get(text, model_to_use)
            if cached is not None:
                if is_poisoned_hit(cached, model_to_use):
                    logger.warning(
                        f"Discarding stand-in translation cached under model '{model_to_use}'"
                    )
                else:
                    logger.info(f"Serving cached translation ({len(cached)} chars)")
                    await _deliver(on_update, TranslationUpdate(cached, is_streaming=False))
                    request.transition(RequestState.HIT_DELIVERED)
                    return TranslationOutcome(
                        state=RequestState.HIT_DELIVERED,
                        text=cached,
                        model=model_to_use,
                        from_cache=True,
                    )
        else:
            logger.info("Cache bypass requested, forcing re-translation")

        request.transition(RequestState.STREAMING)
        accumulated = ""
        chunk_count = 0
        try:
            async for chunk in self.provider.translate(text, model_to_use):
                chunk_count += 1
                accumulated += chunk
                await _deliver(on_update, TranslationUpdate(accumulated, is_streaming=True))
        except Exception as e:
            request.transition(RequestState.FAILED)
            logger.error(f"Translation stream failed after {chunk_count} chunks: {e}")
            if isinstance(e, TranslationError):
                raise
            raise TranslationError.wrap(e) from e

        try:
            await self.cache.set(text, accumulated, model_to_use)
        except CacheStoreError as e:
            request.transition(RequestState.FAILED)
            logger.error(f"Failed to store translation in cache: {e}")
            raise TranslationError(
                f"Translation finished but could not be saved to the cache: {e}",
                kind=ErrorKind.PERSISTENCE,
                cause=e,
            ) from e

        await _deliver(on_update, TranslationUpdate(accumulated, is_streaming=False))
        request.transition(RequestState.COMMITTED)
        logger.info(f"Translation complete: {chunk_count} chunks, {len(accumulated)} chars")
        return TranslationOutcome(
            state=RequestState.COMMITTED,
            text=accumulated,
            model=model_to_use,
            chunk_count=chunk_count,
        )
