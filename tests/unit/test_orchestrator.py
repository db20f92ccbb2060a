"""Unit tests for the streaming translation orchestrator."""

import pytest

from translation_preview.cache.backends import CacheStoreError
from translation_preview.cache.translation_cache import TranslationCache
from translation_preview.errors import ErrorKind, TranslationError
from translation_preview.models.translation import RequestState, TranslationUpdate
from translation_preview.providers.mock import MOCK_MODEL, MOCK_TRANSLATION_PREFIX
from translation_preview.services.orchestrator import (
    TranslationOrchestrator,
    _RequestTracker,
    is_poisoned_hit,
)


class TestStreaming:
    @pytest.mark.asyncio
    async def test_snapshots_accumulate_then_commit(self, cache, recorder, scripted_provider):
        provider = scripted_provider(["He", "llo"])
        orchestrator = TranslationOrchestrator(provider, cache)

        outcome = await orchestrator.translate("Hi", recorder)

        assert recorder.snapshots == [("He", True), ("Hello", True), ("Hello", False)]
        assert await cache.get("Hi", "real-model") == "Hello"
        assert outcome.state == RequestState.COMMITTED
        assert outcome.text == "Hello"
        assert outcome.chunk_count == 2
        assert outcome.from_cache is False

    @pytest.mark.asyncio
    async def test_default_model_comes_from_provider(self, cache, recorder, scripted_provider):
        provider = scripted_provider(["x"], default_model="provider-default")
        await TranslationOrchestrator(provider, cache).translate("Hi", recorder)

        assert provider.calls == [("Hi", "provider-default")]
        assert await cache.get("Hi", "provider-default") == "x"

    @pytest.mark.asyncio
    async def test_explicit_model_is_used_for_stream_and_cache(
        self, cache, recorder, scripted_provider
    ):
        provider = scripted_provider(["x"])
        outcome = await TranslationOrchestrator(provider, cache).translate(
            "Hi", recorder, model="other-model"
        )

        assert provider.calls == [("Hi", "other-model")]
        assert outcome.model == "other-model"
        assert await cache.get("Hi", "real-model") is None
        assert await cache.get("Hi", "other-model") == "x"

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self, cache, scripted_provider):
        received = []

        async def on_update(update: TranslationUpdate) -> None:
            received.append(update.text)

        await TranslationOrchestrator(scripted_provider(["a", "b"]), cache).translate(
            "Hi", on_update
        )
        assert received == ["a", "ab", "ab"]

    @pytest.mark.asyncio
    async def test_empty_stream_commits_empty_text(self, cache, recorder, scripted_provider):
        outcome = await TranslationOrchestrator(scripted_provider([]), cache).translate(
            "Hi", recorder
        )
        assert recorder.snapshots == [("", False)]
        assert outcome.state == RequestState.COMMITTED
        assert await cache.get("Hi", "real-model") == ""


class TestCacheInteraction:
    @pytest.mark.asyncio
    async def test_hit_is_delivered_once_without_streaming(
        self, cache, recorder, scripted_provider
    ):
        await cache.set("Hi", "你好", "real-model")
        provider = scripted_provider(["never"])

        outcome = await TranslationOrchestrator(provider, cache).translate("Hi", recorder)

        assert recorder.snapshots == [("你好", False)]
        assert provider.calls == []
        assert outcome.state == RequestState.HIT_DELIVERED
        assert outcome.from_cache is True

    @pytest.mark.asyncio
    async def test_force_bypass_retranslates_and_overwrites(
        self, cache, recorder, scripted_provider
    ):
        await cache.set("Hi", "stale", "real-model")
        provider = scripted_provider(["fresh"])

        await TranslationOrchestrator(provider, cache).translate(
            "Hi", recorder, force_bypass_cache=True
        )

        assert provider.calls == [("Hi", "real-model")]
        assert recorder.snapshots[-1] == ("fresh", False)
        assert await cache.get("Hi", "real-model") == "fresh"

    @pytest.mark.asyncio
    async def test_stand_in_output_under_real_model_is_ignored(
        self, cache, recorder, scripted_provider
    ):
        poisoned = f"{MOCK_TRANSLATION_PREFIX} Hi"
        await cache.set("Hi", poisoned, "real-model")
        provider = scripted_provider(["你好"])

        await TranslationOrchestrator(provider, cache).translate("Hi", recorder)

        assert provider.calls == [("Hi", "real-model")]
        assert ("你好", False) in recorder.snapshots
        assert all(text != poisoned for text, _ in recorder.snapshots)
        assert await cache.get("Hi", "real-model") == "你好"

    @pytest.mark.asyncio
    async def test_poisoned_value_is_still_returned_by_raw_cache(self, cache):
        poisoned = f"{MOCK_TRANSLATION_PREFIX} Hi"
        await cache.set("Hi", poisoned, "real-model")
        assert await cache.get("Hi", "real-model") == poisoned

    @pytest.mark.asyncio
    async def test_stand_in_output_under_mock_model_is_served(
        self, cache, recorder, scripted_provider
    ):
        cached = f"{MOCK_TRANSLATION_PREFIX} Hi"
        await cache.set("Hi", cached, MOCK_MODEL)
        provider = scripted_provider(["never"], default_model=MOCK_MODEL)

        outcome = await TranslationOrchestrator(provider, cache).translate("Hi", recorder)

        assert outcome.from_cache is True
        assert recorder.snapshots == [(cached, False)]


class TestFailures:
    @pytest.mark.asyncio
    async def test_stream_failure_commits_nothing(self, cache, recorder, scripted_provider):
        provider = scripted_provider(
            ["partial"], error=TranslationError("boom", kind=ErrorKind.NETWORK)
        )

        with pytest.raises(TranslationError) as exc_info:
            await TranslationOrchestrator(provider, cache).translate("Hi", recorder)

        assert exc_info.value.kind == ErrorKind.NETWORK
        assert recorder.snapshots == [("partial", True)]
        assert await cache.get("Hi", "real-model") is None
        assert (await cache.get_stats()).entry_count == 0

    @pytest.mark.asyncio
    async def test_unclassified_failure_is_wrapped_as_unknown(
        self, cache, recorder, scripted_provider
    ):
        original = RuntimeError("socket exploded")
        provider = scripted_provider([], error=original)

        with pytest.raises(TranslationError) as exc_info:
            await TranslationOrchestrator(provider, cache).translate("Hi", recorder)

        assert exc_info.value.kind == ErrorKind.UNKNOWN
        assert exc_info.value.cause is original
        assert "socket exploded" in exc_info.value.user_message

    @pytest.mark.asyncio
    async def test_commit_failure_is_a_persistence_error(
        self, failing_store, clock, recorder, scripted_provider
    ):
        failing_store.fail_writes = True
        cache = TranslationCache(failing_store, clock=clock)

        with pytest.raises(TranslationError) as exc_info:
            await TranslationOrchestrator(scripted_provider(["done"]), cache).translate(
                "Hi", recorder
            )

        assert exc_info.value.kind == ErrorKind.PERSISTENCE
        assert isinstance(exc_info.value.cause, CacheStoreError)
        # The final snapshot is only sent after a successful commit
        assert recorder.snapshots == [("done", True)]

    @pytest.mark.asyncio
    async def test_unreadable_store_streams_then_fails_commit(
        self, failing_store, clock, recorder, scripted_provider
    ):
        failing_store.fail_reads = True
        cache = TranslationCache(failing_store, clock=clock)
        provider = scripted_provider(["ok"])

        with pytest.raises(TranslationError) as exc_info:
            await TranslationOrchestrator(provider, cache).translate("Hi", recorder)

        # The failed lookup counts as a miss, so the provider still streams
        assert provider.calls == [("Hi", "real-model")]
        # Committing reads the index, which fails on the same store
        assert exc_info.value.kind == ErrorKind.PERSISTENCE
        assert isinstance(exc_info.value.cause, CacheStoreError)
        assert recorder.snapshots == [("ok", True)]


class TestPoisoningGuard:
    def test_prefixed_text_under_real_model(self):
        assert is_poisoned_hit(f"{MOCK_TRANSLATION_PREFIX} text", "real-model") is True

    def test_prefixed_text_under_mock_model(self):
        assert is_poisoned_hit(f"{MOCK_TRANSLATION_PREFIX} text", MOCK_MODEL) is False

    def test_ordinary_text(self):
        assert is_poisoned_hit("你好", "real-model") is False


class TestRequestTracker:
    def test_walks_through_streaming_states(self):
        request = _RequestTracker()
        for state in (RequestState.CACHE_CHECK, RequestState.STREAMING, RequestState.COMMITTED):
            request.transition(state)
        assert request.state == RequestState.COMMITTED

    @pytest.mark.parametrize(
        "terminal", [RequestState.HIT_DELIVERED, RequestState.COMMITTED, RequestState.FAILED]
    )
    def test_terminal_states_are_final(self, terminal):
        request = _RequestTracker()
        request.transition(terminal)

        assert terminal.is_terminal
        with pytest.raises(RuntimeError):
            request.transition(RequestState.STREAMING)
        assert request.state == terminal

    def test_in_flight_states_are_not_terminal(self):
        assert not RequestState.STREAMING.is_terminal
        assert not RequestState.CACHE_CHECK.is_terminal
