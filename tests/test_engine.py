"""
Tests for the semantic cache engine.
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
import pytest_asyncio

from conftest import (
    AsyncFakeEmbeddingProvider,
    FakeEmbeddingProvider,
    FakeEntryStore,
    make_entry,
    unit,
    with_similarity,
)
from semantic_answer_cache.entities import Source
from semantic_answer_cache.errors import EngineClosedError, InputError
from semantic_answer_cache.services import SemanticCacheEngine

HOUR = 3600

VECTORS = {
    "What is a semantic cache?": [1.0, 0.0, 0.0, 0.0],
    "Explain semantic caching": with_similarity(0.93),
    "How do I bake bread?": [0.0, 1.0, 0.0, 0.0],
    "Best sourdough recipe": [0.0, 0.0, 1.0, 0.0],
    "Unrelated topic": [0.0, 0.0, 0.0, 1.0],
    "Wrong size": [1.0, 0.0],
    "All zeros": [0.0, 0.0, 0.0, 0.0],
}


class AnswerRecorder:
    """Sync answer function that records its calls."""

    def __init__(self, prefix: str = "answer") -> None:
        self.prefix = prefix
        self.calls: list[str] = []

    def __call__(self, query: str) -> str:
        self.calls.append(query)
        return f"{self.prefix}: {query}"


class AsyncAnswerProvider:
    def __init__(self) -> None:
        self.calls: list[str] = []

    @property
    def model_name(self) -> str:
        return "fake-answers"

    async def generate(self, text: str) -> str:
        self.calls.append(text)
        await asyncio.sleep(0)
        return f"generated: {text}"


class GenerationFailed(Exception):
    pass


def make_engine(clock, store=None, provider=None, **kwargs) -> SemanticCacheEngine:
    return SemanticCacheEngine(
        embedding_provider=provider or FakeEmbeddingProvider(VECTORS),
        store=store,
        similarity_threshold=kwargs.pop("similarity_threshold", 0.80),
        expiration_hours=kwargs.pop("expiration_hours", 4),
        max_entries=kwargs.pop("max_entries", 1000),
        clock=clock,
        **kwargs,
    )


@pytest_asyncio.fixture
async def engine(clock, store):
    engine = make_engine(clock, store)
    await engine.open()
    yield engine
    await engine.close()


class TestResolve:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, engine):
        answer = AnswerRecorder()

        first = await engine.resolve("What is a semantic cache?", answer)
        second = await engine.resolve("Explain semantic caching", answer)

        assert first.source is Source.GENERATED
        assert first.response == "answer: What is a semantic cache?"
        assert first.similarity == 0.0
        assert second.source is Source.CACHE
        assert second.is_hit
        assert second.response == first.response
        assert second.similarity >= engine.threshold
        assert second.entry_id == first.entry_id
        assert answer.calls == ["What is a semantic cache?"]

    @pytest.mark.asyncio
    async def test_dissimilar_query_is_a_miss(self, engine):
        answer = AnswerRecorder()

        await engine.resolve("What is a semantic cache?", answer)
        result = await engine.resolve("How do I bake bread?", answer)

        assert result.source is Source.GENERATED
        assert result.degraded is False
        assert len(answer.calls) == 2
        assert engine.index.size() == 2

    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    @pytest.mark.asyncio
    async def test_blank_query_rejected_before_any_work(self, engine, query):
        answer = AnswerRecorder()

        with pytest.raises(InputError):
            await engine.resolve(query, answer)

        assert engine.embedding_provider.calls == []
        assert answer.calls == []
        assert engine.index.size() == 0

    @pytest.mark.asyncio
    async def test_resolve_requires_open_engine(self, clock):
        engine = make_engine(clock)

        with pytest.raises(EngineClosedError):
            await engine.resolve("What is a semantic cache?", AnswerRecorder())

    @pytest.mark.asyncio
    async def test_hit_does_not_refresh_age(self, engine, clock):
        answer = AnswerRecorder()
        first = await engine.resolve("What is a semantic cache?", answer)
        created_at = engine.index.get(first.entry_id).created_at

        clock.advance(HOUR)
        await engine.resolve("What is a semantic cache?", answer)

        assert engine.index.get(first.entry_id).created_at == created_at

    @pytest.mark.asyncio
    async def test_async_answer_provider(self, engine):
        answers = AsyncAnswerProvider()

        result = await engine.resolve("How do I bake bread?", answers)

        assert result.response == "generated: How do I bake bread?"
        assert answers.calls == ["How do I bake bread?"]

    @pytest.mark.asyncio
    async def test_async_embedding_provider(self, clock):
        engine = make_engine(clock, provider=AsyncFakeEmbeddingProvider(VECTORS))

        async with engine:
            await engine.resolve("What is a semantic cache?", AnswerRecorder())
            result = await engine.resolve("Explain semantic caching", AnswerRecorder())

        assert result.source is Source.CACHE

    @pytest.mark.asyncio
    async def test_blank_answer_is_not_cached(self, engine):
        result = await engine.resolve("How do I bake bread?", lambda q: "  ")

        assert result.source is Source.GENERATED
        assert result.entry_id is None
        assert engine.index.size() == 0


class TestDegradedEmbedding:
    @pytest.mark.parametrize("query", ["No vector registered", "Wrong size", "All zeros"])
    @pytest.mark.asyncio
    async def test_degraded_embedding_still_generates(self, engine, query, caplog):
        answer = AnswerRecorder()

        with caplog.at_level(logging.WARNING, logger="semantic_answer_cache.services.cache_engine"):
            result = await engine.resolve(query, answer)

        assert result.source is Source.GENERATED
        assert result.degraded is True
        assert answer.calls == [query]
        assert "Degraded embedding" in caplog.text

    @pytest.mark.asyncio
    async def test_degraded_entry_is_stored_with_zero_vector(self, engine, store):
        result = await engine.resolve("No vector registered", AnswerRecorder())

        entry = engine.index.get(result.entry_id)
        assert entry.embedding == [0.0] * engine.dimension
        assert result.entry_id in store.entries

    @pytest.mark.asyncio
    async def test_degraded_query_never_hits(self, engine):
        answer = AnswerRecorder()

        await engine.resolve("No vector registered", answer)
        again = await engine.resolve("No vector registered", answer)

        assert again.source is Source.GENERATED
        assert len(answer.calls) == 2

    @pytest.mark.asyncio
    async def test_embed_reports_reason(self, engine):
        result = await engine.embed("No vector registered")

        assert result.degraded is True
        assert "no embedding" in result.reason
        assert engine.metrics.degraded_embeddings == 1


class TestGenerationFailures:
    @pytest.mark.asyncio
    async def test_generation_error_propagates_unmodified(self, engine, store):
        error = GenerationFailed("model unavailable")

        def failing(query: str) -> str:
            raise error

        with pytest.raises(GenerationFailed) as excinfo:
            await engine.resolve("How do I bake bread?", failing)

        assert excinfo.value is error
        assert engine.index.size() == 0
        assert store.entries == {}

    @pytest.mark.asyncio
    async def test_timeout_propagates_and_caches_nothing(self, engine):
        async def slow(query: str) -> str:
            await asyncio.sleep(5)
            return "too late"

        with pytest.raises(asyncio.TimeoutError):
            await engine.resolve("How do I bake bread?", slow, timeout=0.05)

        assert engine.index.size() == 0

    @pytest.mark.asyncio
    async def test_cancellation_propagates_and_caches_nothing(self, engine):
        started = asyncio.Event()

        async def slow(query: str) -> str:
            started.set()
            await asyncio.sleep(5)
            return "too late"

        task = asyncio.create_task(engine.resolve("How do I bake bread?", slow))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert engine.index.size() == 0


class BlockingStore(FakeEntryStore):
    """Store whose writes wait until the test releases them."""

    def __init__(self) -> None:
        super().__init__()
        self.writing = threading.Event()
        self.release = threading.Event()

    def put(self, entry_id, entry, ttl):
        self.writing.set()
        self.release.wait(5)
        super().put(entry_id, entry, ttl)


class TestPersistence:
    @pytest.mark.asyncio
    async def test_write_through_uses_ttl(self, engine, store):
        result = await engine.resolve("How do I bake bread?", AnswerRecorder())

        stored = store.entries[result.entry_id]
        assert stored.response == "answer: How do I bake bread?"
        assert store.ttls[result.entry_id] == 4 * HOUR

    @pytest.mark.asyncio
    async def test_store_failure_does_not_fail_request(self, engine, store, caplog):
        store.fail_put = True

        with caplog.at_level(logging.WARNING, logger="semantic_answer_cache.services.cache_engine"):
            first = await engine.resolve("What is a semantic cache?", AnswerRecorder())
        second = await engine.resolve("Explain semantic caching", AnswerRecorder())

        assert first.source is Source.GENERATED
        assert second.source is Source.CACHE
        assert "Write-through failed" in caplog.text

    @pytest.mark.asyncio
    async def test_cancel_during_commit_still_stores_complete_entry(self, clock):
        store = BlockingStore()
        engine = make_engine(clock, store)

        async with engine:
            task = asyncio.create_task(engine.resolve("How do I bake bread?", AnswerRecorder()))
            await asyncio.to_thread(store.writing.wait, 5)
            task.cancel()
            store.release.set()

            with pytest.raises(asyncio.CancelledError):
                await task

            # purge takes the write lock, so it returns only after the commit finished
            await asyncio.to_thread(engine.purge, "unrelated")

        (entry,) = engine.index.snapshot()
        assert entry.response == "answer: How do I bake bread?"
        assert store.entries[entry.id] is entry

    @pytest.mark.asyncio
    async def test_open_rehydrates_from_store(self, clock, store):
        persisted = make_entry("persisted", [0.0, 0.0, 0.0, 1.0], created_at=clock.now - HOUR)
        store.put(persisted.id, persisted, 4 * HOUR)
        engine = make_engine(clock, store)

        async with engine:
            assert engine.index.size() == 1
            result = await engine.resolve("Unrelated topic", AnswerRecorder())

        assert result.source is Source.CACHE
        assert result.entry_id == "persisted"

    @pytest.mark.asyncio
    async def test_open_drops_expired_persisted_entries(self, clock, store):
        stale = make_entry("stale", [1.0, 0.0, 0.0, 0.0], created_at=clock.now - 5 * HOUR)
        store.put(stale.id, stale, 4 * HOUR)
        engine = make_engine(clock, store)

        async with engine:
            assert engine.index.size() == 0
        assert "stale" in store.removed

    @pytest.mark.asyncio
    async def test_open_survives_store_scan_failure(self, clock, store):
        store.fail_scan = True
        engine = make_engine(clock, store)

        async with engine:
            assert engine.is_open
            assert engine.index.size() == 0

    @pytest.mark.asyncio
    async def test_store_without_enumeration_starts_empty(self, clock):
        class WriteOnlyStore:
            def __init__(self):
                self.puts = []

            def put(self, entry_id, entry, ttl):
                self.puts.append(entry_id)

            def get(self, entry_id):
                return None

            def remove(self, entry_id):
                return False

            def health_check(self):
                return True

        store = WriteOnlyStore()
        engine = make_engine(clock, store)

        async with engine:
            result = await engine.resolve("How do I bake bread?", AnswerRecorder())

        assert store.puts == [result.entry_id]


class TestEviction:
    @pytest.mark.asyncio
    async def test_capacity_scenario(self, clock, store):
        """A (t=0), B (t=1), C (t=2) with room for two leaves B and C."""
        engine = make_engine(clock, store, max_entries=2)
        answer = AnswerRecorder()

        async with engine:
            a = await engine.resolve("What is a semantic cache?", answer)
            clock.advance(1)
            b = await engine.resolve("How do I bake bread?", answer)
            clock.advance(1)
            c = await engine.resolve("Best sourdough recipe", answer)

            remaining = {entry.id for entry in engine.index.snapshot()}

        assert remaining == {b.entry_id, c.entry_id}
        assert a.entry_id in store.removed
        assert a.entry_id not in store.entries

    @pytest.mark.asyncio
    async def test_expired_entry_gone_after_next_insert(self, engine, clock):
        answer = AnswerRecorder()
        old = await engine.resolve("What is a semantic cache?", answer)

        clock.advance(4 * HOUR + 1)
        await engine.resolve("How do I bake bread?", answer)

        assert old.entry_id not in engine.index
        again = await engine.resolve("Explain semantic caching", answer)
        assert again.source is Source.GENERATED

    @pytest.mark.asyncio
    async def test_concurrent_misses_respect_capacity(self, clock):
        vectors = {f"query {i}": [0.0] * i + [1.0] + [0.0] * (15 - i) for i in range(16)}
        provider = FakeEmbeddingProvider(vectors, dimension=16)
        engine = make_engine(clock, provider=provider, max_entries=5)

        async def answer(query: str) -> str:
            await asyncio.sleep(0.01)
            return f"answer: {query}"

        async with engine:
            results = await asyncio.gather(*(engine.resolve(q, answer) for q in vectors))

        assert all(r.source is Source.GENERATED for r in results)
        assert engine.index.size() == 5

    def test_threaded_commits_respect_capacity(self, clock, store):
        engine = make_engine(clock, store, max_entries=10)

        def commit(i: int) -> bool:
            return engine.commit(make_entry(f"entry-{i:03d}", unit(i), created_at=clock.now + i))

        with ThreadPoolExecutor(max_workers=8) as pool:
            assert all(pool.map(commit, range(100)))

        assert engine.index.size() == 10
        assert len(store.entries) == 10
        assert {e.id for e in engine.index.snapshot()} == {f"entry-{i:03d}" for i in range(90, 100)}

    def test_commit_rejects_duplicate_id(self, clock, store):
        engine = make_engine(clock, store)
        entry = make_entry("dup", unit(0), created_at=clock.now)

        assert engine.commit(entry) is True
        assert engine.commit(make_entry("dup", unit(90), created_at=clock.now)) is False
        assert engine.index.get("dup") is entry


class TestAdministration:
    @pytest.mark.asyncio
    async def test_purge_single_entry(self, engine, store):
        result = await engine.resolve("How do I bake bread?", AnswerRecorder())

        assert engine.purge(result.entry_id) == 1
        assert engine.purge(result.entry_id) == 0
        assert result.entry_id not in engine.index
        assert result.entry_id not in store.entries

    @pytest.mark.asyncio
    async def test_purge_all(self, engine, store):
        answer = AnswerRecorder()
        await engine.resolve("How do I bake bread?", answer)
        await engine.resolve("Best sourdough recipe", answer)

        assert engine.purge() == 2
        assert engine.index.size() == 0
        assert store.entries == {}

    @pytest.mark.asyncio
    async def test_stats(self, engine):
        answer = AnswerRecorder()
        await engine.resolve("What is a semantic cache?", answer)
        await engine.resolve("Explain semantic caching", answer)

        stats = engine.get_stats()

        assert stats["total_entries"] == 1
        assert stats["similarity_threshold"] == 0.80
        assert stats["ttl"] == 4 * HOUR
        assert stats["embedding_dimension"] == 4
        assert stats["performance"]["cache_hits"] == 1
        assert stats["performance"]["cache_misses"] == 1
        assert stats["performance"]["llm_calls"] == 1

    @pytest.mark.asyncio
    async def test_lifecycle_opens_and_closes_provider(self, clock):
        provider = FakeEmbeddingProvider(VECTORS)
        engine = make_engine(clock, provider=provider)

        async with engine:
            assert provider.opened
            assert await engine.is_healthy()

        assert provider.closed
        assert not engine.is_open
        assert not await engine.is_healthy()

    @pytest.mark.parametrize("threshold", [0.0, -0.5, 1.5])
    def test_invalid_threshold(self, clock, threshold):
        with pytest.raises(ValueError):
            make_engine(clock, similarity_threshold=threshold)
