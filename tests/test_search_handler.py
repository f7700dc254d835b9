"""
Tests for the HTTP handler's interaction with the engine.
"""

import asyncio
import threading
import time

import pytest
from fastapi import HTTPException

from conftest import FakeEmbeddingProvider, FakeEntryStore, make_entry, unit
from semantic_answer_cache.dto import SearchRequest
from semantic_answer_cache.handlers import SearchHandler
from semantic_answer_cache.services import SemanticCacheEngine


class SlowStore(FakeEntryStore):
    """Store whose writes take long enough to hold the engine's write lock."""

    def __init__(self, delay: float) -> None:
        super().__init__()
        self.delay = delay
        self.writing = threading.Event()

    def put(self, entry_id, entry, ttl):
        self.writing.set()
        time.sleep(self.delay)
        super().put(entry_id, entry, ttl)


async def heartbeat(stop: asyncio.Event, gaps: list[float]) -> None:
    last = time.perf_counter()
    while not stop.is_set():
        await asyncio.sleep(0.01)
        now = time.perf_counter()
        gaps.append(now - last)
        last = now


def make_engine(clock, store=None) -> SemanticCacheEngine:
    return SemanticCacheEngine(
        embedding_provider=FakeEmbeddingProvider({"hello": unit(0)}),
        store=store,
        similarity_threshold=0.8,
        expiration_hours=4,
        max_entries=10,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_purge_waits_for_write_lock_off_the_event_loop(clock):
    store = SlowStore(delay=0.5)
    engine = make_engine(clock, store)
    handler = SearchHandler(engine=engine, answer_provider=lambda q: "answer")

    async with engine:
        commit = asyncio.create_task(
            asyncio.to_thread(engine.commit, make_entry("slow", unit(0), created_at=clock.now))
        )
        await asyncio.to_thread(store.writing.wait, 5)

        stop = asyncio.Event()
        gaps: list[float] = []
        ticker = asyncio.create_task(heartbeat(stop, gaps))
        await asyncio.sleep(0.02)

        response = await handler.purge()

        stop.set()
        await ticker
        assert await commit is True

    assert response.deleted_count == 1
    assert max(gaps) < 0.2
    assert store.entries == {}


@pytest.mark.asyncio
async def test_purge_unknown_entry_is_404(clock):
    engine = make_engine(clock, FakeEntryStore())
    handler = SearchHandler(engine=engine, answer_provider=lambda q: "answer")

    async with engine:
        with pytest.raises(HTTPException) as excinfo:
            await handler.purge("missing")

    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_search_on_closed_engine_is_503(clock):
    engine = make_engine(clock)
    handler = SearchHandler(engine=engine, answer_provider=lambda q: "answer")

    with pytest.raises(HTTPException) as excinfo:
        await handler.search(SearchRequest(query="hello"))

    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_search_answer_failure_is_502(clock):
    def failing(query: str) -> str:
        raise RuntimeError("model crashed")

    engine = make_engine(clock)
    handler = SearchHandler(engine=engine, answer_provider=failing)

    async with engine:
        with pytest.raises(HTTPException) as excinfo:
            await handler.search(SearchRequest(query="hello"))

    assert excinfo.value.status_code == 502
    assert engine.index.size() == 0
