"""
Shared fakes for the semantic answer cache tests.
"""

import math
import threading

import pytest

from semantic_answer_cache.entities import CacheEntryEntity


class FakeClock:
    """Manually advanced Unix clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEmbeddingProvider:
    """Embedding provider backed by a text -> vector table.

    Texts without a registered vector make ``encode`` raise, which the
    engine must treat as a degraded embedding.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None, dimension: int = 4) -> None:
        self.vectors = dict(vectors or {})
        self._dimension = dimension
        self.calls: list[str] = []
        self.opened = False
        self.closed = False

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if text not in self.vectors:
            raise RuntimeError(f"no embedding for {text!r}")
        return self.vectors[text]

    def is_available(self) -> bool:
        return True


class AsyncFakeEmbeddingProvider(FakeEmbeddingProvider):
    """Same table, exposed through a coroutine ``encode``."""

    async def encode(self, text: str) -> list[float]:  # type: ignore[override]
        return FakeEmbeddingProvider.encode(self, text)


class FakeEntryStore:
    """In-memory EntryStore with switchable failures."""

    def __init__(self) -> None:
        self.entries: dict[str, CacheEntryEntity] = {}
        self.ttls: dict[str, int] = {}
        self.removed: list[str] = []
        self.fail_put = False
        self.fail_remove = False
        self.fail_scan = False
        self._lock = threading.Lock()

    def put(self, entry_id: str, entry: CacheEntryEntity, ttl: int) -> None:
        if self.fail_put:
            raise ConnectionError("store unavailable")
        with self._lock:
            self.entries[entry_id] = entry
            self.ttls[entry_id] = ttl

    def get(self, entry_id: str) -> CacheEntryEntity | None:
        return self.entries.get(entry_id)

    def remove(self, entry_id: str) -> bool:
        if self.fail_remove:
            raise ConnectionError("store unavailable")
        with self._lock:
            self.removed.append(entry_id)
            return self.entries.pop(entry_id, None) is not None

    def iter_ids(self) -> list[str]:
        if self.fail_scan:
            raise ConnectionError("store unavailable")
        return list(self.entries)

    def health_check(self) -> bool:
        return True


def unit(angle_degrees: float) -> list[float]:
    """4-d unit vector in the first plane at the given angle from the x axis."""
    radians = math.radians(angle_degrees)
    return [math.cos(radians), math.sin(radians), 0.0, 0.0]


def with_similarity(similarity: float) -> list[float]:
    """4-d unit vector whose cosine similarity to [1, 0, 0, 0] is ``similarity``."""
    return [similarity, math.sqrt(1.0 - similarity**2), 0.0, 0.0]


def make_entry(
    entry_id: str,
    embedding: list[float] | None,
    created_at: float = 0.0,
    query: str | None = None,
    response: str | None = None,
) -> CacheEntryEntity:
    return CacheEntryEntity(
        id=entry_id,
        query=query or f"query {entry_id}",
        response=response or f"answer {entry_id}",
        embedding=embedding,
        created_at=created_at,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeEntryStore:
    return FakeEntryStore()
