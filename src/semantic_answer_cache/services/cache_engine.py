"""Semantic cache engine for core business logic.

This engine orchestrates a query by coordinating the embedding provider
(vector generation), the in-memory index (matching), the answer provider
(fresh answers on a miss) and the entry store (write-through persistence).
"""

import asyncio
import inspect
import logging
import threading
import time
import uuid
from collections.abc import Callable
from typing import Any

import numpy as np

from semantic_answer_cache.config import settings
from semantic_answer_cache.entities import (
    CacheEntryEntity,
    CacheMatchEntity,
    EmbeddingResult,
    ResolveResult,
    Source,
)
from semantic_answer_cache.errors import EngineClosedError, InputError
from semantic_answer_cache.eviction import EvictionPolicy
from semantic_answer_cache.index import CacheIndex
from semantic_answer_cache.models import PerformanceMetrics
from semantic_answer_cache.protocols import AnswerFn, AnswerProvider, EmbeddingProvider, EntryStore
from semantic_answer_cache.similarity import find_best

logger = logging.getLogger(__name__)


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    """Await coroutine functions, run plain callables in a worker thread."""
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)
    result = await asyncio.to_thread(fn, *args)
    if inspect.isawaitable(result):
        return await result
    return result


def _new_entry_id() -> str:
    return uuid.uuid4().hex


class SemanticCacheEngine:
    """Core semantic cache orchestration.

    The engine is an explicitly constructed instance with its own index;
    request handlers receive it by reference. It depends on PROTOCOLS, not
    concrete implementations:
    - EmbeddingProvider: local sentence-transformers, Ollama, etc.
    - EntryStore: Redis, or None for a purely in-memory cache.

    Concurrency:
    - The read path (embedding + similarity scan) takes no engine lock and
      works on an index snapshot.
    - The write path (insert + write-through + eviction) runs under a single
      ``threading.Lock`` per engine.
    - Answer generation runs outside the lock.

    Example:
        ```python
        from semantic_answer_cache.repositories import LocalEmbeddingProvider, RedisEntryStore
        from semantic_answer_cache.services import SemanticCacheEngine

        engine = SemanticCacheEngine.create(
            embedding_provider=LocalEmbeddingProvider.create(),
            store=RedisEntryStore.create(),
        )

        async with engine:
            result = await engine.resolve("What is a semantic cache?", ask_llm)
        ```
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        store: EntryStore | None = None,
        similarity_threshold: float | None = None,
        expiration_hours: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _new_entry_id,
    ) -> None:
        """Initialize the engine.

        Args:
            embedding_provider: Embedding generation service (required).
            store: Durable write-through store. None keeps the cache in memory only.
            similarity_threshold: Minimum cosine similarity for a hit, in (0, 1].
                Defaults to settings.
            expiration_hours: Entry lifetime from creation. Defaults to settings.
            max_entries: Capacity of the index. Defaults to settings.
            clock: Source of Unix timestamps for created_at and expiry.
            id_factory: Generator of unique entry ids.
        """
        threshold = (
            similarity_threshold
            if similarity_threshold is not None
            else settings.cache_similarity_threshold
        )
        if not 0 < threshold <= 1:
            raise ValueError("Similarity threshold must be in (0, 1]")

        hours = expiration_hours if expiration_hours is not None else settings.cache_expiration_hours
        capacity = max_entries if max_entries is not None else settings.cache_max_entries

        self._embeddings = embedding_provider
        self._store = store
        self._threshold = threshold
        self._ttl_seconds = int(hours * 3600)
        self._clock = clock
        self._id_factory = id_factory
        self._policy = EvictionPolicy(self._ttl_seconds, capacity, clock)
        self._index = CacheIndex()
        self._write_lock = threading.Lock()
        self._metrics = PerformanceMetrics()
        self._dimension: int | None = None
        self._is_open = False

    @classmethod
    def create(
        cls,
        embedding_provider: EmbeddingProvider,
        store: EntryStore | None = None,
        similarity_threshold: float | None = None,
        expiration_hours: float | None = None,
        max_entries: int | None = None,
    ) -> "SemanticCacheEngine":
        """Factory method to create an engine with settings defaults.

        Args:
            embedding_provider: Embedding generation service (required).
            store: Durable write-through store, or None.
            similarity_threshold: Minimum similarity for a hit. If None, uses settings.
            expiration_hours: Entry lifetime in hours. If None, uses settings.
            max_entries: Index capacity. If None, uses settings.

        Returns:
            Configured (not yet opened) SemanticCacheEngine
        """
        return cls(
            embedding_provider=embedding_provider,
            store=store,
            similarity_threshold=similarity_threshold,
            expiration_hours=expiration_hours,
            max_entries=max_entries,
        )

    # Lifecycle

    async def open(self) -> None:
        """Acquire the embedding provider and warm the index from the store.

        Rehydration is best-effort: a store that cannot be read or enumerated
        leaves the index empty, to warm up from live traffic.
        """
        if self._is_open:
            return

        opener = getattr(self._embeddings, "open", None)
        if opener is not None:
            await _call(opener)

        self._dimension = await asyncio.to_thread(lambda: self._embeddings.dimension)

        if self._store is not None:
            await asyncio.to_thread(self._rehydrate)

        self._is_open = True
        logger.info(
            "Semantic cache opened (model=%s, dimension=%d, threshold=%.2f, ttl=%ds, max_entries=%d)",
            self._embeddings.model_name,
            self._dimension,
            self._threshold,
            self._ttl_seconds,
            self._policy.max_entries,
        )

    async def close(self) -> None:
        """Release the embedding provider. The index is kept."""
        if not self._is_open:
            return

        self._is_open = False
        closer = getattr(self._embeddings, "close", None)
        if closer is not None:
            await _call(closer)
        logger.info("Semantic cache closed")

    async def __aenter__(self) -> "SemanticCacheEngine":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _ensure_open(self) -> None:
        if not self._is_open:
            raise EngineClosedError("SemanticCacheEngine is not open. Call open() first.")

    def _rehydrate(self) -> int:
        iter_ids = getattr(self._store, "iter_ids", None)
        if iter_ids is None:
            logger.info("Entry store cannot enumerate keys, starting with an empty index")
            return 0

        try:
            entry_ids = list(iter_ids())
        except Exception as e:
            logger.error("Error initializing cache index: %s", e)
            return 0

        loaded = 0
        for entry_id in entry_ids:
            try:
                entry = self._store.get(entry_id)
            except Exception as e:
                logger.warning("Failed to load entry %s from store: %s", entry_id, e)
                continue
            if entry is not None and self._index.insert(entry):
                loaded += 1

        with self._write_lock:
            self._policy.apply(self._index, self._store)

        logger.info("Cache index initialized with %d entries", self._index.size())
        return loaded

    # Read path

    async def embed(self, query: str) -> EmbeddingResult:
        """Generate an embedding, degrading instead of raising.

        Provider failures and unusable vectors (empty, wrong dimension,
        zero or non-finite) produce a degraded result carrying a zero vector.

        Args:
            query: The text to embed

        Returns:
            EmbeddingResult, degraded when the vector must not be matched on
        """
        dimension = self.dimension
        try:
            vector = await _call(self._embeddings.encode, query)
        except Exception as e:
            return self._degrade(query, dimension, f"embedding provider failed: {e}")

        try:
            array = np.asarray(vector, dtype=np.float64)
        except (TypeError, ValueError) as e:
            return self._degrade(query, dimension, f"embedding is not numeric: {e}")

        if array.ndim != 1 or array.size != dimension:
            return self._degrade(
                query, dimension, f"embedding has shape {array.shape}, expected ({dimension},)"
            )
        if not np.all(np.isfinite(array)) or not np.any(array):
            return self._degrade(query, dimension, "embedding is zero or non-finite")

        return EmbeddingResult.usable(array.tolist())

    def _degrade(self, query: str, dimension: int, reason: str) -> EmbeddingResult:
        logger.warning("Degraded embedding for %r: %s", query, reason)
        self._metrics.record_degraded()
        return EmbeddingResult.degraded_to(dimension, reason)

    def lookup(self, query_embedding: list[float]) -> CacheMatchEntity | None:
        """Find the best entry at or above the threshold in an index snapshot.

        Args:
            query_embedding: The query vector

        Returns:
            CacheMatchEntity if found, None otherwise
        """
        return find_best(self._index.snapshot(), query_embedding, self._threshold)

    async def resolve(
        self,
        query: str,
        answer_fn: AnswerFn | AnswerProvider,
        timeout: float | None = None,
    ) -> ResolveResult:
        """Answer a query from the cache or by generating a fresh answer.

        Business logic:
        1. Reject blank queries
        2. Embed the query (degrading on failure)
        3. Match against an index snapshot
        4. On a miss, generate an answer outside the write lock
        5. Return a blank answer as is, without caching it
        6. Insert, write through and evict under the write lock

        Cancelling the caller during step 6 does not undo it: the worker
        thread finishes the commit, so the complete entry is indexed and
        stored even though the caller sees ``CancelledError``.

        Args:
            query: The user's query
            answer_fn: Callable (sync or async) or AnswerProvider producing a fresh answer
            timeout: Deadline in seconds for answer generation, None for no limit

        Returns:
            ResolveResult with the answer and where it came from

        Raises:
            InputError: If the query is empty or blank
            EngineClosedError: If the engine is not open
            TimeoutError: If answer generation exceeds the timeout
            Exception: Whatever the answer function raised, unmodified
        """
        if not query or not query.strip():
            raise InputError("Query must not be empty")
        self._ensure_open()

        start_time = time.perf_counter()
        embedding = await self.embed(query)
        match = None if embedding.degraded else await asyncio.to_thread(self.lookup, embedding.vector)
        lookup_time_ms = (time.perf_counter() - start_time) * 1000

        if match is not None:
            self._metrics.record_hit(lookup_time_ms)
            logger.info(
                "Cache HIT: %r matches %r (similarity %.4f)",
                query,
                match.entry.query,
                match.similarity,
            )
            return ResolveResult(
                response=match.response,
                source=Source.CACHE,
                similarity=match.similarity,
                entry_id=match.entry.id,
            )

        self._metrics.record_miss(lookup_time_ms)
        logger.info("Cache MISS: %r", query)

        response = await self._generate(query, answer_fn, timeout)

        if not response or not response.strip():
            logger.warning("Answer for %r is blank, not caching it", query)
            return ResolveResult(response=response, source=Source.GENERATED, degraded=embedding.degraded)

        entry = CacheEntryEntity(
            id=self._id_factory(),
            query=query,
            response=response,
            embedding=embedding.vector,
            created_at=self._clock(),
        )
        await asyncio.to_thread(self.commit, entry)
        logger.info("Response cached for %r as %s", query, entry.id)

        return ResolveResult(
            response=response,
            source=Source.GENERATED,
            degraded=embedding.degraded,
            entry_id=entry.id,
        )

    async def _generate(
        self,
        query: str,
        answer_fn: AnswerFn | AnswerProvider,
        timeout: float | None,
    ) -> str:
        fn = getattr(answer_fn, "generate", answer_fn)
        start_time = time.perf_counter()
        response = await asyncio.wait_for(_call(fn, query), timeout)
        self._metrics.record_llm_call((time.perf_counter() - start_time) * 1000)
        return response

    # Write path

    def commit(self, entry: CacheEntryEntity) -> bool:
        """Insert an entry, write it through and run eviction, atomically.

        Store failures are logged; the in-memory index stays authoritative.

        Args:
            entry: The new entry

        Returns:
            True if inserted, False if the id was already present
        """
        with self._write_lock:
            if not self._index.insert(entry):
                logger.warning("Entry id %s already indexed, skipping insert", entry.id)
                return False

            if self._store is not None:
                try:
                    self._store.put(entry.id, entry, self._ttl_seconds)
                except Exception as e:
                    logger.warning("Write-through failed for %s: %s", entry.id, e)

            self._policy.apply(self._index, self._store)
        return True

    def purge(self, entry_id: str | None = None) -> int:
        """Administratively remove one entry, or every entry.

        Args:
            entry_id: The entry to remove. None clears the whole cache.

        Returns:
            Number of entries removed from the index
        """
        with self._write_lock:
            if entry_id is not None:
                removed_ids = [entry_id] if self._index.remove(entry_id) else []
                store_ids = [entry_id]
            else:
                removed_ids = [entry.id for entry in self._index.snapshot()]
                self._index.clear()
                store_ids = removed_ids

            if self._store is not None:
                for store_id in store_ids:
                    try:
                        self._store.remove(store_id)
                    except Exception as e:
                        logger.warning("Failed to remove %s from entry store: %s", store_id, e)

        logger.info("Purged %d cache entries", len(removed_ids))
        return len(removed_ids)

    # Introspection

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        return {
            "total_entries": self._index.size(),
            "similarity_threshold": self._threshold,
            "ttl": self._ttl_seconds,
            "max_entries": self._policy.max_entries,
            "embedding_model": self._embeddings.model_name,
            "embedding_dimension": self._dimension,
            "performance": self._metrics.to_dict(),
        }

    async def is_healthy(self) -> bool:
        """Check if cache is healthy.

        Returns:
            True if the engine is open and both store and embeddings are healthy
        """
        if not self._is_open:
            return False
        store_healthy = True
        if self._store is not None:
            store_healthy = await asyncio.to_thread(self._store.health_check)
        embeddings_healthy = await _call(self._embeddings.is_available)
        return bool(store_healthy and embeddings_healthy)

    @property
    def dimension(self) -> int:
        """Embedding dimension D shared by every entry."""
        if self._dimension is None:
            self._dimension = self._embeddings.dimension
        return self._dimension

    @property
    def threshold(self) -> float:
        """Get the similarity threshold."""
        return self._threshold

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    @property
    def max_entries(self) -> int:
        return self._policy.max_entries

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def index(self) -> CacheIndex:
        """Get the in-memory index (for testing)."""
        return self._index

    @property
    def store(self) -> EntryStore | None:
        """Get the underlying entry store (for testing)."""
        return self._store

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Get the underlying embedding provider (for testing)."""
        return self._embeddings

    @property
    def metrics(self) -> PerformanceMetrics:
        return self._metrics
