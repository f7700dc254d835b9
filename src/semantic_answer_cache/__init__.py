"""Semantic Answer Cache - reuse generated answers for semantically similar queries.

This package provides a layered architecture for semantic answer caching:

Layers:
    - protocols: Interface contracts (EmbeddingProvider, EntryStore, AnswerProvider)
    - repositories: Data access implementations (sentence-transformers, Ollama, Redis)
    - services: Business logic (SemanticCacheEngine)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Core:
    - index: In-memory concurrent entry index
    - similarity: Cosine similarity and best-match selection
    - eviction: TTL expiry and oldest-first capacity eviction

Usage:
    ```python
    from semantic_answer_cache import SemanticCacheEngine
    from semantic_answer_cache.repositories import LocalEmbeddingProvider

    engine = SemanticCacheEngine.create(embedding_provider=LocalEmbeddingProvider.create())
    async with engine:
        result = await engine.resolve("What is a semantic cache?", ask_llm)
    ```

For HTTP API:
    ```python
    from semantic_answer_cache.api.app import app
    ```
"""

from semantic_answer_cache.config import get_redis_client, settings
from semantic_answer_cache.entities import (
    CacheEntryEntity,
    CacheMatchEntity,
    EmbeddingResult,
    ResolveResult,
    Source,
)
from semantic_answer_cache.errors import EngineClosedError, InputError, PersistenceError
from semantic_answer_cache.eviction import EvictionPolicy, EvictionReport
from semantic_answer_cache.index import CacheIndex
from semantic_answer_cache.protocols import AnswerProvider, EmbeddingProvider, EntryStore
from semantic_answer_cache.services import SemanticCacheEngine
from semantic_answer_cache.similarity import cosine_similarity, find_best

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "AnswerProvider",
    "EmbeddingProvider",
    "EntryStore",
    # Core
    "CacheIndex",
    "EvictionPolicy",
    "EvictionReport",
    "cosine_similarity",
    "find_best",
    # Services (business logic)
    "SemanticCacheEngine",
    # Entities (domain models)
    "CacheEntryEntity",
    "CacheMatchEntity",
    "EmbeddingResult",
    "ResolveResult",
    "Source",
    # Errors
    "EngineClosedError",
    "InputError",
    "PersistenceError",
]
