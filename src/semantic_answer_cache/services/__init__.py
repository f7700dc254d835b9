"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from semantic_answer_cache.services import SemanticCacheEngine

    engine = SemanticCacheEngine.create(embedding_provider=provider, store=store)
    async with engine:
        result = await engine.resolve(query, answer_fn)
    ```
"""

from .cache_engine import SemanticCacheEngine

__all__ = [
    "SemanticCacheEngine",
]
