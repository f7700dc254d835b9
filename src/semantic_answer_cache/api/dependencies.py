"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - One engine is constructed and opened during lifespan
    - Dependency functions retrieve it from request.app.state
    - Clean separation, no global mutable state
"""

import inspect
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from semantic_answer_cache.config import settings
from semantic_answer_cache.handlers import SearchHandler
from semantic_answer_cache.protocols import AnswerProvider
from semantic_answer_cache.repositories import (
    LocalEmbeddingProvider,
    OllamaAnswerProvider,
    RedisEntryStore,
)
from semantic_answer_cache.services import SemanticCacheEngine

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], SemanticCacheEngine]
AnswerProviderFactory = Callable[[], AnswerProvider]


def build_engine() -> SemanticCacheEngine:
    """Default engine: local sentence-transformers embeddings, Redis write-through."""
    return SemanticCacheEngine.create(
        embedding_provider=LocalEmbeddingProvider.create(),
        store=RedisEntryStore.create(),
    )


def build_answer_provider() -> AnswerProvider:
    """Default answer provider: Ollama generate API."""
    return OllamaAnswerProvider.create()


def get_engine(request: Request) -> SemanticCacheEngine:
    """Dependency injection for SemanticCacheEngine from app.state.

    Raises:
        RuntimeError: If the engine is not initialized
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise RuntimeError("SemanticCacheEngine not initialized. Check lifespan setup.")
    return engine


def get_handler(request: Request) -> SearchHandler:
    """Dependency injection for SearchHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "search_handler", None)
    if handler is None:
        raise RuntimeError("SearchHandler not initialized. Check lifespan setup.")
    return handler


def make_lifespan(
    engine_factory: EngineFactory = build_engine,
    answer_factory: AnswerProviderFactory = build_answer_provider,
):
    """Build a lifespan context manager around the given factories.

    Args:
        engine_factory: Creates the (unopened) engine
        answer_factory: Creates the answer provider

    Returns:
        Lifespan context manager for FastAPI
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = engine_factory()
        answer_provider = answer_factory()
        await engine.open()

        app.state.engine = engine
        app.state.answer_provider = answer_provider
        app.state.search_handler = SearchHandler(
            engine=engine,
            answer_provider=answer_provider,
            timeout=settings.answer_timeout_seconds,
        )
        logger.info("Semantic answer cache initialized (threshold %.2f)", engine.threshold)

        try:
            yield
        finally:
            del app.state.search_handler
            del app.state.answer_provider
            del app.state.engine

            await engine.close()
            close = getattr(answer_provider, "close", None)
            if close is not None:
                result = close()
                if inspect.isawaitable(result):
                    await result
            logger.info("Semantic answer cache shut down")

    return lifespan


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[SearchHandler, Depends(get_handler)]
EngineDep = Annotated[SemanticCacheEngine, Depends(get_engine)]
