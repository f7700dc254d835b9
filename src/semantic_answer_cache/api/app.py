import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from semantic_answer_cache.api.dependencies import (
    AnswerProviderFactory,
    EngineFactory,
    HandlerDep,
    build_answer_provider,
    build_engine,
    make_lifespan,
)
from semantic_answer_cache.config import settings
from semantic_answer_cache.dto import (
    CacheStatsResponse,
    HealthCheckResponse,
    PurgeResponse,
    SearchRequest,
    SearchResponse,
)


def create_app(
    engine_factory: EngineFactory = build_engine,
    answer_factory: AnswerProviderFactory = build_answer_provider,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        engine_factory: Creates the engine opened during lifespan
        answer_factory: Creates the answer provider used on cache misses

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Semantic Answer Cache API",
        description="Reuses generated answers for semantically similar queries",
        version="0.1.0",
        lifespan=make_lifespan(engine_factory, answer_factory),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Semantic Answer Cache API",
            "version": "0.1.0",
            "endpoints": {
                "search": "/search",
                "stats": "/cache/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.post("/search", response_model=SearchResponse)
    async def search(request: SearchRequest, handler: HandlerDep) -> SearchResponse:
        """Answer a query from the cache or by generating a fresh answer."""
        return await handler.search(request)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def get_stats(handler: HandlerDep) -> CacheStatsResponse:
        """Get cache statistics."""
        return await handler.get_stats()

    @app.delete("/cache", response_model=PurgeResponse)
    async def clear_cache(handler: HandlerDep) -> PurgeResponse:
        """Remove every cache entry."""
        return await handler.purge()

    @app.delete("/cache/{entry_id}", response_model=PurgeResponse)
    async def delete_entry(entry_id: str, handler: HandlerDep) -> PurgeResponse:
        """Remove a single cache entry."""
        return await handler.purge(entry_id)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "semantic_answer_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
