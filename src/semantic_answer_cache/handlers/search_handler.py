"""HTTP handlers for search and cache administration.

Handlers convert between DTOs (API contracts) and engine calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import asyncio
import logging

from fastapi import HTTPException, status

from semantic_answer_cache.dto import (
    CacheStatsResponse,
    HealthCheckResponse,
    PurgeResponse,
    SearchRequest,
    SearchResponse,
)
from semantic_answer_cache.errors import EngineClosedError, InputError
from semantic_answer_cache.protocols import AnswerFn, AnswerProvider
from semantic_answer_cache.services import SemanticCacheEngine

logger = logging.getLogger(__name__)


class SearchHandler:
    """HTTP handlers for the semantic answer cache.

    This handler delegates business logic to SemanticCacheEngine
    and handles HTTP-specific concerns like:
    - Converting results to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = SearchHandler(engine=engine, answer_provider=answers)

        @app.post("/search", response_model=SearchResponse)
        async def search(request: SearchRequest):
            return await handler.search(request)
        ```
    """

    def __init__(
        self,
        engine: SemanticCacheEngine,
        answer_provider: AnswerProvider | AnswerFn,
        timeout: float | None = None,
    ) -> None:
        """Initialize the search handler.

        Args:
            engine: The cache engine for business logic (required).
            answer_provider: Produces fresh answers on a cache miss (required).
            timeout: Default answer generation deadline in seconds.
        """
        self._engine = engine
        self._answers = answer_provider
        self._timeout = timeout

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Handle POST /search requests.

        Args:
            request: The search request DTO

        Returns:
            SearchResponse with the answer and its source

        Raises:
            HTTPException: 400 for a blank query, 503 if the engine is closed,
                504 on timeout, 502 if answer generation fails
        """
        try:
            result = await self._engine.resolve(
                request.query,
                self._answers,
                timeout=request.timeout or self._timeout,
            )
        except InputError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            ) from e
        except EngineClosedError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=str(e),
            ) from e
        except asyncio.TimeoutError as e:
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Answer generation timed out",
            ) from e
        except Exception as e:
            logger.exception("Error resolving query %r", request.query)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to generate answer: {e}",
            ) from e

        return SearchResponse(
            success=True,
            response=result.response,
            source=result.source.value,
            similarity=result.similarity,
            degraded=result.degraded,
        )

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests."""
        stats = self._engine.get_stats()

        return CacheStatsResponse(
            total_entries=stats["total_entries"],
            similarity_threshold=stats["similarity_threshold"],
            ttl_seconds=stats["ttl"],
            max_entries=stats["max_entries"],
            embedding_model=stats["embedding_model"],
            performance=stats["performance"],
        )

    async def purge(self, entry_id: str | None = None) -> PurgeResponse:
        """Handle DELETE /cache and DELETE /cache/{entry_id} requests.

        Raises:
            HTTPException: 404 if a specific entry does not exist
        """
        count = await asyncio.to_thread(self._engine.purge, entry_id)

        if entry_id is not None and count == 0:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Cache entry not found: {entry_id}",
            )

        return PurgeResponse(
            success=True,
            deleted_count=count,
            message="Cache cleared successfully" if entry_id is None else "Entry removed",
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        is_healthy = await self._engine.is_healthy()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=is_healthy,
        )
