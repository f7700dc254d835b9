"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field


class SearchResponse(BaseModel):
    """Response DTO for a resolved query."""

    success: bool = Field(..., description="Whether the query was answered")
    response: str = Field(..., description="The cached or generated answer")
    source: str = Field(..., description="'Cache' for a hit, 'Generated' for a fresh answer")
    similarity: float = Field(
        ...,
        description="Cosine similarity of the matched entry (0 for generated answers)",
        ge=-1.0,
        le=1.0,
    )
    degraded: bool = Field(
        False,
        description="Whether the query embedding could not be computed",
    )


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    total_entries: int = Field(
        ...,
        description="Total number of cached entries",
        ge=0,
    )
    similarity_threshold: float = Field(
        ...,
        description="Minimum similarity for a cache hit",
        gt=0.0,
        le=1.0,
    )
    ttl_seconds: int = Field(
        ...,
        description="Time-to-live for cache entries in seconds",
        ge=0,
    )
    max_entries: int = Field(..., description="Maximum number of cached entries", ge=1)
    embedding_model: str = Field(..., description="Name of the embedding model")
    performance: dict[str, float | int] = Field(
        default_factory=dict,
        description="Hit/miss counters and timings",
    )


class PurgeResponse(BaseModel):
    """Response DTO for purge operations."""

    success: bool = Field(..., description="Whether the operation succeeded")
    deleted_count: int = Field(..., description="Number of entries removed", ge=0)
    message: str = Field(..., description="Human-readable status message")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the store and embeddings are reachable")
