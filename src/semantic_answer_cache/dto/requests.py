"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Request DTO for resolving a query.

    Blank queries are not rejected here: the engine owns that rule and the
    handler maps its InputError to a 400.
    """

    query: str = Field(..., description="The user's natural-language query")
    timeout: float | None = Field(
        None,
        description="Override the answer generation deadline in seconds",
        gt=0.0,
    )
