"""Cache entry domain entity."""

from dataclasses import dataclass, field


@dataclass(eq=False)
class CacheEntryEntity:
    """Domain entity for a cached query-answer pair.

    This is an internal representation used by the index, the matcher and
    the entry store. For API contracts, use the DTO classes from the dto
    package.

    Everything except ``last_similarity`` is fixed once the entry is built.

    Attributes:
        id: Unique identifier, never reused for another entry
        query: The original query text (diagnostics only, not matched on)
        response: The cached answer
        embedding: The embedding vector for the query
        created_at: Unix timestamp of insertion, drives expiry and eviction
        last_similarity: Last score computed against this entry during a lookup
    """

    id: str
    query: str
    response: str
    embedding: list[float] | None
    created_at: float
    last_similarity: float | None = field(default=None, compare=False)

    @property
    def dimension(self) -> int:
        """Length of the stored embedding, 0 when missing."""
        return len(self.embedding) if self.embedding is not None else 0

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was created."""
        return now - self.created_at
