"""Resolution domain entities: embedding outcomes and resolve results."""

from dataclasses import dataclass
from enum import Enum


class Source(str, Enum):
    """Where a resolved answer came from."""

    CACHE = "Cache"
    GENERATED = "Generated"


@dataclass(frozen=True)
class EmbeddingResult:
    """Outcome of asking the embedding provider for a vector.

    A degraded result still carries a vector (all zeros, of the engine's
    dimension) so that the entry can be stored, but it is never used for
    matching.

    Attributes:
        vector: The embedding, or a zero vector when degraded
        degraded: True when the provider failed or returned an unusable vector
        reason: Why the embedding was degraded, None otherwise
    """

    vector: list[float]
    degraded: bool = False
    reason: str | None = None

    @classmethod
    def usable(cls, vector: list[float]) -> "EmbeddingResult":
        return cls(vector=vector)

    @classmethod
    def degraded_to(cls, dimension: int, reason: str) -> "EmbeddingResult":
        return cls(vector=[0.0] * dimension, degraded=True, reason=reason)


@dataclass(frozen=True)
class ResolveResult:
    """Answer returned to the caller of ``SemanticCacheEngine.resolve``.

    Attributes:
        response: The answer text
        source: Cache for a hit, Generated for a fresh answer
        similarity: Score of the matched entry, 0.0 for generated answers
        degraded: Whether the query embedding was degraded
        entry_id: The matched entry, or the entry created for this answer
                  (None when the generated answer was not cached)
    """

    response: str
    source: Source
    similarity: float = 0.0
    degraded: bool = False
    entry_id: str | None = None

    @property
    def is_hit(self) -> bool:
        return self.source is Source.CACHE
