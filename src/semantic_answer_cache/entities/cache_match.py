"""Cache match domain entity."""

from dataclasses import dataclass

from .cache_entry import CacheEntryEntity


@dataclass(frozen=True)
class CacheMatchEntity:
    """Domain entity for a similarity search result.

    Carries the score alongside the entry so that concurrent lookups never
    have to read it back from the shared ``last_similarity`` field.

    Attributes:
        entry: The best matching cache entry
        similarity: Cosine similarity (1 = identical, -1 = opposite)
    """

    entry: CacheEntryEntity
    similarity: float

    @property
    def response(self) -> str:
        return self.entry.response
