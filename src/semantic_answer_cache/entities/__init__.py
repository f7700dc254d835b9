"""Domain entities for internal representation.

These are plain dataclasses used internally by the engine, the matcher and
the repositories. They are NOT used for API contracts - use DTOs from the
dto package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No external dependencies
"""

from .cache_entry import CacheEntryEntity
from .cache_match import CacheMatchEntity
from .resolution import EmbeddingResult, ResolveResult, Source

__all__ = [
    "CacheEntryEntity",
    "CacheMatchEntity",
    "EmbeddingResult",
    "ResolveResult",
    "Source",
]
