"""Repository layer for data access.

This layer abstracts external dependencies (Redis, embedding models, answer
models) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Redis → Memcached, local → Ollama, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from semantic_answer_cache.protocols import AnswerProvider, EmbeddingProvider, EntryStore

from .local_embedding_provider import LocalEmbeddingProvider
from .ollama_answer_provider import OllamaAnswerProvider
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .redis_entry_store import RedisEntryStore

__all__ = [
    "AnswerProvider",
    "EmbeddingProvider",
    "EntryStore",
    "LocalEmbeddingProvider",
    "OllamaAnswerProvider",
    "OllamaEmbeddingProvider",
    "RedisEntryStore",
]
