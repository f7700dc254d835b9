"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → Memcached, local → Ollama, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from semantic_answer_cache.protocols import EmbeddingProvider, EntryStore

    store: EntryStore = RedisEntryStore.create()
    provider: EmbeddingProvider = LocalEmbeddingProvider.create()
    ```
"""

from .answer_provider import AnswerFn, AnswerProvider
from .embedding_provider import EmbeddingProvider
from .entry_store import EntryStore

__all__ = [
    "AnswerFn",
    "AnswerProvider",
    "EmbeddingProvider",
    "EntryStore",
]
