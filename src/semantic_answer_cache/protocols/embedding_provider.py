"""Embedding provider protocol.

The engine turns every query into a fixed-length vector through this
interface. Shipped implementations: a local sentence-transformers model and
the Ollama embed API.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Text to vector of length ``dimension``.

    ``encode`` may be a plain method or a coroutine; the engine runs plain
    methods in a worker thread, so they must be thread-safe. Providers may
    also expose ``open()`` and ``close()`` (sync or async), which the engine
    calls from its own lifecycle.

    Failures in ``encode`` do not need special handling: the engine treats
    any exception, or a vector of the wrong size, as a degraded embedding.
    """

    @property
    def dimension(self) -> int:
        """Length of every vector this provider returns (D)."""
        ...

    @property
    def model_name(self) -> str:
        ...

    def encode(self, text: str) -> list[float]:
        """Embed one text.

        Args:
            text: The query text

        Returns:
            Vector of ``dimension`` floats, ideally L2-normalized
        """
        ...

    def is_available(self) -> bool:
        """Whether the provider can currently produce embeddings."""
        ...
