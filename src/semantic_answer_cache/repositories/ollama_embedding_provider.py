"""Embeddings from a local Ollama server.

Talks to ``POST /api/embed``. Pull the model first, e.g.
``ollama pull all-minilm``.
"""

import logging

import httpx

from semantic_answer_cache.config import settings

logger = logging.getLogger(__name__)


class OllamaEmbeddingProvider:
    """EmbeddingProvider backed by Ollama's embed endpoint.

    ``encode`` is a coroutine, so the engine awaits it on the event loop
    instead of handing it to a worker thread. The HTTP client is created
    in ``open()`` (or lazily) and released in ``close()``.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create(model_name="all-minilm")
        engine = SemanticCacheEngine.create(embedding_provider=provider)
        ```
    """

    # Output size of common Ollama embedding models
    MODEL_DIMENSIONS = {
        "all-minilm": 384,
        "all-minilm:l6-v2": 384,
        "nomic-embed-text": 768,
        "mxbai-embed-large": 1024,
    }

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        dimension: int | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            model_name: Ollama model tag. Defaults to settings.embedding_model.
            base_url: Ollama server URL. Defaults to settings.ollama_base_url.
            timeout: Per-request timeout in seconds.
            dimension: Output size, required for models missing from MODEL_DIMENSIONS.
        """
        self._model_name = model_name or settings.embedding_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._timeout = timeout
        self._dimension = dimension or self.MODEL_DIMENSIONS.get(self._model_name)
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
        dimension: int | None = None,
    ) -> "OllamaEmbeddingProvider":
        return cls(model_name=model_name, base_url=base_url, dimension=dimension)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self._client

    async def open(self) -> None:
        _ = self.client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def dimension(self) -> int:
        """Embedding size.

        Raises:
            ValueError: If the model is unknown and no dimension was given
        """
        if self._dimension is None:
            raise ValueError(
                f"Unknown dimension for Ollama model {self._model_name!r}; pass dimension="
            )
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Embed one query.

        Raises:
            RuntimeError: If the request fails
            ValueError: If the response carries no embedding
        """
        try:
            response = await self.client.post(
                f"{self._base_url}/api/embed",
                json={"model": self._model_name, "input": text},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RuntimeError(f"Ollama embed request failed for {self._model_name}: {e}") from e

        data = response.json()
        # /api/embed returns a batch; older servers return a single "embedding"
        if data.get("embeddings"):
            return data["embeddings"][0]
        if "embedding" in data:
            return data["embedding"]
        raise ValueError(f"Unexpected Ollama embed response: {data}")

    async def is_available(self) -> bool:
        try:
            await self.encode("ping")
        except (RuntimeError, ValueError) as e:
            logger.warning("Ollama embeddings unavailable: %s", e)
            return False
        return True
