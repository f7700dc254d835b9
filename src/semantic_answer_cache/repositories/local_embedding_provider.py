"""In-process embeddings with sentence-transformers.

The engine calls ``encode`` from worker threads, so the model is loaded at
most once behind a lock, either eagerly in ``open()`` or on first use.
"""

import logging
import threading
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from semantic_answer_cache.config import settings

logger = logging.getLogger(__name__)


class LocalEmbeddingProvider:
    """EmbeddingProvider backed by a local sentence-transformers model.

    Vectors come back L2-normalized, so cosine similarity between two of
    them is their dot product. Default model: all-MiniLM-L6-v2 (384 dims).
    """

    def __init__(self, model_name: str | None = None) -> None:
        self._model_name = model_name or settings.embedding_model
        self._model: SentenceTransformer | None = None
        self._dimension: int | None = None
        self._load_lock = threading.Lock()

    @classmethod
    def create(cls, model_name: str | None = None) -> "LocalEmbeddingProvider":
        """Build a provider for ``model_name``, or the configured model."""
        return cls(model_name=model_name)

    def _load(self) -> SentenceTransformer:
        with self._load_lock:
            if self._model is None:
                logger.info("Loading embedding model: %s", self._model_name)
                started = time.time()
                self._model = SentenceTransformer(self._model_name)
                logger.info("Embedding model loaded in %.2fs", time.time() - started)
            return self._model

    @property
    def model(self) -> SentenceTransformer:
        """The loaded model, loading it on first access."""
        return self._model if self._model is not None else self._load()

    def open(self) -> None:
        self._load()

    def close(self) -> None:
        """Drop the model; the next call loads it again."""
        with self._load_lock:
            self._model = None

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            probe = self.model.encode(["dimension probe"], show_progress_bar=False)
            self._dimension = int(np.asarray(probe).shape[-1])
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def encode(self, text: str) -> list[float]:
        """Embed one query.

        Args:
            text: The query text

        Returns:
            Normalized embedding of length ``dimension``
        """
        vector = self.model.encode(
            text,
            show_progress_bar=False,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )
        return np.asarray(vector, dtype=np.float32).reshape(-1).tolist()

    def is_available(self) -> bool:
        """Whether the model can be loaded."""
        try:
            self.model
        except Exception as e:
            logger.warning("Embedding model %s unavailable: %s", self._model_name, e)
            return False
        return True
