import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_similarity_threshold: float = float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.80"))
    cache_expiration_hours: int = int(os.getenv("CACHE_EXPIRATION_HOURS", "4"))
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "1000"))
    cache_key_prefix: str = os.getenv("CACHE_KEY_PREFIX", "semantic_answer_cache")

    # Embedding
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")

    # Ollama (embeddings and answers)
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    answer_model: str = os.getenv("ANSWER_MODEL", "llama3.2")
    answer_timeout_seconds: float = float(os.getenv("ANSWER_TIMEOUT_SECONDS", "60"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not 0 < self.cache_similarity_threshold <= 1:
            raise ValueError("CACHE_SIMILARITY_THRESHOLD must be in (0, 1] for cosine similarity")

        if self.cache_expiration_hours <= 0:
            raise ValueError(
                f"CACHE_EXPIRATION_HOURS must be positive, got {self.cache_expiration_hours}"
            )

        if self.cache_max_entries <= 0:
            raise ValueError(f"CACHE_MAX_ENTRIES must be positive, got {self.cache_max_entries}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
