import threading
from dataclasses import dataclass, field


@dataclass
class PerformanceMetrics:
    """Track performance metrics for resolve operations.

    Counters are updated from concurrent requests, so every mutation takes
    the instance lock.
    """

    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    degraded_embeddings: int = 0
    total_lookup_time_ms: float = 0.0
    total_llm_time_ms: float = 0.0
    llm_calls: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    @property
    def avg_lookup_time_ms(self) -> float:
        """Calculate average lookup time."""
        if self.total_queries == 0:
            return 0.0
        return self.total_lookup_time_ms / self.total_queries

    def record_hit(self, lookup_time_ms: float) -> None:
        """Record a cache hit."""
        with self._lock:
            self.total_queries += 1
            self.cache_hits += 1
            self.total_lookup_time_ms += lookup_time_ms

    def record_miss(self, lookup_time_ms: float) -> None:
        """Record a cache miss."""
        with self._lock:
            self.total_queries += 1
            self.cache_misses += 1
            self.total_lookup_time_ms += lookup_time_ms

    def record_degraded(self) -> None:
        """Record a query whose embedding could not be used."""
        with self._lock:
            self.degraded_embeddings += 1

    def record_llm_call(self, duration_ms: float) -> None:
        """Record an answer generation call."""
        with self._lock:
            self.llm_calls += 1
            self.total_llm_time_ms += duration_ms

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        with self._lock:
            return {
                "total_queries": self.total_queries,
                "cache_hits": self.cache_hits,
                "cache_misses": self.cache_misses,
                "degraded_embeddings": self.degraded_embeddings,
                "hit_rate": self.hit_rate,
                "avg_lookup_time_ms": self.avg_lookup_time_ms,
                "total_llm_time_ms": self.total_llm_time_ms,
                "llm_calls": self.llm_calls,
            }
