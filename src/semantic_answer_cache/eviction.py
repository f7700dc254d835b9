"""Time-based and capacity-based eviction for the cache index."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from semantic_answer_cache.index import CacheIndex
from semantic_answer_cache.protocols import EntryStore

logger = logging.getLogger(__name__)


@dataclass
class EvictionReport:
    """Ids removed by one eviction run."""

    expired: list[str] = field(default_factory=list)
    evicted: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.expired) + len(self.evicted)


class EvictionPolicy:
    """Expiry pass followed by an oldest-first capacity pass.

    Expiry is purely creation-time based: a hit never refreshes an entry.
    Callers must serialize ``apply`` with inserts (the engine runs both
    under its write lock).
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def apply(self, index: CacheIndex, store: EntryStore | None = None) -> EvictionReport:
        """Run both passes against the index, mirroring removals to the store.

        Args:
            index: The index to trim
            store: Optional durable store to mirror removals to

        Returns:
            EvictionReport listing the removed ids
        """
        report = EvictionReport()
        now = self._clock()

        for entry in index.snapshot():
            if entry.age(now) > self._ttl and index.remove(entry.id):
                report.expired.append(entry.id)
                self._remove_from_store(store, entry.id)

        while index.size() > self._max_entries:
            # (created_at, id) keeps the choice stable for entries created together
            oldest = min(index.snapshot(), key=lambda e: (e.created_at, e.id))
            if index.remove(oldest.id):
                report.evicted.append(oldest.id)
                self._remove_from_store(store, oldest.id)

        if report.total:
            logger.info(
                "Eviction removed %d expired and %d over-capacity entries (%d remain)",
                len(report.expired),
                len(report.evicted),
                index.size(),
            )
        return report

    @staticmethod
    def _remove_from_store(store: EntryStore | None, entry_id: str) -> None:
        if store is None:
            return
        try:
            store.remove(entry_id)
        except Exception as e:
            logger.warning("Failed to remove %s from entry store: %s", entry_id, e)
