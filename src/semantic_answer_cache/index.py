"""In-memory index of cache entries.

The index is copy-on-write: every mutation builds a new dict under a short
internal lock and rebinds ``self._entries``. Readers only ever take the
current reference, so ``snapshot()`` never blocks and never iterates a dict
that another thread is changing.
"""

import threading

from semantic_answer_cache.entities import CacheEntryEntity


class CacheIndex:
    """Concurrent associative container from entry id to CacheEntryEntity.

    The index owns no eviction policy; callers decide what to remove.
    Iteration order of ``snapshot()`` is not part of the contract.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntryEntity] = {}
        self._lock = threading.Lock()

    def insert(self, entry: CacheEntryEntity) -> bool:
        """Add an entry if its id is not already present.

        Args:
            entry: The entry to add

        Returns:
            True if the entry was newly added, False if the id was taken
        """
        with self._lock:
            if entry.id in self._entries:
                return False
            entries = dict(self._entries)
            entries[entry.id] = entry
            self._entries = entries
        return True

    def remove(self, entry_id: str) -> bool:
        """Remove an entry if present. Idempotent.

        Args:
            entry_id: The id to remove

        Returns:
            True if an entry was removed
        """
        with self._lock:
            if entry_id not in self._entries:
                return False
            entries = dict(self._entries)
            del entries[entry_id]
            self._entries = entries
        return True

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._entries)
            self._entries = {}
        return count

    def get(self, entry_id: str) -> CacheEntryEntity | None:
        return self._entries.get(entry_id)

    def snapshot(self) -> tuple[CacheEntryEntity, ...]:
        """Point-in-time view of the entries, safe to iterate."""
        return tuple(self._entries.values())

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries
