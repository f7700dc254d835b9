"""Entry store protocol.

Defines the interface for the durable key/value backend that mirrors the
engine's in-memory index. The engine keeps its own authoritative index and
treats the store as write-through only, so no search capability is needed.

Implementations can include:
- Redis hashes with EXPIRE (default)
- Memcached
- Any key/value store with per-key expiry
"""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from semantic_answer_cache.entities import CacheEntryEntity


@runtime_checkable
class EntryStore(Protocol):
    """Protocol for durable entry storage backends.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.

    Example:
        ```python
        from semantic_answer_cache.protocols import EntryStore

        store: EntryStore = RedisEntryStore.create()
        ```
    """

    def put(self, entry_id: str, entry: CacheEntryEntity, ttl: int) -> None:
        """Persist an entry.

        Args:
            entry_id: The entry identifier
            entry: The entry to persist
            ttl: Time-to-live in seconds
        """
        ...

    def get(self, entry_id: str) -> CacheEntryEntity | None:
        """Load an entry by id.

        Args:
            entry_id: The entry identifier

        Returns:
            The entry, or None if absent or expired
        """
        ...

    def remove(self, entry_id: str) -> bool:
        """Delete an entry by id.

        Args:
            entry_id: The entry identifier

        Returns:
            True if deleted, False if it was not present
        """
        ...

    def iter_ids(self) -> Iterable[str]:
        """Enumerate the ids of every persisted entry.

        Returns:
            Iterable of entry ids
        """
        ...

    def health_check(self) -> bool:
        """Check if the store is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...
