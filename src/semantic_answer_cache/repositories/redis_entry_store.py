"""Redis implementation of EntryStore.

Each entry is a Redis hash at ``<prefix>:<entry id>`` with a per-key EXPIRE.
No vector index is created: matching happens in the engine's in-memory
index, Redis only keeps entries across restarts.
"""

import logging
import struct
from collections.abc import Iterator

import redis

from semantic_answer_cache.config import get_redis_client, settings
from semantic_answer_cache.entities import CacheEntryEntity
from semantic_answer_cache.errors import PersistenceError

logger = logging.getLogger(__name__)


class RedisEntryStore:
    """Redis implementation using one hash per cache entry.

    This class satisfies the EntryStore protocol through structural
    typing - no explicit inheritance needed.

    Redis errors are re-raised as PersistenceError so that the engine can
    log them without knowing about the backend.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> None:
        """Initialize the Redis entry store.

        Args:
            redis_client: Redis client instance. If None, creates default.
            key_prefix: Prefix for entry keys. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.cache_key_prefix

    @classmethod
    def create(cls, key_prefix: str | None = None) -> "RedisEntryStore":
        """Factory method to create RedisEntryStore with defaults.

        Args:
            key_prefix: Key prefix. If None, uses settings.

        Returns:
            Configured RedisEntryStore
        """
        return cls(key_prefix=key_prefix)

    def _key(self, entry_id: str) -> str:
        return f"{self._prefix}:{entry_id}"

    def put(self, entry_id: str, entry: CacheEntryEntity, ttl: int) -> None:
        """Store an entry in Redis.

        Args:
            entry_id: The entry identifier
            entry: The entry to persist
            ttl: Time-to-live in seconds
        """
        vector = entry.embedding or []
        # Convert vector to float32 bytes
        vector_bytes = struct.pack(f"{len(vector)}f", *vector)

        key = self._key(entry_id)
        try:
            pipe = self._client.pipeline()
            pipe.hset(
                key,
                mapping={
                    "query": entry.query,
                    "response": entry.response,
                    "embedding": vector_bytes,
                    "created_at": str(entry.created_at),
                },
            )
            pipe.expire(key, int(ttl))
            pipe.execute()
        except redis.RedisError as e:
            raise PersistenceError("put", entry_id, e) from e

    def get(self, entry_id: str) -> CacheEntryEntity | None:
        """Load an entry from Redis.

        Args:
            entry_id: The entry identifier

        Returns:
            The entry, or None if the key is absent, expired or unreadable
        """
        try:
            data = self._client.hgetall(self._key(entry_id))
        except redis.RedisError as e:
            raise PersistenceError("get", entry_id, e) from e

        if not data:
            return None

        try:
            raw_vector = data.get(b"embedding", b"")
            embedding = list(struct.unpack(f"{len(raw_vector) // 4}f", raw_vector))
            return CacheEntryEntity(
                id=entry_id,
                query=data[b"query"].decode(),
                response=data[b"response"].decode(),
                embedding=embedding,
                created_at=float(data[b"created_at"]),
            )
        except (KeyError, ValueError, struct.error, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable stored entry %s: %s", entry_id, e)
            return None

    def remove(self, entry_id: str) -> bool:
        """Delete an entry by id.

        Args:
            entry_id: The entry identifier

        Returns:
            True if deleted, False otherwise
        """
        try:
            result: int = self._client.delete(self._key(entry_id))  # type: ignore[assignment]
        except redis.RedisError as e:
            raise PersistenceError("remove", entry_id, e) from e
        return result > 0

    def iter_ids(self) -> Iterator[str]:
        """Enumerate the ids of all entries under the prefix.

        Returns:
            Iterator of entry ids
        """
        prefix = f"{self._prefix}:"
        try:
            for key in self._client.scan_iter(match=f"{prefix}*"):
                name = key.decode() if isinstance(key, bytes) else key
                yield name[len(prefix):]
        except redis.RedisError as e:
            raise PersistenceError("scan", None, e) from e

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            result = self._client.ping()
            return bool(result)
        except redis.RedisError:
            return False

    @property
    def key_prefix(self) -> str:
        return self._prefix

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
