"""Answer provider protocol.

Defines the interface for the (slow) service that produces a fresh answer
on a cache miss. ``SemanticCacheEngine.resolve`` also accepts any plain
callable ``str -> str`` or coroutine function, so the protocol only matters
for wiring concrete providers into the HTTP layer.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias, runtime_checkable

AnswerFn: TypeAlias = Callable[[str], str] | Callable[[str], Awaitable[str]]


@runtime_checkable
class AnswerProvider(Protocol):
    """Protocol for answer generation services."""

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the answering model."""
        ...

    async def generate(self, text: str) -> str:
        """Generate an answer for the query.

        Args:
            text: The user's query

        Returns:
            The generated answer

        Raises:
            Exception: Any failure is propagated to the caller unmodified
        """
        ...
