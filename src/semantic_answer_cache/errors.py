"""Exceptions raised by the semantic answer cache.

``InputError`` and ``EngineClosedError`` are meant to reach callers of the
engine. Answer generation failures are propagated as whatever the answer
provider raised.
"""


class InputError(ValueError):
    """The query was empty or blank and was rejected before any work."""


class PersistenceError(RuntimeError):
    """The durable entry store failed a read, write or delete."""

    def __init__(self, operation: str, entry_id: str | None, cause: Exception) -> None:
        self.operation = operation
        self.entry_id = entry_id
        target = f" for {entry_id}" if entry_id else ""
        super().__init__(f"Entry store {operation} failed{target}: {cause}")


class EngineClosedError(RuntimeError):
    """The engine was used before ``open()`` or after ``close()``."""
