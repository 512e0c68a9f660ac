"""Exceptions raised by the graph layer."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from graphlite.edge import EdgeBatchResult


class GraphLiteError(Exception):
    """Base class for graph layer errors."""


class ClientNotConfiguredError(GraphLiteError, RuntimeError):
    """No client was passed and no default client has been set."""

    def __init__(self):
        super().__init__(
            "Redis client not configured. "
            "Pass client=... or call set_client() / RedisConnectionManager.initialize() first."
        )


class EdgeBatchError(GraphLiteError):
    """
    One or more targets of an add/remove batch failed.

    Targets listed in ``result.succeeded`` were applied and are not rolled back.
    """

    def __init__(self, result: "EdgeBatchResult"):
        self.result = result
        failed = ", ".join(sorted(result.failed))
        super().__init__(
            f"{result.operation} on {result.edge_key} failed for "
            f"{len(result.failed)}/{result.total} targets: {failed}"
        )


class ConcurrentModificationError(GraphLiteError):
    """A WATCH-guarded operation kept losing the race against other writers."""

    def __init__(self, key: str, attempts: int):
        self.key = key
        self.attempts = attempts
        super().__init__(f"Key {key} modified concurrently; gave up after {attempts} attempts")
