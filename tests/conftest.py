"""
graphlite Test Configuration
============================

Shared fixtures for all tests.

``FakeRedis`` is an in-memory double of the ``redis.asyncio.Redis`` surface
used by graphlite: set/string commands plus MULTI/EXEC pipelines with WATCH.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

import pytest
from redis.exceptions import ConnectionError, WatchError

from graphlite import connection
from graphlite.log_config import configure_logging

configure_logging(logging.DEBUG)


WRITE_COMMANDS = {"sadd", "srem", "set", "delete"}


class FakeRedis:
    """
    In-memory Redis double.

    Attributes:
        fail_keys: Writes touching any of these keys raise ConnectionError
        after_watch: Coroutine run once right after the next WATCH, used to
            simulate a concurrent writer
        calls: Log of (command, args) for every command applied
    """

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.versions: Dict[str, int] = {}
        self.fail_keys: Set[str] = set()
        self.after_watch: Optional[Callable[[], Awaitable[None]]] = None
        self.calls: List[Tuple[str, tuple]] = []
        self.closed = False

    # -- helpers ---------------------------------------------------------

    def _touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    def _check(self, command: str, args: tuple) -> None:
        if command not in WRITE_COMMANDS:
            return
        keys = args if command == "delete" else args[:1]
        for key in keys:
            if key in self.fail_keys:
                raise ConnectionError(f"simulated failure writing {key}")

    def _apply(self, command: str, args: tuple) -> Any:
        self.calls.append((command, args))
        return getattr(self, f"_{command}")(*args)

    def writes(self) -> List[Tuple[str, tuple]]:
        return [c for c in self.calls if c[0] in WRITE_COMMANDS]

    # -- commands --------------------------------------------------------

    def _sadd(self, key: str, *members: str) -> int:
        current = self.data.setdefault(key, set())
        added = len(set(members) - current)
        current.update(members)
        self._touch(key)
        return added

    def _srem(self, key: str, *members: str) -> int:
        current = self.data.get(key, set())
        removed = len(current & set(members))
        current.difference_update(members)
        if key in self.data and not current:
            del self.data[key]
        self._touch(key)
        return removed

    def _smembers(self, key: str) -> Set[str]:
        return set(self.data.get(key, set()))

    def _sismember(self, key: str, member: str) -> int:
        return int(member in self.data.get(key, set()))

    def _scard(self, key: str) -> int:
        return len(self.data.get(key, set()))

    def _get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def _set(self, key: str, value: Any) -> bool:
        self.data[key] = str(value)
        self._touch(key)
        return True

    def _mget(self, keys: List[str]) -> List[Optional[str]]:
        return [self.data.get(k) for k in keys]

    def _delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                deleted += 1
            self._touch(key)
        return deleted

    def _exists(self, *keys: str) -> int:
        return sum(1 for k in keys if k in self.data)

    def __getattr__(self, name: str):
        if hasattr(type(self), f"_{name}"):
            async def command(*args):
                self._check(name, args)
                return self._apply(name, args)
            return command
        raise AttributeError(name)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)


class FakePipeline:
    """MULTI/EXEC pipeline with optimistic locking, applied atomically."""

    def __init__(self, redis: FakeRedis):
        self.redis = redis
        self.watched: Dict[str, int] = {}
        self.explicit_transaction = False
        self.stack: List[Tuple[str, tuple]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.reset()

    def reset(self) -> None:
        self.watched = {}
        self.explicit_transaction = False
        self.stack = []

    async def watch(self, *keys: str) -> bool:
        for key in keys:
            self.watched[key] = self.redis.versions.get(key, 0)
        hook, self.redis.after_watch = self.redis.after_watch, None
        if hook is not None:
            await hook()
        return True

    def multi(self) -> None:
        self.explicit_transaction = True

    def __getattr__(self, name: str):
        if not hasattr(FakeRedis, f"_{name}"):
            raise AttributeError(name)

        if self.watched and not self.explicit_transaction:
            return getattr(self.redis, name)

        def queue(*args):
            self.stack.append((name, args))
            return self
        return queue

    async def execute(self) -> List[Any]:
        try:
            for key, version in self.watched.items():
                if self.redis.versions.get(key, 0) != version:
                    raise WatchError("Watched variable changed.")
            for command, args in self.stack:
                self.redis._check(command, args)
            return [self.redis._apply(command, args) for command, args in self.stack]
        finally:
            self.reset()


@pytest.fixture
def fake_redis():
    """In-memory Redis double."""
    return FakeRedis()


@pytest.fixture(autouse=True)
def reset_default_client():
    """Every test starts and ends without a default client."""
    connection.set_client(None)
    connection.RedisConnectionManager._client = None
    connection.RedisConnectionManager._config = None
    yield
    connection.set_client(None)
    connection.RedisConnectionManager._client = None
    connection.RedisConnectionManager._config = None
