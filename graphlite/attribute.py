"""
Attribute
=========

Key/value bag attached to a node.

Key layout for node ``n``:

    _n          -> {color, size}   index of attribute keys
    _n|color    -> "red"
    _n|size     -> "10"

Invariant: a key is in the index set if and only if its value key exists.
``set`` and ``delete`` update both keys inside one MULTI/EXEC transaction.
"""

from typing import Dict, List, Optional, Union

import structlog
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import WatchError

from graphlite.connection import resolve_client, resolve_max_retries
from graphlite.exceptions import ConcurrentModificationError

log = structlog.get_logger()

AttributeValue = Union[str, bytes, int, float]


class Attribute:
    """
    Attribute management for a node.

    Example:
        attrs = Attribute("alice", client=redis)
        await attrs.set("email", "alice@example.com")
        await attrs.get("email")   # "alice@example.com"
        await attrs.all()          # {"email": "alice@example.com"}
    """

    KV_SEPARATOR = "|"

    def __init__(
        self,
        node_name: str,
        client: Optional[AsyncRedis] = None,
        max_retries: Optional[int] = None,
    ):
        self.node_name = node_name
        self.client = resolve_client(client)
        self.max_retries = resolve_max_retries(max_retries)

        self.node_attributes_name = f"_{node_name}"

    def __repr__(self) -> str:
        return f"Attribute(node_name={self.node_name!r})"

    def value_key(self, key: str) -> str:
        """Redis key holding the value of attribute ``key``."""
        return f"{self.node_attributes_name}{self.KV_SEPARATOR}{key}"

    async def keys(self) -> List[str]:
        """
        Attribute keys as recorded in the index set.

        This is the raw index: a key whose value is missing is still listed
        here, while :meth:`all` leaves it out.
        """
        return list(await self.client.smembers(self.node_attributes_name) or [])

    async def all(self) -> Dict[str, str]:
        """
        Every attribute of the node that holds a value.

        Values are fetched with a single MGET. Index entries without a value
        are left out of the result, so ``all().keys()`` is always a subset of
        :meth:`keys`.
        """
        keys = await self.keys()
        if not keys:
            return {}

        values = await self.client.mget([self.value_key(k) for k in keys])

        result = {}
        for key, value in zip(keys, values):
            if value is None:
                log.debug("Attribute indexed without value", node=self.node_name, key=key)
                continue
            result[key] = value
        return result

    async def get(self, key: str) -> Optional[str]:
        """Value of ``key``, or None if unset."""
        return await self.client.get(self.value_key(key))

    async def set(self, key: str, value: AttributeValue) -> bool:
        """Index ``key`` and store its value atomically."""
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.sadd(self.node_attributes_name, key)
            pipe.set(self.value_key(key), value)
            await pipe.execute()

        log.debug("Attribute set", node=self.node_name, key=key)
        return True

    async def delete(self, key: str) -> bool:
        """Remove ``key`` from the index and drop its value atomically."""
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.srem(self.node_attributes_name, key)
            pipe.delete(self.value_key(key))
            await pipe.execute()

        log.debug("Attribute deleted", node=self.node_name, key=key)
        return True

    async def clear(self) -> List[str]:
        """
        Remove every attribute of the node.

        Returns:
            Keys that were indexed before clearing (empty list if none)

        Raises:
            ConcurrentModificationError: If the index kept changing underneath
        """
        for attempt in range(1, self.max_retries + 1):
            async with self.client.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(self.node_attributes_name)
                    keys = list(await pipe.smembers(self.node_attributes_name) or [])
                    if not keys:
                        return []

                    pipe.multi()
                    pipe.delete(*[self.value_key(k) for k in keys])
                    pipe.delete(self.node_attributes_name)
                    await pipe.execute()
                except WatchError:
                    log.warning(
                        "Attribute clear: concurrent modification, retrying",
                        key=self.node_attributes_name,
                        attempt=attempt,
                    )
                    continue

            log.debug("Attributes cleared", node=self.node_name, keys=len(keys))
            return keys

        raise ConcurrentModificationError(self.node_attributes_name, self.max_retries)
