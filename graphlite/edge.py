"""
Edge
====

One directed relationship family of a node, stored twice in Redis so that
both endpoints can list their neighbours with a single set lookup.

Key layout (``edge_type="in"``, ``alternate_edge_type="has"``, node ``n``):

    in_n      -> {g1, g2}      targets n relates to under "in"
    has_g1    -> {n, ...}      back-reference on each target
    has_g2    -> {n, ...}

Invariant: ``g in in_n`` if and only if ``n in has_g``.

Each per-target pair of writes runs inside one MULTI/EXEC transaction, so a
reader never sees the forward entry without its back-reference. Different
targets of the same batch are independent transactions fanned out with
``asyncio.gather``.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Union

import structlog
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import WatchError

from graphlite.connection import resolve_client, resolve_max_retries
from graphlite.exceptions import ConcurrentModificationError, EdgeBatchError

log = structlog.get_logger()

Targets = Union[str, Iterable[str]]


@dataclass
class EdgeBatchResult:
    """
    Per-target outcome of an add/remove batch.

    Truthy only when every target succeeded.
    """
    operation: str
    edge_key: str
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, BaseException] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed

    def __bool__(self) -> bool:
        return self.success


def _as_list(targets: Targets) -> List[str]:
    if isinstance(targets, str):
        return [targets]
    return list(targets)


class Edge:
    """
    Relationship of ``node_name`` under ``edge_type``, mirrored under
    ``alternate_edge_type`` on every target.

    Example:
        edge = Edge("alice", "in", "has", client=redis)
        await edge.add(["admins", "staff"])
        await edge.all()          # ["admins", "staff"]
        # has_admins and has_staff now contain "alice"
    """

    def __init__(
        self,
        node_name: str,
        edge_type: str,
        alternate_edge_type: str,
        client: Optional[AsyncRedis] = None,
        max_retries: Optional[int] = None,
    ):
        self.node_name = node_name
        self.client = resolve_client(client)
        self.max_retries = resolve_max_retries(max_retries)

        self.edge_type = edge_type
        self.edge_prefix = f"{edge_type}_"
        self.edge_node_name = f"{self.edge_prefix}{node_name}"

        self.alternate_edge_type = alternate_edge_type
        self.alternate_edge_prefix = f"{alternate_edge_type}_"
        self.alternate_edge_node_name = f"{self.alternate_edge_prefix}{node_name}"

    def __repr__(self) -> str:
        return (
            f"Edge(node_name={self.node_name!r}, edge_type={self.edge_type!r}, "
            f"alternate_edge_type={self.alternate_edge_type!r})"
        )

    def inverse_key(self, target: str) -> str:
        """Key of the set holding ``target``'s back-references."""
        return f"{self.alternate_edge_prefix}{target}"

    async def add(self, targets: Targets) -> EdgeBatchResult:
        """
        Link this node to one or more targets.

        Args:
            targets: A node name or a sequence of node names

        Returns:
            EdgeBatchResult listing every target as succeeded

        Raises:
            EdgeBatchError: If any target failed; the others stay linked
        """
        return await self._run_batch("add", _as_list(targets), self._link)

    async def remove(self, targets: Targets) -> EdgeBatchResult:
        """
        Unlink this node from one or more targets.

        Raises:
            EdgeBatchError: If any target failed; the others stay unlinked
        """
        return await self._run_batch("remove", _as_list(targets), self._unlink)

    async def all(self) -> List[str]:
        """Targets of this edge; empty list when the key does not exist."""
        members = await self.client.smembers(self.edge_node_name)
        return list(members or [])

    async def has(self, target: str) -> bool:
        """Whether ``target`` is in the forward set."""
        return bool(await self.client.sismember(self.edge_node_name, target))

    async def count(self) -> int:
        """Number of targets in the forward set."""
        return int(await self.client.scard(self.edge_node_name))

    async def delete(self) -> List[str]:
        """
        Remove every relationship of this edge, on both sides.

        The forward key is WATCHed while its members are read; the back-
        reference removals and the forward key deletion are committed in one
        transaction, retried if another writer touched the forward set.

        Returns:
            Targets that were linked before deletion (empty list if none;
            nothing is written in that case)

        Raises:
            ConcurrentModificationError: If every attempt lost the race
        """
        for attempt in range(1, self.max_retries + 1):
            async with self.client.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(self.edge_node_name)
                    members = list(await pipe.smembers(self.edge_node_name) or [])
                    if not members:
                        log.debug("Edge delete: nothing to delete", key=self.edge_node_name)
                        return []

                    pipe.multi()
                    for target in members:
                        pipe.srem(self.inverse_key(target), self.node_name)
                    pipe.delete(self.edge_node_name)
                    await pipe.execute()
                except WatchError:
                    log.warning(
                        "Edge delete: concurrent modification, retrying",
                        key=self.edge_node_name,
                        attempt=attempt,
                    )
                    continue

            log.debug("Edge deleted", key=self.edge_node_name, targets=len(members))
            return members

        raise ConcurrentModificationError(self.edge_node_name, self.max_retries)

    async def _link(self, target: str) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.sadd(self.edge_node_name, target)
            pipe.sadd(self.inverse_key(target), self.node_name)
            await pipe.execute()

    async def _unlink(self, target: str) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.srem(self.edge_node_name, target)
            pipe.srem(self.inverse_key(target), self.node_name)
            await pipe.execute()

    async def _run_batch(
        self,
        operation: str,
        targets: List[str],
        apply: Callable[[str], Awaitable[None]],
    ) -> EdgeBatchResult:
        """Apply ``apply`` to every target concurrently and collect outcomes."""
        outcomes = await asyncio.gather(*(apply(t) for t in targets), return_exceptions=True)

        result = EdgeBatchResult(operation=operation, edge_key=self.edge_node_name)
        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                result.failed[target] = outcome
            else:
                result.succeeded.append(target)

        if result.failed:
            log.error(
                f"Edge {operation} partially failed",
                key=self.edge_node_name,
                succeeded=len(result.succeeded),
                failed=list(result.failed),
            )
            raise EdgeBatchError(result)

        log.debug(f"Edge {operation}", key=self.edge_node_name, targets=len(targets))
        return result
