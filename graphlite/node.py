"""
Node
====

Named vertex of the graph. A node has no record of its own: it is the union
of two complementary edges and one attribute bag derived from its name.

Default layout for ``Node("alice")``:

    node.membership   Edge("alice", "in", "has")    groups alice is in
    node.members      Edge("alice", "has", "in")    nodes alice has
    node.attribute    Attribute("alice")

With ``NodeOptions(inner="parent", outer="child")`` the accessors become
``node.parent`` (labels parent/child) and ``node.child`` (child/parent).
The same edges are always reachable as ``node.inner`` and ``node.outer``.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

import structlog
from redis.asyncio import Redis as AsyncRedis

from graphlite.attribute import Attribute
from graphlite.connection import resolve_client
from graphlite.edge import Edge

log = structlog.get_logger()

DEFAULT_INNER = "in"
DEFAULT_OUTER = "has"
DEFAULT_INNER_METHOD = "membership"
DEFAULT_OUTER_METHOD = "members"

# Set in Node.__init__; accessors with these names would never be reached
_INSTANCE_ATTRIBUTES = frozenset({"options", "client", "inner", "outer", "attribute", "edges"})


@dataclass(frozen=True)
class NodeOptions:
    """
    Relationship labels of a node.

    Attributes:
        inner: Label of the "this node is related from" edge (default "in")
        outer: Label of the "this node relates to" edge (default "has")

    When a label is given it also names the accessor; otherwise the accessors
    are "membership" and "members".
    """
    inner: Optional[str] = None
    outer: Optional[str] = None

    @classmethod
    def from_value(cls, value: Union["NodeOptions", Mapping[str, str], None]) -> "NodeOptions":
        if value is None:
            return cls()
        if isinstance(value, NodeOptions):
            return value
        return cls(inner=value.get("inner"), outer=value.get("outer"))

    @property
    def inner_label(self) -> str:
        return self.inner or DEFAULT_INNER

    @property
    def outer_label(self) -> str:
        return self.outer or DEFAULT_OUTER

    @property
    def inner_method(self) -> str:
        return self.inner or DEFAULT_INNER_METHOD

    @property
    def outer_method(self) -> str:
        return self.outer or DEFAULT_OUTER_METHOD


@dataclass
class NodeDeleteResult:
    """What a cascading node deletion removed."""
    name: str
    inner: List[str] = field(default_factory=list)
    outer: List[str] = field(default_factory=list)
    attributes: List[str] = field(default_factory=list)

    @property
    def removed_anything(self) -> bool:
        return bool(self.inner or self.outer or self.attributes)


class Node:
    """
    Graph node bound to a Redis client.

    Creating a node writes nothing; the store is only touched through its
    edges and attributes.

    Example:
        alice = Node("alice", client=redis)
        await alice.membership.add(["admins", "staff"])
        await Node("admins", client=redis).members.all()   # ["alice"]
        await alice.attribute.set("email", "alice@example.com")
    """

    def __init__(
        self,
        node_name: str,
        options: Union[NodeOptions, Mapping[str, str], None] = None,
        client: Optional[AsyncRedis] = None,
        max_retries: Optional[int] = None,
    ):
        self.options = NodeOptions.from_value(options)
        if self.options.inner_label == self.options.outer_label:
            raise ValueError(
                f"inner and outer labels must differ, got {self.options.inner_label!r} for both"
            )
        for accessor in (self.options.inner_method, self.options.outer_method):
            if accessor in _INSTANCE_ATTRIBUTES or hasattr(type(self), accessor):
                raise ValueError(f"edge accessor {accessor!r} clashes with a Node attribute")

        self._node_name = node_name
        self.client = resolve_client(client)

        inner, outer = self.options.inner_label, self.options.outer_label
        self.inner = Edge(node_name, inner, outer, client=self.client, max_retries=max_retries)
        self.outer = Edge(node_name, outer, inner, client=self.client, max_retries=max_retries)
        self.attribute = Attribute(node_name, client=self.client, max_retries=max_retries)

        self.edges: Dict[str, Edge] = {
            self.options.inner_method: self.inner,
            self.options.outer_method: self.outer,
        }

    def __getattr__(self, name: str) -> Edge:
        # Only reached for names not found normally: the configured accessors
        edges = self.__dict__.get("edges", {})
        if name in edges:
            return edges[name]
        raise AttributeError(f"{type(self).__name__!s} has no attribute or edge accessor {name!r}")

    def __repr__(self) -> str:
        return (
            f"Node({self._node_name!r}, inner={self.options.inner_label!r}, "
            f"outer={self.options.outer_label!r})"
        )

    @property
    def name(self) -> str:
        """Identity of this node."""
        return self._node_name

    @property
    def inner_method(self) -> str:
        return self.options.inner_method

    @property
    def outer_method(self) -> str:
        return self.options.outer_method

    async def exists(self) -> bool:
        """Whether any edge or attribute key of this node is stored."""
        count = await self.client.exists(
            self.inner.edge_node_name,
            self.outer.edge_node_name,
            self.attribute.node_attributes_name,
        )
        return count > 0

    async def delete(self) -> NodeDeleteResult:
        """
        Remove the node's whole footprint: both edges (with the back-references
        on their targets) and every attribute.

        The three parts are deleted concurrently and independently. Every
        failed part is logged; the first failure propagates after the others
        have finished.
        """
        inner, outer, attributes = await asyncio.gather(
            self.inner.delete(),
            self.outer.delete(),
            self.attribute.clear(),
            return_exceptions=True,
        )
        parts = {"inner": inner, "outer": outer, "attributes": attributes}
        failures = [
            (part, outcome) for part, outcome in parts.items()
            if isinstance(outcome, BaseException)
        ]
        for part, error in failures:
            log.error("Node delete failed", node=self._node_name, part=part, error=str(error))
        if failures:
            raise failures[0][1]

        result = NodeDeleteResult(
            name=self._node_name,
            inner=inner,
            outer=outer,
            attributes=attributes,
        )
        log.info(
            "Node deleted",
            node=self._node_name,
            inner=len(inner),
            outer=len(outer),
            attributes=len(attributes),
        )
        return result
