"""
graphlite: graph nodes on top of Redis sets
===========================================

Nodes, relationships and attributes encoded as plain Redis sets and strings.
There is no query language: the graph is used through Node objects.

Quick Start:
    from graphlite import Node, RedisConnectionManager

    await RedisConnectionManager.initialize()

    alice = Node("alice")
    await alice.membership.add(["admins", "staff"])
    await Node("admins").members.all()        # ["alice"]

    await alice.attribute.set("email", "alice@example.com")
    await alice.attribute.all()               # {"email": "alice@example.com"}

    await alice.delete()                      # edges, back-references, attributes

Components:
- node: Node, NodeOptions, NodeDeleteResult
- edge: Edge, EdgeBatchResult
- attribute: Attribute
- connection: RedisConnectionManager, set_client, get_client
- config: GraphStoreConfig
"""

__version__ = "0.1.0"

from graphlite.attribute import Attribute
from graphlite.config import GraphStoreConfig
from graphlite.connection import RedisConnectionManager, get_client, set_client
from graphlite.edge import Edge, EdgeBatchResult
from graphlite.exceptions import (
    ClientNotConfiguredError,
    ConcurrentModificationError,
    EdgeBatchError,
    GraphLiteError,
)
from graphlite.log_config import configure_logging
from graphlite.node import Node, NodeDeleteResult, NodeOptions

__all__ = [
    # Graph
    "Node",
    "NodeOptions",
    "NodeDeleteResult",
    "Edge",
    "EdgeBatchResult",
    "Attribute",
    # Connection
    "GraphStoreConfig",
    "RedisConnectionManager",
    "set_client",
    "get_client",
    "configure_logging",
    # Errors
    "GraphLiteError",
    "ClientNotConfiguredError",
    "EdgeBatchError",
    "ConcurrentModificationError",
]
