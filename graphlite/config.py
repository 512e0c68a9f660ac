"""
Graph Store Configuration
=========================

Connection settings for the Redis server backing the graph.

Every field can be overridden through environment variables, so the same code
runs against a local container and a managed instance.

Usage:
    from graphlite.config import GraphStoreConfig

    # Defaults (env vars or built-in values)
    config = GraphStoreConfig()

    # Explicit override
    config = GraphStoreConfig(host="redis.internal", db=3)

Environment Variables:
    GRAPHLITE_REDIS_HOST: Server host (default: localhost)
    GRAPHLITE_REDIS_PORT: Server port (default: 6379)
    GRAPHLITE_REDIS_DB: Database number (default: 0)
    GRAPHLITE_REDIS_PASSWORD: Password (default: empty)
    GRAPHLITE_REDIS_MAX_CONNECTIONS: Pool size (default: 50)
    GRAPHLITE_REDIS_SOCKET_TIMEOUT: Socket timeout in seconds (default: 5)
    GRAPHLITE_REDIS_SOCKET_CONNECT_TIMEOUT: Connect timeout in seconds (default: 5)
    GRAPHLITE_MAX_RETRIES: WATCH retries for delete/clear (default: 5)
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def _get_env_str(key: str, default: str) -> str:
    """Read an environment variable as a string."""
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    """Read an environment variable as an integer."""
    return int(os.environ.get(key, default))


def _get_env_float(key: str, default: float) -> float:
    """Read an environment variable as a float."""
    return float(os.environ.get(key, default))


@dataclass
class GraphStoreConfig:
    """
    Redis connection configuration.

    Attributes:
        host: Redis host
        port: Redis port
        db: Database number
        password: Authentication password (optional)
        max_connections: Maximum connections in the pool
        socket_timeout: Socket timeout in seconds
        socket_connect_timeout: Connection timeout in seconds
        max_retries: Attempts for WATCH-guarded operations before giving up
    """
    host: str = field(default_factory=lambda: _get_env_str("GRAPHLITE_REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("GRAPHLITE_REDIS_PORT", 6379))
    db: int = field(default_factory=lambda: _get_env_int("GRAPHLITE_REDIS_DB", 0))
    password: Optional[str] = field(default_factory=lambda: _get_env_str("GRAPHLITE_REDIS_PASSWORD", "") or None)
    max_connections: int = field(default_factory=lambda: _get_env_int("GRAPHLITE_REDIS_MAX_CONNECTIONS", 50))
    socket_timeout: float = field(default_factory=lambda: _get_env_float("GRAPHLITE_REDIS_SOCKET_TIMEOUT", 5))
    socket_connect_timeout: float = field(
        default_factory=lambda: _get_env_float("GRAPHLITE_REDIS_SOCKET_CONNECT_TIMEOUT", 5)
    )
    max_retries: int = field(default_factory=lambda: _get_env_int("GRAPHLITE_MAX_RETRIES", 5))

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``redis.asyncio.Redis``."""
        return {
            "host": self.host,
            "port": self.port,
            "db": self.db,
            "password": self.password,
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            # Node names and attribute keys are handled as text
            "decode_responses": True,
        }
