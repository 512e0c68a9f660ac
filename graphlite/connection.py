"""
Redis Connection Manager
========================

Owns the process-wide Redis client used by graph objects that are not given
one explicitly.

Graph objects accept a ``client`` argument; when it is omitted they capture
the default client registered here at construction time. Re-registering a
client only affects objects built afterwards.

Usage:
    client = await RedisConnectionManager.initialize()
    node = Node("user:42")            # uses the default client

    # or, without the singleton
    set_client(my_redis)
"""

from typing import Any, Optional

import structlog
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import ConnectionError, TimeoutError

from graphlite.config import GraphStoreConfig
from graphlite.exceptions import ClientNotConfiguredError

log = structlog.get_logger()


class RedisConnectionManager:
    """
    Singleton connection manager for Redis.

    Keeps a single AsyncRedis instance for the application and registers it
    as the default client for graph objects.
    """

    _instance: Optional["RedisConnectionManager"] = None
    _client: Optional[AsyncRedis] = None
    _config: Optional[GraphStoreConfig] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    async def initialize(
        cls,
        config: Optional[GraphStoreConfig] = None,
        **kwargs: Any,
    ) -> AsyncRedis:
        """
        Create the Redis client, verify it with PING and make it the default.

        Args:
            config: Connection settings (default: from environment variables)
            **kwargs: Extra options forwarded to ``redis.asyncio.Redis``

        Returns:
            AsyncRedis instance

        Raises:
            ConnectionError: If the server cannot be reached
        """
        if cls._client is not None:
            log.info("Redis client already initialized, returning existing client")
            return cls._client

        config = config or GraphStoreConfig()
        log.info("Initializing Redis client", host=config.host, port=config.port, db=config.db)

        client = AsyncRedis(**config.client_kwargs(), **kwargs)
        try:
            await client.ping()
        except (ConnectionError, TimeoutError) as e:
            log.error("Failed to initialize Redis client", error=str(e))
            await client.aclose()
            raise

        cls._client = client
        cls._config = config
        set_client(client)
        log.info("Redis client initialized successfully")
        return client

    @classmethod
    def get_client(cls) -> AsyncRedis:
        """
        Return the managed client.

        Raises:
            ClientNotConfiguredError: If ``initialize()`` has not run
        """
        if cls._client is None:
            raise ClientNotConfiguredError()
        return cls._client

    @classmethod
    def get_config(cls) -> GraphStoreConfig:
        """Configuration of the managed client, or a fresh default one."""
        return cls._config or GraphStoreConfig()

    @classmethod
    async def close(cls) -> None:
        """Close the managed client and unregister it as default."""
        if cls._client is None:
            log.debug("Redis client not initialized, nothing to close")
            return

        log.info("Closing Redis client...")
        client = cls._client
        cls._client = None
        cls._config = None
        if _default_client is client:
            set_client(None)
        await client.aclose()
        log.info("Redis client closed")


_default_client: Optional[AsyncRedis] = None


def set_client(client: Optional[AsyncRedis]) -> None:
    """
    Register ``client`` as the default for graph objects built from now on.

    Passing ``None`` clears the default.
    """
    global _default_client
    _default_client = client
    log.debug("Default graph client set", configured=client is not None)


def get_client() -> AsyncRedis:
    """Return the default client or raise :class:`ClientNotConfiguredError`."""
    if _default_client is None:
        raise ClientNotConfiguredError()
    return _default_client


def resolve_client(client: Optional[AsyncRedis] = None) -> AsyncRedis:
    """Return ``client`` when given, otherwise the current default."""
    if client is not None:
        return client
    return get_client()


def resolve_max_retries(max_retries: Optional[int] = None) -> int:
    """
    Return ``max_retries`` when given, otherwise the configured default.

    Raises:
        ValueError: If ``max_retries`` is below 1
    """
    if max_retries is None:
        return RedisConnectionManager.get_config().max_retries
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")
    return max_retries
