"""AsyncPG pool configuration with direct field-based configuration."""

from typing import TYPE_CHECKING, Any, Optional, TypedDict, Union

from asyncpg import Connection, Record
from asyncpg import create_pool as asyncpg_create_pool
from asyncpg.pool import Pool, PoolConnectionProxy
from typing_extensions import NotRequired, TypeAlias

from sqlcompose.adapters.asyncpg.client import AsyncpgPoolClient
from sqlcompose.adapters.asyncpg.core import register_json_codecs
from sqlcompose.base import connect
from sqlcompose.utils.logging import get_logger
from sqlcompose.utils.serializers import from_json, to_json

if TYPE_CHECKING:
    from asyncio.events import AbstractEventLoop
    from collections.abc import Awaitable, Callable

    from sqlcompose.base import Sql
    from sqlcompose.config import SqlConfig


__all__ = ("AsyncpgConfig", "AsyncpgConnection", "AsyncpgConnectionConfig", "AsyncpgPoolConfig")

AsyncpgConnection: TypeAlias = Union[Connection, PoolConnectionProxy]

logger = get_logger("adapters.asyncpg.config")


class AsyncpgConnectionConfig(TypedDict, total=False):
    """TypedDict for AsyncPG connection parameters."""

    dsn: NotRequired[str]
    host: NotRequired[str]
    port: NotRequired[int]
    user: NotRequired[str]
    password: NotRequired[str]
    database: NotRequired[str]
    ssl: NotRequired[Any]
    passfile: NotRequired[str]
    direct_tls: NotRequired[bool]
    connect_timeout: NotRequired[float]
    command_timeout: NotRequired[float]
    statement_cache_size: NotRequired[int]
    max_cached_statement_lifetime: NotRequired[int]
    max_cacheable_statement_size: NotRequired[int]
    server_settings: NotRequired[dict[str, str]]


class AsyncpgPoolConfig(AsyncpgConnectionConfig, total=False):
    """TypedDict for AsyncPG pool parameters, inheriting connection parameters."""

    min_size: NotRequired[int]
    max_size: NotRequired[int]
    max_queries: NotRequired[int]
    max_inactive_connection_lifetime: NotRequired[float]
    setup: NotRequired["Callable[[AsyncpgConnection], Awaitable[None]]"]
    init: NotRequired["Callable[[AsyncpgConnection], Awaitable[None]]"]
    loop: NotRequired["AbstractEventLoop"]
    record_class: NotRequired[type[Record]]
    extra: NotRequired[dict[str, Any]]


class AsyncpgConfig:
    """Lazily created asyncpg pool and the entrypoint running on it."""

    __slots__ = ("json_deserializer", "json_serializer", "pool_config", "pool_instance")

    def __init__(
        self,
        *,
        pool_config: "Optional[Union[AsyncpgPoolConfig, dict[str, Any]]]" = None,
        pool_instance: "Optional[Pool[Record]]" = None,
        json_serializer: "Optional[Callable[[Any], str]]" = None,
        json_deserializer: "Optional[Callable[[str], Any]]" = None,
    ) -> None:
        """Initialize AsyncPG configuration.

        Args:
            pool_config: Pool configuration parameters (TypedDict or dict)
            pool_instance: Existing pool instance to use
            json_serializer: JSON serialization function for json/jsonb values
            json_deserializer: JSON deserialization function for json/jsonb values
        """
        self.pool_config: dict[str, Any] = dict(pool_config) if pool_config else {}
        self.pool_instance = pool_instance
        self.json_serializer = json_serializer or to_json
        self.json_deserializer = json_deserializer or from_json

    def _get_pool_config_dict(self) -> "dict[str, Any]":
        """Get pool configuration as plain dict for asyncpg.

        Returns:
            Dictionary with pool parameters, filtering out None values.
        """
        config: dict[str, Any] = dict(self.pool_config)
        extras = config.pop("extra", {})
        config.update(extras)
        return {k: v for k, v in config.items() if v is not None}

    async def _init_connection(self, connection: "AsyncpgConnection") -> None:
        await register_json_codecs(connection, encoder=self.json_serializer, decoder=self.json_deserializer)
        user_init = self.pool_config.get("init")
        if user_init is not None:
            await user_init(connection)

    async def create_pool(self) -> "Pool[Record]":
        """Create the pool, registering JSON codecs on every new connection."""
        config = self._get_pool_config_dict()
        config["init"] = self._init_connection
        logger.debug("Creating asyncpg pool")
        return await asyncpg_create_pool(**config)

    async def provide_pool(self) -> "Pool[Record]":
        """Provide the pool, creating it on first use.

        Returns:
            The async connection pool.
        """
        if self.pool_instance is None:
            self.pool_instance = await self.create_pool()
        return self.pool_instance

    async def close_pool(self) -> None:
        if self.pool_instance is not None:
            await self.pool_instance.close()
            self.pool_instance = None

    async def provide_client(self) -> AsyncpgPoolClient:
        return AsyncpgPoolClient(await self.provide_pool())

    async def connect(self, config: "Optional[SqlConfig]" = None, **overrides: Any) -> "Sql":
        """Build an entrypoint on the pool.

        Args:
            config: Entrypoint configuration.
            **overrides: Configuration fields replacing those of ``config``.

        Returns:
            The entrypoint. ``await sql.end()`` closes the pool.
        """
        return connect(await self.provide_client(), config, **overrides)
