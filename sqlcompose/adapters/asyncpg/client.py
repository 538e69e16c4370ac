"""Query clients wrapping asyncpg pools and connections."""

from typing import TYPE_CHECKING, Any, ClassVar, Optional

from sqlcompose.adapters.asyncpg.core import run_query

if TYPE_CHECKING:
    from collections.abc import Sequence

    from asyncpg import Record
    from asyncpg.pool import Pool

    from sqlcompose.adapters.asyncpg.config import AsyncpgConnection
    from sqlcompose.core.result import QueryResult

__all__ = ("AsyncpgConnectionClient", "AsyncpgPoolClient")


class AsyncpgConnectionClient:
    """A single asyncpg connection, optionally checked out of a pool."""

    __slots__ = ("_connection", "_pool")

    supports_dedicated_connection: ClassVar[bool] = False

    def __init__(self, connection: "AsyncpgConnection", pool: "Optional[Pool[Record]]" = None) -> None:
        self._connection = connection
        self._pool = pool

    @property
    def connection(self) -> "AsyncpgConnection":
        return self._connection

    async def query(self, text: str, values: "Sequence[Any]") -> "QueryResult":
        return await run_query(self._connection, text, values)

    async def release(self) -> None:
        """Return the connection to the pool it came from. A standalone connection is left open."""
        if self._pool is not None:
            await self._pool.release(self._connection)

    async def close(self) -> None:
        if self._pool is None:
            await self._connection.close()


class AsyncpgPoolClient:
    """An asyncpg pool. Each query borrows a connection unless a dedicated one is acquired."""

    __slots__ = ("_pool",)

    supports_dedicated_connection: ClassVar[bool] = True

    def __init__(self, pool: "Pool[Record]") -> None:
        self._pool = pool

    @property
    def pool(self) -> "Pool[Record]":
        return self._pool

    async def query(self, text: str, values: "Sequence[Any]") -> "QueryResult":
        async with self._pool.acquire() as connection:
            return await run_query(connection, text, values)

    async def acquire(self) -> AsyncpgConnectionClient:
        connection = await self._pool.acquire()
        return AsyncpgConnectionClient(connection, self._pool)

    async def close(self) -> None:
        await self._pool.close()
