"""Runtime-checkable protocols for the collaborators an entrypoint talks to.

A client either runs queries directly (a single connection, or a pool that
hands out a connection per query) or, when it sets
``supports_dedicated_connection``, can also check out a connection that stays
with the caller until it is released.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlcompose.core.result import QueryResult

__all__ = (
    "CancellationSignal",
    "DedicatedConnection",
    "PoolClient",
    "QueryClient",
)


@runtime_checkable
class QueryClient(Protocol):
    """Anything that runs one SQL string with positional ``$n`` parameters."""

    async def query(self, text: str, values: "Sequence[Any]") -> "QueryResult":
        """Run ``text`` with ``values`` bound to its parameters."""
        ...


@runtime_checkable
class DedicatedConnection(QueryClient, Protocol):
    """A connection checked out of a pool."""

    async def release(self) -> None:
        """Return the connection to its pool."""
        ...


@runtime_checkable
class PoolClient(QueryClient, Protocol):
    """A pool able to hand out dedicated connections."""

    supports_dedicated_connection: bool

    async def acquire(self) -> DedicatedConnection:
        """Check out a connection for exclusive use."""
        ...

    async def close(self) -> None:
        """Close every connection in the pool."""
        ...


@runtime_checkable
class CancellationSignal(Protocol):
    """A flag checked before every query, such as :class:`asyncio.Event`."""

    def is_set(self) -> bool:
        """Whether cancellation was requested."""
        ...
