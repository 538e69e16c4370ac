"""Transaction and dedicated connection lifecycle.

A chain of entrypoints derived from one another shares at most one checked
out connection. The outermost ``transaction`` issues ``begin``; every
``transaction`` nested inside it issues a uniquely named savepoint on the
same connection. ``connection`` checks a connection out without opening a
transaction, so a ``transaction`` inside it still begins a real
transaction, on that connection.
"""

import asyncio
import itertools
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from sqlcompose.exceptions import DeadlockError
from sqlcompose.utils.logging import log_with_context, query_scope
from sqlcompose.utils.type_guards import has_sqlstate

if TYPE_CHECKING:
    from sqlcompose.base import Sql
    from sqlcompose.protocols import QueryClient

__all__ = ("DEADLOCK_SQLSTATE", "AsyncTransactionMixin", "is_deadlock_error", "next_savepoint_name")

T = TypeVar("T")
TransactionBody = Callable[["Sql"], Awaitable[T]]

DEADLOCK_SQLSTATE = "40P01"

_savepoint_ids = itertools.count(1)


def next_savepoint_name() -> str:
    """``tx1``, ``tx2``... unique for the lifetime of the process."""
    return f"tx{next(_savepoint_ids)}"


def is_deadlock_error(error: BaseException) -> bool:
    """Whether ``error`` reports a deadlock, either mapped or as a raw driver error."""
    if isinstance(error, DeadlockError):
        return True
    return has_sqlstate(error) and getattr(error, "sqlstate", None) == DEADLOCK_SQLSTATE


class AsyncTransactionMixin:
    """Transaction methods of :class:`sqlcompose.base.Sql`."""

    __slots__ = ()

    async def transaction(self: "Sql", fn: "TransactionBody[T]") -> T:
        """Run ``fn`` inside a transaction, or inside a savepoint when one is already open.

        When the outermost transaction fails with a deadlock, the whole of
        ``fn`` runs again, up to ``deadlock_retry_count`` attempts in total,
        waiting ``attempt * deadlock_retry_delay`` seconds before each retry.
        A nested transaction never retries on its own; its deadlock propagates
        so the outermost transaction retries from the start.

        Args:
            fn: Coroutine function receiving an entrypoint bound to the transaction.

        Returns:
            Whatever ``fn`` returned.
        """
        if self.depth > 0:
            return await self._run_transaction(fn)
        attempt = 1
        while True:
            try:
                return await self._run_transaction(fn)
            except Exception as error:
                if not is_deadlock_error(error) or attempt >= self.config.deadlock_retry_count:
                    raise
                delay = attempt * self.config.deadlock_retry_delay
                log_with_context(
                    self.transaction_logger,
                    logging.WARNING,
                    "Deadlock detected, retrying transaction",
                    attempt=attempt,
                    max_attempts=self.config.deadlock_retry_count,
                    delay=delay,
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def impure_transaction(self: "Sql", fn: "TransactionBody[T]") -> T:
        """Like :meth:`transaction` but never retries.

        Use it when ``fn`` has effects outside the database that must not run twice.
        """
        return await self._run_transaction(fn)

    async def connection(self: "Sql", fn: "TransactionBody[T]") -> T:
        """Run ``fn`` with an entrypoint bound to a dedicated connection, outside any transaction.

        Pools check a connection out for the duration of ``fn`` and get it back
        on every exit path. Single connections, and chains already holding a
        connection, pass through unchanged.
        """
        if self.dedicated or not getattr(self.client, "supports_dedicated_connection", False):
            return await fn(self)
        connection = await self.client.acquire()  # type: ignore[attr-defined]
        self.transaction_logger.debug("Acquired dedicated connection")
        try:
            return await fn(self._derive(client=connection, dedicated=True))
        finally:
            await connection.release()
            self.transaction_logger.debug("Released dedicated connection")

    async def _run_transaction(self: "Sql", fn: "TransactionBody[T]") -> T:
        acquired = None
        client = self.client
        if not self.dedicated and getattr(client, "supports_dedicated_connection", False):
            acquired = await client.acquire()  # type: ignore[attr-defined]
            client = acquired
        try:
            if self.depth == 0:
                begin, commit, rollback = "begin", "commit", "rollback"
            else:
                name = next_savepoint_name()
                begin = f"savepoint {name}"
                commit = f"release savepoint {name}"
                rollback = f"rollback to savepoint {name}"
            await self._control(client, begin)
            scoped = self._derive(client=client, depth=self.depth + 1, dedicated=True)
            try:
                result = await fn(scoped)
                await self._control(client, commit)
            except BaseException as error:
                try:
                    await self._control(client, rollback, check_signal=False)
                except Exception as rollback_error:
                    log_with_context(
                        self.error_logger,
                        logging.ERROR,
                        "Rollback failed",
                        statement=rollback,
                        original_error=repr(error),
                    )
                    raise rollback_error from error
                raise
            return result
        finally:
            if acquired is not None:
                await acquired.release()

    async def _control(self: "Sql", client: "QueryClient", text: str, *, check_signal: bool = True) -> Any:
        if check_signal:
            self.check_cancelled()
        with query_scope():
            self.transaction_logger.debug(text)
            return await client.query(text, [])
