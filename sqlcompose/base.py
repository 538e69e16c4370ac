"""Executing entrypoint.

``connect(client)`` returns a :class:`Sql`, a statement factory whose
statements can run against ``client``. Transactions and dedicated
connections derive new entrypoints bound to a specific connection; the
configuration is shared by every entrypoint of the chain.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from sqlcompose._sql import SQLFactory
from sqlcompose.config import SqlConfig
from sqlcompose.core.compiler import compile_preview, to_native
from sqlcompose.driver._async import AsyncTransactionMixin
from sqlcompose.exceptions import QueryCancelledError
from sqlcompose.utils.logging import CHANNELS, get_channel, get_logger, log_with_context, query_scope
from sqlcompose.utils.text import transform_keys

if TYPE_CHECKING:
    from sqlcompose.core.fragment import Fragment
    from sqlcompose.core.result import QueryResult
    from sqlcompose.protocols import CancellationSignal, QueryClient

__all__ = ("Sql", "connect")


class Sql(AsyncTransactionMixin, SQLFactory):
    """Statement factory bound to a client.

    Attributes:
        client: The pool, connection or checked out connection queries run on.
        depth: Number of transactions open on this chain, 0 outside any transaction.
        dedicated: Whether ``client`` is a connection owned by this chain.
    """

    __slots__ = ("_client", "_dedicated", "_depth", "_loggers")

    def __init__(
        self,
        client: "QueryClient",
        config: "Optional[SqlConfig]" = None,
        *,
        depth: int = 0,
        dedicated: bool = False,
    ) -> None:
        super().__init__(config)
        self._client = client
        self._depth = depth
        self._dedicated = dedicated
        root = self.config.logger if self.config.logger is not None else get_logger()
        self._loggers = {name: get_channel(root, name) for name in CHANNELS}

    def _bound_executor(self) -> "Sql":
        return self

    def _derive(
        self,
        *,
        client: "Optional[QueryClient]" = None,
        depth: "Optional[int]" = None,
        dedicated: "Optional[bool]" = None,
        config: "Optional[SqlConfig]" = None,
    ) -> "Sql":
        return Sql(
            client if client is not None else self._client,
            config if config is not None else self.config,
            depth=self._depth if depth is None else depth,
            dedicated=self._dedicated if dedicated is None else dedicated,
        )

    @property
    def client(self) -> "QueryClient":
        return self._client

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def dedicated(self) -> bool:
        return self._dedicated

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @property
    def query_logger(self) -> logging.Logger:
        return self._loggers["query"]

    @property
    def binding_logger(self) -> logging.Logger:
        return self._loggers["binding"]

    @property
    def transaction_logger(self) -> logging.Logger:
        return self._loggers["transaction"]

    @property
    def error_logger(self) -> logging.Logger:
        return self._loggers["error"]

    def with_signal(self, signal: "CancellationSignal") -> "Sql":
        """Derive an entrypoint whose queries fail with :class:`QueryCancelledError` once ``signal`` is set."""
        return self._derive(config=self.config.replace(signal=signal))

    def check_cancelled(self) -> None:
        signal = self.config.signal
        if signal is not None and signal.is_set():
            raise QueryCancelledError

    async def execute(self, statement: "Fragment") -> "QueryResult":
        """Compile ``statement`` and run it on the bound client.

        Composition errors are raised before the client is called. Errors from
        the client are logged with a literal preview of the statement and
        re-raised unchanged. Every record logged for the call shares one
        ``query_id``.
        """
        text, values = to_native(statement)
        self.check_cancelled()
        with query_scope() as query_id:
            self.query_logger.debug(text)
            self.binding_logger.debug("%r", values)
            try:
                return await self._client.query(text, values)
            except Exception as error:
                log_with_context(
                    self.error_logger,
                    logging.ERROR,
                    "Query failed",
                    query_id=query_id,
                    statement=compile_preview(statement),
                    error=str(error),
                    sqlstate=getattr(error, "sqlstate", None),
                )
                raise

    def transform_rows(self, rows: "list[dict[str, Any]]") -> "list[dict[str, Any]]":
        """Convert row keys, nested objects included, to the row case method."""
        return transform_keys(rows, self._case_from_db)

    async def end(self) -> None:
        """Close the client, when it can be closed."""
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()


def connect(client: "QueryClient", config: "Optional[SqlConfig]" = None, **overrides: Any) -> Sql:
    """Build an entrypoint for ``client``.

    Args:
        client: A pool or a single connection implementing ``query``.
        config: Base configuration, defaults to :class:`SqlConfig`.
        **overrides: Configuration fields replacing those of ``config``.

    Returns:
        The entrypoint.
    """
    config = config if config is not None else SqlConfig()
    if overrides:
        config = config.replace(**overrides)
    return Sql(client, config)
