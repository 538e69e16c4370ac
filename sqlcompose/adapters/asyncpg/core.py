"""AsyncPG adapter helpers."""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, NoReturn

import asyncpg

from sqlcompose.core.compiler import count_statements
from sqlcompose.core.result import QueryResult
from sqlcompose.driver import DEADLOCK_SQLSTATE
from sqlcompose.exceptions import DeadlockError, QueryError
from sqlcompose.utils.logging import get_logger
from sqlcompose.utils.type_guards import has_sqlstate

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Sequence

__all__ = (
    "collect_rows",
    "handle_database_exceptions",
    "raise_exception",
    "register_json_codecs",
    "run_query",
)

logger = get_logger("adapters.asyncpg.core")


async def register_json_codecs(
    connection: Any, encoder: "Callable[[Any], str]", decoder: "Callable[[str], Any]"
) -> None:
    """Register JSON type codecs on an asyncpg connection."""
    try:
        await connection.set_type_codec("json", encoder=encoder, decoder=decoder, schema="pg_catalog")
        await connection.set_type_codec("jsonb", encoder=encoder, decoder=decoder, schema="pg_catalog")
        logger.debug("Registered JSON type codecs on asyncpg connection")
    except Exception:
        logger.exception("Failed to register JSON type codecs")


def raise_exception(error: Any) -> NoReturn:
    """Raise the sqlcompose exception matching an asyncpg error, chained to it."""
    code = error.sqlstate if has_sqlstate(error) else None
    if code == DEADLOCK_SQLSTATE:
        msg = f"PostgreSQL deadlock detected [{code}]: {error}"
        raise DeadlockError(msg, sqlstate=code) from error
    msg = f"PostgreSQL database error [{code}]: {error}" if code else f"PostgreSQL database error: {error}"
    raise QueryError(msg, sqlstate=code) from error


@asynccontextmanager
async def handle_database_exceptions() -> "AsyncGenerator[None, None]":
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        raise_exception(e)


def collect_rows(records: "list[Any] | None") -> "list[dict[str, Any]]":
    """Convert asyncpg records into dictionaries."""
    if not records:
        return []
    return [dict(record) for record in records]


async def run_query(connection: Any, text: str, values: "Sequence[Any]") -> QueryResult:
    """Run one call on ``connection``.

    Text without values that holds several statements goes through the simple
    query protocol and returns no rows. Everything else is prepared, so the
    rows and the command tag of the single statement are both available.
    """
    async with handle_database_exceptions():
        if not values and ";" in text:
            statement_count = count_statements(text)
            if statement_count > 1:
                status = await connection.execute(text)
                return QueryResult(rows=None, status=status, statement_count=statement_count)
        prepared = await connection.prepare(text)
        records = await prepared.fetch(*values)
        return QueryResult(rows=collect_rows(records), status=prepared.get_statusmsg())
