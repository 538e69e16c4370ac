"""Migration bookkeeping tables.

``migrations.migrations`` holds one row per applied migration and
``migrations.migrations_lock`` a single boolean row that serializes runs.
"""

from typing import TYPE_CHECKING

from sqlcompose.exceptions import LockContentionError
from sqlcompose.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlcompose.base import Sql

__all__ = ("MigrationTracker",)

logger = get_logger("migrations.tracker")

SETUP_STATEMENTS = (
    "create schema if not exists migrations",
    """
    create table if not exists migrations.migrations_lock (
      is_locked boolean primary key not null default false
    )
    """,
    "insert into migrations.migrations_lock (is_locked) values (false) on conflict do nothing",
    """
    create table if not exists migrations.migrations (
      id serial primary key,
      name text not null,
      batch int not null,
      migrated_at timestamp not null default now()
    )
    """,
)


class MigrationTracker:
    """Reads and writes the bookkeeping tables through an entrypoint."""

    __slots__ = ()

    async def ensure_tables(self, sql: "Sql") -> None:
        """Create the bookkeeping schema and tables if they don't exist."""
        for statement in SETUP_STATEMENTS:
            await sql.raw(statement).exec()
        logger.debug("Ensured migration bookkeeping tables")

    async def lock(self, sql: "Sql") -> None:
        """Take the run lock.

        Raises:
            LockContentionError: If another run holds the lock.
        """
        row = await sql.raw(
            """
            update migrations.migrations_lock
            set is_locked = true
            where is_locked = false
            returning is_locked
            """
        ).first()
        if row is None:
            raise LockContentionError

    async def unlock(self, sql: "Sql") -> None:
        await sql.raw("update migrations.migrations_lock set is_locked = false").exec()

    async def get_applied_names(self, sql: "Sql") -> "list[str]":
        rows = await sql.raw("select name from migrations.migrations order by id").all()
        key = sql.identifier_from_db("name")
        return [row[key] for row in rows]

    async def get_next_batch(self, sql: "Sql") -> int:
        row = await sql.raw("select coalesce(max(batch), 0) + 1 as batch from migrations.migrations").first()
        return int(row[sql.identifier_from_db("batch")]) if row else 1

    async def record(self, sql: "Sql", names: "Sequence[str]", batch: int) -> None:
        """Insert one bookkeeping row per name, all in ``batch``."""
        if not names:
            return
        rows = sql.join(", ", [sql("({}, {})", name, batch) for name in names])
        await sql("insert into migrations.migrations (name, batch) values {}", rows).exec()
