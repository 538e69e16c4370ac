"""Migration and seed commands."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from rich.console import Console

from sqlcompose.exceptions import MigrationConsistencyError, MigrationError
from sqlcompose.migrations.loader import MigrationUnit, load_units
from sqlcompose.migrations.tracker import MigrationTracker
from sqlcompose.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlcompose.base import Sql

__all__ = ("apply_migrations", "apply_seeds", "migrate", "seed")

logger = get_logger("migrations.commands")
console = Console()
tracker = MigrationTracker()


def _files(count: int) -> str:
    return "file" if count == 1 else "files"


async def apply_migrations(
    sql: "Sql", units: "Sequence[MigrationUnit]", *, output: "Optional[Console]" = None
) -> int:
    """Apply every unit not recorded yet, in one transaction.

    Units without an ``apply`` function are not migrations and are skipped.
    All units applied by one run share a batch number.

    Args:
        sql: Entrypoint to run on.
        units: Every migration unit, in application order.
        output: Console the summary is printed to.

    Raises:
        MigrationConsistencyError: If a recorded migration is not among ``units``.
        LockContentionError: If another run holds the lock.
        MigrationError: If a pending unit's ``apply`` is not callable.

    Returns:
        Number of migrations applied.
    """
    await tracker.ensure_tables(sql)
    known = {unit.name for unit in units}

    async def run(tx: "Sql") -> int:
        await tracker.lock(tx)
        applied = await tracker.get_applied_names(tx)
        missing = [name for name in applied if name not in known]
        if missing:
            raise MigrationConsistencyError(missing)
        applied_names = set(applied)
        pending = [unit for unit in units if unit.apply is not None and unit.name not in applied_names]
        for unit in pending:
            if not callable(unit.apply):
                msg = f"expected {unit.name} to export an up function"
                raise MigrationError(msg)
        if pending:
            batch = await tracker.get_next_batch(tx)
            await tracker.record(tx, [unit.name for unit in pending], batch)
            for unit in pending:
                log_with_context(logger, logging.INFO, "Applying migration", migration=unit.name, batch=batch)
                try:
                    await unit.apply(tx)  # type: ignore[misc]
                except Exception:
                    logger.error("Error migrating %s", unit.name)
                    raise
        await tracker.unlock(tx)
        return len(pending)

    count = await sql.transaction(run)
    (output or console).print(f"Migrated {count} {_files(count)}", style="green")
    return count


async def apply_seeds(sql: "Sql", units: "Sequence[MigrationUnit]", *, output: "Optional[Console]" = None) -> int:
    """Run every seed unit, in order, in one transaction.

    Seeds are not recorded and run again on every call.

    Raises:
        LockContentionError: If another run holds the lock.
        MigrationError: If a unit has no callable ``apply``.

    Returns:
        Number of seeds run.
    """
    await tracker.ensure_tables(sql)

    async def run(tx: "Sql") -> int:
        await tracker.lock(tx)
        for unit in units:
            if not callable(unit.apply):
                msg = f"expected {unit.name} to export a seed function"
                raise MigrationError(msg)
            log_with_context(logger, logging.INFO, "Running seed", seed=unit.name)
            try:
                await unit.apply(tx)
            except Exception:
                logger.error("Error seeding %s", unit.name)
                raise
        await tracker.unlock(tx)
        return len(units)

    count = await sql.transaction(run)
    (output or console).print(f"Seeded {count} {_files(count)}", style="green")
    return count


async def migrate(sql: "Sql", directory: "Union[str, Path]", *, output: "Optional[Console]" = None) -> int:
    """Apply the pending migrations found in ``directory``."""
    return await apply_migrations(sql, load_units(directory, "up"), output=output)


async def seed(sql: "Sql", directory: "Union[str, Path]", *, output: "Optional[Console]" = None) -> int:
    """Run the seeds found in ``directory``."""
    return await apply_seeds(sql, load_units(directory, "seed"), output=output)
