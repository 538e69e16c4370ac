"""Migration and seed runner.

Migrations are applied once and recorded in the ``migrations`` schema; seeds
run on every call. Both run in a single transaction under a table lock.
"""

from sqlcompose.migrations.commands import apply_migrations, apply_seeds, migrate, seed
from sqlcompose.migrations.loader import UNIT_FILE_REGEX, MigrationUnit, discover_unit_files, load_units
from sqlcompose.migrations.tracker import MigrationTracker

__all__ = (
    "UNIT_FILE_REGEX",
    "MigrationTracker",
    "MigrationUnit",
    "apply_migrations",
    "apply_seeds",
    "discover_unit_files",
    "load_units",
    "migrate",
    "seed",
)
