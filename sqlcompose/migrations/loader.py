"""Discovery of migration and seed files.

A unit file is named ``<number>_<description>.py``; files are ordered by the
numeric prefix, then by name. Migration files define ``async def up(sql)``,
seed files ``async def seed(sql)``.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from sqlcompose.exceptions import MigrationError
from sqlcompose.utils.logging import get_logger
from sqlcompose.utils.module_loader import load_module_from_path

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from sqlcompose.base import Sql

__all__ = ("UNIT_FILE_REGEX", "MigrationUnit", "discover_unit_files", "load_units")

logger = get_logger("migrations.loader")

UNIT_FILE_REGEX = re.compile(r"^\d+_[^.]*\.py$")

UnitFunction = Callable[["Sql"], "Awaitable[Any]"]


@dataclass(frozen=True)
class MigrationUnit:
    """A named unit of work.

    ``apply`` is ``None`` when the file does not define the expected function.
    """

    name: str
    apply: "Optional[UnitFunction]" = None


def _sort_key(path: Path) -> "tuple[int, str]":
    return int(path.name.split("_", 1)[0]), path.name


def discover_unit_files(directory: "Union[str, Path]") -> "list[Path]":
    """List unit files in ``directory`` in application order.

    Raises:
        MigrationError: If ``directory`` does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        msg = f"Directory not found: {directory}"
        raise MigrationError(msg)
    files = [path for path in directory.iterdir() if path.is_file() and UNIT_FILE_REGEX.match(path.name)]
    return sorted(files, key=_sort_key)


def load_units(directory: "Union[str, Path]", attribute: str) -> "list[MigrationUnit]":
    """Import every unit file in ``directory`` and pick ``attribute`` from each.

    Args:
        directory: Directory holding the unit files.
        attribute: Name of the function to run, ``up`` or ``seed``.

    Raises:
        MigrationError: If a file cannot be imported.

    Returns:
        The units, in application order.
    """
    units = []
    for path in discover_unit_files(directory):
        try:
            module = load_module_from_path(path, module_name=f"_sqlcompose_{attribute}_{path.stem}")
        except Exception as e:
            msg = f"Failed to load {path.name}: {e}"
            raise MigrationError(msg) from e
        units.append(MigrationUnit(path.name, getattr(module, attribute, None)))
        logger.debug("Loaded %s", path.name)
    return units
