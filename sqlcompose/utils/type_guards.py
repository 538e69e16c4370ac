"""Type guards that decide how a value is rendered into a statement."""

import datetime
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from msgspec import UNSET
from typing_extensions import TypeGuard

from sqlcompose._typing import Empty
from sqlcompose.core.fragment import Dependency, Fragment

__all__ = (
    "SCALAR_TYPES",
    "has_sqlstate",
    "is_dependency",
    "is_fragment",
    "is_mapping",
    "is_scalar",
    "is_sequence",
    "is_undefined",
)

SCALAR_TYPES: "tuple[type, ...]" = (
    bool,
    int,
    float,
    Decimal,
    str,
    bytes,
    bytearray,
    memoryview,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
)


def is_fragment(obj: Any) -> "TypeGuard[Fragment]":
    return isinstance(obj, Fragment)


def is_dependency(obj: Any) -> "TypeGuard[Dependency]":
    return isinstance(obj, Dependency)


def is_undefined(obj: Any) -> bool:
    """``Empty`` and ``msgspec.UNSET`` both stand for a value that was never provided."""
    return obj is Empty or obj is UNSET


def is_scalar(obj: Any) -> bool:
    """Values bound as a single parameter. ``None`` is SQL ``null``."""
    return obj is None or isinstance(obj, SCALAR_TYPES)


def is_sequence(obj: Any) -> "TypeGuard[list[Any] | tuple[Any, ...]]":
    return isinstance(obj, (list, tuple))


def is_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    return isinstance(obj, Mapping)


def has_sqlstate(obj: Any) -> bool:
    """Check for a driver error carrying a PostgreSQL SQLSTATE code."""
    return isinstance(getattr(obj, "sqlstate", None), str)
