"""Sentinel values shared across sqlcompose."""

from enum import Enum
from typing import Final, Literal, Union

from msgspec import UnsetType

__all__ = ("Empty", "EmptyEnum", "EmptyType")


class EmptyEnum(Enum):
    """A sentinel enum used as placeholder for a value that was never provided."""

    EMPTY = 0


EmptyType = Union[Literal[EmptyEnum.EMPTY], UnsetType]
Empty: Final = EmptyEnum.EMPTY
