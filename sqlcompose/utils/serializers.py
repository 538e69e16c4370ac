"""JSON serialization utilities.

Re-exports the msgspec backed encoder and decoder from the core
serialization module, for the asyncpg JSON codecs and structured logging.
"""

from typing import Any, Literal, Union, overload

from sqlcompose._serialization import decode_json, encode_json

__all__ = ("from_json", "to_json")


@overload
def to_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def to_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def to_json(data: Any, *, as_bytes: bool = False) -> "Union[str, bytes]":
    """Encode data to a JSON string or bytes.

    Args:
        data: Data to encode.
        as_bytes: Whether to return bytes instead of a string.

    Returns:
        JSON string or bytes representation based on ``as_bytes``.
    """
    return encode_json(data, as_bytes=as_bytes)


def from_json(data: "Union[str, bytes]") -> Any:
    """Decode a JSON string or bytes."""
    return decode_json(data)
