"""Conversion of fragments into driver-ready SQL and debugging previews."""

import datetime
import re
from decimal import Decimal
from typing import Any

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from sqlcompose.core.dependencies import resolve_dependencies
from sqlcompose.core.fragment import PLACEHOLDER, Fragment
from sqlcompose.utils.escape import escape_literal
from sqlcompose.utils.logging import get_logger

__all__ = ("compile_preview", "count_statements", "render_literal", "to_native")

logger = get_logger("core.compiler")

_WHITESPACE_RE = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def to_native(fragment: Fragment) -> "tuple[str, list[Any]]":
    """Resolve dependencies and number the placeholders ``$1``, ``$2``... from left to right.

    Runs of whitespace are collapsed to a single space, string constants in
    the template included.

    Returns:
        The statement text and its values in parameter order.
    """
    resolved = resolve_dependencies(fragment)
    segments = _normalize(resolved.text).split(PLACEHOLDER)
    parts = [segments[0]]
    for index, segment in enumerate(segments[1:], start=1):
        parts.append(f"${index}")
        parts.append(segment)
    return "".join(parts), list(resolved.values)


def render_literal(value: Any) -> str:
    """Render a bound value as an SQL constant for :func:`compile_preview`."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return escape_literal("\\x" + bytes(value).hex())
    if isinstance(value, (datetime.date, datetime.time)):
        return escape_literal(value.isoformat())
    if isinstance(value, (list, tuple)):
        return "array[" + ", ".join(render_literal(item) for item in value) + "]"
    return escape_literal(str(value))


def compile_preview(fragment: Fragment) -> str:
    """Substitute every bound value with an escaped constant.

    The result is for logs and error messages only and is never sent to the database.
    """
    resolved = resolve_dependencies(fragment)
    segments = _normalize(resolved.text).split(PLACEHOLDER)
    parts = [segments[0]]
    for value, segment in zip(resolved.values, segments[1:]):
        parts.append(render_literal(value))
        parts.append(segment)
    return "".join(parts)


def count_statements(text: str) -> int:
    """Count the semicolon separated statements in ``text``.

    Semicolons inside string constants, quoted identifiers, dollar quoted
    bodies and comments do not separate statements. Text the tokenizer cannot
    read counts as a single statement.
    """
    try:
        tokens = sqlglot.tokenize(text, read="postgres")
    except TokenError:
        logger.debug("Could not tokenize statement, treating it as a single statement")
        return 1
    count = 0
    pending = False
    for token in tokens:
        if token.token_type == TokenType.SEMICOLON:
            if pending:
                count += 1
            pending = False
        elif token.token_type != TokenType.COMMENT:
            pending = True
    if pending:
        count += 1
    return max(count, 1)
