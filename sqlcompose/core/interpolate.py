"""Template interpolation.

A template is a sequence of literal text segments with one argument between
each pair of segments. Each argument is rendered by the first rule that
matches it:

1. a :class:`Fragment` is spliced verbatim, values and dependencies included;
2. a :class:`Dependency` writes its name and is registered on the result;
3. an undefined value (``Empty``, ``msgspec.UNSET``) is a :class:`BindingError`;
4. a scalar becomes one placeholder;
5. a list or tuple of scalars and fragments becomes comma separated items;
6. a mapping, or a list of mappings, is rendered according to the clause it
   appears in, see :func:`detect_context`.

Column names taken from mapping keys go through the caller's identifier
sanitizer (case conversion followed by quoting).
"""

import re
import string
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Callable, Optional

from sqlcompose.core.fragment import PLACEHOLDER, Fragment, FragmentBuilder
from sqlcompose.exceptions import BindingError, CompositionError
from sqlcompose.utils.type_guards import (
    is_dependency,
    is_fragment,
    is_mapping,
    is_scalar,
    is_sequence,
    is_undefined,
)

__all__ = (
    "SqlContext",
    "detect_context",
    "interpolate",
    "parse_template",
    "render_argument",
    "render_array",
    "render_insert",
    "render_update",
    "render_where",
)

IdentifierSanitizer = Callable[[str], str]

_CONTEXT_KEYWORD_RE = re.compile(r"\b(insert|update|where)\b", re.IGNORECASE)
_formatter = string.Formatter()


class SqlContext(Enum):
    """Clause a mapping argument is rendered for."""

    INSERT = "insert"
    UPDATE = "update"
    WHERE = "where"


def detect_context(text: str) -> SqlContext:
    """Pick the rendering context from the last ``insert``, ``update`` or ``where`` keyword in ``text``.

    This is a plain word search over the text emitted so far, not a parse. A
    keyword inside a string constant, a comment or a quoted identifier counts
    like any other, and only the text of the fragment being built is searched,
    not the template it is later spliced into. Without any keyword the
    ``where`` rendering is used.
    """
    keywords = _CONTEXT_KEYWORD_RE.findall(text)
    if not keywords:
        return SqlContext.WHERE
    return SqlContext(keywords[-1].lower())


def _undefined_error(field: "Optional[str]" = None) -> BindingError:
    if field is None:
        return BindingError("cannot bind undefined value to query")
    msg = (
        f"cannot bind undefined value to query: no value for template field {{{field}}}"
        ", write literal braces as {{ and }}"
    )
    return BindingError(msg)


def _leaf(value: Any, *, allow_sequence: bool) -> Fragment:
    """Render a value that sits inside a mapping or an array."""
    if is_fragment(value):
        return value
    if is_dependency(value):
        return Fragment(value.name, (), (value,))
    if is_undefined(value):
        raise _undefined_error()
    if is_scalar(value) or (allow_sequence and is_sequence(value)):
        return Fragment(PLACEHOLDER, (value,))
    msg = f"cannot bind value of type {type(value).__name__!r} at this position"
    raise BindingError(msg)


def render_array(items: "Sequence[Any]") -> Fragment:
    """``?, ?, ?`` with one item per element, in element order."""
    builder = FragmentBuilder()
    for index, item in enumerate(items):
        if index:
            builder.append_text(", ")
        builder.append(_leaf(item, allow_sequence=False))
    return builder.build()


def _require_values(mapping: "Mapping[str, Any]") -> None:
    if not mapping:
        msg = "values must not be empty"
        raise CompositionError(msg)


def render_insert(rows: "Sequence[Mapping[str, Any]]", sanitize: IdentifierSanitizer) -> Fragment:
    """``(col1, col2) values (?, ?), (?, ?)``.

    The keys of the first row are the column list; every other row must have the same keys.
    """
    if not rows:
        msg = "values must not be empty"
        raise CompositionError(msg)
    for row in rows:
        if not is_mapping(row):
            msg = f"cannot insert a row of type {type(row).__name__!r}"
            raise BindingError(msg)
    _require_values(rows[0])
    columns = list(rows[0].keys())
    builder = FragmentBuilder()
    builder.append_text("(" + ", ".join(sanitize(column) for column in columns) + ") values ")
    for index, row in enumerate(rows):
        if set(row.keys()) != set(columns):
            msg = f"row {index} does not have the same columns as the first row: {sorted(map(str, row.keys()))}"
            raise CompositionError(msg)
        builder.append_text(", (" if index else "(")
        for position, column in enumerate(columns):
            if position:
                builder.append_text(", ")
            builder.append(_leaf(row[column], allow_sequence=True))
        builder.append_text(")")
    return builder.build()


def render_update(mapping: "Mapping[str, Any]", sanitize: IdentifierSanitizer) -> Fragment:
    """``col1 = ?, col2 = ?``."""
    _require_values(mapping)
    builder = FragmentBuilder()
    for index, (key, value) in enumerate(mapping.items()):
        builder.append_text(f"{', ' if index else ''}{sanitize(key)} = ")
        builder.append(_leaf(value, allow_sequence=True))
    return builder.build()


def render_where(
    mapping: "Mapping[str, Any]", sanitize: IdentifierSanitizer, *, joiner: str = "and", negate: bool = False
) -> Fragment:
    """``(col1 = ? and col2 is null)``.

    ``None`` values compare with ``is null`` and bind nothing. ``negate`` turns
    the comparisons into ``<>`` and ``is not null``. An empty mapping matches
    every row.
    """
    if not mapping:
        return Fragment("(true)")
    builder = FragmentBuilder().append_text("(")
    for index, (key, value) in enumerate(mapping.items()):
        column = sanitize(key)
        if index:
            builder.append_text(f" {joiner} ")
        if value is None:
            builder.append_text(f"{column} is not null" if negate else f"{column} is null")
            continue
        builder.append_text(f"{column} <> " if negate else f"{column} = ")
        builder.append(_leaf(value, allow_sequence=True))
    return builder.append_text(")").build()


def render_argument(argument: Any, emitted: FragmentBuilder, sanitize: IdentifierSanitizer) -> Fragment:
    """Render one interpolated argument given the text emitted before it."""
    if is_fragment(argument):
        return argument
    if is_dependency(argument):
        return Fragment(argument.name, (), (argument,))
    if is_undefined(argument):
        raise _undefined_error()
    if is_scalar(argument):
        return Fragment(PLACEHOLDER, (argument,))
    if is_sequence(argument):
        if argument and is_mapping(argument[0]):
            if detect_context(emitted.text) is not SqlContext.INSERT:
                msg = "a list of mappings can only be interpolated after an insert keyword"
                raise BindingError(msg)
            return render_insert(argument, sanitize)
        return render_array(argument)
    if is_mapping(argument):
        context = detect_context(emitted.text)
        if context is SqlContext.INSERT:
            return render_insert([argument], sanitize)
        if context is SqlContext.UPDATE:
            return render_update(argument, sanitize)
        return render_where(argument, sanitize)
    msg = f"cannot bind value of type {type(argument).__name__!r}"
    raise BindingError(msg)


def interpolate(strings: "Sequence[str]", arguments: "Sequence[Any]", sanitize: IdentifierSanitizer) -> Fragment:
    """Combine literal segments and arguments into one fragment.

    Args:
        strings: Literal SQL text, one more segment than there are arguments.
        arguments: Values placed between consecutive segments.
        sanitize: Turns a mapping key into a quoted column name.

    Returns:
        The combined fragment.
    """
    if len(strings) != len(arguments) + 1:
        msg = f"expected {len(arguments) + 1} text segments for {len(arguments)} arguments, got {len(strings)}"
        raise CompositionError(msg)
    builder = FragmentBuilder()
    for index, argument in enumerate(arguments):
        builder.append_text(strings[index])
        builder.append(render_argument(argument, builder, sanitize))
    builder.append_text(strings[-1])
    return builder.build()


def parse_template(
    template: str, args: "Sequence[Any]", kwargs: "Mapping[str, Any]"
) -> "tuple[list[str], list[Any]]":
    """Split a ``str.format`` style template into text segments and the arguments between them.

    ``{}`` takes the next positional argument, ``{0}`` a numbered one and
    ``{name}`` a keyword argument; attribute and index lookups such as
    ``{user.id}`` work as in :meth:`str.format`. ``{{`` and ``}}`` are literal
    braces. A field with no matching argument is an undefined value.
    """
    strings = [""]
    arguments: list[Any] = []
    used: set[int] = set()
    next_index = 0
    numbering = None
    try:
        parsed = list(_formatter.parse(template))
    except ValueError as e:
        msg = f"invalid template: {e}"
        raise CompositionError(msg) from e
    for literal, field_name, format_spec, conversion in parsed:
        strings[-1] += literal
        if field_name is None:
            continue
        if format_spec or conversion:
            msg = (
                f"format specs and conversions are not supported: {{{field_name}}}"
                ", write literal braces as {{ and }}"
            )
            raise BindingError(msg)
        written = field_name
        first = re.split(r"[.\[]", field_name, maxsplit=1)[0]
        if first == "":
            if numbering == "manual":
                msg = "cannot switch from manual field numbering to automatic field numbering"
                raise CompositionError(msg)
            numbering = "auto"
            field_name = f"{next_index}{field_name}"
            first = str(next_index)
            next_index += 1
        elif first.isdigit():
            if numbering == "auto":
                msg = "cannot switch from automatic field numbering to manual field specification"
                raise CompositionError(msg)
            numbering = "manual"
        if first.isdigit():
            used.add(int(first))
        try:
            value, _ = _formatter.get_field(field_name, args, kwargs)
        except (IndexError, KeyError, AttributeError, TypeError) as e:
            raise _undefined_error(written) from e
        arguments.append(value)
        strings.append("")
    unused = len(set(range(len(args))) - used)
    if unused:
        msg = f"{unused} positional value(s) were not used by the template"
        raise BindingError(msg)
    return strings, arguments
