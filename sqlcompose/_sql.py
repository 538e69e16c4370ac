"""Statement factory.

:class:`SQLFactory` builds statements from templates and offers the helper
fragments (``values``, ``set``, ``where``...). Every helper is a thin
wrapper over the interpolation renderers, so ``sql.values(row)`` renders
exactly like ``sql("insert into t {}", row)`` would.

The module level ``sql`` instance uses the default configuration and builds
unbound statements. Use :func:`sqlcompose.connect` to get an entrypoint that
can also run them.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlcompose.config import SqlConfig
from sqlcompose.core.fragment import PLACEHOLDER, Dependency, Fragment, FragmentBuilder, Materialization
from sqlcompose.core.interpolate import (
    interpolate,
    parse_template,
    render_array,
    render_insert,
    render_update,
    render_where,
)
from sqlcompose.core.statement import Statement
from sqlcompose.exceptions import BindingError, CompositionError
from sqlcompose.utils.escape import escape_identifier
from sqlcompose.utils.text import get_case_method, transform_key
from sqlcompose.utils.type_guards import is_fragment, is_mapping

if TYPE_CHECKING:
    from sqlcompose.base import Sql

__all__ = ("SQLFactory", "sql")

Condition = Union[Fragment, Mapping[str, Any]]


class SQLFactory:
    """Builds statements, with identifiers converted by the configured case method."""

    __slots__ = ("_case_from_db", "_case_to_db", "_config")

    def __init__(self, config: "Optional[SqlConfig]" = None) -> None:
        self._config = config if config is not None else SqlConfig()
        self._case_to_db = get_case_method(self._config.case_method)
        self._case_from_db = get_case_method(self._config.row_case_method)

    @property
    def config(self) -> SqlConfig:
        return self._config

    def _bound_executor(self) -> "Optional[Sql]":
        return None

    def _statement(self, fragment: Fragment) -> Statement:
        return Statement(fragment.text, fragment.values, fragment.dependencies, self._bound_executor())

    # -- Templates --
    def __call__(self, template: str, *args: Any, **kwargs: Any) -> Statement:
        """Build a statement from a ``str.format`` style template.

        Example::

            sql("select * from users where {}", {"name": "Ryan", "number": None})
            sql("update users set {values} where id = {id}", values={"name": "Ryan"}, id=1)
        """
        strings, arguments = parse_template(template, args, kwargs)
        return self.template(strings, *arguments)

    def template(self, strings: "Sequence[str]", *args: Any) -> Statement:
        """Build a statement from literal segments and the arguments between them."""
        return self._statement(interpolate(strings, args, self.sanitize_identifier))

    # -- Identifiers --
    def identifier_to_db(self, name: str) -> str:
        return transform_key(name, self._case_to_db)

    def identifier_from_db(self, name: str) -> str:
        return transform_key(name, self._case_from_db)

    def sanitize_identifier(self, name: str) -> str:
        """Convert ``name`` to the database case and quote it."""
        return escape_identifier(self.identifier_to_db(name))

    # -- Fragments --
    def raw(self, text: str) -> Statement:
        """Trusted SQL text, used verbatim."""
        return self._statement(Fragment(text))

    def ref(self, identifier: str) -> Statement:
        """A quoted identifier, ``schema.table`` quoted part by part. No case conversion is applied."""
        return self._statement(Fragment(".".join(escape_identifier(part) for part in identifier.split("."))))

    def literal(self, value: Any) -> Statement:
        """A single bound value. Lists are bound whole, as one array parameter."""
        return self._statement(Fragment(PLACEHOLDER, (value,)))

    def array(self, values: "Sequence[Any]") -> Statement:
        """One bound value per element, comma separated, for use in ``in (...)``."""
        if not values:
            msg = "array must not be empty"
            raise CompositionError(msg)
        return self._statement(render_array(values))

    def join(self, delimiter: "Union[Fragment, str]", fragments: "Sequence[Fragment]") -> Statement:
        """Concatenate ``fragments`` with ``delimiter`` between each pair.

        A string delimiter is trusted text, like :meth:`raw`.
        """
        separator = delimiter if is_fragment(delimiter) else Fragment(delimiter)
        builder = FragmentBuilder()
        for index, fragment in enumerate(fragments):
            if not is_fragment(fragment):
                msg = f"join expects fragments, got {type(fragment).__name__!r}"
                raise BindingError(msg)
            if index:
                builder.append(separator)
            builder.append(fragment)
        return self._statement(builder.build())

    def cond(self, condition: Any, fragment: Fragment) -> Statement:
        """``fragment`` when ``condition`` is truthy, an empty statement otherwise."""
        return self._statement(fragment if condition else Fragment())

    def values(self, rows: "Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]") -> Statement:
        """``(col1, col2) values (?, ?)``, with one value tuple per row for a list of mappings."""
        if is_mapping(rows):
            return self._statement(render_insert([rows], self.sanitize_identifier))
        return self._statement(render_insert(list(rows), self.sanitize_identifier))

    def set(self, values: "Mapping[str, Any]") -> Statement:
        """``col1 = ?, col2 = ?``."""
        return self._statement(render_update(values, self.sanitize_identifier))

    def dependency(self, name: str, fragment: Fragment, materialized: "Optional[bool]" = None) -> Dependency:
        """Wrap ``fragment`` as a CTE named ``name``.

        Args:
            name: CTE name, written unquoted wherever the dependency is interpolated.
            fragment: The CTE body.
            materialized: ``True`` for ``materialized``, ``False`` for ``not materialized``,
                ``None`` to let PostgreSQL decide.
        """
        return Dependency(name, fragment, Materialization.from_flag(materialized))

    # -- Conditions --
    def _condition(self, condition: Condition, *, joiner: str = "and", negate: bool = False) -> Fragment:
        if is_fragment(condition):
            return condition
        if is_mapping(condition):
            return render_where(condition, self.sanitize_identifier, joiner=joiner, negate=negate)
        msg = f"cannot use value of type {type(condition).__name__!r} as a condition"
        raise BindingError(msg)

    def _combine(self, operator: str, conditions: "Sequence[Condition]") -> Statement:
        if not conditions:
            msg = f"{operator} requires at least one condition"
            raise CompositionError(msg)
        if len(conditions) == 1 and is_mapping(conditions[0]):
            return self._statement(self._condition(conditions[0]))
        builder = FragmentBuilder().append_text("(")
        for index, condition in enumerate(conditions):
            if index:
                builder.append_text(f" {operator} ")
            builder.append(self._condition(condition))
        return self._statement(builder.append_text(")").build())

    def and_(self, *conditions: Condition) -> Statement:
        """``(a and b)``; a mapping renders as a ``where`` mapping."""
        return self._combine("and", conditions)

    def or_(self, *conditions: Condition) -> Statement:
        """``(a or b)``; a mapping renders as a ``where`` mapping."""
        return self._combine("or", conditions)

    def _filter(self, keyword: str, mapping: "Mapping[str, Any]", *, joiner: str = "and", negate: bool = False) -> Statement:
        if not is_mapping(mapping):
            msg = f"{keyword} expects a mapping, got {type(mapping).__name__!r}"
            raise BindingError(msg)
        builder = FragmentBuilder().append_text(f"{keyword} ")
        builder.append(render_where(mapping, self.sanitize_identifier, joiner=joiner, negate=negate))
        return self._statement(builder.build())

    def where(self, mapping: "Mapping[str, Any]") -> Statement:
        return self._filter("where", mapping)

    def where_not(self, mapping: "Mapping[str, Any]") -> Statement:
        """``where ("a" <> ? and "b" is not null)``."""
        return self._filter("where", mapping, negate=True)

    def where_or(self, mapping: "Mapping[str, Any]") -> Statement:
        """``where ("a" = ? or "b" = ?)``."""
        return self._filter("where", mapping, joiner="or")

    def and_where(self, mapping: "Mapping[str, Any]") -> Statement:
        return self._filter("and", mapping)

    def or_where(self, mapping: "Mapping[str, Any]") -> Statement:
        return self._filter("or", mapping)

    def and_where_not(self, mapping: "Mapping[str, Any]") -> Statement:
        return self._filter("and", mapping, negate=True)

    def or_where_or(self, mapping: "Mapping[str, Any]") -> Statement:
        return self._filter("or", mapping, joiner="or")


sql = SQLFactory()
"""Unbound statement factory using the default configuration."""
