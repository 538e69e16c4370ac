"""Immutable statement fragments and named dependencies.

A :class:`Fragment` is SQL text in which every bound value is represented by
:data:`PLACEHOLDER`, together with the values in the order their markers
appear and the named dependencies (CTEs) the text refers to. Positional
numbering (``$1``, ``$2``...) is only assigned once, when the outermost
statement is compiled, because splicing fragments shifts positions.
"""

import re
from collections.abc import Iterable
from enum import Enum
from typing import Any, Final, Optional

from sqlcompose.exceptions import CompositionError

__all__ = (
    "PLACEHOLDER",
    "Dependency",
    "Fragment",
    "FragmentBuilder",
    "Materialization",
)

PLACEHOLDER: Final = "\x00?\x00"
"""Marker for one bound value. NUL cannot appear in PostgreSQL statement text."""

_DEPENDENCY_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")


def _unique(dependencies: "Iterable[Dependency]") -> "tuple[Dependency, ...]":
    seen: "list[Dependency]" = []
    for dependency in dependencies:
        if dependency not in seen:
            seen.append(dependency)
    return tuple(seen)


class Fragment:
    """SQL text, its bound values and the dependencies it references.

    Fragments never change after construction. Combining fragments, with ``+``
    or through interpolation, always builds a new one whose values are the
    operands' values concatenated in the same order as their text.
    """

    __slots__ = ("_dependencies", "_text", "_values")

    def __init__(
        self, text: str = "", values: "Iterable[Any]" = (), dependencies: "Iterable[Dependency]" = ()
    ) -> None:
        self._text = text
        self._values = tuple(values)
        self._dependencies = _unique(dependencies)
        if text.count(PLACEHOLDER) != len(self._values):
            msg = f"fragment has {text.count(PLACEHOLDER)} placeholders but {len(self._values)} values"
            raise CompositionError(msg)

    @property
    def text(self) -> str:
        return self._text

    @property
    def values(self) -> "tuple[Any, ...]":
        return self._values

    @property
    def dependencies(self) -> "tuple[Dependency, ...]":
        """Dependencies referenced directly by this fragment or by fragments spliced into it."""
        return self._dependencies

    def _derive(
        self, text: str, values: "Iterable[Any]", dependencies: "Iterable[Dependency]"
    ) -> "Fragment":
        """Build a fragment of the same kind as ``self``; subclasses carry their extra state across."""
        return Fragment(text, values, dependencies)

    def __add__(self, other: object) -> "Fragment":
        if not isinstance(other, Fragment):
            return NotImplemented
        return self._derive(
            self._text + other.text, self._values + other.values, self._dependencies + other.dependencies
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fragment):
            return NotImplemented
        return (
            self._text == other.text
            and self._values == other.values
            and self._dependencies == other.dependencies
        )

    def __hash__(self) -> int:
        return hash((self._text, len(self._values)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(text={self._text.replace(PLACEHOLDER, '?')!r}, values={list(self._values)!r})"


class Materialization(Enum):
    """How PostgreSQL should evaluate a CTE."""

    DEFAULT = ""
    MATERIALIZED = "materialized "
    NOT_MATERIALIZED = "not materialized "

    @classmethod
    def from_flag(cls, materialized: Optional[bool]) -> "Materialization":
        if materialized is None:
            return cls.DEFAULT
        return cls.MATERIALIZED if materialized else cls.NOT_MATERIALIZED


class Dependency:
    """A fragment hoisted into the ``with`` clause of the statement that references it.

    Interpolating a dependency writes its bare name into the enclosing text.
    """

    __slots__ = ("_definition", "_materialization", "_name")

    def __init__(
        self, name: str, definition: Fragment, materialization: Materialization = Materialization.DEFAULT
    ) -> None:
        if not _DEPENDENCY_NAME_RE.match(name):
            msg = f"invalid dependency name {name!r}"
            raise CompositionError(msg)
        self._name = name
        self._definition = definition
        self._materialization = materialization

    @property
    def name(self) -> str:
        return self._name

    @property
    def definition(self) -> Fragment:
        return self._definition

    @property
    def materialization(self) -> Materialization:
        return self._materialization

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dependency):
            return NotImplemented
        return (
            self._name == other.name
            and self._materialization is other.materialization
            and self._definition.text == other.definition.text
            and self._definition.values == other.definition.values
        )

    def __hash__(self) -> int:
        return hash((self._name, self._definition.text))

    def __repr__(self) -> str:
        return f"Dependency(name={self._name!r}, materialization={self._materialization.name.lower()})"


class FragmentBuilder:
    """Accumulates text, values and dependencies, in order, into a new :class:`Fragment`."""

    __slots__ = ("_dependencies", "_parts", "_values")

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._values: list[Any] = []
        self._dependencies: list[Dependency] = []

    @property
    def text(self) -> str:
        """Text emitted so far."""
        return "".join(self._parts)

    def append_text(self, text: str) -> "FragmentBuilder":
        self._parts.append(text)
        return self

    def append_value(self, value: Any) -> "FragmentBuilder":
        self._parts.append(PLACEHOLDER)
        self._values.append(value)
        return self

    def append(self, fragment: Fragment) -> "FragmentBuilder":
        self._parts.append(fragment.text)
        self._values.extend(fragment.values)
        self._dependencies.extend(fragment.dependencies)
        return self

    def add_dependency(self, dependency: Dependency) -> "FragmentBuilder":
        self._dependencies.append(dependency)
        return self

    def build(self) -> Fragment:
        return Fragment(self.text, self._values, self._dependencies)
