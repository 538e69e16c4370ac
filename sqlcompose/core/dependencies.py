"""Hoisting of named dependencies into a ``with`` clause."""

from sqlcompose.core.fragment import Dependency, Fragment, FragmentBuilder
from sqlcompose.exceptions import CompositionError

__all__ = ("collect_dependencies", "resolve_dependencies")


def collect_dependencies(fragment: Fragment) -> "list[Dependency]":
    """Walk the dependency graph of ``fragment`` depth first.

    Each dependency is listed after the dependencies its own definition
    references, and siblings keep the order in which they were first
    referenced. A name seen twice is kept once; seeing it again with a
    different definition is an error.

    Raises:
        CompositionError: If two dependencies share a name but not a definition.
    """
    seen: dict[str, Dependency] = {}
    ordered: list[Dependency] = []

    def visit(dependency: Dependency) -> None:
        existing = seen.get(dependency.name)
        if existing is not None:
            if existing != dependency:
                msg = f"conflicting dependency name {dependency.name!r}"
                raise CompositionError(msg)
            return
        seen[dependency.name] = dependency
        for nested in dependency.definition.dependencies:
            visit(nested)
        ordered.append(dependency)

    for dependency in fragment.dependencies:
        visit(dependency)
    return ordered


def resolve_dependencies(fragment: Fragment) -> Fragment:
    """Prepend the ``with`` clause for every dependency of ``fragment``.

    The result has no dependencies left. Values of the dependency definitions
    come first, in clause order, followed by the root's own values. A fragment
    without dependencies is returned unchanged.
    """
    dependencies = collect_dependencies(fragment)
    if not dependencies:
        return fragment
    builder = FragmentBuilder().append_text("with ")
    for index, dependency in enumerate(dependencies):
        if index:
            builder.append_text(", ")
        definition = dependency.definition
        builder.append_text(f"{dependency.name} as {dependency.materialization.value}(")
        builder.append(Fragment(definition.text, definition.values))
        builder.append_text(")")
    builder.append_text(" ")
    builder.append(Fragment(fragment.text, fragment.values))
    return builder.build()
