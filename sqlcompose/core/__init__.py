"""Statement composition.

- fragment.py: immutable fragments, named dependencies and the fragment builder
- interpolate.py: template parsing and context sensitive rendering of arguments
- dependencies.py: hoisting of named dependencies into a ``with`` clause
- compiler.py: ``$n`` numbering, literal previews and statement counting
- statement.py: executable statements and result shaping
- result.py: the driver result container

The interpolator is imported from its module directly, it depends on the type
guards in ``sqlcompose.utils``, which in turn depend on this package.
"""

from sqlcompose.core.compiler import compile_preview, count_statements, render_literal, to_native
from sqlcompose.core.dependencies import collect_dependencies, resolve_dependencies
from sqlcompose.core.fragment import PLACEHOLDER, Dependency, Fragment, FragmentBuilder, Materialization
from sqlcompose.core.result import QueryResult, parse_status
from sqlcompose.core.statement import DEFAULT_PAGE_SIZE, Statement

__all__ = (
    "DEFAULT_PAGE_SIZE",
    "PLACEHOLDER",
    "Dependency",
    "Fragment",
    "FragmentBuilder",
    "Materialization",
    "QueryResult",
    "Statement",
    "collect_dependencies",
    "compile_preview",
    "count_statements",
    "parse_status",
    "render_literal",
    "resolve_dependencies",
    "to_native",
)
