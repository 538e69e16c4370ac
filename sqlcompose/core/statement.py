"""Executable statements and their result shaping operations."""

from typing import TYPE_CHECKING, Any, Optional

from sqlcompose.core.compiler import compile_preview, to_native
from sqlcompose.core.fragment import PLACEHOLDER, Dependency, Fragment, Materialization
from sqlcompose.exceptions import (
    ImproperConfigurationError,
    MultipleResultsFoundError,
    MultipleStatementsError,
    NotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlcompose.base import Sql
    from sqlcompose.core.result import QueryResult

__all__ = ("DEFAULT_PAGE_SIZE", "Statement")

DEFAULT_PAGE_SIZE = 250


class Statement(Fragment):
    """A fragment bound to the entrypoint that built it.

    Statements compose exactly like fragments; the result of ``+`` or of
    wrapping a statement stays bound to the left operand's entrypoint. A
    statement built by the module level ``sql`` is unbound: it can be
    composed and previewed but not executed.
    """

    __slots__ = ("_executor",)

    def __init__(
        self,
        text: str = "",
        values: "Iterable[Any]" = (),
        dependencies: "Iterable[Dependency]" = (),
        executor: "Optional[Sql]" = None,
    ) -> None:
        super().__init__(text, values, dependencies)
        self._executor = executor

    def _derive(self, text: str, values: "Iterable[Any]", dependencies: "Iterable[Dependency]") -> "Statement":
        return Statement(text, values, dependencies, self._executor)

    @property
    def executor(self) -> "Sql":
        if self._executor is None:
            msg = "Statement is not bound to a client, build it with an entrypoint returned by connect()"
            raise ImproperConfigurationError(detail=msg)
        return self._executor

    def bind(self, executor: "Sql") -> "Statement":
        """Return the same statement bound to ``executor``."""
        return Statement(self.text, self.values, self.dependencies, executor)

    def _wrap(self, prefix: str, suffix: str, values: "tuple[Any, ...]" = ()) -> "Statement":
        return self._derive(prefix + self.text + suffix, self.values + values, self.dependencies)

    def to_native(self) -> "tuple[str, list[Any]]":
        """Text with ``$n`` parameters and the values to bind, ``with`` clause included."""
        return to_native(self)

    def compile(self) -> str:
        """Text with every value inlined as an escaped constant, for debugging only."""
        return compile_preview(self)

    # -- Execution --
    async def exec(self) -> "QueryResult":
        """Run the statement and return the client's result unchanged."""
        return await self.executor.execute(self)

    async def all(self) -> "list[dict[str, Any]]":
        """Run the statement and return every row with its keys converted.

        Raises:
            MultipleStatementsError: If the text held several statements.
        """
        result = await self.exec()
        if result.rows is None:
            raise MultipleStatementsError
        return self.executor.transform_rows(result.rows)

    async def first(self) -> "Optional[dict[str, Any]]":
        rows = await self.all()
        return rows[0] if rows else None

    async def one(self) -> "dict[str, Any]":
        """The only row.

        Raises:
            NotFoundError: If there is no row.
            MultipleResultsFoundError: If there is more than one row.
        """
        rows = await self.all()
        if not rows:
            raise NotFoundError
        if len(rows) > 1:
            raise MultipleResultsFoundError
        return rows[0]

    async def maybe_one(self) -> "Optional[dict[str, Any]]":
        rows = await self.all()
        if len(rows) > 1:
            raise MultipleResultsFoundError
        return rows[0] if rows else None

    async def many(self) -> "list[dict[str, Any]]":
        """Every row, failing with :class:`NotFoundError` when there are none."""
        rows = await self.all()
        if not rows:
            raise NotFoundError
        return rows

    async def maybe_many(self) -> "list[dict[str, Any]]":
        return await self.all()

    async def exists(self) -> bool:
        row = await self._wrap("select exists(", ') as "exists"').first()
        return bool(row and row[self.executor.identifier_from_db("exists")])

    async def count(self) -> int:
        row = await self._wrap("select count(*) as count from (", ") count").first()
        return int(row[self.executor.identifier_from_db("count")]) if row else 0

    async def paginate(self, page: int = 0, per: int = DEFAULT_PAGE_SIZE) -> "list[dict[str, Any]]":
        """One page of rows, pages numbered from 0. Negative pages are treated as page 0."""
        page = max(0, page)
        limits = (per, page * per)
        suffix = f" limit {PLACEHOLDER} offset {PLACEHOLDER}"
        if self.dependencies:
            paginated = Dependency("paginated", self, Materialization.NOT_MATERIALIZED)
            statement = Statement(
                "select paginated.* from paginated" + suffix, limits, (paginated,), self._executor
            )
        else:
            statement = self._wrap("select paginated.* from (", ") paginated" + suffix, limits)
        return await statement.all()

    # -- Nesting --
    def nest_all(self) -> "Statement":
        """A scalar subquery returning every row as a JSON array, ``[]`` when there are none."""
        return self._wrap(
            "coalesce((select jsonb_agg(subquery) as nested from (", ") subquery), '[]'::jsonb)"
        )

    def nest_first(self) -> "Statement":
        """A scalar subquery returning the first row as a JSON object, ``null`` when there is none."""
        return self._wrap("(select row_to_json(subquery) as nested from (", ") subquery limit 1)")
