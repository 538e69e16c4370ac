from typing import Any, Optional

__all__ = (
    "BindingError",
    "CompositionError",
    "DeadlockError",
    "ImproperConfigurationError",
    "LockContentionError",
    "MigrationConsistencyError",
    "MigrationError",
    "MultipleResultsFoundError",
    "MultipleStatementsError",
    "NotFoundError",
    "QueryCancelledError",
    "QueryError",
    "SQLComposeError",
)


class SQLComposeError(Exception):
    """Base exception class from which all sqlcompose exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLComposeError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLComposeError):
    """Improper Configuration error.

    Raised when the entrypoint, a client or an adapter is configured with values it cannot work with.
    """


# -- Composition time errors --
class BindingError(SQLComposeError):
    """A value cannot be bound into a statement.

    Raised for undefined values and for value shapes the interpolator does not
    know how to render, such as a mapping nested inside a mapping.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues binding value to SQL statement."
        super().__init__(message)


class CompositionError(SQLComposeError):
    """Fragments cannot be combined into a statement."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues composing SQL statement."
        super().__init__(message)


# -- Query time errors --
class QueryError(SQLComposeError):
    """The database rejected a statement.

    ``sqlstate`` carries the five character error code reported by the server, when known.
    """

    sqlstate: Optional[str]

    def __init__(self, message: Optional[str] = None, *, sqlstate: Optional[str] = None) -> None:
        if message is None:
            message = "Issues executing SQL statement."
        super().__init__(message)
        self.sqlstate = sqlstate


class DeadlockError(QueryError):
    """The database aborted the statement to break a deadlock."""

    def __init__(self, message: Optional[str] = None, *, sqlstate: Optional[str] = "40P01") -> None:
        if message is None:
            message = "deadlock detected"
        super().__init__(message, sqlstate=sqlstate)


class QueryCancelledError(SQLComposeError):
    """The cancellation signal of the entrypoint was set before the query was issued."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Query cancelled before it reached the database."
        super().__init__(message)


class MultipleStatementsError(SQLComposeError):
    """Rows were requested from a call that executed several statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = 'Multiple statements in query, use "exec" instead.'
        super().__init__(message)


class NotFoundError(SQLComposeError):
    """A query expected to return rows returned none."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "No rows returned by query."
        super().__init__(message)


class MultipleResultsFoundError(SQLComposeError):
    """A query expected to return a single row returned more."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Multiple rows returned by a query that expected one."
        super().__init__(message)


# -- Migration errors --
class MigrationError(SQLComposeError):
    """Base class for migration and seed runner errors."""


class MigrationConsistencyError(MigrationError):
    """Bookkeeping records exist for files that are no longer on disk."""

    missing: "list[str]"

    def __init__(self, missing: "list[str]", kind: str = "migration") -> None:
        super().__init__(f"A {kind} is missing from the filesystem: {', '.join(missing)}")
        self.missing = list(missing)


class LockContentionError(MigrationError):
    """Another run holds the migration lock."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Migration is locked by another run, try again later."
        super().__init__(message)
