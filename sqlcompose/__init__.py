"""sqlcompose: composable, parameterized SQL for PostgreSQL."""

from sqlcompose import core, driver, exceptions, utils
from sqlcompose.__metadata__ import __version__
from sqlcompose._sql import SQLFactory, sql
from sqlcompose._typing import Empty, EmptyType
from sqlcompose.base import Sql, connect
from sqlcompose.config import SqlConfig
from sqlcompose.core import Dependency, Fragment, Materialization, QueryResult, Statement
from sqlcompose.exceptions import (
    BindingError,
    CompositionError,
    DeadlockError,
    ImproperConfigurationError,
    LockContentionError,
    MigrationConsistencyError,
    MigrationError,
    MultipleResultsFoundError,
    MultipleStatementsError,
    NotFoundError,
    QueryCancelledError,
    QueryError,
    SQLComposeError,
)
from sqlcompose.protocols import CancellationSignal, DedicatedConnection, PoolClient, QueryClient

__all__ = (
    "BindingError",
    "CancellationSignal",
    "CompositionError",
    "DeadlockError",
    "DedicatedConnection",
    "Dependency",
    "Empty",
    "EmptyType",
    "Fragment",
    "ImproperConfigurationError",
    "LockContentionError",
    "Materialization",
    "MigrationConsistencyError",
    "MigrationError",
    "MultipleResultsFoundError",
    "MultipleStatementsError",
    "NotFoundError",
    "PoolClient",
    "QueryCancelledError",
    "QueryClient",
    "QueryError",
    "QueryResult",
    "SQLComposeError",
    "SQLFactory",
    "Sql",
    "SqlConfig",
    "Statement",
    "__version__",
    "connect",
    "core",
    "driver",
    "exceptions",
    "sql",
    "utils",
)
