"""AsyncPG adapter for sqlcompose."""

from sqlcompose.adapters.asyncpg.client import AsyncpgConnectionClient, AsyncpgPoolClient
from sqlcompose.adapters.asyncpg.config import (
    AsyncpgConfig,
    AsyncpgConnection,
    AsyncpgConnectionConfig,
    AsyncpgPoolConfig,
)

__all__ = (
    "AsyncpgConfig",
    "AsyncpgConnection",
    "AsyncpgConnectionClient",
    "AsyncpgConnectionConfig",
    "AsyncpgPoolClient",
    "AsyncpgPoolConfig",
)
