"""Unit tests for the asyncpg adapter, using mocked connections and pools."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from sqlcompose import DeadlockError, QueryError, Sql
from sqlcompose.adapters.asyncpg import AsyncpgConfig, AsyncpgConnectionClient, AsyncpgPoolClient
from sqlcompose.adapters.asyncpg.core import collect_rows, raise_exception, register_json_codecs, run_query
from sqlcompose.utils.serializers import from_json, to_json

pytestmark = pytest.mark.anyio


def make_connection(rows: "list[dict[str, Any]] | None" = None, status: str = "SELECT 1") -> MagicMock:
    prepared = MagicMock()
    prepared.fetch = AsyncMock(return_value=rows or [])
    prepared.get_statusmsg = MagicMock(return_value=status)
    connection = MagicMock()
    connection.prepare = AsyncMock(return_value=prepared)
    connection.execute = AsyncMock(return_value="CREATE TABLE")
    connection.close = AsyncMock()
    return connection


async def test_run_query_prepares_and_fetches() -> None:
    connection = make_connection([{"id": 1}], "SELECT 1")

    result = await run_query(connection, "select id from users where id = $1", [1])

    connection.prepare.assert_awaited_once_with("select id from users where id = $1")
    connection.prepare.return_value.fetch.assert_awaited_once_with(1)
    assert result.rows == [{"id": 1}]
    assert result.status == "SELECT 1"
    assert result.rows_affected == 1


async def test_run_query_reports_command_tag() -> None:
    connection = make_connection([], "UPDATE 4")

    result = await run_query(connection, "update users set active = false", [])

    assert result.rows == []
    assert result.rows_affected == 4


async def test_run_query_with_several_statements_uses_simple_protocol() -> None:
    connection = make_connection()

    result = await run_query(connection, "create table a (id int); create table b (id int)", [])

    connection.execute.assert_awaited_once_with("create table a (id int); create table b (id int)")
    connection.prepare.assert_not_awaited()
    assert result.rows is None
    assert result.statement_count == 2


@pytest.mark.parametrize("text", ["begin", "savepoint sp_1", "release savepoint sp_1", "commit"])
async def test_run_query_skips_tokenizing_text_without_semicolons(text: str) -> None:
    connection = make_connection([], "BEGIN")

    with patch("sqlcompose.adapters.asyncpg.core.count_statements") as count_statements:
        await run_query(connection, text, [])

    count_statements.assert_not_called()
    connection.prepare.assert_awaited_once_with(text)
    connection.execute.assert_not_awaited()


async def test_run_query_with_a_trailing_semicolon_is_prepared() -> None:
    connection = make_connection([{"id": 1}])

    result = await run_query(connection, "select 1 as id;", [])

    connection.prepare.assert_awaited_once_with("select 1 as id;")
    assert result.rows == [{"id": 1}]


async def test_run_query_maps_database_errors() -> None:
    connection = make_connection()
    original = asyncpg.exceptions.UniqueViolationError("duplicate key")
    connection.prepare.side_effect = original

    with pytest.raises(QueryError) as exc_info:
        await run_query(connection, "insert into t values ($1)", [1])

    assert exc_info.value.sqlstate == "23505"
    assert exc_info.value.__cause__ is original


async def test_run_query_maps_deadlocks() -> None:
    connection = make_connection()
    connection.prepare.side_effect = asyncpg.exceptions.DeadlockDetectedError("deadlock detected")

    with pytest.raises(DeadlockError) as exc_info:
        await run_query(connection, "update t set a = $1", [1])

    assert exc_info.value.sqlstate == "40P01"


def test_raise_exception_without_sqlstate() -> None:
    with pytest.raises(QueryError) as exc_info:
        raise_exception(RuntimeError("gone"))

    assert exc_info.value.sqlstate is None
    assert str(exc_info.value) == "PostgreSQL database error: gone"


def test_collect_rows() -> None:
    assert collect_rows(None) == []
    assert collect_rows([{"a": 1}, {"a": 2}]) == [{"a": 1}, {"a": 2}]


async def test_register_json_codecs() -> None:
    connection = MagicMock()
    connection.set_type_codec = AsyncMock()

    await register_json_codecs(connection, to_json, from_json)

    assert [call.args[0] for call in connection.set_type_codec.await_args_list] == ["json", "jsonb"]
    assert connection.set_type_codec.await_args_list[0].kwargs == {
        "encoder": to_json,
        "decoder": from_json,
        "schema": "pg_catalog",
    }


async def test_register_json_codecs_logs_failures() -> None:
    connection = MagicMock()
    connection.set_type_codec = AsyncMock(side_effect=RuntimeError("no such type"))

    with patch("sqlcompose.adapters.asyncpg.core.logger") as logger:
        await register_json_codecs(connection, to_json, from_json)

    logger.exception.assert_called_once()


async def test_connection_client() -> None:
    connection = make_connection([{"id": 1}])
    pool = MagicMock()
    pool.release = AsyncMock()

    standalone = AsyncpgConnectionClient(connection)
    assert (await standalone.query("select 1", [])).rows == [{"id": 1}]
    await standalone.release()
    await standalone.close()
    connection.close.assert_awaited_once()

    checked_out = AsyncpgConnectionClient(connection, pool)
    await checked_out.release()
    await checked_out.close()
    pool.release.assert_awaited_once_with(connection)
    connection.close.assert_awaited_once()


async def test_pool_client_query_borrows_a_connection() -> None:
    connection = make_connection([{"id": 1}])
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = connection

    client = AsyncpgPoolClient(pool)

    assert (await client.query("select $1::int as id", [1])).rows == [{"id": 1}]
    assert AsyncpgPoolClient.supports_dedicated_connection
    assert not AsyncpgConnectionClient.supports_dedicated_connection


async def test_pool_client_acquire_and_close() -> None:
    connection = make_connection()
    pool = MagicMock()
    pool.acquire = AsyncMock(return_value=connection)
    pool.close = AsyncMock()

    client = AsyncpgPoolClient(pool)
    dedicated = await client.acquire()

    assert isinstance(dedicated, AsyncpgConnectionClient)
    assert dedicated.connection is connection
    await client.close()
    pool.close.assert_awaited_once()


async def test_config_creates_pool_with_codec_init() -> None:
    pool = MagicMock()
    config = AsyncpgConfig(pool_config={"dsn": "postgresql://localhost/app", "min_size": None, "extra": {"max_size": 4}})

    with patch("sqlcompose.adapters.asyncpg.config.asyncpg_create_pool", new_callable=AsyncMock) as create_pool:
        create_pool.return_value = pool
        assert await config.provide_pool() is pool
        assert await config.provide_pool() is pool

    create_pool.assert_awaited_once_with(dsn="postgresql://localhost/app", max_size=4, init=config._init_connection)


async def test_config_init_connection_runs_user_init() -> None:
    user_init = AsyncMock()
    config = AsyncpgConfig(pool_config={"init": user_init})
    connection = MagicMock()
    connection.set_type_codec = AsyncMock()

    await config._init_connection(connection)

    assert connection.set_type_codec.await_count == 2
    user_init.assert_awaited_once_with(connection)


async def test_config_connect_and_close() -> None:
    pool = MagicMock()
    pool.close = AsyncMock()
    config = AsyncpgConfig(pool_instance=pool)

    db = await config.connect(case_method="none")

    assert isinstance(db, Sql)
    assert isinstance(db.client, AsyncpgPoolClient)
    assert db.client.pool is pool
    assert db.config.case_method == "none"

    await config.close_pool()
    pool.close.assert_awaited_once()
    assert config.pool_instance is None
