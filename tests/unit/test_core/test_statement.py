"""Tests for statement execution and result shaping."""

from typing import Any

import pytest

from sqlcompose import QueryResult, connect, sql
from sqlcompose.exceptions import (
    ImproperConfigurationError,
    MultipleResultsFoundError,
    MultipleStatementsError,
    NotFoundError,
)

pytestmark = pytest.mark.anyio


@pytest.fixture
def returning(client_factory: Any) -> Any:
    def factory(*rows: "dict[str, Any]") -> Any:
        return client_factory(lambda text, values: QueryResult(rows=[dict(row) for row in rows], status="SELECT"))

    return factory


async def test_unbound_statement_cannot_run() -> None:
    with pytest.raises(ImproperConfigurationError):
        await sql("select 1").all()


async def test_exec_returns_the_client_result(client_factory: Any) -> None:
    client = client_factory(lambda text, values: QueryResult(rows=[], status="UPDATE 3"))
    db = connect(client)

    result = await db("update users set {} where id = {}", {"active": False}, 1).exec()

    assert result.rows_affected == 3
    assert client.queries == [('update users set "active" = $1 where id = $2', [False, 1])]


async def test_all_converts_row_keys(returning: Any) -> None:
    db = connect(returning({"first_name": "Ryan", "profile": {"created_at": 1}}))

    rows = await db("select * from users").all()

    assert rows == [{"firstName": "Ryan", "profile": {"createdAt": 1}}]


async def test_row_case_method_none_keeps_keys(returning: Any) -> None:
    db = connect(returning({"first_name": "Ryan"}), row_case_method="none")

    assert await db("select * from users").all() == [{"first_name": "Ryan"}]


async def test_all_rejects_multiple_statements(client_factory: Any) -> None:
    db = connect(client_factory(lambda text, values: QueryResult(rows=None, statement_count=2)))

    with pytest.raises(MultipleStatementsError, match='use "exec" instead'):
        await db("select 1; select 2").all()


async def test_exec_allows_multiple_statements(client_factory: Any) -> None:
    db = connect(client_factory(lambda text, values: QueryResult(rows=None, statement_count=2)))

    result = await db("select 1; select 2").exec()

    assert result.is_multi_statement


async def test_first(returning: Any) -> None:
    assert await connect(returning({"id": 1}, {"id": 2}))("select id from t").first() == {"id": 1}
    assert await connect(returning())("select id from t").first() is None


async def test_one(returning: Any) -> None:
    assert await connect(returning({"id": 1}))("select id from t").one() == {"id": 1}
    with pytest.raises(NotFoundError):
        await connect(returning())("select id from t").one()
    with pytest.raises(MultipleResultsFoundError):
        await connect(returning({"id": 1}, {"id": 2}))("select id from t").one()


async def test_maybe_one(returning: Any) -> None:
    assert await connect(returning())("select id from t").maybe_one() is None
    assert await connect(returning({"id": 1}))("select id from t").maybe_one() == {"id": 1}
    with pytest.raises(MultipleResultsFoundError):
        await connect(returning({"id": 1}, {"id": 2}))("select id from t").maybe_one()


async def test_many_and_maybe_many(returning: Any) -> None:
    assert await connect(returning({"id": 1}))("select id from t").many() == [{"id": 1}]
    assert await connect(returning())("select id from t").maybe_many() == []
    with pytest.raises(NotFoundError):
        await connect(returning())("select id from t").many()


async def test_exists(returning: Any) -> None:
    client = returning({"exists": True})

    assert await connect(client)("select 1 from users where id = {}", 1).exists() is True
    assert client.queries == [('select exists(select 1 from users where id = $1) as "exists"', [1])]


async def test_count(returning: Any) -> None:
    client = returning({"count": 12})

    assert await connect(client)("select * from users").count() == 12
    assert client.texts == ["select count(*) as count from (select * from users) count"]


@pytest.mark.parametrize("row_case_method", ["snake", "camel", "pascal", "constant", "none"])
async def test_exists_under_every_row_case_method(returning: Any, row_case_method: str) -> None:
    assert await connect(returning({"exists": True}), row_case_method=row_case_method)("select 1").exists() is True
    assert await connect(returning({"exists": False}), row_case_method=row_case_method)("select 1").exists() is False


@pytest.mark.parametrize("row_case_method", ["snake", "camel", "pascal", "constant", "none"])
async def test_count_under_every_row_case_method(returning: Any, row_case_method: str) -> None:
    db = connect(returning({"count": 4}), row_case_method=row_case_method)

    assert await db("select 1").count() == 4


async def test_paginate_wraps_the_statement(returning: Any) -> None:
    client = returning()
    db = connect(client)

    await db("select * from users where active = {}", True).paginate(page=2, per=10)

    assert client.queries == [
        (
            "select paginated.* from (select * from users where active = $1) paginated limit $2 offset $3",
            [True, 10, 20],
        )
    ]


async def test_paginate_defaults_and_negative_page(returning: Any) -> None:
    client = returning()

    await connect(client)("select * from users").paginate(page=-3)

    assert client.queries[0][1] == [250, 0]


async def test_paginate_with_dependencies_uses_a_cte(returning: Any) -> None:
    client = returning()
    db = connect(client)
    users = db.dependency("users", db("select * from users where active = {}", True))

    await db("select * from {}", users).paginate(page=1, per=5)

    assert client.queries == [
        (
            "with users as (select * from users where active = $1), "
            "paginated as not materialized (select * from users) "
            "select paginated.* from paginated limit $2 offset $3",
            [True, 5, 5],
        )
    ]


def test_nest_all() -> None:
    nested = sql("select id from posts where author_id = users.id").nest_all()

    assert sql("select users.*, {} as posts from users", nested).to_native()[0] == (
        "select users.*, coalesce((select jsonb_agg(subquery) as nested from "
        "(select id from posts where author_id = users.id) subquery), '[]'::jsonb) as posts from users"
    )


def test_nest_first() -> None:
    nested = sql("select * from profiles where user_id = {}", 1).nest_first()

    assert nested.to_native() == (
        "(select row_to_json(subquery) as nested from (select * from profiles where user_id = $1) subquery limit 1)",
        [1],
    )


def test_composition_keeps_the_left_binding(client: Any) -> None:
    db = connect(client)

    combined = db("select * from users") + sql(" where id = {}", 1)

    assert combined.executor is db
    assert sql("select 1").bind(db).executor is db
