"""Tests for the statement factory helpers."""

import pytest

from sqlcompose import SQLFactory, SqlConfig, Statement, sql
from sqlcompose.core.fragment import Dependency, Materialization
from sqlcompose.exceptions import BindingError, CompositionError


def test_module_level_factory_builds_unbound_statements() -> None:
    statement = sql("select 1")

    assert isinstance(statement, Statement)
    assert statement.to_native() == ("select 1", [])


def test_raw_is_verbatim() -> None:
    assert sql("select * from users {}", sql.raw("order by id desc")).to_native() == (
        "select * from users order by id desc",
        [],
    )


def test_ref_quotes_each_part() -> None:
    assert sql.ref("public.userAccounts").to_native()[0] == '"public"."userAccounts"'
    assert sql.ref('we"ird').to_native()[0] == '"we""ird"'


def test_literal_binds_lists_whole() -> None:
    assert sql("select {}", sql.literal([1, 2])).to_native() == ("select $1", [[1, 2]])


def test_array() -> None:
    assert sql("select * from t where id in ({})", sql.array([1, 2])).to_native() == (
        "select * from t where id in ($1, $2)",
        [1, 2],
    )
    with pytest.raises(CompositionError, match="array must not be empty"):
        sql.array([])


def test_join() -> None:
    parts = [sql("a = {}", 1), sql("b = {}", 2)]

    assert sql.join(" and ", parts).to_native() == ("a = $1 and b = $2", [1, 2])
    assert sql.join(sql(" or c = {} or ", 3), parts).to_native() == ("a = $1 or c = $2 or b = $3", [1, 3, 2])
    assert sql.join(", ", []).to_native() == ("", [])


def test_join_rejects_non_fragments() -> None:
    with pytest.raises(BindingError):
        sql.join(", ", ["a"])  # type: ignore[list-item]


def test_cond() -> None:
    fragment = sql("and active = {}", True)

    assert sql("select * from users where true {}", sql.cond(True, fragment)).to_native() == (
        "select * from users where true and active = $1",
        [True],
    )
    assert sql("select * from users where true {}", sql.cond(0, fragment)).to_native() == (
        "select * from users where true",
        [],
    )


def test_values_and_set() -> None:
    assert sql("insert into users {}", sql.values({"firstName": "Ryan"})).to_native() == (
        'insert into users ("first_name") values ($1)',
        ["Ryan"],
    )
    assert sql.values([{"a": 1}, {"a": 2}]).to_native() == ('("a") values ($1), ($2)', [1, 2])
    assert sql.set({"a": 1, "b": None}).to_native() == ('"a" = $1, "b" = $2', [1, None])


def test_values_and_set_reject_empty_mappings() -> None:
    with pytest.raises(CompositionError, match="values must not be empty"):
        sql.values({})
    with pytest.raises(CompositionError):
        sql.values([])
    with pytest.raises(CompositionError):
        sql.set({})


def test_dependency_helper() -> None:
    dependency = sql.dependency("recent", sql("select 1"), materialized=True)

    assert isinstance(dependency, Dependency)
    assert dependency.materialization is Materialization.MATERIALIZED


def test_where_helpers() -> None:
    mapping = {"a": 1, "b": None}

    assert sql.where(mapping).to_native()[0] == 'where ("a" = $1 and "b" is null)'
    assert sql.where_not(mapping).to_native()[0] == 'where ("a" <> $1 and "b" is not null)'
    assert sql.where_or(mapping).to_native()[0] == 'where ("a" = $1 or "b" is null)'
    assert sql.and_where(mapping).to_native()[0] == 'and ("a" = $1 and "b" is null)'
    assert sql.or_where(mapping).to_native()[0] == 'or ("a" = $1 and "b" is null)'
    assert sql.and_where_not(mapping).to_native()[0] == 'and ("a" <> $1 and "b" is not null)'
    assert sql.or_where_or(mapping).to_native()[0] == 'or ("a" = $1 or "b" is null)'


def test_where_helpers_reject_non_mappings() -> None:
    with pytest.raises(BindingError):
        sql.where([("a", 1)])  # type: ignore[arg-type]


def test_and_or() -> None:
    condition = sql.or_({"a": 1}, sql("b > {}", 2))

    assert sql("select * from t where {}", sql.and_(condition, {"c": 3})).to_native() == (
        'select * from t where ((("a" = $1) or b > $2) and ("c" = $3))',
        [1, 2, 3],
    )
    assert sql.and_({"a": 1}).to_native()[0] == '("a" = $1)'
    with pytest.raises(CompositionError, match="and requires at least one condition"):
        sql.and_()


def test_case_method_configuration() -> None:
    factory = SQLFactory(SqlConfig(case_method="none"))

    assert factory("insert into t {}", {"firstName": 1}).to_native()[0] == 'insert into t ("firstName") values ($1)'
    assert factory.identifier_to_db("firstName") == "firstName"
    assert sql.identifier_to_db("firstName") == "first_name"
    assert sql.identifier_from_db("first_name") == "firstName"
    assert sql.sanitize_identifier("userId") == '"user_id"'
