"""Tests for the ``with`` clause resolver."""

import pytest

from sqlcompose import sql
from sqlcompose.core.dependencies import collect_dependencies, resolve_dependencies
from sqlcompose.exceptions import CompositionError


def test_fragment_without_dependencies_is_unchanged() -> None:
    statement = sql("select {}", 1)

    assert resolve_dependencies(statement) is statement


def test_single_dependency_values_come_first() -> None:
    users = sql.dependency("users", sql("select * from users where active = {}", True))

    statement = sql("select * from {} where id = {}", users, 7)

    assert statement.to_native() == (
        "with users as (select * from users where active = $1) select * from users where id = $2",
        [True, 7],
    )


def test_nested_dependencies_are_listed_before_their_dependents() -> None:
    a = sql.dependency("a", sql("select 1"))
    b = sql.dependency("b", sql("select * from {}", a))

    statement = sql("select * from {}", b)

    assert statement.to_native()[0] == "with a as (select 1), b as (select * from a) select * from b"


def test_shared_dependency_is_emitted_once() -> None:
    base = sql.dependency("base", sql("select {} as x", 1))
    left = sql.dependency("l", sql("select * from {}", base))
    right = sql.dependency("r", sql("select * from {}", base))

    text, values = sql("select * from {}, {}", left, right).to_native()

    assert text == "with base as (select $1 as x), l as (select * from base), r as (select * from base) select * from l, r"
    assert values == [1]


def test_materialization_keywords() -> None:
    materialized = sql.dependency("m", sql("select 1"), materialized=True)
    inlined = sql.dependency("n", sql("select 2"), materialized=False)

    text, _ = sql("select * from {}, {}", materialized, inlined).to_native()

    assert text == "with m as materialized (select 1), n as not materialized (select 2) select * from m, n"


def test_conflicting_names_are_rejected() -> None:
    first = sql.dependency("users", sql("select 1"))
    second = sql.dependency("users", sql("select 2"))

    with pytest.raises(CompositionError, match="conflicting dependency name 'users'"):
        resolve_dependencies(sql("select * from {}, {}", first, second))


def test_same_text_with_different_values_conflicts() -> None:
    first = sql.dependency("users", sql("select {}", 1))
    second = sql.dependency("users", sql("select {}", 2))

    with pytest.raises(CompositionError):
        collect_dependencies(sql("{} {}", first, second))


def test_dependencies_survive_splicing() -> None:
    users = sql.dependency("users", sql("select 1 as id"))
    inner = sql("select id from {}", users)

    outer = sql("select * from posts where author_id in ({})", inner)

    assert outer.dependencies == (users,)
    assert outer.to_native()[0] == (
        "with users as (select 1 as id) select * from posts where author_id in (select id from users)"
    )
