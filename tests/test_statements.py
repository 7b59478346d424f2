import pytest

from gemini.simpletypes import TYPE_ASCII, TYPE_INT
from gemini.statements import (
    CACHE_ARRAY_LEN,
    StatementCacheType,
    StatementType,
    Stmt,
    StmtCache,
    Values,
)


class _FixedBuilder:
    def __init__(self, text):
        self.text = text

    def to_cql(self):
        return self.text, []


def test_values_copy_from():
    tmp = Values([1, 2, 3, 4, 5])
    tmp = tmp.copy_from(Values([6, 7]))
    assert tmp == [1, 2, 3, 4, 5, 6, 7]
    tmp = tmp.copy_from(Values([8, 9]))
    assert tmp == [1, 2, 3, 4, 5, 6, 7, 8, 9]
    tmp.append(10)
    assert tmp == [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]


def test_values_copy_is_independent():
    original = Values([1, 2])
    copied = original.copy()
    copied.append(3)
    assert original == [1, 2]
    assert isinstance(copied, Values)


@pytest.mark.parametrize(
    "kind, text",
    [
        (StatementType.SELECT, "SelectStatement"),
        (StatementType.SELECT_FROM_MATERIALIZED_VIEW, "SelectFromMaterializedViewStatement"),
        (StatementType.INSERT_JSON, "InsertJSONStatement"),
        (StatementType.ADD_COLUMN, "AddColumnStatement"),
    ],
)
def test_statement_type_names(kind, text):
    assert kind.to_string() == text


def test_possible_async_operation():
    assert StatementType.SELECT_BY_INDEX.possible_async_operation() is True
    assert StatementType.SELECT_FROM_MATERIALIZED_VIEW.possible_async_operation() is True
    assert StatementType.SELECT.possible_async_operation() is False
    assert StatementType.INSERT_JSON.possible_async_operation() is False
    assert StatementType.ADD_COLUMN.possible_async_operation() is False


def test_cache_type_names():
    assert StatementCacheType(0).to_string() == "CacheInsert"
    assert StatementCacheType(1).to_string() == "CacheInsertIfNotExists"
    assert StatementCacheType(2).to_string() == "CacheUpdate"
    assert StatementCacheType(3).to_string() == "CacheDelete"
    assert CACHE_ARRAY_LEN == 4


def test_pretty_cql_substitutes_values():
    cache = StmtCache(
        _FixedBuilder("SELECT * FROM t WHERE a=? AND b=?"), [TYPE_ASCII, TYPE_INT], StatementType.SELECT
    )
    stmt = Stmt(cache, Values(["x", 5]))
    assert stmt.pretty_cql() == "SELECT * FROM t WHERE a='x' AND b=5"
    assert stmt.values == ["x", 5]


def test_pretty_cql_without_values():
    cache = StmtCache(_FixedBuilder("DELETE FROM t WHERE a=?"), [TYPE_INT], StatementType.DELETE)
    assert Stmt(cache).pretty_cql() == "DELETE FROM t WHERE a=?"


def test_stmt_exposes_cache_fields():
    cache = StmtCache(_FixedBuilder("q"), [TYPE_INT], StatementType.UPDATE, 1)
    stmt = Stmt(cache, Values([1]))
    assert stmt.query_type is StatementType.UPDATE
    assert stmt.types == [TYPE_INT]