"""Statement kinds, bound values and prepared statement records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Iterable, Optional, Protocol

GOCQL_PROTO_DIRECTION_MASK = 0x80
GOCQL_PROTO_VERSION_MASK = 0x7F
GOCQL_PROTO_VERSION1 = 0x01
GOCQL_PROTO_VERSION2 = 0x02
GOCQL_PROTO_VERSION3 = 0x03
GOCQL_PROTO_VERSION4 = 0x04
GOCQL_PROTO_VERSION5 = 0x05

KNOWN_ISSUES_JSON_WITH_TUPLES = "https://github.com/scylladb/scylla/issues/3708"


class StatementType(IntEnum):
    SELECT = 0
    SELECT_RANGE = 1
    SELECT_BY_INDEX = 2
    SELECT_FROM_MATERIALIZED_VIEW = 3
    DELETE = 4
    INSERT = 5
    INSERT_JSON = 6
    UPDATE = 7
    ALTER_COLUMN = 8
    DROP_COLUMN = 9
    ADD_COLUMN = 10

    def to_string(self) -> str:
        return _STATEMENT_NAMES[self]

    def possible_async_operation(self) -> bool:
        """Tell whether results of this statement may lag behind writes."""
        return self in (StatementType.SELECT_BY_INDEX, StatementType.SELECT_FROM_MATERIALIZED_VIEW)


_STATEMENT_NAMES = {
    StatementType.SELECT: "SelectStatement",
    StatementType.SELECT_RANGE: "SelectRangeStatement",
    StatementType.SELECT_BY_INDEX: "SelectByIndexStatement",
    StatementType.SELECT_FROM_MATERIALIZED_VIEW: "SelectFromMaterializedViewStatement",
    StatementType.DELETE: "DeleteStatement",
    StatementType.INSERT: "InsertStatement",
    StatementType.INSERT_JSON: "InsertJSONStatement",
    StatementType.UPDATE: "UpdateStatement",
    StatementType.ALTER_COLUMN: "AlterColumnStatement",
    StatementType.DROP_COLUMN: "DropColumnStatement",
    StatementType.ADD_COLUMN: "AddColumnStatement",
}


class StatementCacheType(IntEnum):
    INSERT = 0
    INSERT_IF_NOT_EXISTS = 1
    UPDATE = 2
    DELETE = 3

    def to_string(self) -> str:
        return _CACHE_NAMES[self]


_CACHE_NAMES = {
    StatementCacheType.INSERT: "CacheInsert",
    StatementCacheType.INSERT_IF_NOT_EXISTS: "CacheInsertIfNotExists",
    StatementCacheType.UPDATE: "CacheUpdate",
    StatementCacheType.DELETE: "CacheDelete",
}

CACHE_ARRAY_LEN = len(StatementCacheType)


class CQLFeature(IntEnum):
    BASIC = 1
    NORMAL = 2
    ALL = 3


class QueryBuilder(Protocol):
    """Anything that renders a CQL statement and its bind marker names."""

    def to_cql(self) -> tuple[str, list[str]]: ...


class Values(list):
    """Values bound to a statement."""

    def copy(self) -> "Values":
        return Values(self)

    def copy_from(self, src: Iterable[Any]) -> "Values":
        """Return these values followed by those of ``src``."""
        return Values([*self, *src])


@dataclass
class ValueWithToken:
    value: Values
    token: int


@dataclass
class StmtCache:
    """A reusable statement: its builder, bound value types and kind."""

    query: Any
    types: list = field(default_factory=list)
    query_type: StatementType = StatementType.SELECT
    len_value: int = 0


@dataclass
class Stmt:
    """A cached statement together with the values bound to it."""

    cache: StmtCache
    values: Values = field(default_factory=Values)
    values_with_token: list[ValueWithToken] = field(default_factory=list)

    @property
    def query(self) -> Any:
        return self.cache.query

    @property
    def types(self) -> list:
        return self.cache.types

    @property
    def query_type(self) -> StatementType:
        return self.cache.query_type

    def pretty_cql(self) -> str:
        """Render the statement with its values substituted for the placeholders."""
        query, _ = self.query.to_cql()
        values = list(self.values)
        if not values:
            return query
        for typ in self.types:
            query, replaced = typ.cql_pretty(query, values)
            if len(values) >= replaced:
                values = values[replaced:]
            else:
                break
        return query


@dataclass
class Stmts:
    """A batch of statements of one kind, with an optional hook run after them."""

    list: list[Stmt] = field(default_factory=list)
    query_type: StatementType = StatementType.SELECT
    post_stmt_hook: Optional[Callable[[], None]] = None