"""CQL statement builders and a per-table cache of prepared statements."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from gemini.complextypes import CounterType, TupleType
from gemini.statements import StatementCacheType, StatementType, StmtCache


@dataclass(frozen=True)
class _Condition:
    """A comparison of a column with a bind marker."""

    column: str
    op: str

    def to_cql(self) -> tuple[str, list[str]]:
        return f"{self.column}{self.op}?", [self.column]


def eq(name: str) -> _Condition:
    """Return the condition ``name=?``."""
    return _Condition(name, "=")


def gt_or_eq(name: str) -> _Condition:
    """Return the condition ``name>=?``."""
    return _Condition(name, ">=")


def lt_or_eq(name: str) -> _Condition:
    """Return the condition ``name<=?``."""
    return _Condition(name, "<=")


def _tuple_marker(name: str, count: int) -> tuple[str, list[str]]:
    marker = "(" + ",".join("?" for _ in range(count)) + ")"
    return marker, [f"{name}[{idx}]" for idx in range(count)]


def _where(conditions: list[_Condition]) -> tuple[str, list[str]]:
    if not conditions:
        return "", []
    parts, names = [], []
    for cond in conditions:
        text, cond_names = cond.to_cql()
        parts.append(text)
        names.extend(cond_names)
    return "WHERE " + " AND ".join(parts) + " ", names


class InsertBuilder:
    """Builds an INSERT statement."""

    def __init__(self, table: str) -> None:
        self.table = table
        self._columns: list[tuple[str, str, list[str]]] = []
        self._unique = False

    def columns(self, *args: str) -> "InsertBuilder":
        for name in args:
            self._columns.append((name, "?", [name]))
        return self

    def tuple_column(self, name: str, count: int) -> "InsertBuilder":
        marker, names = _tuple_marker(name, count)
        self._columns.append((name, marker, names))
        return self

    def unique(self) -> "InsertBuilder":
        """Make the insert conditional with IF NOT EXISTS."""
        self._unique = True
        return self

    def to_cql(self) -> tuple[str, list[str]]:
        cols = ",".join(name for name, _, _ in self._columns)
        markers = ",".join(marker for _, marker, _ in self._columns)
        names = [param for _, _, params in self._columns for param in params]
        stmt = f"INSERT INTO {self.table} ({cols}) VALUES ({markers}) "
        if self._unique:
            stmt += "IF NOT EXISTS "
        return stmt, names


class UpdateBuilder:
    """Builds an UPDATE statement."""

    def __init__(self, table: str) -> None:
        self.table = table
        self._assignments: list[tuple[str, list[str]]] = []
        self._where: list[_Condition] = []

    def set(self, name: str) -> "UpdateBuilder":
        self._assignments.append((f"{name}=?", [name]))
        return self

    def set_tuple(self, name: str, count: int) -> "UpdateBuilder":
        marker, names = _tuple_marker(name, count)
        self._assignments.append((f"{name}={marker}", names))
        return self

    def set_lit(self, name: str, literal: str) -> "UpdateBuilder":
        self._assignments.append((f"{name}={literal}", []))
        return self

    def where(self, condition: _Condition) -> "UpdateBuilder":
        self._where.append(condition)
        return self

    def to_cql(self) -> tuple[str, list[str]]:
        names = [param for _, params in self._assignments for param in params]
        sets = ",".join(text for text, _ in self._assignments)
        where, where_names = _where(self._where)
        return f"UPDATE {self.table} SET {sets} {where}", names + where_names


class DeleteBuilder:
    """Builds a DELETE statement."""

    def __init__(self, table: str) -> None:
        self.table = table
        self._where: list[_Condition] = []

    def where(self, condition: _Condition) -> "DeleteBuilder":
        self._where.append(condition)
        return self

    def to_cql(self) -> tuple[str, list[str]]:
        where, names = _where(self._where)
        return f"DELETE FROM {self.table} {where}", names


def _qualified(schema: Any, table: Any) -> str:
    return f"{schema.keyspace.name}.{table.name}"


def gen_insert_stmt_cache(schema: Any, table: Any) -> StmtCache:
    """Build the INSERT statement for every key and column of the table."""
    builder = InsertBuilder(_qualified(schema, table))
    types: list = []
    for col in [*table.partition_keys, *table.clustering_keys]:
        builder.columns(col.name)
        types.append(col.type)
    for col in table.columns:
        if isinstance(col.type, TupleType):
            builder.tuple_column(col.name, len(col.type.value_types))
        else:
            builder.columns(col.name)
        types.append(col.type)
    return StmtCache(query=builder, types=types, query_type=StatementType.INSERT)


def gen_insert_if_not_exists_stmt_cache(schema: Any, table: Any) -> StmtCache:
    """Build the conditional INSERT ... IF NOT EXISTS statement."""
    out = gen_insert_stmt_cache(schema, table)
    out.query = out.query.unique()
    return out


def gen_update_stmt_cache(schema: Any, table: Any) -> StmtCache:
    """Build the UPDATE statement; counters are incremented by one."""
    builder = UpdateBuilder(_qualified(schema, table))
    types: list = []
    for col in table.columns:
        if isinstance(col.type, TupleType):
            builder.set_tuple(col.name, len(col.type.value_types))
        elif isinstance(col.type, CounterType):
            builder.set_lit(col.name, col.name + "+1")
            continue
        else:
            builder.set(col.name)
        types.append(col.type)
    for col in [*table.partition_keys, *table.clustering_keys]:
        builder.where(eq(col.name))
        types.append(col.type)
    return StmtCache(query=builder, types=types, query_type=StatementType.UPDATE)


def gen_delete_stmt_cache(schema: Any, table: Any) -> StmtCache:
    """Build the DELETE statement over a range of the first clustering key."""
    builder = DeleteBuilder(_qualified(schema, table))
    types: list = []
    for col in table.partition_keys:
        builder.where(eq(col.name))
        types.append(col.type)
    if table.clustering_keys:
        ck = table.clustering_keys[0]
        builder.where(gt_or_eq(ck.name)).where(lt_or_eq(ck.name))
        types.extend([ck.type, ck.type])
    return StmtCache(query=builder, types=types, query_type=StatementType.DELETE)


_Builder = Callable[[Any, Any], StmtCache]


def _complete(builders: dict[StatementCacheType, _Builder]) -> dict[StatementCacheType, _Builder]:
    for cache_type in StatementCacheType:
        if cache_type not in builders:
            raise RuntimeError(f"no builder for {cache_type.to_string()}")
    return builders


CACHE_BUILDERS = _complete(
    {
        StatementCacheType.INSERT: gen_insert_stmt_cache,
        StatementCacheType.INSERT_IF_NOT_EXISTS: gen_insert_if_not_exists_stmt_cache,
        StatementCacheType.DELETE: gen_delete_stmt_cache,
        StatementCacheType.UPDATE: gen_update_stmt_cache,
    }
)


class QueryCache:
    """Builds statements for one table on first use and keeps them."""

    def __init__(self, schema: Any) -> None:
        self.schema = schema
        self.table: Optional[Any] = None
        self._cache: dict[StatementCacheType, StmtCache] = {}
        self._lock = threading.Lock()

    def bind_to_table(self, table: Any) -> None:
        self.table = table

    def reset(self) -> None:
        """Forget every cached statement."""
        with self._lock:
            self._cache.clear()

    def get_query(self, cache_type: StatementCacheType) -> StmtCache:
        """Return the cached statement of that kind, building it if needed."""
        cache_type = StatementCacheType(cache_type)
        rec = self._cache.get(cache_type)
        if rec is not None:
            return rec
        with self._lock:
            rec = self._cache.get(cache_type)
            if rec is None:
                rec = CACHE_BUILDERS[cache_type](self.schema, self.table)
                self._cache[cache_type] = rec
            return rec