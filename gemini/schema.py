"""Schemas, tables, materialized views and the schema generation limits."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

from gemini.columns import ColumnDef, Columns
from gemini.complextypes import CounterType
from gemini.replication import Replication
from gemini.simpletypes import PartitionRangeConfig
from gemini.statements import CQLFeature, StatementCacheType, StmtCache

# Written as 2 XOR 24, as the generator's thresholds have always been.
_MIN_PK_VARIATIONS = 2 ^ 24


class SchemaConfigError(ValueError):
    """Raised when a schema or its configuration is not usable."""


class InvalidPartitionKeyRangeError(SchemaConfigError):
    def __init__(self) -> None:
        super().__init__("max number of partition keys must be bigger than min number of partition keys")


class InvalidClusteringKeyRangeError(SchemaConfigError):
    def __init__(self) -> None:
        super().__init__("max number of clustering keys must be bigger than min number of clustering keys")


class InvalidColumnRangeError(SchemaConfigError):
    def __init__(self) -> None:
        super().__init__("max number of columns must be bigger than min number of columns")


def _load(data: Any) -> Any:
    if isinstance(data, (str, bytes, bytearray)):
        return json.loads(data)
    return data


def _replication_from(value: Any) -> Optional[Replication]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise SchemaConfigError(f"replication must be a mapping, value={value!r}")
    return Replication({key: int(item) if isinstance(item, float) else item for key, item in value.items()})


def _columns_from(value: Any) -> Columns:
    if value is None:
        return Columns()
    return Columns(ColumnDef.from_json(item) for item in value)


def _column_or_none(value: Any) -> Optional[ColumnDef]:
    return None if value is None else ColumnDef.from_json(value)


def _column_json(column: Optional[ColumnDef]) -> Optional[dict]:
    return None if column is None else column.to_json()


@dataclass
class Keyspace:
    """A keyspace name with the replication used on the test and oracle clusters."""

    name: str = ""
    replication: Optional[Replication] = None
    oracle_replication: Optional[Replication] = None

    def to_json(self) -> dict:
        return {
            "replication": None if self.replication is None else dict(self.replication),
            "oracle_replication": None if self.oracle_replication is None else dict(self.oracle_replication),
            "name": self.name,
        }

    @classmethod
    def from_json(cls, data: Any) -> "Keyspace":
        data = _load(data) or {}
        return cls(
            name=data.get("name") or "",
            replication=_replication_from(data.get("replication")),
            oracle_replication=_replication_from(data.get("oracle_replication")),
        )


@dataclass
class IndexDef:
    """A secondary index on one column."""

    index_name: str
    column_name: str
    column: Optional[ColumnDef] = None

    def to_json(self) -> dict:
        return {
            "Column": _column_json(self.column),
            "index_name": self.index_name,
            "column_name": self.column_name,
        }

    @classmethod
    def from_json(cls, data: Any) -> "IndexDef":
        data = _load(data)
        return cls(
            index_name=data.get("index_name") or "",
            column_name=data.get("column_name") or "",
            column=_column_or_none(data.get("Column")),
        )


@dataclass
class MaterializedView:
    """A materialized view over a table."""

    name: str
    partition_keys: Columns = field(default_factory=Columns)
    clustering_keys: Columns = field(default_factory=Columns)
    non_primary_key: Optional[ColumnDef] = None
    _pk_len_values: int = field(default=0, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.partition_keys = Columns(self.partition_keys or [])
        self.clustering_keys = Columns(self.clustering_keys or [])

    def have_non_primary_key(self) -> bool:
        return self.non_primary_key is not None

    def partition_keys_len_values(self) -> int:
        if self._pk_len_values == 0 and self.partition_keys is not None:
            self._pk_len_values = self.partition_keys.len_values()
        return self._pk_len_values

    def to_json(self) -> dict:
        return {
            "NonPrimaryKey": _column_json(self.non_primary_key),
            "name": self.name,
            "partition_keys": [col.to_json() for col in self.partition_keys],
            "clustering_keys": [col.to_json() for col in self.clustering_keys],
        }

    @classmethod
    def from_json(cls, data: Any) -> "MaterializedView":
        data = _load(data)
        return cls(
            name=data.get("name") or "",
            partition_keys=_columns_from(data.get("partition_keys")),
            clustering_keys=_columns_from(data.get("clustering_keys")),
            non_primary_key=_column_or_none(data.get("NonPrimaryKey")),
        )


@dataclass
class SchemaConfig:
    """Limits and switches that govern schema and value generation."""

    replication_strategy: Optional[Replication] = None
    oracle_replication_strategy: Optional[Replication] = None
    table_options: list = field(default_factory=list)
    max_tables: int = 0
    max_partition_keys: int = 0
    min_partition_keys: int = 0
    max_clustering_keys: int = 0
    min_clustering_keys: int = 0
    max_columns: int = 0
    min_columns: int = 0
    max_udt_parts: int = 0
    max_tuple_parts: int = 0
    max_blob_length: int = 0
    max_string_length: int = 0
    min_blob_length: int = 0
    min_string_length: int = 0
    use_counters: bool = False
    use_lwt: bool = False
    cql_feature: int = 0
    async_object_stabilization_attempts: int = 0
    async_object_stabilization_delay: timedelta = timedelta(0)

    def validate(self) -> None:
        """Raise if any maximum is not above its minimum."""
        if self.max_partition_keys <= self.min_partition_keys:
            raise InvalidPartitionKeyRangeError()
        if self.max_clustering_keys <= self.min_clustering_keys:
            raise InvalidClusteringKeyRangeError()
        if self.max_columns <= self.min_columns:
            raise InvalidColumnRangeError()

    def get_partition_range_config(self) -> PartitionRangeConfig:
        return PartitionRangeConfig(
            max_blob_length=self.max_blob_length,
            min_blob_length=self.min_blob_length,
            max_string_length=self.max_string_length,
            min_string_length=self.min_string_length,
            use_lwt=self.use_lwt,
        )


@dataclass
class Table:
    """A table: its keys, columns, indexes and materialized views."""

    name: str
    partition_keys: Columns = field(default_factory=Columns)
    clustering_keys: Columns = field(default_factory=Columns)
    columns: Columns = field(default_factory=Columns)
    indexes: list[IndexDef] = field(default_factory=list)
    materialized_views: list[MaterializedView] = field(default_factory=list)
    known_issues: dict[str, bool] = field(default_factory=dict)
    table_options: list[str] = field(default_factory=list)
    _query_cache: Any = field(default=None, init=False, repr=False, compare=False)
    _schema: Any = field(default=None, init=False, repr=False, compare=False)
    _pk_len_values: int = field(default=0, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.partition_keys = Columns(self.partition_keys or [])
        self.clustering_keys = Columns(self.clustering_keys or [])
        self.columns = Columns(self.columns or [])

    def partition_keys_len_values(self) -> int:
        if self._pk_len_values == 0:
            self._pk_len_values = self.partition_keys.len_values()
        return self._pk_len_values

    def is_counter_table(self) -> bool:
        return len(self.columns) == 1 and isinstance(self.columns[0].type, CounterType)

    def get_query_cache(self, cache_type: StatementCacheType) -> StmtCache:
        if self._query_cache is None:
            raise RuntimeError(f"table {self.name} has no query cache")
        return self._query_cache.get_query(cache_type)

    def reset_query_cache(self) -> None:
        if self._query_cache is not None:
            self._query_cache.reset()
        self._pk_len_values = 0

    def init(self, schema: "Schema", cache: Any) -> None:
        """Attach the table to its schema and a query cache."""
        self._schema = schema
        self._query_cache = cache
        cache.bind_to_table(self)

    def valid_columns_for_delete(self) -> Columns:
        """Return the columns that are neither indexed nor a view's non-key column."""
        if not self.columns:
            return Columns()
        valid = Columns(self.columns)
        excluded = [idx.column_name for idx in self.indexes]
        excluded += [mv.non_primary_key.name for mv in self.materialized_views if mv.have_non_primary_key()]
        for name in excluded:
            for pos, col in enumerate(valid):
                if col.name == name:
                    del valid[pos]
                    break
        return valid

    def link_index_and_columns(self) -> None:
        """Point every index at the column definition it names."""
        by_name: dict[str, ColumnDef] = {}
        for col in self.columns:
            by_name.setdefault(col.name, col)
        for index in self.indexes:
            if index.column_name in by_name:
                index.column = by_name[index.column_name]

    def to_json(self) -> dict:
        out: dict[str, Any] = {
            "name": self.name,
            "partition_keys": [col.to_json() for col in self.partition_keys],
            "clustering_keys": [col.to_json() for col in self.clustering_keys],
            "columns": [col.to_json() for col in self.columns],
        }
        if self.indexes:
            out["indexes"] = [idx.to_json() for idx in self.indexes]
        if self.materialized_views:
            out["materialized_views"] = [mv.to_json() for mv in self.materialized_views]
        out["known_issues"] = dict(self.known_issues) if self.known_issues else None
        if self.table_options:
            out["table_options"] = list(self.table_options)
        return out

    @classmethod
    def from_json(cls, data: Any) -> "Table":
        data = _load(data)
        return cls(
            name=data.get("name") or "",
            partition_keys=_columns_from(data.get("partition_keys")),
            clustering_keys=_columns_from(data.get("clustering_keys")),
            columns=_columns_from(data.get("columns")),
            indexes=[IndexDef.from_json(item) for item in data.get("indexes") or []],
            materialized_views=[MaterializedView.from_json(item) for item in data.get("materialized_views") or []],
            known_issues=dict(data.get("known_issues") or {}),
            table_options=list(data.get("table_options") or []),
        )


@dataclass
class Schema:
    """A keyspace with its tables; the configuration is not serialized."""

    keyspace: Keyspace = field(default_factory=Keyspace)
    tables: list[Table] = field(default_factory=list)
    config: SchemaConfig = field(default_factory=SchemaConfig, compare=False)

    def validate(self, distribution_size: int) -> None:
        """Raise if a table's partition keys allow too few distinct values."""
        pr_config = self.config.get_partition_range_config()
        for table in self.tables:
            variations = table.partition_keys.value_variations_number(pr_config)
            shown = int(variations) if math.isfinite(variations) else variations
            if variations < _MIN_PK_VARIATIONS:
                raise SchemaConfigError(f"pk size {shown} is less than gemini can handle")
            if float(distribution_size * 100) > variations:
                raise SchemaConfigError(f"pk size {shown} is less than --token-range-slices multiplied by 100")

    def to_json(self) -> dict:
        return {"keyspace": self.keyspace.to_json(), "tables": [table.to_json() for table in self.tables]}

    @classmethod
    def from_json(cls, data: Any) -> "Schema":
        data = _load(data)
        return cls(
            keyspace=Keyspace.from_json(data.get("keyspace") or {}),
            tables=[Table.from_json(item) for item in data.get("tables") or []],
        )


__all__ = [
    "CQLFeature",
    "IndexDef",
    "InvalidClusteringKeyRangeError",
    "InvalidColumnRangeError",
    "InvalidPartitionKeyRangeError",
    "Keyspace",
    "MaterializedView",
    "Schema",
    "SchemaConfig",
    "SchemaConfigError",
    "Table",
]