"""Column definitions and their JSON form."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from gemini.complextypes import BagType, CounterType, MapType, TupleType, UDTType
from gemini.simpletypes import (
    ALL_TYPES,
    PK_TYPES,
    TYPE_LIST,
    TYPE_MAP,
    TYPE_SET,
    TYPE_TUPLE,
    TYPE_UDT,
    PartitionRangeConfig,
    SimpleType,
)


class SchemaValidationError(ValueError):
    """Raised when a column definition cannot be read."""


def _decode_str(value: Any, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SchemaValidationError(f"can't decode string value for {what}, value={value!r}")
    return value


def _decode_bool(value: Any, what: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise SchemaValidationError(f"can't decode bool value for {what}, value={value!r}")
    return value


def _decode_simple(value: Any, what: str) -> SimpleType:
    return SimpleType(_decode_str(value, what))


def _split(data: dict) -> tuple[str, dict]:
    if not isinstance(data, dict):
        raise SchemaValidationError(f"column definition must be a mapping, value={data!r}")
    name = _decode_str(data.get("name"), "column name")
    type_map = data.get("type")
    if type_map is None:
        type_map = {}
    if not isinstance(type_map, dict):
        raise SchemaValidationError(f"can't decode column 'type', value={data!r}")
    return name, type_map


def _type_to_json(col_type: Any) -> Any:
    if isinstance(col_type, SimpleType):
        return str(col_type)
    return col_type.to_json()


@dataclass
class ColumnDef:
    """A named column with its CQL type."""

    name: str
    type: Any

    def is_valid_for_primary_key(self) -> bool:
        """Tell whether the column's type may be used in a primary key."""
        type_name = self.type.name()
        return any(type_name == pk_type.name() for pk_type in PK_TYPES)

    def to_json(self) -> dict:
        return {"type": _type_to_json(self.type), "name": self.name}

    @classmethod
    def from_json(cls, data: Any) -> "ColumnDef":
        """Read a column from a JSON document or an already decoded mapping."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        if not isinstance(data, dict):
            raise SchemaValidationError(f"column definition must be a JSON object, value={data!r}")
        try:
            return get_simple_type_column(data)
        except SchemaValidationError:
            pass
        if "type" not in data:
            raise SchemaValidationError(f"missing definition of column 'type': {data!r}")
        type_map = data["type"]
        if not isinstance(type_map, dict):
            raise SchemaValidationError(f"unknown definition column 'type': {type_map!r}")
        if "complex_type" not in type_map:
            raise SchemaValidationError(f"missing definition of column 'complex_type': {type_map!r}")
        complex_type = type_map["complex_type"]
        if complex_type in (TYPE_LIST, TYPE_SET):
            return get_bag_type_column(data)
        if complex_type == TYPE_MAP:
            return get_map_type_column(data)
        if complex_type == TYPE_TUPLE:
            return get_tuple_type_column(data)
        if complex_type == TYPE_UDT:
            return get_udt_type_column(data)
        raise SchemaValidationError(f"unknown 'complex_type': {complex_type!r}")


class Columns(list):
    """An ordered list of column definitions."""

    def names(self) -> list[str]:
        return [col.name for col in self]

    def remove(self, column: ColumnDef) -> "Columns":  # type: ignore[override]
        """Return the columns without the first one named like ``column``."""
        for idx, col in enumerate(self):
            if col.name == column.name:
                return Columns([*self[:idx], *self[idx + 1 :]])
        return Columns(self)

    def to_json_map(self, values: dict, rnd: random.Random, config: PartitionRangeConfig) -> dict:
        """Fill ``values`` with a generated JSON value for each column and return it."""
        for col in self:
            values[col.name] = col.type.gen_json_value(rnd, config)
        return values

    def valid_columns_for_primary_key(self) -> "Columns":
        return Columns(col for col in self if col.is_valid_for_primary_key())

    def random(self, rnd: random.Random) -> ColumnDef:
        return self[rnd.randrange(len(self))]

    def len_values(self) -> int:
        return sum(col.type.len_value() for col in self)

    def non_counters(self) -> "Columns":
        return Columns(col for col in self if not isinstance(col.type, CounterType))

    def value_variations_number(self, config: PartitionRangeConfig) -> float:
        out = 1.0
        for col in self:
            out *= col.type.value_variations_number(config)
        return out


def _require(type_map: dict, keys: Iterable[str], kind: str) -> None:
    for key in keys:
        if key not in type_map:
            raise SchemaValidationError(f"not a {kind} type, value={type_map!r}")


def get_map_type_column(data: dict) -> ColumnDef:
    """Read a map column."""
    name, type_map = _split(data)
    _require(type_map, ("frozen", "value_type", "key_type"), "map")
    return ColumnDef(
        name,
        MapType(
            key_type=_decode_simple(type_map["key_type"], "MapType::KeyType"),
            value_type=_decode_simple(type_map["value_type"], "MapType::ValueType"),
            frozen=_decode_bool(type_map["frozen"], "MapType::Frozen"),
            complex_type=TYPE_MAP,
        ),
    )


def get_bag_type_column(data: dict) -> ColumnDef:
    """Read a list or set column."""
    name, type_map = _split(data)
    return ColumnDef(
        name,
        BagType(
            complex_type=_decode_str(type_map.get("complex_type"), "BagType::ComplexType"),
            value_type=_decode_simple(type_map.get("value_type"), "BagType::ValueType"),
            frozen=_decode_bool(type_map.get("frozen"), "BagType::Frozen"),
        ),
    )


def get_tuple_type_column(data: dict) -> ColumnDef:
    """Read a tuple column."""
    name, type_map = _split(data)
    _require(type_map, ("value_types",), "tuple")
    raw_types = type_map["value_types"]
    if raw_types is None:
        raw_types = []
    if not isinstance(raw_types, list):
        raise SchemaValidationError(f"can't decode value types for TupleType::ValueTypes, value={type_map!r}")
    return ColumnDef(
        name,
        TupleType(
            value_types=[_decode_simple(item, "TupleType::ValueTypes") for item in raw_types],
            frozen=_decode_bool(type_map.get("frozen"), "TupleType::Frozen"),
            complex_type=TYPE_TUPLE,
        ),
    )


def get_udt_type_column(data: dict) -> ColumnDef:
    """Read a user-defined type column."""
    name, type_map = _split(data)
    _require(type_map, ("value_types", "type_name"), "UDT")
    raw_types = type_map["value_types"]
    if raw_types is None:
        raw_types = {}
    if not isinstance(raw_types, dict):
        raise SchemaValidationError(f"can't decode value types for UDTType::ValueTypes, value={type_map!r}")
    return ColumnDef(
        name,
        UDTType(
            value_types={
                _decode_str(key, "UDTType::ValueTypes"): _decode_simple(item, "UDTType::ValueTypes")
                for key, item in raw_types.items()
            },
            type_name=_decode_str(type_map["type_name"], "UDTType::TypeName"),
            frozen=_decode_bool(type_map.get("frozen"), "UDTType::Frozen"),
            complex_type=TYPE_UDT,
        ),
    )


def get_simple_type_column(data: dict) -> ColumnDef:
    """Read a column of a simple type."""
    if not isinstance(data, dict):
        raise SchemaValidationError(f"column definition must be a mapping, value={data!r}")
    name: Optional[Any] = data.get("name")
    col_type: Optional[Any] = data.get("type")
    name = _decode_str(name, "column name")
    col_type = _decode_str(col_type, "column type")
    if name == "":
        raise SchemaValidationError(f"wrong definition of column 'name' {data!r}")
    if col_type == "":
        raise SchemaValidationError(f"empty definition of column 'type' {data!r}")
    if col_type not in ALL_TYPES:
        raise SchemaValidationError(f"not simple type in column 'type' {data!r}")
    return ColumnDef(name, SimpleType(col_type))