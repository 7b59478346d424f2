"""Collection, tuple, user-defined and counter CQL column types."""

from __future__ import annotations

import math
import random
import threading
from dataclasses import dataclass, field
from typing import Any, Sequence

from gemini.simpletypes import (
    MAX_BAG_SIZE,
    MAX_MAP_SIZE,
    TYPE_DURATION,
    TYPE_LIST,
    TYPE_MAP,
    TYPE_SET,
    TYPE_TUPLE,
    TYPE_UDT,
    CQLType,
    PartitionRangeConfig,
    SimpleType,
)
from gemini.utils import is_under_test, rand_int2


def _pow(base: float, exponent: int) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf


def _as_simple(value: Any) -> SimpleType:
    return value if isinstance(value, SimpleType) else SimpleType(value)


@dataclass
class MapType:
    """A CQL map from one simple type to another."""

    key_type: SimpleType
    value_type: SimpleType
    frozen: bool = False
    complex_type: str = TYPE_MAP

    def __post_init__(self) -> None:
        self.key_type = _as_simple(self.key_type)
        self.value_type = _as_simple(self.value_type)

    def name(self) -> str:
        inner = f"map<{self.key_type.name()},{self.value_type.name()}>"
        return f"frozen<{inner}>" if self.frozen else inner

    def cql_def(self) -> str:
        inner = f"map<{self.key_type.cql_def()},{self.value_type.cql_def()}>"
        return f"frozen<{inner}>" if self.frozen else inner

    def cql_holder(self) -> str:
        return "?"

    def cql_pretty(self, query: str, values: Sequence[Any]) -> tuple[str, int]:
        """Replace the first placeholder with the map literal of ``values[0]``."""
        if not values or not isinstance(values[0], dict):
            raise ValueError(f"map cql pretty, unknown type {self!r}")
        literal = "{"
        for key, item in values[0].items():
            literal += f"{key}:?,"
            literal, _ = self.value_type.cql_pretty(literal, [item])
        literal = literal.removesuffix(",") + "}"
        return query.replace("?", literal, 1), 1

    def cql_type(self) -> CQLType:
        return CQLType.MAP

    def gen_json_value(self, rnd: random.Random, config: PartitionRangeConfig) -> dict:
        count = rnd.randrange(9) + 1
        # The first key and value only fix the element types; they are discarded.
        self.key_type.gen_json_value(rnd, config)
        self.value_type.gen_json_value(rnd, config)
        out: dict = {}
        for _ in range(count):
            key = self.key_type.gen_json_value(rnd, config)
            out[key] = self.value_type.gen_json_value(rnd, config)
        return out

    def gen_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        count = rand_int2(rnd, 1, MAX_MAP_SIZE + 1)
        self.key_type.gen_value(rnd, config)
        self.value_type.gen_value(rnd, config)
        out: dict = {}
        for _ in range(count):
            key = self.key_type.gen_value(rnd, config)[0]
            out[key] = self.value_type.gen_value(rnd, config)[0]
        return [out]

    def len_value(self) -> int:
        return 1

    def indexable(self) -> bool:
        return False

    def value_variations_number(self, config: PartitionRangeConfig) -> float:
        base = self.key_type.value_variations_number(config) * self.value_type.value_variations_number(config)
        return _pow(base, MAX_MAP_SIZE)

    def to_json(self) -> dict:
        return {
            "complex_type": self.complex_type,
            "key_type": str(self.key_type),
            "value_type": str(self.value_type),
            "frozen": self.frozen,
        }


@dataclass
class CounterType:
    """A CQL counter; outside test mode each generated value is the next count."""

    value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def name(self) -> str:
        return "counter"

    def cql_def(self) -> str:
        return "counter"

    def cql_holder(self) -> str:
        return "?"

    def cql_pretty(self, query: str, values: Sequence[Any]) -> tuple[str, int]:
        return query.replace("?", str(int(values[0])), 1), 1

    def cql_type(self) -> CQLType:
        # Counters are reported with the map type code.
        return CQLType.MAP

    def _next(self, rnd: random.Random) -> int:
        if is_under_test():
            return rnd.getrandbits(63)
        with self._lock:
            self.value += 1
            return self.value

    def gen_json_value(self, rnd: random.Random, config: PartitionRangeConfig) -> int:
        return self._next(rnd)

    def gen_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        return [self._next(rnd)]

    def len_value(self) -> int:
        return 1

    def indexable(self) -> bool:
        return False

    def value_variations_number(self, config: PartitionRangeConfig) -> float:
        return float(2 ^ 64)

    def to_json(self) -> dict:
        return {"Value": self.value}


@dataclass
class BagType:
    """A CQL list or set of a simple type."""

    complex_type: str
    value_type: SimpleType
    frozen: bool = False

    def __post_init__(self) -> None:
        self.value_type = _as_simple(self.value_type)

    def cql_type(self) -> CQLType:
        return CQLType.SET if self.complex_type == TYPE_SET else CQLType.LIST

    def name(self) -> str:
        inner = f"{self.complex_type}<{self.value_type.name()}>"
        return f"frozen<{inner}>" if self.frozen else inner

    def cql_def(self) -> str:
        return self.name()

    def cql_holder(self) -> str:
        return "?"

    def cql_pretty(self, query: str, values: Sequence[Any]) -> tuple[str, int]:
        """Replace the first placeholder with the list or set literal of ``values[0]``."""
        if len(values) == 0:
            return query, 0
        items = values[0]
        if not isinstance(items, (list, tuple)):
            raise ValueError(f"set cql pretty, unknown type {self!r}")
        opening, closing = ("{", "}") if self.complex_type == TYPE_SET else ("[", "]")
        literal = opening + ",".join("?" for _ in items) + closing
        for item in items:
            literal, _ = self.value_type.cql_pretty(literal, [item])
        return query.replace("?", literal, 1), 1

    def gen_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        count = rand_int2(rnd, 1, MAX_BAG_SIZE + 1)
        return [[self.value_type.gen_value(rnd, config)[0] for _ in range(count)]]

    def gen_json_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        count = rand_int2(rnd, 1, MAX_BAG_SIZE + 1)
        return [self.value_type.gen_json_value(rnd, config) for _ in range(count)]

    def len_value(self) -> int:
        return 1

    def indexable(self) -> bool:
        return False

    def value_variations_number(self, config: PartitionRangeConfig) -> float:
        return _pow(self.value_type.value_variations_number(config), MAX_BAG_SIZE)

    def to_json(self) -> dict:
        return {
            "complex_type": self.complex_type,
            "value_type": str(self.value_type),
            "frozen": self.frozen,
        }


@dataclass
class TupleType:
    """A CQL tuple of simple types."""

    value_types: list[SimpleType] = field(default_factory=list)
    frozen: bool = False
    complex_type: str = TYPE_TUPLE

    def __post_init__(self) -> None:
        self.value_types = [_as_simple(tp) for tp in self.value_types]

    def cql_type(self) -> CQLType:
        return CQLType.TUPLE

    def name(self) -> str:
        return "Type: " + ",".join(tp.name() for tp in self.value_types)

    def cql_def(self) -> str:
        inner = "tuple<" + ",".join(tp.cql_def() for tp in self.value_types) + ">"
        return f"frozen<{inner}>" if self.frozen else inner

    def cql_holder(self) -> str:
        return "(" + ",".join("?" for _ in self.value_types) + ")"

    def cql_pretty(self, query: str, values: Sequence[Any]) -> tuple[str, int]:
        """Replace one placeholder per element type; return the count replaced."""
        if len(values) == 0:
            return query, 0
        count = 0
        for idx, tp in enumerate(self.value_types):
            query, replaced = tp.cql_pretty(query, values[idx:])
            count += replaced
        return query, count

    def indexable(self) -> bool:
        return all(tp != TYPE_DURATION for tp in self.value_types)

    def gen_json_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        return [tp.gen_json_value(rnd, config) for tp in self.value_types]

    def gen_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        out: list[Any] = []
        for tp in self.value_types:
            out.extend(tp.gen_value(rnd, config))
        return out

    def len_value(self) -> int:
        return sum(tp.len_value() for tp in self.value_types)

    def value_variations_number(self, config: PartitionRangeConfig) -> float:
        out = 1.0
        for tp in self.value_types:
            out *= out * tp.value_variations_number(config)
        return out

    def to_json(self) -> dict:
        return {
            "complex_type": self.complex_type,
            "value_types": [str(tp) for tp in self.value_types],
            "frozen": self.frozen,
        }


@dataclass
class UDTType:
    """A CQL user-defined type with named simple-typed fields."""

    value_types: dict[str, SimpleType] = field(default_factory=dict)
    type_name: str = ""
    frozen: bool = False
    complex_type: str = TYPE_UDT

    def __post_init__(self) -> None:
        self.value_types = {key: _as_simple(tp) for key, tp in self.value_types.items()}

    def cql_type(self) -> CQLType:
        return CQLType.UDT

    def name(self) -> str:
        return self.type_name

    def cql_def(self) -> str:
        return f"frozen<{self.type_name}>" if self.frozen else self.type_name

    def cql_holder(self) -> str:
        return "?"

    def cql_pretty(self, query: str, values: Sequence[Any]) -> tuple[str, int]:
        """Replace the first placeholder with the literal of the field mapping ``values[0]``."""
        if len(values) == 0:
            return query, 0
        fields = values[0]
        if not isinstance(fields, dict):
            raise ValueError(f"udt pretty, unknown type {self!r}")
        literal = "{"
        for key, tp in self.value_types.items():
            literal += f"{key}:?,"
            literal, _ = tp.cql_pretty(literal, [fields.get(key)])
        literal = literal.removesuffix(",") + "}"
        return query.replace("?", literal, 1), 1

    def indexable(self) -> bool:
        return all(tp != TYPE_DURATION for tp in self.value_types.values())

    def gen_json_value(self, rnd: random.Random, config: PartitionRangeConfig) -> dict:
        return {key: tp.gen_json_value(rnd, config) for key, tp in self.value_types.items()}

    def gen_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        return [{key: tp.gen_value(rnd, config)[0] for key, tp in self.value_types.items()}]

    def len_value(self) -> int:
        return 1

    def value_variations_number(self, config: PartitionRangeConfig) -> float:
        out = 1.0
        for tp in self.value_types.values():
            out *= tp.value_variations_number(config)
        return out

    def to_json(self) -> dict:
        return {
            "complex_type": self.complex_type,
            "value_types": {key: str(self.value_types[key]) for key in sorted(self.value_types)},
            "type_name": self.type_name,
            "frozen": self.frozen,
        }