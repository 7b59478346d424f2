"""Simple CQL column types, their value generators and pretty printers."""

from __future__ import annotations

import ipaddress
import math
import random
import struct
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import IntEnum
from typing import Any, Iterable, Sequence

from gemini.utils import (
    rand_date_str,
    rand_ipv4_address,
    rand_string,
    rand_time,
    rand_timestamp,
    uuid_from_time,
)

TYPE_UDT = "udt"
TYPE_MAP = "map"
TYPE_LIST = "list"
TYPE_SET = "set"
TYPE_TUPLE = "tuple"

MAX_MAP_SIZE = 10
MAX_BAG_SIZE = 10

_MASK64 = (1 << 64) - 1
_NANOS_PER_SECOND = 1_000_000_000


class CQLType(IntEnum):
    """Native protocol type codes."""

    ASCII = 0x0001
    BIGINT = 0x0002
    BLOB = 0x0003
    BOOLEAN = 0x0004
    COUNTER = 0x0005
    DECIMAL = 0x0006
    DOUBLE = 0x0007
    FLOAT = 0x0008
    INT = 0x0009
    TEXT = 0x000A
    TIMESTAMP = 0x000B
    UUID = 0x000C
    VARCHAR = 0x000D
    VARINT = 0x000E
    TIMEUUID = 0x000F
    INET = 0x0010
    DATE = 0x0011
    TIME = 0x0012
    SMALLINT = 0x0013
    TINYINT = 0x0014
    DURATION = 0x0015
    LIST = 0x0020
    MAP = 0x0021
    SET = 0x0022
    UDT = 0x0030
    TUPLE = 0x0031


@dataclass
class PartitionRangeConfig:
    """Length limits for generated strings and blobs."""

    max_blob_length: int = 0
    min_blob_length: int = 0
    max_string_length: int = 0
    min_string_length: int = 0
    use_lwt: bool = False


def _pow2(exponent: int) -> float:
    try:
        return 2.0**exponent
    except OverflowError:
        return math.inf


def _split_fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    frac_text = f"{frac:0{precision}d}".rstrip("0")
    return f"{whole}.{frac_text}" if frac_text else str(whole)


def _format_duration(delta: timedelta) -> str:
    nanos = (delta.days * 86_400 + delta.seconds) * _NANOS_PER_SECOND + delta.microseconds * 1000
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos < 1000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_split_fraction(nanos, 3)}µs"
    if nanos < _NANOS_PER_SECOND:
        return f"{sign}{_split_fraction(nanos, 6)}ms"
    hours, rest = divmod(nanos, 3600 * _NANOS_PER_SECOND)
    minutes, rest = divmod(rest, 60 * _NANOS_PER_SECOND)
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return out + _split_fraction(rest, 9) + "s"


def _format_rfc3339(moment: datetime) -> str:
    base = moment.strftime("%Y-%m-%dT%H:%M:%S")
    offset = moment.utcoffset()
    if offset is None or offset == timedelta(0):
        return base + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{base}{sign}{hours:02d}:{minutes:02d}"


def _format_int(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return str(value)


def _format_float(value: Any) -> str:
    if isinstance(value, Decimal):
        return str(value)
    return f"{float(value):.2f}"


def _to_int64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value >= 1 << 63 else value


def _to_signed(value: int, bits: int) -> int:
    return value - (1 << bits) if value >= 1 << (bits - 1) else value


def _format_duration_minutes(minutes: int) -> str:
    return _format_duration(timedelta(minutes=minutes))


def _format_time_of_day(nanos: int) -> str:
    seconds, frac = divmod(nanos, _NANOS_PER_SECOND)
    moment = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds)
    return f"{moment:%H:%M:%S}.{frac:09d}"


class SimpleType(str):
    """A CQL native type, identified by its name."""

    __slots__ = ()

    def name(self) -> str:
        return str.__str__(self)

    def cql_def(self) -> str:
        return str.__str__(self)

    def cql_holder(self) -> str:
        return "?"

    def len_value(self) -> int:
        return 1

    def cql_pretty(self, query: str, values: Sequence[Any]) -> tuple[str, int]:
        """Replace the first placeholder in ``query`` with the first value."""
        if len(values) == 0:
            return query, 0
        value = values[0]
        replacement = ""
        if self in (TYPE_ASCII, TYPE_TEXT, TYPE_VARCHAR, TYPE_INET, TYPE_DATE):
            replacement = f"'{value}'"
        elif self == TYPE_BLOB:
            if isinstance(value, str):
                replacement = "textasblob('" + value[:100] + "')"
        elif self in (TYPE_BIGINT, TYPE_INT, TYPE_SMALLINT, TYPE_TINYINT):
            replacement = _format_int(value)
        elif self in (TYPE_DECIMAL, TYPE_DOUBLE, TYPE_FLOAT):
            replacement = _format_float(value)
        elif self == TYPE_BOOLEAN:
            if isinstance(value, bool):
                replacement = "true" if value else "false"
        elif self in (TYPE_TIME, TYPE_TIMESTAMP):
            if isinstance(value, datetime):
                replacement = "'" + _format_rfc3339(value) + "'"
        elif self in (TYPE_DURATION, TYPE_TIMEUUID, TYPE_UUID):
            replacement = _format_duration(value) if isinstance(value, timedelta) else str(value)
        elif self == TYPE_VARINT:
            if isinstance(value, int) and not isinstance(value, bool):
                replacement = str(_to_int64(value))
        else:
            raise ValueError(f"cql pretty: not supported type {self.name()}")
        return query.replace("?", replacement, 1), 1

    def cql_type(self) -> CQLType:
        try:
            return _CQL_TYPES[self]
        except KeyError:
            raise ValueError(f"gocql type not supported {self.name()}") from None

    def indexable(self) -> bool:
        return self != TYPE_DURATION

    def gen_json_value(self, rnd: random.Random, config: PartitionRangeConfig) -> Any:
        """Generate a value in the form accepted by INSERT JSON."""
        if self == TYPE_BLOB:
            length = rnd.randrange(config.max_blob_length) + config.min_blob_length
            return "0x" + rand_string(rnd, length).encode().hex()
        if self == TYPE_TIME:
            return _format_time_of_day(rand_time(rnd))
        return self._gen_value(rnd, config)

    def gen_value(self, rnd: random.Random, config: PartitionRangeConfig) -> list[Any]:
        """Generate one bound value for this type."""
        return [self._gen_value(rnd, config)]

    def _gen_value(self, rnd: random.Random, config: PartitionRangeConfig) -> Any:
        if self in (TYPE_ASCII, TYPE_TEXT, TYPE_VARCHAR):
            length = rnd.randrange(config.max_string_length) + config.min_string_length
            return rand_string(rnd, length)
        if self == TYPE_BLOB:
            length = rnd.randrange(config.max_blob_length) + config.min_blob_length
            return rand_string(rnd, length).encode().hex()
        if self == TYPE_BIGINT:
            return rnd.getrandbits(63)
        if self == TYPE_BOOLEAN:
            return rnd.getrandbits(63) % 2 == 0
        if self == TYPE_DATE:
            return rand_date_str(rnd)
        if self == TYPE_TIME:
            return rand_time(rnd)
        if self == TYPE_TIMESTAMP:
            return rand_timestamp(rnd)
        if self == TYPE_DECIMAL:
            return Decimal(rnd.getrandbits(63)).scaleb(-3)
        if self == TYPE_DOUBLE:
            return rnd.random()
        if self == TYPE_DURATION:
            return _format_duration_minutes(rnd.randrange(100))
        if self == TYPE_FLOAT:
            return struct.unpack("f", struct.pack("f", rnd.random()))[0]
        if self == TYPE_INET:
            block = rnd.randrange(255)
            return str(ipaddress.ip_address(rand_ipv4_address(rnd, block, 2)))
        if self == TYPE_INT:
            return rnd.getrandbits(31)
        if self == TYPE_SMALLINT:
            return _to_signed(rnd.randrange(65536), 16)
        if self in (TYPE_TIMEUUID, TYPE_UUID):
            return uuid_from_time(rnd)
        if self == TYPE_TINYINT:
            return _to_signed(rnd.randrange(256), 8)
        if self == TYPE_VARINT:
            return rnd.getrandbits(63)
        raise ValueError(f"generate value: not supported type {self.name()}")

    def value_variations_number(self, config: PartitionRangeConfig) -> float:
        """Return how many distinct values the generator can produce."""
        if self in (TYPE_ASCII, TYPE_TEXT, TYPE_VARCHAR):
            return _pow2(config.max_string_length)
        if self == TYPE_BLOB:
            return _pow2(config.max_blob_length)
        try:
            return _VARIATIONS[self]
        except KeyError:
            raise ValueError(f"generate value: not supported type {self.name()}") from None


TYPE_ASCII = SimpleType("ascii")
TYPE_BIGINT = SimpleType("bigint")
TYPE_BLOB = SimpleType("blob")
TYPE_BOOLEAN = SimpleType("boolean")
TYPE_DATE = SimpleType("date")
TYPE_DECIMAL = SimpleType("decimal")
TYPE_DOUBLE = SimpleType("double")
TYPE_DURATION = SimpleType("duration")
TYPE_FLOAT = SimpleType("float")
TYPE_INET = SimpleType("inet")
TYPE_INT = SimpleType("int")
TYPE_SMALLINT = SimpleType("smallint")
TYPE_TEXT = SimpleType("text")
TYPE_TIME = SimpleType("time")
TYPE_TIMESTAMP = SimpleType("timestamp")
TYPE_TIMEUUID = SimpleType("timeuuid")
TYPE_TINYINT = SimpleType("tinyint")
TYPE_UUID = SimpleType("uuid")
TYPE_VARCHAR = SimpleType("varchar")
TYPE_VARINT = SimpleType("varint")

_CQL_TYPES = {
    TYPE_ASCII: CQLType.ASCII,
    TYPE_TEXT: CQLType.TEXT,
    TYPE_VARCHAR: CQLType.VARCHAR,
    TYPE_BLOB: CQLType.BLOB,
    TYPE_BIGINT: CQLType.BIGINT,
    TYPE_BOOLEAN: CQLType.BOOLEAN,
    TYPE_DATE: CQLType.DATE,
    TYPE_TIME: CQLType.TIME,
    TYPE_TIMESTAMP: CQLType.TIMESTAMP,
    TYPE_DECIMAL: CQLType.DECIMAL,
    TYPE_DOUBLE: CQLType.DOUBLE,
    TYPE_DURATION: CQLType.DURATION,
    TYPE_FLOAT: CQLType.FLOAT,
    TYPE_INET: CQLType.INET,
    TYPE_INT: CQLType.INT,
    TYPE_SMALLINT: CQLType.SMALLINT,
    TYPE_TIMEUUID: CQLType.TIMEUUID,
    TYPE_UUID: CQLType.UUID,
    TYPE_TINYINT: CQLType.TINYINT,
    TYPE_VARINT: CQLType.VARINT,
}

# The counts for fixed-width types combine 2 with the bit width by XOR,
# which keeps their estimates deliberately small.
_VARIATIONS = {
    TYPE_BIGINT: float(2 ^ 64),
    TYPE_BOOLEAN: 2.0,
    TYPE_DATE: float(10000 * 365 + 2000 * 4),
    TYPE_TIME: 86400000000000.0,
    TYPE_TIMESTAMP: float(2 ^ 64),
    TYPE_DECIMAL: float(2 ^ 64),
    TYPE_DOUBLE: float(2 ^ 64),
    TYPE_DURATION: float(2 ^ 64),
    TYPE_FLOAT: float(2 ^ 64),
    TYPE_INET: float(2 ^ 32),
    TYPE_INT: float(2 ^ 32),
    TYPE_SMALLINT: float(2 ^ 16),
    TYPE_TIMEUUID: float(2 ^ 64),
    TYPE_UUID: float(2 ^ 64),
    TYPE_TINYINT: float(2 ^ 8),
    TYPE_VARINT: float(2 ^ 64),
}


class SimpleTypes(list):
    """A list of simple types."""

    def contains(self, col_type: Any) -> bool:
        """Tell whether ``col_type`` is a simple type present in the list."""
        if not isinstance(col_type, SimpleType):
            return False
        return col_type in self

    def random(self, rnd: random.Random) -> SimpleType:
        return self[rnd.randrange(len(self))]


TYPES_MAP_KEY_BLACKLIST = frozenset({TYPE_BLOB, TYPE_DURATION})
TYPES_FOR_INDEX = SimpleTypes(
    [TYPE_DECIMAL, TYPE_DOUBLE, TYPE_FLOAT, TYPE_INT, TYPE_SMALLINT, TYPE_TINYINT, TYPE_VARINT]
)
PARTITION_KEY_TYPES = SimpleTypes(
    [
        TYPE_ASCII, TYPE_BIGINT, TYPE_DATE, TYPE_DECIMAL, TYPE_DOUBLE,
        TYPE_FLOAT, TYPE_INET, TYPE_INT, TYPE_SMALLINT, TYPE_TEXT, TYPE_TIME, TYPE_TIMESTAMP, TYPE_TIMEUUID,
        TYPE_TINYINT, TYPE_UUID, TYPE_VARCHAR, TYPE_VARINT, TYPE_BOOLEAN,
    ]
)
PK_TYPES = SimpleTypes(
    [
        TYPE_ASCII, TYPE_BIGINT, TYPE_BLOB, TYPE_DATE, TYPE_DECIMAL, TYPE_DOUBLE,
        TYPE_FLOAT, TYPE_INET, TYPE_INT, TYPE_SMALLINT, TYPE_TEXT, TYPE_TIME, TYPE_TIMESTAMP, TYPE_TIMEUUID,
        TYPE_TINYINT, TYPE_UUID, TYPE_VARCHAR, TYPE_VARINT,
    ]
)
ALL_TYPES = SimpleTypes([*PK_TYPES, TYPE_BOOLEAN, TYPE_DURATION])

COMPATIBLE_COLUMN_TYPES = {
    TYPE_ASCII: SimpleTypes([TYPE_TEXT, TYPE_BLOB]),
    TYPE_BIGINT: SimpleTypes([TYPE_BLOB]),
    TYPE_BOOLEAN: SimpleTypes([TYPE_BLOB]),
    TYPE_DECIMAL: SimpleTypes([TYPE_BLOB]),
    TYPE_FLOAT: SimpleTypes([TYPE_BLOB]),
    TYPE_INET: SimpleTypes([TYPE_BLOB]),
    TYPE_INT: SimpleTypes([TYPE_VARINT, TYPE_BLOB]),
    TYPE_TIMESTAMP: SimpleTypes([TYPE_BLOB]),
    TYPE_TIMEUUID: SimpleTypes([TYPE_UUID, TYPE_BLOB]),
    TYPE_UUID: SimpleTypes([TYPE_BLOB]),
    TYPE_VARCHAR: SimpleTypes([TYPE_TEXT, TYPE_BLOB]),
    TYPE_VARINT: SimpleTypes([TYPE_BLOB]),
}


def types_len_value(types: Iterable[Any]) -> int:
    """Return the number of bound values the types take together."""
    return sum(typ.len_value() for typ in types)


def types_value_variations_number(types: Iterable[Any], config: PartitionRangeConfig) -> float:
    """Return the product of the value variations of the types."""
    out = 1.0
    for typ in types:
        out *= typ.value_variations_number(config)
    return out