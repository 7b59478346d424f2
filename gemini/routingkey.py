"""Routing keys: the serialized partition key used to pick replicas."""

from __future__ import annotations

import ipaddress
import struct
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Sequence

from gemini.simpletypes import CQLType

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_EPOCH_DATE = date(1970, 1, 1)
_MS_PER_DAY = 86_400_000


def _as_int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"can not marshal bool into {what}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"can not marshal {value!r} into {what}") from None
    raise ValueError(f"can not marshal {type(value).__name__} into {what}")


def _pack_int(value: Any, fmt: str, bits: int, what: str) -> bytes:
    number = _as_int(value, what)
    if not -(1 << (bits - 1)) <= number < (1 << (bits - 1)):
        raise ValueError(f"marshal {what}: value {number} out of range")
    return struct.pack(fmt, number)


def _varint(number: int) -> bytes:
    length = (number + (number < 0)).bit_length() // 8 + 1
    return number.to_bytes(length, "big", signed=True)


def _text(value: Any, what: str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise ValueError(f"can not marshal {type(value).__name__} into {what}")


def _decimal(value: Any) -> bytes:
    if not isinstance(value, Decimal):
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            value = Decimal(value)
        else:
            raise ValueError(f"can not marshal {type(value).__name__} into decimal")
    sign, digits, exponent = value.as_tuple()
    if not isinstance(exponent, int):
        raise ValueError(f"can not marshal {value} into decimal")
    unscaled = int("".join(map(str, digits)) or "0")
    if sign:
        unscaled = -unscaled
    return struct.pack(">i", -exponent) + _varint(unscaled)


def _uuid(value: Any) -> bytes:
    if isinstance(value, uuid.UUID):
        return value.bytes
    if isinstance(value, str):
        return uuid.UUID(value).bytes
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return bytes(value)
    raise ValueError(f"can not marshal {value!r} into uuid")


def _inet(value: Any) -> bytes:
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value.packed
    if isinstance(value, str):
        return ipaddress.ip_address(value).packed
    raise ValueError(f"can not marshal {value!r} into inet")


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def _date(value: Any) -> bytes:
    if isinstance(value, datetime):
        days = (_aware(value) - _EPOCH) // timedelta(days=1)
    elif isinstance(value, date):
        days = (value - _EPOCH_DATE).days
    elif isinstance(value, str):
        days = (date.fromisoformat(value) - _EPOCH_DATE).days
    elif isinstance(value, int) and not isinstance(value, bool):
        days = value // _MS_PER_DAY
    else:
        raise ValueError(f"can not marshal {value!r} into date")
    return struct.pack(">I", (days + (1 << 31)) & 0xFFFFFFFF)


def _timestamp(value: Any) -> bytes:
    if isinstance(value, datetime):
        value = (_aware(value) - _EPOCH) // timedelta(milliseconds=1)
    return _pack_int(value, ">q", 64, "timestamp")


def _time(value: Any) -> bytes:
    if isinstance(value, timedelta):
        value = value // timedelta(microseconds=1) * 1000
    return _pack_int(value, ">q", 64, "time")


def _boolean(value: Any) -> bytes:
    if not isinstance(value, bool):
        raise ValueError(f"can not marshal {value!r} into boolean")
    return b"\x01" if value else b"\x00"


def _float(value: Any, fmt: str, what: str) -> bytes:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"can not marshal {value!r} into {what}")
    return struct.pack(fmt, float(value))


_MARSHALLERS = {
    CQLType.ASCII: lambda v: _text(v, "ascii"),
    CQLType.TEXT: lambda v: _text(v, "text"),
    CQLType.VARCHAR: lambda v: _text(v, "varchar"),
    CQLType.BLOB: lambda v: _text(v, "blob"),
    CQLType.BIGINT: lambda v: _pack_int(v, ">q", 64, "bigint"),
    CQLType.COUNTER: lambda v: _pack_int(v, ">q", 64, "counter"),
    CQLType.INT: lambda v: _pack_int(v, ">i", 32, "int"),
    CQLType.SMALLINT: lambda v: _pack_int(v, ">h", 16, "smallint"),
    CQLType.TINYINT: lambda v: _pack_int(v, ">b", 8, "tinyint"),
    CQLType.VARINT: lambda v: _varint(_as_int(v, "varint")),
    CQLType.BOOLEAN: _boolean,
    CQLType.FLOAT: lambda v: _float(v, ">f", "float"),
    CQLType.DOUBLE: lambda v: _float(v, ">d", "double"),
    CQLType.DECIMAL: _decimal,
    CQLType.UUID: _uuid,
    CQLType.TIMEUUID: _uuid,
    CQLType.INET: _inet,
    CQLType.DATE: _date,
    CQLType.TIMESTAMP: _timestamp,
    CQLType.TIME: _time,
}


def marshal(cql_type: CQLType, value: Any) -> bytes:
    """Serialize ``value`` as the native protocol does for ``cql_type``."""
    if value is None:
        return b""
    try:
        encoder = _MARSHALLERS[CQLType(cql_type)]
    except (KeyError, ValueError):
        raise ValueError(f"can not marshal value into type {cql_type!r}") from None
    return encoder(value)


class RoutingKeyCreator:
    """Builds routing keys for tables with single or composite partition keys."""

    def create_routing_key(self, table: Any, values: Sequence[Any]) -> bytes:
        partition_keys = table.partition_keys
        if len(partition_keys) == 1:
            return marshal(partition_keys[0].type.cql_type(), values[0])
        out = bytearray()
        for column, value in zip(partition_keys, values):
            encoded = marshal(column.type.cql_type(), value)
            out += struct.pack(">H", len(encoded) & 0xFFFF)
            out += encoded
            out.append(0)
        return bytes(out)