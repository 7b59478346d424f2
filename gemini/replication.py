"""Keyspace replication strategies."""

from __future__ import annotations

import json
from typing import Any

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _normalize_numbers(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, dict):
        return {key: _normalize_numbers(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_normalize_numbers(item) for item in value]
    return value


def _to_json(value: Any) -> str:
    text = json.dumps(_normalize_numbers(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


class Replication(dict):
    """A replication strategy: a mapping of option names to values."""

    def to_cql(self) -> str:
        """Render the strategy as a CQL map literal."""
        return _to_json(self).replace('"', "'")

    @classmethod
    def from_json(cls, data: str | bytes) -> "Replication":
        """Parse a JSON object; numbers become integers."""
        parsed = json.loads(data, parse_constant=_reject_constant)
        if not isinstance(parsed, dict):
            raise ValueError(f"replication must be a JSON object, got {type(parsed).__name__}")
        return cls({key: int(val) if isinstance(val, float) else val for key, val in parsed.items()})


def new_simple_strategy() -> Replication:
    """Return a SimpleStrategy with replication factor 1."""
    return Replication({"class": "SimpleStrategy", "replication_factor": 1})


def new_network_topology_strategy() -> Replication:
    """Return a NetworkTopologyStrategy with one replica in datacenter1."""
    return Replication({"class": "NetworkTopologyStrategy", "datacenter1": 1})