"""Table options given on the command line as CQL fragments."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Union

_log = logging.getLogger(__name__)

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class TableOptionError(ValueError):
    """Raised when a table option cannot be interpreted."""


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


@dataclass(frozen=True)
class SimpleOption:
    """An option whose value is kept verbatim."""

    key: str
    value: str

    def to_cql(self) -> str:
        return f"{self.key} = {self.value}"


@dataclass(frozen=True)
class MapOption:
    """An option whose value is a map literal."""

    key: str
    value: dict

    def to_cql(self) -> str:
        return f"{self.key} = " + _to_json(self.value).replace('"', "'")


Option = Union[SimpleOption, MapOption]


def from_cql(cql: str) -> Option:
    """Parse ``key = value``; values starting with '{' are read as maps."""
    parts = cql.split("=")
    if len(parts) != 2:
        raise TableOptionError(
            f"invalid table option, exactly two parts separated by '=' is needed, input={cql}"
        )
    key, value = parts[0].strip(), parts[1].strip()
    if not value.startswith("{"):
        return SimpleOption(key, value)
    try:
        parsed = json.loads(value.replace("'", '"'), parse_constant=_reject_constant)
    except ValueError as exc:
        raise TableOptionError(f"unable to interpret table options {cql}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise TableOptionError(f"unable to interpret table options {cql}: not a map")
    return MapOption(key, parsed)


def create_table_options(option_strings: Iterable[str], logger: logging.Logger | None = None) -> list[Option]:
    """Parse each option string, logging and skipping the invalid ones."""
    log = logger if logger is not None else _log
    options: list[Option] = []
    for text in option_strings:
        try:
            options.append(from_cql(text))
        except TableOptionError as exc:
            log.warning("invalid table option %s: %s", text, exc)
    return options