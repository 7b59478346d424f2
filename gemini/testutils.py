"""Helpers for building test tables from case names and for readable diffs."""

from __future__ import annotations

from itertools import zip_longest
from typing import Callable, Optional

from gemini.columns import ColumnDef, Columns
from gemini.complextypes import CounterType, MapType, TupleType
from gemini.schema import IndexDef, MaterializedView, Table
from gemini.simpletypes import (
    TYPE_ASCII,
    TYPE_BIGINT,
    TYPE_BLOB,
    TYPE_BOOLEAN,
    TYPE_DATE,
    TYPE_DECIMAL,
    TYPE_DOUBLE,
    TYPE_DURATION,
    TYPE_FLOAT,
    TYPE_INET,
    TYPE_INT,
    TYPE_SMALLINT,
    TYPE_TEXT,
    TYPE_TIME,
    TYPE_TIMESTAMP,
    TYPE_TIMEUUID,
    TYPE_TINYINT,
    TYPE_UUID,
    TYPE_VARCHAR,
    TYPE_VARINT,
)

_COUNTER_TYPE = CounterType()
_TUPLE_TYPE = TupleType(complex_type="")
_MAP_TYPE = MapType("", "", complex_type="")

_ALL_KEY_TYPES = [
    TYPE_ASCII, TYPE_BIGINT, TYPE_BLOB, TYPE_BOOLEAN, TYPE_DATE,
    TYPE_DECIMAL, TYPE_DOUBLE, TYPE_FLOAT,
    TYPE_INET, TYPE_INT, TYPE_SMALLINT, TYPE_TEXT, TYPE_TIMESTAMP,
    TYPE_TIMEUUID, TYPE_TINYINT, TYPE_UUID, TYPE_VARCHAR, TYPE_VARINT, TYPE_TIME,
]

PARTITION_KEYS_CASES = {
    "pk1": [TYPE_BIGINT],
    "pk3": [TYPE_BIGINT, TYPE_FLOAT, TYPE_INET],
    "pkAll": _ALL_KEY_TYPES,
}

CLUSTERING_KEYS_CASES = {
    "ck0": [],
    "ck1": [TYPE_DATE],
    "ck3": [TYPE_ASCII, TYPE_DATE, TYPE_DECIMAL],
    "ckAll": _ALL_KEY_TYPES,
}

COLUMNS_CASES = {
    "col0": [],
    "col1": [TYPE_DATE],
    "col5": [TYPE_ASCII, TYPE_DATE, TYPE_BLOB, TYPE_BIGINT, TYPE_FLOAT],
    "col5c": [TYPE_ASCII, _MAP_TYPE, TYPE_BLOB, _TUPLE_TYPE, TYPE_FLOAT],
    "col1cr": [_COUNTER_TYPE],
    "col3cr": [_COUNTER_TYPE, _COUNTER_TYPE, _COUNTER_TYPE],
    "colAll": [TYPE_DURATION, *_ALL_KEY_TYPES],
}

_SEPARATOR = "-------------------------------------------"


class CaseOptions(list):
    """Options attached to a case name after its dots."""

    def get_bool(self, name: str) -> bool:
        return name in self

    def get_string(self, name: str) -> str:
        """Return the first option starting with ``name``, or an empty string."""
        return next((option for option in self if option.startswith(name)), "")

    def handle_option(self, name: str, handler: Callable[[str], None]) -> None:
        """Call ``handler`` with every option starting with ``name``."""
        for option in self:
            if option.startswith(name):
                handler(option)


def split_case_name(case_name: str) -> tuple[str, CaseOptions]:
    """Split ``table.opt1.opt2`` into the table part and its options."""
    head, *options = case_name.split(".")
    return head, CaseOptions(options)


def get_table_case_name_from_case_name(case_name: str) -> str:
    return split_case_name(case_name)[0]


def get_options_from_case_name(case_name: str) -> CaseOptions:
    return split_case_name(case_name)[1]


def _columns_from_case(type_cases: dict, case_name: str, prefix: str) -> Columns:
    if case_name not in type_cases:
        raise ValueError(f"Error caseName:{case_name}, not found")
    return Columns(ColumnDef(f"{prefix}{idx}", typ) for idx, typ in enumerate(type_cases[case_name]))


def _indexes_for(columns: list[ColumnDef]) -> list[IndexDef]:
    if not columns:
        raise ValueError("wrong IdxCount case definition")
    return [IndexDef(f"{col.name}_idx", col.name, col) for col in columns]


def _create_mv(table: Table, have_non_primary_key: bool) -> MaterializedView:
    name = f"{table.name}_mv_1"
    if not have_non_primary_key:
        return MaterializedView(name, table.partition_keys, table.clustering_keys)
    valid = table.columns.valid_columns_for_primary_key()
    if not valid:
        raise ValueError("no valid columns for mv primary key")
    return MaterializedView(
        name,
        Columns([valid[0], *table.partition_keys]),
        table.clustering_keys,
        valid[0],
    )


def get_table_from_name(case_name: str) -> Table:
    """Build a table described by a case name such as ``pk3_ck1_col5_idx1_mv``."""
    table = Table(name=case_name)
    for chunk in get_table_case_name_from_case_name(case_name).split("_"):
        if chunk.startswith("pk"):
            table.partition_keys = _columns_from_case(PARTITION_KEYS_CASES, chunk, "pk")
        elif chunk.startswith("ck"):
            table.clustering_keys = _columns_from_case(CLUSTERING_KEYS_CASES, chunk, "ck")
        elif chunk.startswith("col"):
            table.columns = _columns_from_case(COLUMNS_CASES, chunk, "col")
        elif chunk == "idx1":
            table.indexes = _indexes_for(table.columns[:1])
        elif chunk == "idxAll":
            table.indexes = _indexes_for(list(table.columns))
        elif chunk == "mv":
            table.materialized_views.append(_create_mv(table, False))
        elif chunk == "mvNp":
            table.materialized_views.append(_create_mv(table, True))
    return table


def append_if_not_empty(items: list[str], value: str) -> list[str]:
    """Return ``items`` with ``value`` appended unless it is empty."""
    if value == "":
        return items
    return [*items, value]


def _diff_highlight(expected: str, received: str) -> str:
    marks = (" " if exp == rec else "↕" for exp, rec in zip_longest(expected, received[: len(expected)]))
    return "Difference " + "".join(marks)


def _add_diff_highlight(expected: list[str], received: list[str], sub: str) -> tuple[str, str]:
    padded_expected, padded_received = [], []
    for exp, rec in zip(expected, received):
        delta = len(exp) - len(rec)
        if delta > 0:
            rec += "↔" * delta
        elif delta < 0:
            exp += "↔" * -delta
        padded_expected.append(exp)
        padded_received.append(rec)
    return sub.join(padded_expected), sub.join(padded_received)


def get_error_msg_if_different(expected: str, received: str, err_msg: str) -> str:
    """Return an empty string if equal, else a message that points at the differences."""
    if expected == received:
        return ""
    sub: Optional[str] = " "
    if expected.count(',"') > expected.count(sub):
        sub = ',"'
    expected_parts = expected.split(sub)
    received_parts = received.split(sub)
    if len(expected_parts) == len(received_parts):
        expected, received = _add_diff_highlight(expected_parts, received_parts, sub)
        lines = [
            err_msg,
            f"Expected   {expected}",
            _diff_highlight(expected, received),
            f"Received   {received}",
            _SEPARATOR,
        ]
    else:
        lines = [err_msg, f"Expected   {expected}", f"Received   {received}", _SEPARATOR]
    return "\n".join(lines)