import json
import random

import pytest

from gemini.columns import (
    ColumnDef,
    Columns,
    SchemaValidationError,
    get_map_type_column,
    get_simple_type_column,
    get_tuple_type_column,
    get_udt_type_column,
)
from gemini.complextypes import BagType, CounterType, MapType, TupleType, UDTType
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
    TYPE_LIST,
    TYPE_SET,
    TYPE_SMALLINT,
    TYPE_TEXT,
    TYPE_TIME,
    TYPE_TIMESTAMP,
    TYPE_TIMEUUID,
    TYPE_TINYINT,
    TYPE_UUID,
    TYPE_VARCHAR,
    TYPE_VARINT,
    PartitionRangeConfig,
)

ALL_SIMPLE = [
    TYPE_ASCII, TYPE_BIGINT, TYPE_BLOB, TYPE_BOOLEAN, TYPE_DATE, TYPE_DECIMAL, TYPE_DOUBLE,
    TYPE_DURATION, TYPE_FLOAT, TYPE_INET, TYPE_INT, TYPE_SMALLINT, TYPE_TEXT, TYPE_TIME,
    TYPE_TIMESTAMP, TYPE_TIMEUUID, TYPE_TINYINT, TYPE_UUID, TYPE_VARCHAR, TYPE_VARINT,
]


def _dump(col):
    return json.dumps(col.to_json(), separators=(",", ":"))


@pytest.mark.parametrize("simple", ALL_SIMPLE)
def test_simple_column_marshal_unmarshal(simple):
    col = ColumnDef(simple.name(), simple)
    text = _dump(col)
    assert text == f'{{"type":"{simple.name()}","name":"{simple.name()}"}}'
    assert ColumnDef.from_json(text) == col


def test_udt_column_marshal_unmarshal():
    col = ColumnDef("udt1", UDTType({"col_" + t.name(): t for t in ALL_SIMPLE}, "udt1"))
    expected = (
        '{"type":{"complex_type":"udt","value_types":{"col_ascii":"ascii","col_bigint":"bigint",'
        '"col_blob":"blob","col_boolean":"boolean","col_date":"date","col_decimal":"decimal",'
        '"col_double":"double","col_duration":"duration","col_float":"float","col_inet":"inet",'
        '"col_int":"int","col_smallint":"smallint","col_text":"text","col_time":"time",'
        '"col_timestamp":"timestamp","col_timeuuid":"timeuuid","col_tinyint":"tinyint",'
        '"col_uuid":"uuid","col_varchar":"varchar","col_varint":"varint"},"type_name":"udt1",'
        '"frozen":false},"name":"udt1"}'
    )
    assert _dump(col) == expected
    assert ColumnDef.from_json(expected) == col


@pytest.mark.parametrize(
    "col",
    [
        ColumnDef("m", MapType(TYPE_INET, TYPE_TIME, frozen=True)),
        ColumnDef("l", BagType(TYPE_LIST, TYPE_UUID, frozen=True)),
        ColumnDef("s", BagType(TYPE_SET, TYPE_TIMESTAMP)),
        ColumnDef("t", TupleType([TYPE_FLOAT, TYPE_DATE, TYPE_VARCHAR])),
    ],
)
def test_complex_round_trip(col):
    assert ColumnDef.from_json(_dump(col)) == col


def test_primitives():
    cols = Columns(
        [
            ColumnDef("pk_mv_0", BagType(TYPE_LIST, TYPE_INT)),
            ColumnDef("pk_mv_1", TupleType([TYPE_INT, TYPE_TEXT])),
            ColumnDef("ct_1", CounterType()),
        ]
    )
    assert len(cols) == 3
    assert ",".join(cols.names()) == "pk_mv_0,pk_mv_1,ct_1"
    assert ",".join(cols.non_counters().names()) == "pk_mv_0,pk_mv_1"
    cols = cols.remove(cols[2])
    assert ",".join(cols.names()) == "pk_mv_0,pk_mv_1"
    cols = cols.remove(cols[0])
    assert cols.names() == ["pk_mv_1"]
    cols = cols.remove(cols[0])
    assert len(cols) == 0 and cols.names() == []


def test_len_values_and_primary_key_validity():
    cols = Columns(
        [
            ColumnDef("a", TYPE_INT),
            ColumnDef("b", TupleType([TYPE_INT, TYPE_TEXT])),
            ColumnDef("c", TYPE_BOOLEAN),
        ]
    )
    assert cols.len_values() == 4
    assert cols.valid_columns_for_primary_key().names() == ["a"]


def test_value_variations_number():
    cols = Columns([ColumnDef("a", TYPE_BOOLEAN), ColumnDef("b", TYPE_BOOLEAN)])
    assert cols.value_variations_number(PartitionRangeConfig()) == 4.0


def test_to_json_map_and_random():
    cols = Columns([ColumnDef("a", TYPE_INT), ColumnDef("b", TYPE_BOOLEAN)])
    out = cols.to_json_map({}, random.Random(1), PartitionRangeConfig())
    assert set(out) == {"a", "b"}
    assert isinstance(out["b"], bool)
    assert cols.random(random.Random(3)) in cols


def test_missing_type_raises():
    with pytest.raises(SchemaValidationError):
        ColumnDef.from_json('{"name":"x"}')


def test_unknown_simple_type_raises():
    with pytest.raises(SchemaValidationError):
        get_simple_type_column({"name": "x", "type": "nosuchtype"})
    with pytest.raises(SchemaValidationError):
        ColumnDef.from_json('{"name":"x","type":"nosuchtype"}')


def test_unknown_complex_type_raises():
    with pytest.raises(SchemaValidationError):
        ColumnDef.from_json('{"name":"x","type":{"complex_type":"weird"}}')


def test_missing_complex_type_raises():
    with pytest.raises(SchemaValidationError):
        ColumnDef.from_json('{"name":"x","type":{"frozen":true}}')


def test_incomplete_complex_definitions_raise():
    with pytest.raises(SchemaValidationError):
        get_map_type_column({"name": "m", "type": {"complex_type": "map", "frozen": False}})
    with pytest.raises(SchemaValidationError):
        get_tuple_type_column({"name": "t", "type": {"complex_type": "tuple"}})
    with pytest.raises(SchemaValidationError):
        get_udt_type_column({"name": "u", "type": {"complex_type": "udt", "value_types": {}}})