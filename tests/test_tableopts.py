import logging

import pytest

from gemini.tableopts import MapOption, SimpleOption, TableOptionError, create_table_options, from_cql

CASES = {
    "map with only strings": (
        "compression = {'sstable_compression':'LZ4Compressor'}",
        "compression = {'sstable_compression':'LZ4Compressor'}",
    ),
    "simple numeric type": ("read_repair_chance = 1.0", "read_repair_chance = 1.0"),
    "simple string type": (
        "comment = 'Important biological records'",
        "comment = 'Important biological records'",
    ),
    "cdc": ("cdc = {'enabled':'true','preimage':'true'}", "cdc = {'enabled':'true','preimage':'true'}"),
    "size tiered compaction strategy": (
        "compaction = {'bucket_high':1.5,'bucket_low':0.5,'class':'SizeTieredCompactionStrategy','enabled':true,"
        "'max_threshold':32,'min_sstable_size':50,'min_threshold':4,'tombstone_compaction_interval':86400,"
        "'tombstone_threshold':0.2}",
        "compaction = {'bucket_high':1.5,'bucket_low':0.5,'class':'SizeTieredCompactionStrategy','enabled':true,"
        "'max_threshold':32,'min_sstable_size':50,'min_threshold':4,'tombstone_compaction_interval':86400,"
        "'tombstone_threshold':0.2}",
    ),
    "size leveled compaction strategy": (
        "compaction = {'class':'LeveledCompactionStrategy','enabled':true,'sstable_size_in_mb':160,"
        "'tombstone_compaction_interval':86400,'tombstone_threshold':0.2}",
        "compaction = {'class':'LeveledCompactionStrategy','enabled':true,'sstable_size_in_mb':160,"
        "'tombstone_compaction_interval':86400,'tombstone_threshold':0.2}",
    ),
    "size time window compaction strategy": (
        "compaction = {'class':'TimeWindowCompactionStrategy','compaction_window_size':1,"
        "'compaction_window_unit':'DAYS','enabled':true,'max_threshold':32,'min_threshold':4,"
        "'tombstone_compaction_interval':86400,'tombstone_threshold':0.2}",
        "compaction = {'class':'TimeWindowCompactionStrategy','compaction_window_size':1,"
        "'compaction_window_unit':'DAYS','enabled':true,'max_threshold':32,'min_threshold':4,"
        "'tombstone_compaction_interval':86400,'tombstone_threshold':0.2}",
    ),
}


@pytest.mark.parametrize("source,want", list(CASES.values()), ids=list(CASES))
def test_to_cql(source, want):
    assert from_cql(source).to_cql() == want


def test_simple_option_fields():
    option = from_cql("  comment =  'x'  ")
    assert option == SimpleOption("comment", "'x'")


def test_map_option_fields():
    option = from_cql("cdc = {'enabled':'true'}")
    assert option == MapOption("cdc", {"enabled": "true"})


def test_integral_float_rendered_as_integer():
    assert from_cql("x = {'a':1.0}").to_cql() == "x = {'a':1}"


@pytest.mark.parametrize("text", ["no_equals", "a = b = c", "x = {bad"])
def test_from_cql_invalid(text):
    with pytest.raises(TableOptionError):
        from_cql(text)


def test_create_table_options_skips_invalid(caplog):
    logger = logging.getLogger("test.tableopts")
    with caplog.at_level(logging.WARNING, logger="test.tableopts"):
        options = create_table_options(["a = 1", "broken", "b = {'k':'v'}"], logger)
    assert [o.to_cql() for o in options] == ["a = 1", "b = {'k':'v'}"]
    assert any("broken" in message for message in caplog.messages)


def test_create_table_options_without_logger():
    options = create_table_options(["bad option", "c = 2"], None)
    assert options == [SimpleOption("c", "2")]