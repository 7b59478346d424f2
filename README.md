# gemini

Building blocks for differential testing of CQL databases: a test cluster
and an oracle cluster receive the same mutations, and reads from both are
compared row by row.

The package has no dependencies outside the standard library.

## Modules

- `gemini.simpletypes` — the native CQL types as `SimpleType` values
  (`TYPE_ASCII`, `TYPE_INT`, `TYPE_UUID`, …), `SimpleTypes` lists,
  `PartitionRangeConfig` and the protocol type codes `CQLType`. Each type
  knows its CQL definition, generates random values (`gen_value`,
  `gen_json_value`), estimates its number of distinct values and renders a
  bound value into readable CQL (`cql_pretty`).
- `gemini.complextypes` — `MapType`, `BagType` (list or set), `TupleType`,
  `UDTType` and `CounterType`, with the same methods plus `to_json`.
- `gemini.columns` — `ColumnDef` and `Columns`, with JSON reading
  (`ColumnDef.from_json`) that raises `SchemaValidationError`.
- `gemini.schema` — `Keyspace`, `IndexDef`, `MaterializedView`, `Table`,
  `Schema` and `SchemaConfig`, with `to_json` / `from_json` and validation
  (`SchemaConfig.validate`, `Schema.validate`) that raises `SchemaConfigError`
  subclasses.
- `gemini.statements` — `StatementType`, `StatementCacheType`, `CQLFeature`,
  `Values`, `StmtCache`, `Stmt` (with `pretty_cql`) and `Stmts`.
- `gemini.querycache` — `InsertBuilder`, `UpdateBuilder`, `DeleteBuilder`,
  the conditions `eq`, `gt_or_eq`, `lt_or_eq`, and `QueryCache`, which builds
  a table's INSERT, INSERT IF NOT EXISTS, UPDATE and DELETE statements on
  first use and keeps them.
- `gemini.routingkey` — `marshal` (native protocol serialization of a value)
  and `RoutingKeyCreator.create_routing_key`.
- `gemini.store` — `DelegatingStore`, which applies each mutation to a test
  store and an oracle store and checks that reads agree, `NoOpStore`, and the
  helpers `pks` and `row_less`. Failures raise `StoreError`.
- `gemini.stop` — hierarchical stop `Flag`s with soft and hard signals,
  `new_flag`, `get_state_name` and `start_os_signals_transmitter`
  (SIGINT → soft stop, SIGTERM → hard stop).
- `gemini.replication` — `Replication`, `new_simple_strategy`,
  `new_network_topology_strategy`.
- `gemini.tableopts` — `from_cql` and `create_table_options` for table
  options such as `compaction = {...}`; `SimpleOption`, `MapOption`.
- `gemini.utils` — random value helpers (`rand_string`, `rand_date_str`,
  `rand_ipv4_address`, `uuid_from_time`, …) and a reproducible test mode
  (`set_under_test`, `is_under_test`).
- `gemini.realrandom` — `CryptoSource`, `TimeSource` and `default_source`.
- `gemini.testutils` — builds tables from case names such as
  `pk3_ck1_col5_idx1_mv` (`get_table_from_name`), splits case options
  (`split_case_name`, `CaseOptions`) and formats string differences
  (`get_error_msg_if_different`).

## Install

    pip install .

## Examples

Replication strategies:

    from gemini.replication import new_simple_strategy

    new_simple_strategy().to_cql()
    # "{'class':'SimpleStrategy','replication_factor':1}"

Table options:

    from gemini.tableopts import from_cql

    from_cql("compression = {'sstable_compression':'LZ4Compressor'}").to_cql()
    # "compression = {'sstable_compression':'LZ4Compressor'}"

Readable CQL for a bound value:

    from gemini.simpletypes import TYPE_ASCII

    TYPE_ASCII.cql_pretty("SELECT * FROM tbl WHERE pk0=?", ["a"])
    # ("SELECT * FROM tbl WHERE pk0='a'", 1)

Cached statements for a table:

    from gemini.columns import ColumnDef
    from gemini.querycache import QueryCache
    from gemini.schema import Keyspace, Schema, Table
    from gemini.simpletypes import TYPE_INT, TYPE_TEXT
    from gemini.statements import StatementCacheType

    table = Table(
        name="t",
        partition_keys=[ColumnDef("pk0", TYPE_INT)],
        columns=[ColumnDef("col0", TYPE_TEXT)],
    )
    schema = Schema(keyspace=Keyspace(name="ks1"), tables=[table])
    table.init(schema, QueryCache(schema))
    table.get_query_cache(StatementCacheType.INSERT).query.to_cql()
    # ("INSERT INTO ks1.t (pk0,col0) VALUES (?,?) ", ["pk0", "col0"])

Routing keys:

    from gemini.routingkey import RoutingKeyCreator

    RoutingKeyCreator().create_routing_key(table, [1641072984]).hex()
    # "61d0c958"

Stop flags:

    from gemini.stop import new_flag

    parent = new_flag("parent")
    child = parent.create_child("child")
    child.set_soft(True)
    parent.is_soft()  # True

## What the package does not do

- It does not connect to a database. `DelegatingStore` works with any
  objects that provide `mutate(builder, *values)`, `load(builder, values)`,
  `close()` and `name()`; the package supplies none that talk to a cluster,
  only `NoOpStore`.
- It does not generate whole schemas or statement streams, and it has no
  command-line program; it is a library to build such a tool on.

## Tests

    pip install .[test]
    pytest