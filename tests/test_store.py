import pytest

from gemini.columns import ColumnDef, Columns
from gemini.schema import Table
from gemini.simpletypes import TYPE_INT
from gemini.store import DelegatingStore, NoOpStore, StoreError, pks, row_less


class FakeStore:
    def __init__(self, system, rows=None, error=None, close_error=None):
        self.system = system
        self.rows = rows or []
        self.error = error
        self.close_error = close_error
        self.mutations = []
        self.closed = False

    def mutate(self, builder, *values):
        if self.error:
            raise self.error
        self.mutations.append((builder, values))

    def load(self, builder, values):
        if self.error:
            raise self.error
        return [dict(row) for row in self.rows]

    def close(self):
        self.closed = True
        if self.close_error:
            raise self.close_error

    def name(self):
        return self.system


TABLE = Table(
    name="tb0",
    partition_keys=Columns([ColumnDef("pk0", TYPE_INT)]),
    clustering_keys=Columns([ColumnDef("ck0", TYPE_INT)]),
)


def test_noop_store():
    store = NoOpStore()
    assert store.name() == "oracle"
    assert store.load("q", []) is None
    assert store.mutate("q", 1, 2) is None


def test_pks_format():
    rows = [{"pk0": 1, "ck0": 2, "col": 3}, {"pk0": None, "ck0": 4}]
    assert pks(TABLE, rows) == ["pk0=1, \tck0=2", "pk0=<nil>, \tck0=4"]


def test_row_less():
    assert row_less({"pk0": 1}, {"pk0": 2})
    assert not row_less({"pk0": 2}, {"pk0": 1})
    assert row_less({"pk0": "a"}, {"pk0": "b"})
    assert row_less({"pk0": b"a"}, {"pk0": b"b"})
    assert row_less({"pk0": None}, {"pk0": 1})
    with pytest.raises(TypeError):
        row_less({"pk0": 1.5}, {"pk0": 2.5})


def test_mutate_applies_to_both():
    test, oracle = FakeStore("test"), FakeStore("oracle")
    store = DelegatingStore(test, oracle)
    store.mutate("q", 1, 2)
    assert test.mutations == [("q", (1, 2))]
    assert oracle.mutations == [("q", (1, 2))]


def test_mutate_oracle_failure():
    store = DelegatingStore(FakeStore("test"), FakeStore("oracle", error=RuntimeError("boom")))
    with pytest.raises(StoreError, match="oracle store: boom"):
        store.mutate("q", 1)


def test_mutate_test_failure():
    store = DelegatingStore(FakeStore("test", error=RuntimeError("boom")), FakeStore("oracle"))
    with pytest.raises(StoreError, match="test store: boom"):
        store.mutate("q", 1)


def test_create_reports_failing_side():
    store = DelegatingStore(FakeStore("test", error=RuntimeError("bad")), FakeStore("oracle"))
    with pytest.raises(StoreError, match="test failed store creation"):
        store.create("t", "o")


def test_check_equal_rows():
    rows = [{"pk0": 1, "ck0": 1, "v": "a"}]
    store = DelegatingStore(FakeStore("test", rows), FakeStore("oracle", rows))
    assert store.check(TABLE, "q", True, 1) is None


def test_check_without_oracle_skips_validation():
    store = DelegatingStore(FakeStore("test", [{"pk0": 1, "ck0": 1}]))
    assert store.validations is False
    assert store.check(TABLE, "q", True) is None


def test_check_row_count_differs():
    test = FakeStore("test", [{"pk0": 1, "ck0": 1}])
    oracle = FakeStore("oracle", [{"pk0": 1, "ck0": 1}, {"pk0": 2, "ck0": 3}])
    store = DelegatingStore(test, oracle)
    with pytest.raises(StoreError, match="rows count differ"):
        store.check(TABLE, "q", False)
    with pytest.raises(StoreError) as info:
        store.check(TABLE, "q", True)
    assert "test is missing rows: [pk0=2, \tck0=3]" in str(info.value)
    assert "oracle is missing rows: []" in str(info.value)


def test_check_out_of_order_rows():
    first, second = {"pk0": 1, "ck0": 1}, {"pk0": 2, "ck0": 2}
    store = DelegatingStore(FakeStore("test", [first, second]), FakeStore("oracle", [second, first]))
    with pytest.raises(StoreError, match="have difference"):
        store.check(TABLE, "q", False)
    assert store.check(TABLE, "q", True) is None


def test_check_rows_differ():
    store = DelegatingStore(
        FakeStore("test", [{"pk0": 1, "v": "a"}]), FakeStore("oracle", [{"pk0": 1, "v": "b"}])
    )
    with pytest.raises(StoreError, match="rows differ"):
        store.check(TABLE, "q", True)


def test_check_load_failure():
    store = DelegatingStore(FakeStore("test", error=RuntimeError("down")), FakeStore("oracle"))
    with pytest.raises(StoreError, match="from the test store"):
        store.check(TABLE, "q", True)


def test_close_collects_errors():
    test = FakeStore("test", close_error=RuntimeError("t"))
    oracle = FakeStore("oracle", close_error=RuntimeError("o"))
    store = DelegatingStore(test, oracle)
    with pytest.raises(StoreError) as info:
        store.close()
    assert str(info.value) == "t; o"
    assert test.closed and oracle.closed