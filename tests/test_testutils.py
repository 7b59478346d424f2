import pytest

from gemini.complextypes import CounterType
from gemini.simpletypes import TYPE_ASCII, TYPE_BIGINT, TYPE_DATE, TYPE_FLOAT, TYPE_INET
from gemini.testutils import (
    CaseOptions,
    append_if_not_empty,
    get_error_msg_if_different,
    get_options_from_case_name,
    get_table_case_name_from_case_name,
    get_table_from_name,
    split_case_name,
)

SEP = "-------------------------------------------"


@pytest.mark.parametrize(
    "text, case_name, options",
    [
        ("pk1_ck0_col0_cpk1", "pk1_ck0_col0_cpk1", []),
        ("pk1_ck0_col0_cpk1.opt1", "pk1_ck0_col0_cpk1", ["opt1"]),
        ("pk1_ck0_col0_cpk1.opt1.opt2", "pk1_ck0_col0_cpk1", ["opt1", "opt2"]),
    ],
)
def test_split_case_name(text, case_name, options):
    name, opts = split_case_name(text)
    assert name == case_name
    assert list(opts) == options
    assert get_table_case_name_from_case_name(text) == case_name
    assert list(get_options_from_case_name(text)) == options


def test_case_options():
    opts = CaseOptions(["lwt", "delete=3", "delete=5"])
    assert opts.get_bool("lwt")
    assert not opts.get_bool("delete")
    assert opts.get_string("delete") == "delete=3"
    assert opts.get_string("missing") == ""
    seen = []
    opts.handle_option("delete", seen.append)
    assert seen == ["delete=3", "delete=5"]


def test_get_table_from_name_keys():
    table = get_table_from_name("pk3_ck1_col5.opt")
    assert table.name == "pk3_ck1_col5.opt"
    assert table.partition_keys.names() == ["pk0", "pk1", "pk2"]
    assert [c.type for c in table.partition_keys] == [TYPE_BIGINT, TYPE_FLOAT, TYPE_INET]
    assert [c.type for c in table.clustering_keys] == [TYPE_DATE]
    assert table.columns.names() == ["col0", "col1", "col2", "col3", "col4"]
    assert table.indexes == []


def test_get_table_from_name_index_and_views():
    table = get_table_from_name("pk1_ck0_col5_idx1_mv_mvNp")
    assert [(i.index_name, i.column_name) for i in table.indexes] == [("col0_idx", "col0")]
    assert table.indexes[0].column is table.columns[0]
    plain, with_npk = table.materialized_views
    assert plain.name == "pk1_ck0_col5_idx1_mv_mvNp_mv_1"
    assert plain.partition_keys.names() == ["pk0"]
    assert not plain.have_non_primary_key()
    assert with_npk.non_primary_key.type == TYPE_ASCII
    assert with_npk.partition_keys.names() == ["col0", "pk0"]


def test_get_table_from_name_idx_all_and_counters():
    table = get_table_from_name("pk1_ck0_col3cr_idxAll")
    assert [i.index_name for i in table.indexes] == ["col0_idx", "col1_idx", "col2_idx"]
    assert all(isinstance(c.type, CounterType) for c in table.columns)


def test_get_table_from_name_errors():
    with pytest.raises(ValueError):
        get_table_from_name("pk9_ck0")
    with pytest.raises(ValueError):
        get_table_from_name("pk1_ck0_col0_idx1")
    with pytest.raises(ValueError):
        get_table_from_name("pk1_ck0_col1cr_mvNp")


def test_append_if_not_empty():
    assert append_if_not_empty(["a"], "") == ["a"]
    assert append_if_not_empty(["a"], "b") == ["a", "b"]


def test_error_msg_equal():
    assert get_error_msg_if_different("same", "same", "err") == ""


def test_error_msg_same_shape():
    msg = get_error_msg_if_different("a b", "a c", "err")
    assert msg == "\n".join(["err", "Expected   a b", "Difference   ↕", "Received   a c", SEP])


def test_error_msg_padding():
    msg = get_error_msg_if_different("ab c", "a c", "err")
    assert msg == "\n".join(["err", "Expected   ab c", "Difference  ↕  ", "Received   a↔ c", SEP])


def test_error_msg_different_shape():
    msg = get_error_msg_if_different("a b", "a b c", "err")
    assert msg == "\n".join(["err", "Expected   a b", "Received   a b c", SEP])