import random
import uuid
from datetime import datetime

import pytest

from gemini import utils


@pytest.mark.parametrize("length", [1, 3, 5, 16, 45, 100, 1000])
def test_rand_string_length(length):
    out = utils.rand_string(random.Random(length), length)
    assert len(out) == length


def test_rand_string_is_hex_and_repeats_block():
    out = utils.rand_string(random.Random(3), 100)
    int(out, 16)
    assert out[:32] == out[32:64] == out[64:96]
    assert out[96:] == out[:4]


def test_rand_string_empty():
    assert utils.rand_string(random.Random(1), 0) == ""


def test_rand_string_deterministic():
    first = utils.rand_string(random.Random(9), 20)
    second = utils.rand_string(random.Random(9), 20)
    assert len(first) == 20
    assert int(first, 16) >= 0
    assert first == second


def test_rand_int2_empty_range_returns_low():
    rnd = random.Random(1)
    assert utils.rand_int2(rnd, 5, 5) == 5
    assert utils.rand_int2(rnd, 7, 3) == 7


def test_rand_int2_in_range():
    rnd = random.Random(2)
    values = {utils.rand_int2(rnd, 1, 11) for _ in range(500)}
    assert values <= set(range(1, 11))
    assert len(values) > 5


def test_rand_ipv4_address_fixed_block():
    rnd = random.Random(4)
    for _ in range(50):
        parts = utils.rand_ipv4_address(rnd, 200, 2).split(".")
        assert len(parts) == 4
        assert parts[2] == "200"
        assert all(0 <= int(p) <= 255 for p in parts)


@pytest.mark.parametrize("value,pos", [(1, -1), (1, 5), (256, 0), (-1, 0)])
def test_rand_ipv4_address_invalid(value, pos):
    with pytest.raises(ValueError):
        utils.rand_ipv4_address(random.Random(1), value, pos)


def test_rand_date_str_format():
    rnd = random.Random(5)
    for _ in range(100):
        text = utils.rand_date_str(rnd)
        parsed = datetime.strptime(text, "%Y-%m-%d")
        assert 1970 <= parsed.year <= 9999
        assert parsed.strftime("%Y-%m-%d") == text


def test_rand_time_range():
    rnd = random.Random(6)
    assert all(0 <= utils.rand_time(rnd) < 86_400_000_000_000 for _ in range(200))


def test_rand_timestamp_range():
    rnd = random.Random(6)
    assert all(0 <= utils.rand_timestamp(rnd) < 1 << 63 for _ in range(200))


def test_rand_date_ranges():
    rnd = random.Random(8)
    for _ in range(100):
        seconds, nanos = utils.rand_date(rnd)
        assert 0 <= seconds < (1 << 63) - 2
        assert 0 <= nanos < 999_999_999


def test_set_under_test(monkeypatch):
    monkeypatch.setattr(utils, "_under_test", False)
    assert utils.is_under_test() is False
    utils.set_under_test()
    assert utils.is_under_test() is True


def test_uuid_from_time_under_test(monkeypatch):
    monkeypatch.setattr(utils, "_under_test", True)
    text = utils.uuid_from_time(random.Random(7))
    parsed = uuid.UUID(text)
    assert parsed.version == 1
    assert text.split("-")[3] == "8000"
    assert text.split("-")[4] == b"127.0.".hex()
    expected_ticks = random.Random(7).getrandbits(63) & ((1 << 60) - 1)
    assert parsed.time == expected_ticks


def test_uuid_from_time_under_test_is_reproducible(monkeypatch):
    monkeypatch.setattr(utils, "_under_test", True)
    first = utils.uuid_from_time(random.Random(11))
    second = utils.uuid_from_time(random.Random(11))
    assert uuid.UUID(first).version == 1
    assert len(first) == 36
    assert first == second


def test_uuid_from_time_normal(monkeypatch):
    monkeypatch.setattr(utils, "_under_test", False)
    rnd = random.Random(12)
    parsed = uuid.UUID(utils.uuid_from_time(rnd))
    assert parsed.version == 1
    assert parsed.variant == uuid.RFC_4122