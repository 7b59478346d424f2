"""Random value helpers used by the data generators."""

from __future__ import annotations

import itertools
import random
import threading
import uuid
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_DATE_MS = (datetime(9999, 12, 31, tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
_UUID_EPOCH_SECONDS = (datetime(1582, 10, 15, tzinfo=timezone.utc) - _EPOCH) // timedelta(seconds=1)

# According to the CQL binary protocol, time is nanoseconds since midnight
# in the range 0 to 86399999999999.
_NANOS_PER_DAY = 86_400_000_000_000

_MASK64 = (1 << 64) - 1
_NODE = uuid.getnode().to_bytes(6, "big")
_clock_seq = itertools.count(random.SystemRandom().getrandbits(32))
_clock_lock = threading.Lock()

_under_test = False


def set_under_test() -> None:
    """Switch value generation into its reproducible test mode."""
    global _under_test
    _under_test = True


def is_under_test() -> bool:
    """Tell whether reproducible test mode is on."""
    return _under_test


def rand_date_str(rnd: random.Random) -> str:
    """Return a random date between 1970-01-01 and 9999-12-30 as YYYY-MM-DD."""
    moment = _EPOCH + timedelta(milliseconds=rnd.randrange(_MAX_DATE_MS))
    return moment.strftime("%Y-%m-%d")


def rand_timestamp(rnd: random.Random) -> int:
    """Return a random non-negative 63-bit timestamp."""
    return rnd.getrandbits(63)


def rand_date(rnd: random.Random) -> tuple[int, int]:
    """Return a random instant as (seconds since the epoch, nanoseconds)."""
    return rnd.randrange((1 << 63) - 2), rnd.randrange(999_999_999)


def rand_time(rnd: random.Random) -> int:
    """Return a random time of day in nanoseconds since midnight."""
    return rnd.randrange(_NANOS_PER_DAY)


def rand_ipv4_address(rnd: random.Random, value: int, pos: int) -> str:
    """Return a random IPv4 address whose block at ``pos`` equals ``value``."""
    if pos < 0 or pos > 4:
        raise ValueError(f"invalid position for the desired value of the IP part {pos}, 0-3 supported")
    if value < 0 or value > 255:
        raise ValueError(f"invalid value for the desired position {value} of the IP, 0-255 supported")
    blocks = (str(value) if idx == pos else str(rnd.randrange(255)) for idx in range(4))
    return ".".join(blocks)


def rand_int2(rnd: random.Random, low: int, high: int) -> int:
    """Return a random integer in [low, high), or ``low`` if the range is empty."""
    if high <= low:
        return low
    return low + rnd.randrange(high - low)


def rand_string(rnd: random.Random, length: int) -> str:
    """Return a hex string of ``length`` characters; long ones repeat a 32-char block."""
    block_len = min(length, 32)
    block = rnd.randbytes(block_len // 2 + 1).hex()[:block_len]
    if length <= 32:
        return block
    repeats = -(-length // block_len)
    return (block * repeats)[:length]


def _time_uuid_with(ticks: int, clock: int, node: bytes) -> uuid.UUID:
    t = ticks & _MASK64
    raw = bytearray(16)
    raw[0:4] = (t & 0xFFFFFFFF).to_bytes(4, "big")
    raw[4:6] = ((t >> 32) & 0xFFFF).to_bytes(2, "big")
    raw[6] = ((t >> 56) & 0x0F) | 0x10
    raw[7] = (t >> 48) & 0xFF
    raw[8] = ((clock >> 8) & 0x3F) | 0x80
    raw[9] = clock & 0xFF
    node_part = node[:6]
    raw[10 : 10 + len(node_part)] = node_part
    return uuid.UUID(bytes=bytes(raw))


def _next_clock_seq() -> int:
    with _clock_lock:
        return next(_clock_seq) & 0xFFFFFFFF


def uuid_from_time(rnd: random.Random) -> str:
    """Return a version 1 UUID string built from a random instant."""
    if _under_test:
        return str(_time_uuid_with(rnd.getrandbits(63), 0, b"127.0.0.1"))
    seconds, nanos = rand_date(rnd)
    ticks = (seconds - _UUID_EPOCH_SECONDS) * 10_000_000 + nanos // 100
    return str(_time_uuid_with(ticks, _next_clock_seq(), _NODE))