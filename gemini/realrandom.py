"""Sources of 64-bit random numbers that are not reproducible."""

from __future__ import annotations

import os
import random
import time
from typing import Union

_MASK64 = (1 << 64) - 1


def _clock_mix() -> int:
    now = time.time_ns()
    nanos = now % 1_000_000_000
    second = (now // 1_000_000_000) % 60
    return (nanos * second) & _MASK64


class CryptoSource:
    """Draws numbers from the operating system's secure random generator."""

    def uint64(self) -> int:
        return int.from_bytes(os.urandom(8), "little")


class TimeSource:
    """A pseudo-random generator whose output is mixed with the wall clock."""

    def __init__(self) -> None:
        self._source = random.Random(_clock_mix())

    def uint64(self) -> int:
        value = self._source.getrandbits(64)
        mixed = (value ^ _clock_mix()) & _MASK64
        shift = value >> 58
        return ((mixed >> shift) | (mixed << (64 - shift))) & _MASK64


def default_source() -> Union[CryptoSource, TimeSource]:
    """Return the secure source, or the clock-based one when it is unavailable."""
    try:
        os.urandom(8)
    except (OSError, NotImplementedError):
        return TimeSource()
    return CryptoSource()