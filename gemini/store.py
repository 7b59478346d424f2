"""A store that applies every mutation to a test and an oracle cluster and compares reads."""

from __future__ import annotations

import functools
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol
from uuid import UUID

Row = dict[str, Any]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class StoreError(Exception):
    """Raised when a store operation fails or the two clusters disagree."""


class _StoreLoader(Protocol):
    def mutate(self, builder: Any, *args: Any) -> None: ...

    def load(self, builder: Any, values: list) -> Optional[list[Row]]: ...

    def close(self) -> None: ...

    def name(self) -> str: ...


class NoOpStore:
    """Stands in for the oracle when none is configured."""

    def __init__(self, system: str = "oracle") -> None:
        self.system = system

    def mutate(self, builder: Any, *args: Any) -> None:
        return None

    def load(self, builder: Any, values: list) -> Optional[list[Row]]:
        return None

    def close(self) -> None:
        return None

    def name(self) -> str:
        return self.system


def _fmt(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _fmt_list(items: list[str]) -> str:
    return "[" + " ".join(items) + "]"


def pks(table: Any, rows: list[Row]) -> list[str]:
    """Describe the primary key of every row as ``name=value`` pairs."""
    keys = [*table.partition_keys, *table.clustering_keys]
    return [", \t".join(f"{col.name}={_fmt(row.get(col.name))}" for col in keys) for row in rows]


def _datetime_key(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH).total_seconds()


def row_less(mi: Row, mj: Row) -> bool:
    """Order rows by their ``pk0`` value."""
    left = mi.get("pk0")
    right = mj.get("pk0")
    if left is None:
        return True
    if isinstance(left, (bytes, bytearray)):
        other = bytes(right) if isinstance(right, (bytes, bytearray)) else b""
        return bytes(left) < other
    if isinstance(left, str):
        return left < (right if isinstance(right, str) else "")
    if isinstance(left, int) and not isinstance(left, bool):
        other = right if isinstance(right, int) and not isinstance(right, bool) else 0
        return left < other
    if isinstance(left, UUID):
        return str(left) < (str(right) if isinstance(right, UUID) else str(UUID(int=0)))
    if isinstance(left, datetime):
        other = _datetime_key(right) if isinstance(right, datetime) else float("-inf")
        return _datetime_key(left) < other
    raise TypeError(f"unhandled type {type(left).__name__}")


def _compare(left: Row, right: Row) -> int:
    if row_less(left, right):
        return -1
    if row_less(right, left):
        return 1
    return 0


def _row_diff(oracle_row: Row, test_row: Row) -> str:
    lines = []
    for key in sorted(set(oracle_row) | set(test_row)):
        old, new = oracle_row.get(key), test_row.get(key)
        if key not in test_row or key not in oracle_row or old != new:
            lines.append(f"{key}: -{_fmt(old)} +{_fmt(new)}")
    return "\n".join(lines)


def _in_background(fn: Callable[[], Any]) -> Future:
    pool = ThreadPoolExecutor(max_workers=1)
    try:
        return pool.submit(fn)
    finally:
        pool.shutdown(wait=False)


def _mutate(store: _StoreLoader, builder: Any, values: tuple) -> None:
    try:
        store.mutate(builder, *values)
    except Exception as err:
        raise StoreError(f"unable to apply mutations to the {store.name()} store: {err}") from err


class DelegatingStore:
    """Applies mutations to both clusters and validates reads against the oracle."""

    def __init__(
        self,
        test_store: _StoreLoader,
        oracle_store: Optional[_StoreLoader] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.test_store = test_store
        self.validations = oracle_store is not None
        self.oracle_store: _StoreLoader = oracle_store if oracle_store is not None else NoOpStore("oracle")
        self.logger = logger or logging.getLogger("gemini.store.delegating_store")

    def create(self, test_builder: Any, oracle_builder: Any) -> None:
        """Run the schema statements on the oracle, then on the test cluster."""
        try:
            _mutate(self.oracle_store, oracle_builder, ())
        except StoreError as err:
            raise StoreError(f"oracle failed store creation: {err}") from err
        try:
            _mutate(self.test_store, test_builder, ())
        except StoreError as err:
            raise StoreError(f"test failed store creation: {err}") from err

    def mutate(self, builder: Any, *args: Any) -> None:
        """Apply one mutation to both clusters at once."""
        test_future = _in_background(lambda: _mutate(self.test_store, builder, args))
        try:
            _mutate(self.oracle_store, builder, args)
        except StoreError as err:
            self.logger.info(
                "oracle store failed mutation, transition to next state impossible "
                "so continuing with next mutation: %s",
                err,
            )
            raise
        try:
            test_future.result()
        except StoreError as err:
            self.logger.info(
                "test store failed mutation, transition to next state impossible "
                "so continuing with next mutation: %s",
                err,
            )
            raise

    def check(self, table: Any, builder: Any, detailed_diff: bool, *args: Any) -> None:
        """Read from both clusters and raise if the results differ."""
        values = list(args)
        test_future = _in_background(lambda: self.test_store.load(builder, values))
        try:
            oracle_rows = list(self.oracle_store.load(builder, values) or [])
        except Exception as err:
            raise StoreError(f"unable to load check data from the oracle store: {err}") from err
        try:
            test_rows = list(test_future.result() or [])
        except Exception as err:
            raise StoreError(f"unable to load check data from the test store: {err}") from err
        if not self.validations:
            return
        if not test_rows and not oracle_rows:
            return
        if len(test_rows) != len(oracle_rows):
            if not detailed_diff:
                raise StoreError(
                    f"rows count differ (test store rows {len(test_rows)}, oracle store rows "
                    f"{len(oracle_rows)}, detailed information will be at last attempt)"
                )
            test_set = set(pks(table, test_rows))
            oracle_set = set(pks(table, oracle_rows))
            missing_in_test = sorted(oracle_set - test_set)
            missing_in_oracle = sorted(test_set - oracle_set)
            raise StoreError(
                f"row count differ (test has {len(test_rows)} rows, oracle has {len(oracle_rows)} rows, "
                f"test is missing rows: {_fmt_list(missing_in_test)}, "
                f"oracle is missing rows: {_fmt_list(missing_in_oracle)})"
            )
        if test_rows == oracle_rows:
            return
        if not detailed_diff:
            raise StoreError("test and oracle store have difference, detailed information will be at last attempt")
        key = functools.cmp_to_key(_compare)
        test_rows.sort(key=key)
        oracle_rows.sort(key=key)
        for oracle_row, test_row in zip(oracle_rows, test_rows):
            diff = _row_diff(oracle_row, test_row)
            if diff:
                raise StoreError(f"rows differ (-{oracle_row} +{test_row}): {diff}")

    def close(self) -> None:
        """Close both stores, reporting every failure together."""
        errors = []
        for store in (self.test_store, self.oracle_store):
            try:
                store.close()
            except Exception as err:
                errors.append(str(err))
        if errors:
            raise StoreError("; ".join(errors))