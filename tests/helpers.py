"""Fakes standing in for DB-API cursors and connection pools."""

from __future__ import annotations

import contextlib
from typing import Any, List, Optional, Sequence, Tuple


class FakeDriverError(Exception):
    """Plays the role of a driver module's DB-API ``Error``."""


class FakeCursor:
    """Minimal DB-API cursor serving canned rows through fetchmany."""

    def __init__(
        self,
        description: Sequence[Tuple[Any, ...]],
        rows: Sequence[Sequence[Any]],
        fail_after: Optional[int] = None,
        fail_execute: bool = False,
    ):
        self.description = [tuple(entry) for entry in description]
        self._rows = [tuple(row) for row in rows]
        self._position = 0
        self._fail_after = fail_after
        self._fail_execute = fail_execute
        self.fetch_calls = 0
        self.executed: List[Tuple[str, Any]] = []
        self.closed = False

    def execute(self, sql: str, params: Any = None) -> "FakeCursor":
        self.executed.append((sql, params))
        if self._fail_execute:
            raise FakeDriverError("relation \"users\" does not exist")
        return self

    def fetchmany(self, size: int = 1) -> List[Tuple[Any, ...]]:
        self.fetch_calls += 1
        if self._fail_after is not None and self._position >= self._fail_after:
            raise FakeDriverError("connection lost while fetching")
        batch = self._rows[self._position:self._position + size]
        self._position += len(batch)
        return batch

    def close(self) -> None:
        self.closed = True


def columns(*names: str, type_code: Any = None) -> List[Tuple[Any, ...]]:
    """Build a cursor description with one shared type code."""
    return [(name, type_code, None, None, None, None, None) for name in names]


class FakePool:
    """Pool double recording statement checks and close calls."""

    driver_name = "fake"
    error_types = (FakeDriverError,)

    def __init__(self, fail_close: bool = False, fail_check: bool = False):
        self.fail_close = fail_close
        self.fail_check = fail_check
        self.close_calls = 0
        self.checked: List[Tuple[str, int]] = []

    @contextlib.contextmanager
    def connection(self):
        yield None

    def check_statement(self, conn: Any, sql: str, parameter_count: int) -> None:
        self.checked.append((sql, parameter_count))
        if self.fail_check:
            raise FakeDriverError("syntax error at or near \"form\"")

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_close:
            raise FakeDriverError("socket already gone")


class FakeConnection:
    """Connection double handing out one canned cursor."""

    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor

    def cursor(self) -> FakeCursor:
        return self._cursor


class FakeManager:
    """Connection manager double that records borrowed and returned connections."""

    def __init__(self, cursor: FakeCursor, prepared: Any = None):
        self.prepared = prepared
        self.error_types = (FakeDriverError,)
        self._connection = FakeConnection(cursor)
        self.borrowed = 0
        self.returned = 0

    @contextlib.contextmanager
    def connection(self):
        self.borrowed += 1
        try:
            yield self._connection
        finally:
            self.returned += 1
