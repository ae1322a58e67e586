"""Tests for running compiled statements on borrowed connections."""

import logging

import pytest

from sqlquery.connection import PreparedStatement
from sqlquery.dialects import PostgresHelper
from sqlquery.errors import ExecutionError, ScanError
from sqlquery.executor import QueryRunner
from sqlquery.parser import compile_statement
from tests.helpers import FakeCursor, FakeManager, columns

QUERY = "select n from numbers where dept = :dept"


def make_runner(cursor, prepared=False):
    statement = compile_statement(QUERY, PostgresHelper())
    handle = None
    if prepared:
        handle = PreparedStatement(statement.prepared_sql, statement.parameter_count)
    manager = FakeManager(cursor, prepared=handle)
    return QueryRunner(manager, statement), manager, statement


def test_successful_run_closes_cursor_and_returns_connection():
    cursor = FakeCursor(columns("n", type_code=23), [(1,), (2,)])
    runner, manager, _ = make_runner(cursor)

    result = runner.run({"dept": "eng"})

    assert result.rows == [[1], [2]]
    assert cursor.closed
    assert manager.borrowed == manager.returned == 1


def test_literal_run_executes_rendered_sql():
    cursor = FakeCursor(columns("n", type_code=23), [])
    runner, _, _ = make_runner(cursor)

    runner.run({"dept": "eng"})

    (sql, params), = cursor.executed
    assert "'eng'" in sql
    assert params is None


def test_prepared_run_passes_positional_arguments():
    cursor = FakeCursor(columns("n", type_code=23), [(7,)])
    runner, manager, statement = make_runner(cursor, prepared=True)

    result = runner.run({"dept": "ops"})

    assert cursor.executed == [(statement.prepared_sql, ["ops"])]
    assert result.rows == [[7]]
    assert cursor.closed
    assert manager.returned == 1


@pytest.mark.parametrize("prepared", [False, True])
def test_driver_error_on_execute_releases_cursor_and_connection(prepared):
    cursor = FakeCursor(columns("n"), [], fail_execute=True)
    runner, manager, _ = make_runner(cursor, prepared=prepared)

    with pytest.raises(ExecutionError, match="does not exist"):
        runner.run({"dept": "eng"})

    assert cursor.closed
    assert manager.borrowed == manager.returned == 1


def test_scan_error_mid_rows_releases_cursor_and_connection():
    cursor = FakeCursor(columns("n", type_code=23), [(1,), ("abc",)])
    runner, manager, _ = make_runner(cursor)

    with pytest.raises(ScanError):
        runner.run({"dept": "eng"})

    assert cursor.closed
    assert manager.borrowed == manager.returned == 1


def test_missing_argument_is_logged_and_bound_as_null(caplog):
    cursor = FakeCursor(columns("n", type_code=23), [])
    runner, _, statement = make_runner(cursor, prepared=True)

    with caplog.at_level(logging.DEBUG, logger="sqlquery.executor.runner"):
        runner.run({})

    assert "No argument for dept; binding NULL" in caplog.text
    assert cursor.executed == [(statement.prepared_sql, [None])]
