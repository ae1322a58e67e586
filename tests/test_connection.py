"""Tests for connection pools, prepared statements and cleanup."""

import logging
import threading

import pytest

from sqlquery.config import PoolConfig
from sqlquery.connection import (
    ConnectionManager,
    DuckDBPool,
    PreparedStatement,
    PsycopgPool,
    SQLitePool,
    create_pool,
)
from sqlquery.errors import CleanupError, ConfigurationError, ExecutionError
from tests.helpers import FakeCursor, FakePool, columns


@pytest.fixture
def sqlite_path(tmp_path):
    return str(tmp_path / "pool.db")


def test_psycopg_pool_default_bounds():
    pool = PsycopgPool("dbname=test")

    assert pool.pool_bounds() == (1, 5)


def test_psycopg_pool_applies_non_default_sizes():
    pool = PsycopgPool("dbname=test", PoolConfig(max_open_connections=10, max_idle_connections=4))

    assert pool.pool_bounds() == (4, 10)


def test_psycopg_pool_idle_never_exceeds_open():
    pool = PsycopgPool("dbname=test", PoolConfig(max_open_connections=3, max_idle_connections=8))

    assert pool.pool_bounds() == (3, 3)


def test_psycopg_connect_kwargs_carry_timeout():
    assert PsycopgPool("dbname=test").connect_kwargs() == {"dsn": "dbname=test"}

    kwargs = PsycopgPool("dbname=test", query_timeout_ms=1500).connect_kwargs()
    assert kwargs["options"] == "-c statement_timeout=1500"


@pytest.mark.parametrize(
    "driver,pool_class",
    [
        ("psycopg2", PsycopgPool),
        ("postgres", PsycopgPool),
        ("duckdb", DuckDBPool),
        ("sqlite3", SQLitePool),
        ("SQLite", SQLitePool),
    ],
)
def test_create_pool_by_driver_name(driver, pool_class):
    assert isinstance(create_pool(driver, "x"), pool_class)


def test_create_pool_rejects_unknown_driver():
    with pytest.raises(ConfigurationError, match="mysql"):
        create_pool("mysql", "x")


def test_sqlite_pool_reuses_idle_connection(sqlite_path):
    pool = SQLitePool(sqlite_path, PoolConfig(max_idle_connections=1))
    pool.open()

    with pool.connection() as first:
        first.execute("create table t (n integer)")
        first.commit()
    with pool.connection() as second:
        assert second is first
        assert second.execute("select count(*) from t").fetchone() == (0,)

    pool.close()


def test_sqlite_pool_without_idle_slots_closes_connections(sqlite_path):
    pool = SQLitePool(sqlite_path, PoolConfig(max_idle_connections=0))
    pool.open()

    with pool.connection() as first:
        pass
    with pool.connection() as second:
        assert second is not first

    pool.close()


def test_sqlite_pool_limits_open_connections(sqlite_path):
    pool = SQLitePool(sqlite_path, PoolConfig(max_open_connections=1, max_idle_connections=1))
    pool.open()
    acquired = threading.Event()

    def borrow():
        with pool.connection():
            acquired.set()

    with pool.connection():
        worker = threading.Thread(target=borrow)
        worker.start()
        # the only connection is lent out, so the worker waits
        assert not acquired.wait(0.2)
    worker.join(timeout=5)

    assert acquired.is_set()
    pool.close()


def test_sqlite_private_memory_needs_single_connection():
    with pytest.raises(ConfigurationError):
        SQLitePool(":memory:").open()

    pool = SQLitePool(":memory:", PoolConfig(max_open_connections=1))
    pool.open()
    pool.close()


def test_closed_pool_refuses_connections(sqlite_path):
    pool = SQLitePool(sqlite_path)
    pool.open()
    pool.close()
    pool.close()

    assert pool.is_closed()
    with pytest.raises(ExecutionError):
        with pool.connection():
            pass


def test_duckdb_pool_shares_one_database():
    pool = DuckDBPool("")
    pool.open()

    with pool.connection() as conn:
        conn.execute("create table t as select 42 as n")
    with pool.connection() as conn:
        assert conn.execute("select n from t").fetchall() == [(42,)]

    pool.close()
    assert pool.data_source_name == ":memory:"


def test_prepared_statement_executes_with_list_args():
    prepared = PreparedStatement("select %s, %s", 2)
    cursor = FakeCursor(columns("a", "b"), [])

    prepared.execute(cursor, ("x", 1))

    assert cursor.executed == [("select %s, %s", ["x", 1])]


def test_prepared_statement_checks_arity():
    prepared = PreparedStatement("select ?", 1)

    with pytest.raises(ExecutionError, match="expects 1"):
        prepared.execute(FakeCursor(columns("a"), []), [])


def test_closed_prepared_statement_refuses_execution():
    prepared = PreparedStatement("select ?", 1)
    prepared.close()
    prepared.close()

    assert prepared.closed
    with pytest.raises(ExecutionError, match="closed"):
        prepared.execute(FakeCursor(columns("a"), []), [1])


def test_manager_release_closes_prepared_then_pool():
    pool = FakePool()
    manager = ConnectionManager(pool)
    prepared = manager.prepare("select ?", 1)

    manager.release()

    assert prepared.closed
    assert manager.prepared is None
    assert pool.close_calls == 1
    assert manager.released


def test_manager_release_is_idempotent():
    pool = FakePool()
    manager = ConnectionManager(pool)

    manager.release()
    manager.release()

    assert pool.close_calls == 1


def test_manager_release_logs_prepared_close_failure(caplog):
    class BrokenPrepared(PreparedStatement):
        def close(self):
            raise RuntimeError("statement handle lost")

    pool = FakePool()
    manager = ConnectionManager(pool)
    manager.prepared = BrokenPrepared("select 1", 0)

    with caplog.at_level(logging.WARNING, logger="sqlquery.connection.manager"):
        manager.release()

    assert "Error closing prepared statement: statement handle lost" in caplog.text
    assert pool.close_calls == 1


def test_manager_release_pool_failure_raises_cleanup_error():
    manager = ConnectionManager(FakePool(fail_close=True))

    with pytest.raises(CleanupError, match="socket already gone"):
        manager.release()


def test_manager_open_sqlite(sqlite_path):
    manager = ConnectionManager.open("sqlite3", sqlite_path, PoolConfig(), 0)

    with manager.connection() as conn:
        assert conn.execute("select 1").fetchone() == (1,)
    assert manager.error_types == SQLitePool.error_types

    manager.release()
    assert manager.pool.is_closed()


def test_manager_prepare_checks_statement_with_backend():
    pool = FakePool()
    manager = ConnectionManager(pool)

    prepared = manager.prepare("select * from users where id = ?", 1)

    assert pool.checked == [("select * from users where id = ?", 1)]
    assert manager.prepared is prepared


def test_manager_prepare_rejected_statement_raises_execution_error():
    pool = FakePool(fail_check=True)
    manager = ConnectionManager(pool)

    with pytest.raises(ExecutionError, match="syntax error"):
        manager.prepare("select * form users", 0)

    assert manager.prepared is None


def test_sqlite_check_statement(sqlite_path):
    manager = ConnectionManager.open("sqlite3", sqlite_path)
    with manager.connection() as conn:
        conn.execute("create table users (id integer)")
        conn.commit()

    manager.prepare("select id from users where id = ?", 1)
    with pytest.raises(ExecutionError, match="no_such_table"):
        manager.prepare("select * from no_such_table where x = ?", 1)

    manager.release()


def test_duckdb_check_statement():
    manager = ConnectionManager.open("duckdb", ":memory:")
    with manager.connection() as conn:
        conn.execute("create table users (id integer)")

    manager.prepare("select id from users where id = $1", 1)
    # the check statement is released, so a second check reuses the name
    manager.prepare("select id from users where id = $1", 1)
    with pytest.raises(ExecutionError):
        manager.prepare("select * from no_such_table where x = $1", 1)

    manager.release()
