"""Pooled DB-API connections, one implementation per driver."""

import contextlib
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type

import duckdb
import psycopg2
from psycopg2 import pool

from ..config.config import PoolConfig
from ..errors import ConfigurationError, ExecutionError

logger = logging.getLogger(__name__)

# Server-side name used while checking that a statement compiles
CHECK_STATEMENT_NAME = "sqlq_check"


class ConnectionPool(ABC):
    """Abstract pool of DB-API connections for one data source."""

    driver_name: str = ""
    error_types: Tuple[Type[BaseException], ...] = ()

    def __init__(
        self,
        data_source_name: str,
        pool_config: Optional[PoolConfig] = None,
        query_timeout_ms: int = 0,
    ):
        """Initialize pool.

        Args:
            data_source_name: Driver-specific connection string
            pool_config: Pool sizing; defaults keep driver defaults
            query_timeout_ms: Per-statement timeout where the driver supports one
        """
        self.data_source_name = data_source_name
        self.pool_config = pool_config or PoolConfig()
        self.query_timeout_ms = query_timeout_ms
        self._closed = False

    @abstractmethod
    def open(self) -> None:
        """Establish the pool; raises ExecutionError if the backend is unreachable."""
        pass

    @abstractmethod
    def _acquire(self) -> Any:
        pass

    @abstractmethod
    def _release(self, conn: Any) -> None:
        pass

    @abstractmethod
    def _close(self) -> None:
        pass

    @abstractmethod
    def check_statement(self, conn: Any, sql: str, parameter_count: int) -> None:
        """Have the backend compile ``sql`` on ``conn`` without running it.

        Raises the driver's error when the backend rejects the statement.
        """
        pass

    @contextlib.contextmanager
    def connection(self) -> Iterator[Any]:
        """Borrow one connection; it is returned on every exit path."""
        if self._closed:
            raise ExecutionError(f"{self.driver_name} connection pool is closed")
        conn = self._acquire()
        try:
            yield conn
        finally:
            self._release(conn)

    def close(self) -> None:
        """Close all pooled connections. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._close()
        logger.info(f"Closed {self.driver_name} connection pool")

    def is_closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(driver={self.driver_name})"


class PsycopgPool(ConnectionPool):
    """PostgreSQL connections via psycopg2's ThreadedConnectionPool.

    psycopg2 keeps at most ``minconn`` connections idle, so the idle-size
    knob maps onto ``minconn`` and the open-size knob onto ``maxconn``.
    """

    driver_name = "psycopg2"
    error_types = (psycopg2.Error,)

    DEFAULT_MIN_CONNECTIONS = 1
    DEFAULT_MAX_CONNECTIONS = 5

    def __init__(self, data_source_name: str, pool_config=None, query_timeout_ms: int = 0):
        super().__init__(data_source_name, pool_config, query_timeout_ms)
        self._pool: Optional[pool.ThreadedConnectionPool] = None

    def pool_bounds(self) -> Tuple[int, int]:
        """Return (minconn, maxconn), applying only non-default settings."""
        max_connections = self.DEFAULT_MAX_CONNECTIONS
        if self.pool_config.has_max_open():
            max_connections = self.pool_config.max_open_connections
        min_connections = self.DEFAULT_MIN_CONNECTIONS
        if self.pool_config.has_max_idle():
            min_connections = self.pool_config.max_idle_connections
        return min(min_connections, max_connections), max_connections

    def connect_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"dsn": self.data_source_name}
        if self.query_timeout_ms > 0:
            kwargs["options"] = f"-c statement_timeout={self.query_timeout_ms}"
        return kwargs

    def open(self) -> None:
        min_connections, max_connections = self.pool_bounds()
        try:
            logger.info(
                f"Opening PostgreSQL pool (min={min_connections}, max={max_connections})"
            )
            self._pool = pool.ThreadedConnectionPool(
                min_connections, max_connections, **self.connect_kwargs()
            )
        except psycopg2.Error as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise ExecutionError(f"PostgreSQL connection failed: {e}") from e

    def _acquire(self) -> Any:
        return self._pool.getconn()

    def _release(self, conn: Any) -> None:
        if self._pool is None:
            conn.close()
            return
        # putconn rolls back the read transaction left open by the query
        self._pool.putconn(conn)

    def _close(self) -> None:
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None

    def check_statement(self, conn: Any, sql: str, parameter_count: int) -> None:
        # NULL arguments fill the %s markers; the server resolves names and types
        with conn.cursor() as cursor:
            cursor.execute(f"PREPARE {CHECK_STATEMENT_NAME} AS {sql}", [None] * parameter_count)
            cursor.execute(f"DEALLOCATE {CHECK_STATEMENT_NAME}")


class DuckDBPool(ConnectionPool):
    """One DuckDB database; each borrower gets its own cursor connection.

    DuckDB connections are not shared across threads, but ``cursor()``
    returns an independent connection to the same database. Pool sizing
    knobs do not apply to an embedded database.
    """

    driver_name = "duckdb"
    error_types = (duckdb.Error,)

    def __init__(self, data_source_name: str, pool_config=None, query_timeout_ms: int = 0):
        super().__init__(data_source_name or ":memory:", pool_config, query_timeout_ms)
        self._database: Optional[duckdb.DuckDBPyConnection] = None

    def open(self) -> None:
        logger.info(f"Connecting to DuckDB at '{self.data_source_name}'")
        if self.query_timeout_ms > 0:
            logger.debug("DuckDB has no statement timeout; ignoring queryTimeoutMs")
        try:
            self._database = duckdb.connect(self.data_source_name)
        except duckdb.Error as e:
            logger.error(f"Failed to open DuckDB database: {e}")
            raise ExecutionError(f"DuckDB connection failed: {e}") from e

    def _acquire(self) -> Any:
        return self._database.cursor()

    def _release(self, conn: Any) -> None:
        conn.close()

    def _close(self) -> None:
        if self._database is not None:
            self._database.close()
            self._database = None

    def check_statement(self, conn: Any, sql: str, parameter_count: int) -> None:
        conn.execute(f"PREPARE {CHECK_STATEMENT_NAME} AS {sql}")
        conn.execute(f"DEALLOCATE {CHECK_STATEMENT_NAME}")


class SQLitePool(ConnectionPool):
    """Thread-safe pool of sqlite3 connections.

    At most ``max_open_connections`` are open at once (0 = unbounded) and at
    most ``max_idle_connections`` are kept for reuse.
    """

    driver_name = "sqlite3"
    error_types = (sqlite3.Error,)

    def __init__(self, data_source_name: str, pool_config=None, query_timeout_ms: int = 0):
        super().__init__(data_source_name, pool_config, query_timeout_ms)
        self._idle: List[sqlite3.Connection] = []
        self._open_count = 0
        self._condition = threading.Condition()

    def _validate(self) -> None:
        private_memory = self.data_source_name in ("", ":memory:")
        if private_memory and self.pool_config.max_open_connections != 1:
            raise ConfigurationError(
                "A private in-memory sqlite database needs maxOpenConnections: 1; "
                "every pooled connection would otherwise see its own database"
            )

    def _connect(self) -> sqlite3.Connection:
        kwargs: Dict[str, Any] = {"check_same_thread": False}
        if self.query_timeout_ms > 0:
            kwargs["timeout"] = self.query_timeout_ms / 1000.0
        if self.data_source_name.startswith("file:"):
            kwargs["uri"] = True
        return sqlite3.connect(self.data_source_name or ":memory:", **kwargs)

    def open(self) -> None:
        self._validate()
        logger.info(f"Opening sqlite pool at '{self.data_source_name}'")
        # verify the database opens, then keep the connection
        conn = self._acquire()
        self._release(conn)

    def _acquire(self) -> sqlite3.Connection:
        limit = self.pool_config.max_open_connections
        with self._condition:
            while True:
                if self._closed:
                    raise ExecutionError("sqlite3 connection pool is closed")
                if self._idle:
                    return self._idle.pop()
                if limit == 0 or self._open_count < limit:
                    self._open_count += 1
                    break
                self._condition.wait()

        try:
            return self._connect()
        except sqlite3.Error as e:
            with self._condition:
                self._open_count -= 1
                self._condition.notify()
            raise ExecutionError(f"sqlite3 connection failed: {e}") from e

    def _release(self, conn: sqlite3.Connection) -> None:
        keep = False
        with self._condition:
            idle_limit = self.pool_config.max_idle_connections
            if not self._closed and len(self._idle) < idle_limit:
                self._idle.append(conn)
                keep = True
            else:
                self._open_count -= 1
            self._condition.notify()
        if not keep:
            conn.close()

    def _close(self) -> None:
        with self._condition:
            idle = list(self._idle)
            self._idle.clear()
            self._open_count -= len(idle)
            self._condition.notify_all()
        for conn in idle:
            conn.close()

    def check_statement(self, conn: Any, sql: str, parameter_count: int) -> None:
        with contextlib.closing(conn.cursor()) as cursor:
            cursor.execute(f"EXPLAIN {sql}", [None] * parameter_count)


_POOLS: Dict[str, Type[ConnectionPool]] = {
    "psycopg2": PsycopgPool,
    "postgres": PsycopgPool,
    "postgresql": PsycopgPool,
    "duckdb": DuckDBPool,
    "sqlite3": SQLitePool,
    "sqlite": SQLitePool,
}


def create_pool(
    driver_name: str,
    data_source_name: str,
    pool_config: Optional[PoolConfig] = None,
    query_timeout_ms: int = 0,
) -> ConnectionPool:
    """Create (but do not open) the pool for a driver name.

    Raises:
        ConfigurationError: if the driver is unknown
    """
    pool_class = _POOLS.get((driver_name or "").strip().lower())
    if pool_class is None:
        raise ConfigurationError(f"Unsupported driver: {driver_name!r}")
    return pool_class(data_source_name, pool_config, query_timeout_ms)
