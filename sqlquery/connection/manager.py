"""Owns the pooled connection and optional prepared statement of an activity."""

import logging
from typing import Any, ContextManager, Optional, Tuple, Type

from ..config.config import PoolConfig
from ..errors import CleanupError, ExecutionError
from .pools import ConnectionPool, create_pool
from .prepared import PreparedStatement

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Creates, lends and releases the long-lived connection handles."""

    def __init__(self, pool: ConnectionPool):
        """Initialize manager around an opened pool."""
        self.pool = pool
        self.prepared: Optional[PreparedStatement] = None
        self._released = False

    @classmethod
    def open(
        cls,
        driver_name: str,
        data_source_name: str,
        pool_config: Optional[PoolConfig] = None,
        query_timeout_ms: int = 0,
    ) -> "ConnectionManager":
        """Open a pool for ``driver_name``.

        Raises:
            ConfigurationError: unknown driver or invalid pool settings
            ExecutionError: the backend could not be reached
        """
        pool = create_pool(driver_name, data_source_name, pool_config, query_timeout_ms)
        pool.open()
        return cls(pool)

    @property
    def error_types(self) -> Tuple[Type[BaseException], ...]:
        """DB-API error classes raised by the underlying driver."""
        return self.pool.error_types

    @property
    def released(self) -> bool:
        return self._released

    def connection(self) -> ContextManager[Any]:
        """Borrow a pooled connection for the duration of a ``with`` block."""
        return self.pool.connection()

    def prepare(self, sql: str, parameter_count: int) -> PreparedStatement:
        """Create the prepared handle; called once at construction.

        The backend compiles the statement on a borrowed connection first,
        so a statement it rejects never yields a handle.

        Raises:
            ExecutionError: if the backend rejects the statement
        """
        try:
            with self.pool.connection() as conn:
                self.pool.check_statement(conn, sql, parameter_count)
        except self.pool.error_types as exc:
            logger.error(f"Failed to prepare statement: {exc}")
            raise ExecutionError(f"Failed to prepare statement: {exc}") from exc

        if self.prepared is not None:
            self.prepared.close()
        self.prepared = PreparedStatement(sql, parameter_count)
        return self.prepared

    def release(self) -> None:
        """Close the prepared handle, then the pool.

        A prepared-handle failure is logged and never blocks closing the
        pool. Calling this more than once does nothing.

        Raises:
            CleanupError: if closing the pool fails
        """
        if self._released:
            return
        self._released = True

        if self.prepared is not None:
            try:
                self.prepared.close()
            except Exception as exc:
                logger.warning(f"Error closing prepared statement: {exc}")
            self.prepared = None

        try:
            self.pool.close()
        except self.pool.error_types as exc:
            logger.error(f"Error closing {self.pool.driver_name} connection pool: {exc}")
            raise CleanupError(f"Failed to close connection pool: {exc}") from exc
