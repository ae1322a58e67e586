"""Connection pools, prepared statements and their lifecycle."""

from .manager import ConnectionManager
from .pools import ConnectionPool, DuckDBPool, PsycopgPool, SQLitePool, create_pool
from .prepared import PreparedStatement

__all__ = [
    "ConnectionManager",
    "ConnectionPool",
    "DuckDBPool",
    "PsycopgPool",
    "SQLitePool",
    "PreparedStatement",
    "create_pool",
]
