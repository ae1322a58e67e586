"""Templated, driver-agnostic SQL read queries."""

from .activity import SQLQueryActivity
from .errors import (
    BindError,
    CleanupError,
    CompilationError,
    ConfigurationError,
    ExecutionError,
    ScanError,
    SQLQueryError,
    UnsupportedDialectError,
    UnsupportedStatementKindError,
)

__version__ = "0.1.0"

__all__ = [
    "SQLQueryActivity",
    "SQLQueryError",
    "ConfigurationError",
    "UnsupportedDialectError",
    "CompilationError",
    "UnsupportedStatementKindError",
    "BindError",
    "ExecutionError",
    "ScanError",
    "CleanupError",
]
