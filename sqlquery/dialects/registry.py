"""Lookup from dialect identifier to driver helper."""

from typing import Dict, List, Type

from ..errors import UnsupportedDialectError
from .base import DriverHelper
from .duckdb import DuckDBHelper
from .postgresql import PostgresHelper
from .sqlite import SQLiteHelper

_HELPERS: Dict[str, Type[DriverHelper]] = {
    "postgres": PostgresHelper,
    "postgresql": PostgresHelper,
    "pg": PostgresHelper,
    "duckdb": DuckDBHelper,
    "sqlite": SQLiteHelper,
    "sqlite3": SQLiteHelper,
}


def get_driver_helper(dialect: str) -> DriverHelper:
    """Resolve a dialect identifier (case-insensitive) to its helper.

    Raises:
        UnsupportedDialectError: if the dialect is unknown
    """
    key = (dialect or "").strip().lower()
    helper_class = _HELPERS.get(key)
    if helper_class is None:
        raise UnsupportedDialectError(dialect)
    return helper_class()


def supported_dialects() -> List[str]:
    """Canonical names of the supported dialects."""
    names = []
    for helper_class in _HELPERS.values():
        if helper_class.name not in names:
            names.append(helper_class.name)
    return names
