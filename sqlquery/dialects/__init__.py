"""Driver helpers: placeholder syntax, literal rendering, scan typing."""

from .base import ColumnMetadata, DriverHelper, ParamStyle
from .duckdb import DuckDBHelper
from .postgresql import PostgresHelper
from .registry import get_driver_helper, supported_dialects
from .scan import ScanKind, ScanTarget, ValueKind, new_scan_target, value_kind
from .sqlite import SQLiteHelper

__all__ = [
    "ColumnMetadata",
    "DriverHelper",
    "ParamStyle",
    "PostgresHelper",
    "DuckDBHelper",
    "SQLiteHelper",
    "ScanKind",
    "ScanTarget",
    "ValueKind",
    "get_driver_helper",
    "supported_dialects",
    "new_scan_target",
    "value_kind",
]
