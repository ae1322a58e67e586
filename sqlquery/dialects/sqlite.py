"""SQLite driver helper (stdlib sqlite3)."""

from datetime import date, datetime, time
from typing import Any

from ..errors import BindError
from .base import ColumnMetadata, DriverHelper, ParamStyle
from .scan import ScanKind


class SQLiteHelper(DriverHelper):
    """SQLite: ``?`` markers; columns are dynamically typed."""

    name = "sqlite"
    sqlglot_dialect = "sqlite"
    param_style = ParamStyle.QMARK
    default_driver = "sqlite3"

    def scan_kind_for(self, column: ColumnMetadata) -> ScanKind:
        # sqlite3 reports no type codes; values already carry their storage class
        return ScanKind.DYNAMIC

    def boolean_literal(self, value: bool) -> str:
        return "1" if value else "0"

    def temporal_literal(self, value: Any) -> str:
        # SQLite stores temporal values as ISO-8601 text
        if isinstance(value, datetime):
            return self.string_literal(value.isoformat(sep=" "))
        if isinstance(value, (date, time)):
            return self.string_literal(value.isoformat())
        raise BindError(f"Cannot render {type(value).__name__} value as a sqlite literal")

    def bytes_literal(self, value: bytes) -> str:
        return f"X'{value.hex().upper()}'"
