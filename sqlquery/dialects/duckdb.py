"""DuckDB driver helper."""

import re
from typing import Optional, Tuple

from .base import ColumnMetadata, DriverHelper, ParamStyle
from .scan import ScanKind

_TYPE_NAME_SCAN_KINDS = {
    "TINYINT": ScanKind.INTEGER,
    "SMALLINT": ScanKind.INTEGER,
    "INTEGER": ScanKind.INTEGER,
    "BIGINT": ScanKind.INTEGER,
    "HUGEINT": ScanKind.INTEGER,
    "UTINYINT": ScanKind.INTEGER,
    "USMALLINT": ScanKind.INTEGER,
    "UINTEGER": ScanKind.INTEGER,
    "UBIGINT": ScanKind.INTEGER,
    "UHUGEINT": ScanKind.INTEGER,
    "FLOAT": ScanKind.FLOAT,
    "REAL": ScanKind.FLOAT,
    "DOUBLE": ScanKind.FLOAT,
    "DECIMAL": ScanKind.DECIMAL,
    "VARCHAR": ScanKind.TEXT,
    "BOOLEAN": ScanKind.BOOLEAN,
    "DATE": ScanKind.TEMPORAL,
    "TIME": ScanKind.TEMPORAL,
    "TIMESTAMP": ScanKind.TEMPORAL,
    "TIMESTAMP WITH TIME ZONE": ScanKind.TEMPORAL,
    "TIMESTAMP_S": ScanKind.TEMPORAL,
    "TIMESTAMP_MS": ScanKind.TEMPORAL,
    "TIMESTAMP_NS": ScanKind.TEMPORAL,
    "INTERVAL": ScanKind.TEMPORAL,
    "BLOB": ScanKind.BYTES,
}

_DECIMAL_PATTERN = re.compile(r"^DECIMAL\((\d+),\s*(\d+)\)$")


def _split_decimal(type_name: str) -> Optional[Tuple[int, int]]:
    match = _DECIMAL_PATTERN.match(type_name)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


class DuckDBHelper(DriverHelper):
    """DuckDB: ``$n`` markers, scan kinds chosen by reported type name.

    Older DuckDB releases report coarse type codes (``NUMBER``, ``STRING``)
    that do not pin down the declared type; those fall back to a dynamic
    slot rather than risking a narrower guess.
    """

    name = "duckdb"
    sqlglot_dialect = "duckdb"
    param_style = ParamStyle.NUMERIC
    default_driver = "duckdb"

    def scan_kind_for(self, column: ColumnMetadata) -> ScanKind:
        if column.type_code is None:
            return ScanKind.DYNAMIC
        type_name = str(column.type_code).strip().upper()
        decimal = _split_decimal(type_name)
        if decimal is not None:
            _, scale = decimal
            return ScanKind.INTEGER if scale == 0 else ScanKind.DECIMAL
        return _TYPE_NAME_SCAN_KINDS.get(type_name, ScanKind.DYNAMIC)
