"""PostgreSQL driver helper (psycopg2)."""

from .base import ColumnMetadata, DriverHelper, ParamStyle
from .scan import ScanKind

# Built-in type OIDs as reported in psycopg2's cursor.description
_OID_SCAN_KINDS = {
    16: ScanKind.BOOLEAN,  # bool
    17: ScanKind.BYTES,  # bytea
    18: ScanKind.TEXT,  # char
    19: ScanKind.TEXT,  # name
    20: ScanKind.INTEGER,  # int8
    21: ScanKind.INTEGER,  # int2
    23: ScanKind.INTEGER,  # int4
    25: ScanKind.TEXT,  # text
    26: ScanKind.INTEGER,  # oid
    700: ScanKind.FLOAT,  # float4
    701: ScanKind.FLOAT,  # float8
    1042: ScanKind.TEXT,  # bpchar
    1043: ScanKind.TEXT,  # varchar
    1082: ScanKind.TEMPORAL,  # date
    1083: ScanKind.TEMPORAL,  # time
    1114: ScanKind.TEMPORAL,  # timestamp
    1184: ScanKind.TEMPORAL,  # timestamptz
    1186: ScanKind.TEMPORAL,  # interval
    1266: ScanKind.TEMPORAL,  # timetz
    1700: ScanKind.DECIMAL,  # numeric
}

NUMERIC_OID = 1700


class PostgresHelper(DriverHelper):
    """PostgreSQL: ``%s`` markers, scan kinds chosen by type OID."""

    name = "postgres"
    sqlglot_dialect = "postgres"
    param_style = ParamStyle.FORMAT
    default_driver = "psycopg2"

    def scan_kind_for(self, column: ColumnMetadata) -> ScanKind:
        if column.type_code == NUMERIC_OID and column.scale == 0:
            # numeric(p, 0) holds whole numbers; Python ints are unbounded
            return ScanKind.INTEGER
        return _OID_SCAN_KINDS.get(column.type_code, ScanKind.DYNAMIC)
