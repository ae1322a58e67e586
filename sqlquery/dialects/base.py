"""Base driver helper interface."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Sequence

from sqlglot import exp

from ..errors import BindError
from .scan import ScanKind, ScanTarget, ValueKind, new_scan_target, value_kind


class ParamStyle(Enum):
    """Positional marker syntax understood by a DB-API driver."""

    QMARK = "qmark"  # ?
    NUMERIC = "numeric"  # $1, $2 ...
    FORMAT = "format"  # %s


@dataclass(frozen=True)
class ColumnMetadata:
    """Metadata about a result column, from a DB-API cursor description."""

    name: str
    type_code: Any = None
    display_size: Optional[int] = None
    internal_size: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    null_ok: Optional[bool] = None

    @classmethod
    def from_description(cls, entry: Sequence[Any]) -> "ColumnMetadata":
        """Build from one 7-item ``cursor.description`` entry."""
        padded = list(entry) + [None] * (7 - len(entry))
        return cls(
            name=padded[0],
            type_code=padded[1],
            display_size=padded[2],
            internal_size=padded[3],
            precision=padded[4],
            scale=padded[5],
            null_ok=padded[6],
        )


class DriverHelper(ABC):
    """Dialect-specific placeholder syntax, literal rendering and scan typing."""

    name: str = "generic"
    sqlglot_dialect: str = ""
    param_style: ParamStyle = ParamStyle.QMARK
    default_driver: str = ""

    def marker(self, position: int) -> str:
        """Return the positional marker for a 1-based parameter position."""
        if self.param_style == ParamStyle.QMARK:
            return "?"
        if self.param_style == ParamStyle.NUMERIC:
            return f"${position}"
        if self.param_style == ParamStyle.FORMAT:
            return "%s"
        raise ValueError(f"Unsupported param style: {self.param_style}")

    def escape_prepared_text(self, text: str) -> str:
        """Escape template text copied into the prepared-form query."""
        if self.param_style == ParamStyle.FORMAT:
            return text.replace("%", "%%")
        return text

    def render_literal(self, value: Any) -> str:
        """Render a value as a literal SQL expression for this dialect.

        Raises:
            BindError: if the value has no safe literal form
        """
        kind = value_kind(value)
        if kind == ValueKind.NULL:
            return self._generate(exp.Null())
        if kind == ValueKind.BOOLEAN:
            return self.boolean_literal(value)
        if kind == ValueKind.INTEGER:
            return self._number(str(value))
        if kind in (ValueKind.FLOAT, ValueKind.DECIMAL):
            return self.numeric_literal(value)
        if kind == ValueKind.TEXT:
            return self.string_literal(value)
        if kind == ValueKind.TEMPORAL:
            return self.temporal_literal(value)
        if kind == ValueKind.BYTES:
            return self.bytes_literal(bytes(value))
        raise BindError(
            f"Cannot render {type(value).__name__} value as a {self.name} literal"
        )

    def boolean_literal(self, value: bool) -> str:
        return self._generate(exp.Boolean(this=value))

    def numeric_literal(self, value: Any) -> str:
        if isinstance(value, Decimal):
            finite = value.is_finite()
            text = str(value)
        else:
            finite = math.isfinite(value)
            text = repr(value)
        if not finite:
            raise BindError(f"Cannot render non-finite number {value!r} as a literal")
        return self._number(text)

    def _number(self, text: str) -> str:
        if text.startswith("-"):
            # negative numbers never touch the surrounding template text
            node = exp.Paren(this=exp.Neg(this=exp.Literal.number(text[1:])))
        else:
            node = exp.Literal.number(text)
        return self._generate(node)

    def string_literal(self, value: str) -> str:
        if "\x00" in value:
            raise BindError("Text values may not contain NUL characters")
        return self._generate(exp.Literal.string(value))

    def temporal_literal(self, value: Any) -> str:
        if isinstance(value, datetime):
            type_name = "TIMESTAMPTZ" if value.tzinfo is not None else "TIMESTAMP"
        elif isinstance(value, date):
            type_name = "DATE"
        elif isinstance(value, time):
            type_name = "TIME"
        else:
            raise BindError(
                f"Cannot render {type(value).__name__} value as a {self.name} literal"
            )
        return self._generate(exp.cast(exp.Literal.string(value.isoformat()), type_name))

    def bytes_literal(self, value: bytes) -> str:
        raise BindError(f"Binary values cannot be rendered as {self.name} literals")

    def _generate(self, node: exp.Expression) -> str:
        return node.sql(dialect=self.sqlglot_dialect)

    def scan_target_for(self, column: ColumnMetadata) -> ScanTarget:
        """Return a fresh receiving slot typed for the column."""
        return new_scan_target(self.scan_kind_for(column), column.name)

    @abstractmethod
    def scan_kind_for(self, column: ColumnMetadata) -> ScanKind:
        """Pick the scan kind for a column's declared type and width."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
