"""Value kinds and typed scan targets for result columns."""

import math
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Type

from ..errors import ScanError


class ValueKind(Enum):
    """Kinds of scalar values flowing through arguments and results."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    TEXT = "text"
    TEMPORAL = "temporal"
    BYTES = "bytes"
    OTHER = "other"


def value_kind(value: Any) -> ValueKind:
    """Classify a Python value into its ValueKind."""
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, Decimal):
        return ValueKind.DECIMAL
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (date, time, timedelta)):
        return ValueKind.TEMPORAL
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BYTES
    return ValueKind.OTHER


class ScanKind(Enum):
    """Receiving slot types a driver helper can choose for a column."""

    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    TEXT = "text"
    BOOLEAN = "boolean"
    TEMPORAL = "temporal"
    BYTES = "bytes"
    DYNAMIC = "dynamic"


class ScanTarget(ABC):
    """Nullable slot that captures one column value of one row."""

    kind: ScanKind = ScanKind.DYNAMIC

    def __init__(self, column: str = ""):
        self.column = column
        self.value: Any = None
        self.valid = False

    def scan(self, raw: Any) -> None:
        """Capture a driver-native value, keeping its natural type.

        Raises:
            ScanError: if the value cannot be stored without loss
        """
        if raw is None:
            self.value = None
            self.valid = False
            return
        self.value = self.convert(raw)
        self.valid = True

    @abstractmethod
    def convert(self, raw: Any) -> Any:
        """Convert a non-null raw value to this target's type."""
        pass

    def _fail(self, raw: Any) -> ScanError:
        return ScanError(
            f"Cannot scan {type(raw).__name__} value {raw!r} "
            f"into {self.kind.value} column {self.column!r}"
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.column!r}, value={self.value!r})"


class IntegerTarget(ScanTarget):
    kind = ScanKind.INTEGER

    def convert(self, raw: Any) -> Any:
        if isinstance(raw, int):
            return int(raw)
        if isinstance(raw, float):
            if raw.is_integer():
                return int(raw)
            raise self._fail(raw)
        if isinstance(raw, Decimal):
            if raw.is_finite() and raw == raw.to_integral_value():
                return int(raw)
            raise self._fail(raw)
        if isinstance(raw, str):
            try:
                return int(raw.strip())
            except ValueError:
                raise self._fail(raw) from None
        raise self._fail(raw)


class FloatTarget(ScanTarget):
    kind = ScanKind.FLOAT

    def convert(self, raw: Any) -> Any:
        if isinstance(raw, float):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            try:
                converted = float(raw)
            except OverflowError:
                raise self._fail(raw) from None
            if int(converted) != raw:
                raise self._fail(raw)
            return converted
        if isinstance(raw, Decimal):
            if raw.is_snan():
                raise self._fail(raw)
            converted = float(raw)
            if raw.is_finite() and (
                not math.isfinite(converted) or Decimal(repr(converted)) != raw
            ):
                raise self._fail(raw)
            return converted
        if isinstance(raw, str):
            try:
                converted = float(raw)
            except ValueError:
                raise self._fail(raw) from None
            # finite text beyond the float range overflows to inf
            if math.isinf(converted) and "inf" not in raw.lower():
                raise self._fail(raw)
            return converted
        raise self._fail(raw)


class DecimalTarget(ScanTarget):
    kind = ScanKind.DECIMAL

    def convert(self, raw: Any) -> Any:
        if isinstance(raw, Decimal):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return Decimal(raw)
        if isinstance(raw, float):
            return Decimal(repr(raw))
        if isinstance(raw, str):
            try:
                return Decimal(raw.strip())
            except InvalidOperation:
                raise self._fail(raw) from None
        raise self._fail(raw)


class TextTarget(ScanTarget):
    kind = ScanKind.TEXT

    def convert(self, raw: Any) -> Any:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, (bytes, bytearray, memoryview)):
            try:
                return bytes(raw).decode("utf-8")
            except UnicodeDecodeError:
                raise self._fail(raw) from None
        raise self._fail(raw)


_TRUE_TEXT = {"t", "true", "1", "y", "yes"}
_FALSE_TEXT = {"f", "false", "0", "n", "no"}


class BooleanTarget(ScanTarget):
    kind = ScanKind.BOOLEAN

    def convert(self, raw: Any) -> Any:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int) and raw in (0, 1):
            return bool(raw)
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            if lowered in _TRUE_TEXT:
                return True
            if lowered in _FALSE_TEXT:
                return False
        raise self._fail(raw)


class TemporalTarget(ScanTarget):
    kind = ScanKind.TEMPORAL

    def convert(self, raw: Any) -> Any:
        if isinstance(raw, (date, time, timedelta)):
            return raw
        if isinstance(raw, str):
            return self._parse_iso(raw)
        raise self._fail(raw)

    def _parse_iso(self, raw: str) -> Any:
        text = raw.strip()
        # date-only text stays a date; anything longer is a datetime or time
        parsers = (date.fromisoformat, datetime.fromisoformat, time.fromisoformat)
        if len(text) > 10:
            parsers = (datetime.fromisoformat, time.fromisoformat)
        for parser in parsers:
            try:
                return parser(text)
            except ValueError:
                continue
        raise self._fail(raw)


class BytesTarget(ScanTarget):
    kind = ScanKind.BYTES

    def convert(self, raw: Any) -> Any:
        if isinstance(raw, bytes):
            return raw
        if isinstance(raw, (bytearray, memoryview)):
            return bytes(raw)
        raise self._fail(raw)


class DynamicTarget(ScanTarget):
    """Fallback slot that keeps whatever the driver produced."""

    kind = ScanKind.DYNAMIC

    def convert(self, raw: Any) -> Any:
        return raw


SCAN_TARGETS: Dict[ScanKind, Type[ScanTarget]] = {
    ScanKind.INTEGER: IntegerTarget,
    ScanKind.FLOAT: FloatTarget,
    ScanKind.DECIMAL: DecimalTarget,
    ScanKind.TEXT: TextTarget,
    ScanKind.BOOLEAN: BooleanTarget,
    ScanKind.TEMPORAL: TemporalTarget,
    ScanKind.BYTES: BytesTarget,
    ScanKind.DYNAMIC: DynamicTarget,
}


def new_scan_target(kind: ScanKind, column: str = "") -> ScanTarget:
    """Create a fresh, empty target of the given kind."""
    return SCAN_TARGETS[kind](column)
