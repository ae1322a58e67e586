"""Turns a DB-API cursor into a positional or labeled result set."""

import logging
from typing import Any, List, Sequence, Tuple, Type, Union

from ..config.config import DEFAULT_FETCH_SIZE
from ..dialects.base import ColumnMetadata, DriverHelper
from ..errors import ExecutionError
from .results import LabeledResultSet, PositionalResultSet

logger = logging.getLogger(__name__)

ResultSet = Union[PositionalResultSet, LabeledResultSet]


class ResultMaterializer:
    """Scans cursor rows through dialect-chosen scan targets."""

    def __init__(
        self,
        helper: DriverHelper,
        fetch_size: int = DEFAULT_FETCH_SIZE,
        driver_errors: Tuple[Type[BaseException], ...] = (),
    ):
        """Initialize materializer.

        Args:
            helper: Driver helper that picks a scan target per column
            fetch_size: Rows pulled from the cursor per fetchmany call
            driver_errors: Driver exception types to surface as ExecutionError
        """
        self.helper = helper
        self.fetch_size = fetch_size
        self.driver_errors = driver_errors

    def materialize(self, cursor: Any, labeled: bool = False) -> ResultSet:
        """Read the cursor to exhaustion and build the result set.

        Any scan or fetch failure propagates and the partial rows are
        dropped.

        Raises:
            ScanError: if a value does not fit its column's scan target
            ExecutionError: if the driver fails while fetching rows
        """
        columns = self._read_columns(cursor)
        names = [column.name for column in columns]
        rows: List[Any] = []
        for raw_row in self._fetch_rows(cursor):
            values = self._scan_row(columns, raw_row)
            if labeled:
                rows.append(dict(zip(names, values)))
            else:
                rows.append(values)

        logger.debug(f"Materialized {len(rows)} row(s) x {len(columns)} column(s)")
        if labeled:
            return LabeledResultSet(columns=names, rows=rows)
        return PositionalResultSet(columns=names, rows=rows)

    def _read_columns(self, cursor: Any) -> List[ColumnMetadata]:
        description = cursor.description or ()
        columns = []
        for entry in description:
            columns.append(ColumnMetadata.from_description(entry))
        return columns

    def _fetch_rows(self, cursor: Any):
        while True:
            try:
                batch = cursor.fetchmany(self.fetch_size)
            except self.driver_errors as exc:
                raise ExecutionError(f"Failed to fetch rows: {exc}") from exc
            if not batch:
                return
            yield from batch

    def _scan_row(self, columns: List[ColumnMetadata], raw_row: Sequence[Any]) -> List[Any]:
        if len(raw_row) != len(columns):
            raise ExecutionError(
                f"Row has {len(raw_row)} value(s) for {len(columns)} column(s)"
            )
        values = []
        for column, raw in zip(columns, raw_row):
            # fresh target per column per row
            target = self.helper.scan_target_for(column)
            target.scan(raw)
            values.append(target.value)
        return values


def materialize(
    cursor: Any,
    helper: DriverHelper,
    labeled: bool = False,
    fetch_size: int = DEFAULT_FETCH_SIZE,
    driver_errors: Tuple[Type[BaseException], ...] = (),
) -> ResultSet:
    """Materialize ``cursor`` with ``helper``'s scan typing."""
    materializer = ResultMaterializer(helper, fetch_size, driver_errors)
    return materializer.materialize(cursor, labeled=labeled)
