"""Prepared statement handle shared by every invocation of an activity."""

import logging
from typing import Any, Sequence

from ..errors import ExecutionError

logger = logging.getLogger(__name__)


class PreparedStatement:
    """Positional-form SQL executed with bind values on any pooled connection.

    The handle is created once and reused by every invocation. DB-API
    drivers prepare on the connection that runs the statement, so the
    handle holds the SQL and its arity rather than a driver object.
    """

    def __init__(self, sql: str, parameter_count: int):
        self.sql = sql
        self.parameter_count = parameter_count
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def execute(self, cursor: Any, args: Sequence[Any]) -> Any:
        """Run the statement on ``cursor`` with one value per marker."""
        if self._closed:
            raise ExecutionError("Prepared statement is closed")
        if len(args) != self.parameter_count:
            raise ExecutionError(
                f"Prepared statement expects {self.parameter_count} argument(s), "
                f"got {len(args)}"
            )
        # always pass a sequence so format-style drivers unescape '%%'
        return cursor.execute(self.sql, list(args))

    def close(self) -> None:
        if not self._closed:
            logger.debug("Closing prepared statement")
        self._closed = True

    def __repr__(self) -> str:
        return f"PreparedStatement({self.sql!r})"
