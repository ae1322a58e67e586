"""Executes a compiled statement on a pooled connection."""

import contextlib
import logging
from typing import Any, Mapping, Optional

from ..config.config import DEFAULT_FETCH_SIZE
from ..connection.manager import ConnectionManager
from ..errors import ExecutionError
from ..parser.binder import ParameterBinder
from ..parser.statement import CompiledStatement
from .materializer import ResultMaterializer, ResultSet

logger = logging.getLogger(__name__)


class QueryRunner:
    """Binds arguments, executes and materializes one invocation at a time.

    Holds no per-call state, so concurrent calls share only the
    connection manager.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        statement: CompiledStatement,
        labeled: bool = False,
        fetch_size: int = DEFAULT_FETCH_SIZE,
    ):
        self.manager = manager
        self.statement = statement
        self.labeled = labeled
        self.binder = ParameterBinder(statement)
        self.materializer = ResultMaterializer(
            statement.helper, fetch_size, manager.error_types
        )

    def run(self, params: Optional[Mapping[str, Any]] = None) -> ResultSet:
        """Execute the statement with ``params`` and return a fresh result set.

        Raises:
            BindError: a value cannot be rendered in literal mode
            ExecutionError: the backend rejected the query or the connection failed
            ScanError: a row value does not fit its scan target
        """
        missing = self.binder.missing_names(params)
        if missing:
            logger.debug(f"No argument for {', '.join(missing)}; binding NULL")

        prepared = self.manager.prepared
        if prepared is not None:
            args = self.binder.bind_positional(params)
            logger.debug(f"Executing prepared statement with {len(args)} argument(s)")
        else:
            sql = self.binder.bind_literal(params)
            logger.debug(f"Executing statement: {sql[:200]}")

        try:
            with self.manager.connection() as conn:
                with contextlib.closing(conn.cursor()) as cursor:
                    if prepared is not None:
                        prepared.execute(cursor, args)
                    else:
                        cursor.execute(sql)
                    return self.materializer.materialize(cursor, labeled=self.labeled)
        except self.manager.error_types as exc:
            logger.error(f"Query execution failed: {exc}")
            raise ExecutionError(f"Query execution failed: {exc}") from exc
