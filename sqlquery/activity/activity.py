"""SQL query activity: construct once, evaluate many times, clean up once."""

import logging
from typing import Any, Dict, Mapping, Optional

from ..config.config import ActivitySettings, settings_from_mapping
from ..connection.manager import ConnectionManager
from ..dialects.base import DriverHelper
from ..dialects.registry import get_driver_helper
from ..executor.materializer import ResultSet
from ..executor.runner import QueryRunner
from ..parser.statement import CompiledStatement, compile_statement
from ..utils.logging import activity_logger

RESULTS_OUTPUT = "results"


class SQLQueryActivity:
    """Runs one templated select statement against one data source.

    Construction resolves the dialect, compiles the template (select only),
    opens the connection pool and, unless disabled, prepares the statement.
    Any failure along the way releases what was opened and re-raises, so no
    half-built instance is ever returned.
    """

    def __init__(self, settings: ActivitySettings):
        """Initialize activity.

        Args:
            settings: Construction-time settings

        Raises:
            ConfigurationError: unsupported dialect/driver or bad settings
            UnsupportedStatementKindError: the template is not a select
            CompilationError: the template is malformed
            ExecutionError: the backend could not be reached
        """
        self.settings = settings
        self.helper: DriverHelper = get_driver_helper(settings.dialect)
        driver_name = settings.driver_name or self.helper.default_driver
        self.logger = activity_logger(__name__, self.helper.name, driver_name)
        self.logger.info(f"New SQL query activity for dialect '{self.helper.name}'")

        self.statement: CompiledStatement = compile_statement(settings.query, self.helper)
        self.logger.debug(f"Query: {settings.query}")

        self.connection_manager = ConnectionManager.open(
            driver_name,
            settings.data_source_name,
            settings.pool,
            settings.query_timeout_ms,
        )
        try:
            if not settings.disable_prepared_statement:
                self.logger.debug(
                    f"Using prepared statement: {self.statement.prepared_sql}"
                )
                self.connection_manager.prepare(
                    self.statement.prepared_sql, self.statement.parameter_count
                )
            self.runner = QueryRunner(
                self.connection_manager,
                self.statement,
                labeled=settings.labeled_results,
                fetch_size=settings.fetch_size,
            )
        except Exception:
            self.connection_manager.release()
            raise

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "SQLQueryActivity":
        """Build from raw settings using the camelCase option names."""
        return cls(settings_from_mapping(settings))

    @property
    def prepared(self) -> bool:
        """True when invocations run through the prepared statement."""
        return self.connection_manager.prepared is not None

    @property
    def labeled_results(self) -> bool:
        return self.settings.labeled_results

    def query(self, params: Optional[Mapping[str, Any]] = None) -> ResultSet:
        """Run the query with ``params`` and return the result set.

        A failed invocation leaves the connection and prepared statement
        untouched for the next one.
        """
        return self.runner.run(params)

    def eval(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Run the query and return the named output, ``{"results": rows}``."""
        result = self.query(params)
        self.logger.debug(f"Query returned {len(result)} row(s)")
        return {RESULTS_OUTPUT: result.rows}

    def cleanup(self) -> None:
        """Release the prepared statement, then the connection pool.

        Raises:
            CleanupError: if closing the connection pool fails
        """
        if self.connection_manager.released:
            return
        self.logger.info("Cleaning up SQL query activity")
        self.connection_manager.release()

    def __enter__(self) -> "SQLQueryActivity":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    def __repr__(self) -> str:
        return f"SQLQueryActivity(dialect={self.helper.name})"
