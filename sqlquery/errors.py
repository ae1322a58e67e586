"""Exception hierarchy for query construction, binding and execution."""


class SQLQueryError(Exception):
    """Base class for all errors raised by this package."""

    pass


class ConfigurationError(SQLQueryError):
    """Raised when activity settings are malformed or unsupported."""

    pass


class UnsupportedDialectError(ConfigurationError):
    """Raised when no driver helper exists for a dialect identifier."""

    def __init__(self, dialect: str):
        super().__init__(f"Unsupported dialect: {dialect!r}")
        self.dialect = dialect


class CompilationError(SQLQueryError):
    """Raised when a query template cannot be compiled."""

    pass


class UnsupportedStatementKindError(CompilationError):
    """Raised when a template is not a read (SELECT) statement."""

    def __init__(self, kind: str):
        super().__init__(f"Only select statements are supported, got: {kind}")
        self.kind = kind


class BindError(SQLQueryError):
    """Raised when an argument cannot be rendered for the target dialect."""

    pass


class ExecutionError(SQLQueryError):
    """Raised when the backend rejects a query or the connection fails."""

    pass


class ScanError(SQLQueryError):
    """Raised when a row value cannot be captured into its scan target."""

    pass


class CleanupError(SQLQueryError):
    """Raised when releasing the connection fails during shutdown."""

    pass
