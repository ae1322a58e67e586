"""Logging setup for the query activity and its CLI."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config.config import LoggingConfig

# Driver loggers kept at WARNING regardless of the configured level
DRIVER_LOGGERS = ("psycopg2", "duckdb")

CONTEXT_ATTRIBUTE = "activity_context"


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, CONTEXT_ATTRIBUTE, None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with the activity context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_record_context(record))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable lines; activity context is appended as ``key=value`` pairs."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure the root logger from the ``logging`` config section.

    Records go to stderr (stdout carries CLI results) and, when
    ``log_file`` is set, to that file as well.
    """
    config = config or LoggingConfig()
    log_level = getattr(logging, config.level.upper(), logging.INFO)

    if config.structured:
        formatter = StructuredFormatter()
    else:
        formatter = StandardFormatter()

    handlers = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class ActivityLoggerAdapter(logging.LoggerAdapter):
    """Attaches the activity's dialect and driver to every record."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        context = dict(self.extra)
        context.update(extra.pop(CONTEXT_ATTRIBUTE, {}))
        extra[CONTEXT_ATTRIBUTE] = context
        kwargs["extra"] = extra
        return msg, kwargs


def activity_logger(name: str, dialect: str, driver: str) -> ActivityLoggerAdapter:
    """Logger for one activity instance.

    Example:
        >>> logger = activity_logger(__name__, "duckdb", "duckdb")
        >>> logger.info("Activity created")  # ... [dialect=duckdb driver=duckdb]
    """
    return ActivityLoggerAdapter(
        logging.getLogger(name), {"dialect": dialect, "driver": driver}
    )
