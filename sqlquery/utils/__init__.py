"""Shared helpers."""

from .logging import ActivityLoggerAdapter, activity_logger, setup_logging

__all__ = ["setup_logging", "activity_logger", "ActivityLoggerAdapter"]
