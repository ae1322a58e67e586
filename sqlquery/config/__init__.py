"""Configuration management."""

from .config import (
    DEFAULT_FETCH_SIZE,
    DEFAULT_MAX_IDLE_CONNECTIONS,
    ActivitySettings,
    Config,
    LoggingConfig,
    PoolConfig,
    load_config,
    settings_from_mapping,
)

__all__ = [
    "ActivitySettings",
    "Config",
    "LoggingConfig",
    "PoolConfig",
    "DEFAULT_FETCH_SIZE",
    "DEFAULT_MAX_IDLE_CONNECTIONS",
    "load_config",
    "settings_from_mapping",
]
