"""Configuration for the SQL query activity."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ..errors import ConfigurationError

# Idle pool size meaning "use the default pool sizing"
DEFAULT_MAX_IDLE_CONNECTIONS = 2
DEFAULT_FETCH_SIZE = 10000


@dataclass
class PoolConfig:
    """Connection pool sizing; zero/default values keep driver defaults."""

    max_open_connections: int = 0
    max_idle_connections: int = DEFAULT_MAX_IDLE_CONNECTIONS

    def has_max_open(self) -> bool:
        """True when max open connections was set to a non-default value."""
        return self.max_open_connections > 0

    def has_max_idle(self) -> bool:
        """True when max idle connections was set to a non-default value."""
        return self.max_idle_connections != DEFAULT_MAX_IDLE_CONNECTIONS


@dataclass
class ActivitySettings:
    """Construction-time settings of one query activity."""

    dialect: str
    query: str
    driver_name: str = ""  # empty: the dialect's default driver
    data_source_name: str = ""
    pool: PoolConfig = field(default_factory=PoolConfig)
    disable_prepared_statement: bool = False
    labeled_results: bool = False
    fetch_size: int = DEFAULT_FETCH_SIZE
    query_timeout_ms: int = 0


@dataclass
class LoggingConfig:
    """Configuration for logging setup."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    activity: ActivitySettings
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# option name -> (attribute, expected type)
_SETTING_FIELDS = {
    "dialect": ("dialect", str),
    "query": ("query", str),
    "driverName": ("driver_name", str),
    "dataSourceName": ("data_source_name", str),
    "maxOpenConnections": ("max_open_connections", int),
    "maxIdleConnections": ("max_idle_connections", int),
    "disablePreparedStatement": ("disable_prepared_statement", bool),
    "labeledResults": ("labeled_results", bool),
    "fetchSize": ("fetch_size", int),
    "queryTimeoutMs": ("query_timeout_ms", int),
}

_POOL_ATTRIBUTES = ("max_open_connections", "max_idle_connections")


def _normalize_keys(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase and snake_case option names to attribute names."""
    by_attribute = {}
    for option, (attribute, _) in _SETTING_FIELDS.items():
        by_attribute[option] = attribute
        by_attribute[attribute] = attribute

    normalized: Dict[str, Any] = {}
    for key, value in mapping.items():
        attribute = by_attribute.get(key)
        if attribute is None:
            raise ConfigurationError(f"Unknown setting: {key!r}")
        if attribute in normalized:
            raise ConfigurationError(f"Setting given twice: {key!r}")
        normalized[attribute] = value
    return normalized


def _check_type(attribute: str, value: Any, expected: type) -> Any:
    # bool is an int subclass; reject it for numeric settings
    if expected is int and isinstance(value, bool):
        raise ConfigurationError(f"Setting {attribute!r} must be an integer")
    if not isinstance(value, expected):
        raise ConfigurationError(
            f"Setting {attribute!r} must be {expected.__name__}, "
            f"got {type(value).__name__}"
        )
    if expected is int and value < 0:
        raise ConfigurationError(f"Setting {attribute!r} must not be negative")
    return value


def settings_from_mapping(mapping: Mapping[str, Any]) -> ActivitySettings:
    """Build activity settings from a raw settings mapping.

    Accepts the camelCase option names (``driverName``,
    ``disablePreparedStatement``...) as well as the attribute names.

    Raises:
        ConfigurationError: unknown keys, missing dialect/query, bad types
    """
    if not isinstance(mapping, Mapping):
        raise ConfigurationError("Activity settings must be a mapping")

    normalized = _normalize_keys(mapping)
    expected_types = {attr: typ for attr, typ in _SETTING_FIELDS.values()}
    for attribute, value in normalized.items():
        _check_type(attribute, value, expected_types[attribute])

    for required in ("dialect", "query"):
        if not normalized.get(required):
            raise ConfigurationError(f"Setting {required!r} is required")

    pool_kwargs = {}
    for attribute in _POOL_ATTRIBUTES:
        if attribute in normalized:
            pool_kwargs[attribute] = normalized.pop(attribute)

    settings = ActivitySettings(pool=PoolConfig(**pool_kwargs), **normalized)
    if settings.fetch_size == 0:
        raise ConfigurationError("Setting 'fetch_size' must be positive")
    return settings


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Example YAML format:
        activity:
          dialect: postgres
          dataSourceName: "host=localhost dbname=hr user=app password=secret"
          query: "select id, name from users where dept = :dept"
          maxOpenConnections: 10
          labeledResults: true

        logging:
          level: DEBUG
          structured: true
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if "activity" not in data:
        raise ConfigurationError(f"Config file has no 'activity' section: {config_path}")

    activity = settings_from_mapping(data["activity"])

    logging_data = data.get("logging") or {}
    try:
        logging_config = LoggingConfig(**logging_data)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid logging section: {exc}") from exc

    return Config(activity=activity, logging=logging_config)
