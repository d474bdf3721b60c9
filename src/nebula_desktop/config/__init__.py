"""Layered TOML configuration: defaults, user file, environment and CLI.

Example:
    >>> from nebula_desktop.config import Config
    >>> config = Config.load()
    >>> config.supervisor.poll_interval
    2.0
"""

from nebula_desktop.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import CONFIG_FILE_NAME, discover_sources, get_user_config_path
from ._load import safe_load_config
from ._loader import (
    ENV_PREFIX,
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    Config,
    ConfigSource,
    ConfigSourceName,
    DockerConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PathsConfig,
    SupervisorConfig,
)
from ._validation import ValidationIssue, validate_config

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "DockerConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PathsConfig",
    "SupervisorConfig",
    "ValidationIssue",
    "deep_merge",
    "discover_sources",
    "get_user_config_path",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
    "validate_config",
]
