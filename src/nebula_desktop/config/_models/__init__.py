"""Typed configuration sections and the merged Config container."""

from ._config import Config
from ._docker import DockerConfig
from ._logging import LogFormat, LoggingConfig, LogLevel
from ._paths import PathsConfig
from ._sources import ConfigSource, ConfigSourceName
from ._supervisor import SupervisorConfig

__all__ = [
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "DockerConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PathsConfig",
    "SupervisorConfig",
]
