"""Shared utilities: paths, logging and command execution."""

from ._exec import (
    DEFAULT_TIMEOUT,
    KNOWN_BINARY_DIRS,
    CommandExecutor,
    CommandResult,
    build_enhanced_path,
)
from ._logging import create_supervisor_logger, get_null_logger
from ._paths import (
    APP_NAME,
    get_compose_file,
    get_images_dir,
    get_package_dir,
    get_supervisor_log_file,
    get_templates_dir,
    get_user_config_dir,
    get_user_data_dir,
    get_user_log_dir,
)

__all__ = [
    "APP_NAME",
    "DEFAULT_TIMEOUT",
    "KNOWN_BINARY_DIRS",
    "CommandExecutor",
    "CommandResult",
    "build_enhanced_path",
    "create_supervisor_logger",
    "get_compose_file",
    "get_images_dir",
    "get_null_logger",
    "get_package_dir",
    "get_supervisor_log_file",
    "get_templates_dir",
    "get_user_config_dir",
    "get_user_data_dir",
    "get_user_log_dir",
]
