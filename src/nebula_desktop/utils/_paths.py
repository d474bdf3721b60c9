"""Platform-specific filesystem locations."""

from importlib.resources import files
from pathlib import Path

import platformdirs

APP_NAME = "nebula-desktop"


def get_user_data_dir() -> Path:
    """Get the per-user data directory (compose file, container volumes)."""
    return platformdirs.user_data_path(APP_NAME)


def get_user_config_dir() -> Path:
    """Get the per-user configuration directory."""
    return platformdirs.user_config_path(APP_NAME)


def get_user_log_dir() -> Path:
    """Get the per-user directory for supervisor log files."""
    return platformdirs.user_log_path(APP_NAME)


def get_supervisor_log_file() -> Path:
    """Get the path to the default supervisor log file."""
    return get_user_log_dir() / "supervisor.log"


def get_compose_file(data_dir: Path | None = None) -> Path:
    """Get the path of the rendered orchestration definition.

    Args:
        data_dir: Data directory override. Defaults to the user data directory.

    Returns:
        Path to docker-compose.yml inside the data directory.
    """
    return (data_dir or get_user_data_dir()) / "docker-compose.yml"


def get_images_dir(data_dir: Path | None = None) -> Path:
    """Get the directory holding image archives and their manifest."""
    return (data_dir or get_user_data_dir()) / "images"


def get_package_dir() -> Path:
    """Get the root directory of the installed nebula_desktop package."""
    return Path(str(files("nebula_desktop")))


def get_templates_dir() -> Path:
    """Get the path to the package's bundled templates directory."""
    return get_package_dir() / "runtime" / "templates"
