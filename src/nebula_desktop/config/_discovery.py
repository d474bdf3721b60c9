"""Locating the configuration layers that apply to this process."""

from typing import TYPE_CHECKING, Any

from nebula_desktop.utils import get_user_config_dir

from ._defaults import DEFAULT_CONFIG
from ._models._sources import ConfigSource, ConfigSourceName

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_FILE_NAME = "config.toml"


def get_user_config_path() -> Path:
    """Return where the per-user ``config.toml`` lives, whether or not it exists."""
    return get_user_config_dir() / CONFIG_FILE_NAME


def _file_layer(name: ConfigSourceName, path: Path) -> ConfigSource:
    try:
        exists = path.is_file()
    except OSError:
        exists = False
    return ConfigSource(name, path=path, exists=exists)


def discover_sources(
    *,
    config_path: Path | None = None,
    include_env: bool = True,
    include_cli: bool = False,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> list[ConfigSource]:
    """List the layers to merge, strongest first.

    File layers are listed even when the file is missing, with
    ``exists=False``. Environment and file values are not read here; only
    the CLI and default layers carry their values already.

    Args:
        config_path: Use this file in place of the per-user config file.
        include_env: List the environment layer.
        include_cli: List the command-line layer.
        cli_overrides: Values for the command-line layer.
    """
    layers: list[ConfigSource] = []
    if include_cli:
        overrides = cli_overrides or {}
        layers.append(
            ConfigSource(ConfigSourceName.CLI, exists=bool(overrides), values=overrides)
        )
    if include_env:
        layers.append(ConfigSource(ConfigSourceName.ENV))
    if config_path is None:
        layers.append(_file_layer(ConfigSourceName.USER, get_user_config_path()))
    else:
        layers.append(_file_layer(ConfigSourceName.FILE, config_path))
    layers.append(ConfigSource(ConfigSourceName.DEFAULT, values=DEFAULT_CONFIG))
    return layers
