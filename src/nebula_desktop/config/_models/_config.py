# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""The merged, validated configuration of one nebula-desktop process."""

from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, overload

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ._docker import DockerConfig
from ._logging import LoggingConfig
from ._paths import PathsConfig
from ._sources import ConfigSource, ConfigSourceName
from ._supervisor import SupervisorConfig

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Self

T = TypeVar("T")


def _defaults() -> dict[str, Any]:
    from nebula_desktop.config._defaults import DEFAULT_CONFIG  # noqa: PLC0415
    from nebula_desktop.config._loader import copy_value  # noqa: PLC0415

    return copy_value(DEFAULT_CONFIG)


class Config(BaseModel):
    """Typed view over the layered configuration.

    The four sections are ordinary frozen fields. Alongside them the
    container keeps the raw merged mapping, for dotted lookups and for
    writing the configuration back out, and the layers it was built from.

    ``Config()`` yields the built-in defaults. Anything else goes through
    ``from_dict``, ``from_file`` or ``load``, which validate before building.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)

    _data: dict[str, Any] = PrivateAttr(default_factory=_defaults)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())

    @classmethod
    def _build(
        cls,
        data: dict[str, Any],
        sources: tuple[ConfigSource, ...] = (),
    ) -> Self:
        config = cls.model_validate(data)
        config._data = data
        config._sources = sources
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, validate: bool = True) -> Self:
        """Build a configuration from ``data`` laid over the defaults.

        Raises:
            ConfigValidationError: If a value is out of range or mistyped
                and ``validate`` is set.
        """
        from nebula_desktop.config._loader import deep_merge  # noqa: PLC0415
        from nebula_desktop.config._validation import ensure_valid  # noqa: PLC0415

        merged = deep_merge(_defaults(), data)
        if validate:
            ensure_valid(merged)
        return cls._build(merged)

    @classmethod
    def from_file(cls, path: Path, *, validate: bool = True) -> Self:
        """Build a configuration from one TOML file laid over the defaults.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ConfigLoadError: If ``path`` is not valid TOML.
            ConfigValidationError: If a value is invalid; the error names
                the file as its source.
        """
        from nebula_desktop.config._loader import (  # noqa: PLC0415
            deep_merge,
            read_toml_file,
        )
        from nebula_desktop.config._validation import ensure_valid  # noqa: PLC0415

        values = read_toml_file(path)
        merged = deep_merge(_defaults(), values)
        if validate:
            ensure_valid(merged, source=str(path))
        layer = ConfigSource(ConfigSourceName.FILE, path=path, values=values)
        return cls._build(merged, (layer,))

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        include_env: bool = True,
        include_cli: bool = False,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Read every layer and merge them, weakest first.

        Args:
            config_path: A TOML file used instead of the per-user file.
            include_env: Read ``NEBULA_DESKTOP_*`` variables.
            include_cli: Apply ``cli_overrides`` on top of everything else.
            cli_overrides: Nested overrides collected from the command line.

        Raises:
            ConfigLoadError: If a config file is not valid TOML.
            ConfigValidationError: If the merged result is invalid.
        """
        from nebula_desktop.config._discovery import discover_sources  # noqa: PLC0415
        from nebula_desktop.config._loader import (  # noqa: PLC0415
            deep_merge,
            parse_env_vars,
            read_toml_file,
        )
        from nebula_desktop.config._validation import ensure_valid  # noqa: PLC0415

        layers: list[ConfigSource] = []
        merged: dict[str, Any] = {}
        for source in reversed(
            discover_sources(
                config_path=config_path,
                include_env=include_env,
                include_cli=include_cli,
                cli_overrides=cli_overrides,
            )
        ):
            values = source.values
            if source.name is ConfigSourceName.ENV:
                values = parse_env_vars()
            elif source.is_file:
                values = read_toml_file(source.path) if source.exists and source.path else {}
            layers.append(
                ConfigSource(source.name, path=source.path, exists=source.exists, values=values)
            )
            merged = deep_merge(merged, values)

        ensure_valid(merged)
        return cls._build(merged, tuple(reversed(layers)))

    @property
    def sources(self) -> list[ConfigSource]:
        """Layers that built this configuration, strongest first."""
        return list(self._sources)

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: str, default: T) -> T: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a raw value by dotted key.

        Examples:
            >>> Config().get("supervisor.max_attempts")
            60
            >>> Config().get("supervisor.missing", "n/a")
            'n/a'
        """
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def to_dict(self, *, include_defaults: bool = True) -> dict[str, Any]:
        """Return the merged mapping, or only what differs from the defaults."""
        from nebula_desktop.config._loader import copy_value  # noqa: PLC0415

        if include_defaults:
            return copy_value(self._data)
        return copy_value(_changed(self._data, _defaults()))

    def to_toml(self, *, include_defaults: bool = False) -> str:
        """Render the configuration as TOML, by default only the changes."""
        return tomli_w.dumps(self.to_dict(include_defaults=include_defaults))


def _changed(data: dict[str, Any], baseline: dict[str, Any]) -> dict[str, Any]:
    """Return the parts of ``data`` that are absent from or differ from ``baseline``."""
    delta: dict[str, Any] = {}
    for key, value in data.items():
        base = baseline.get(key)
        if isinstance(value, dict) and isinstance(base, dict):
            nested = _changed(value, base)
            if nested:
                delta[key] = nested
        elif key not in baseline or value != base:
            delta[key] = value
    return delta
