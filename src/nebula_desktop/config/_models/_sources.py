"""Where configuration values come from."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class ConfigSourceName(StrEnum):
    """Kinds of configuration source, strongest first.

    A value from an earlier member replaces the same key from any later one.
    FILE and USER never appear together: an explicit ``--config`` file takes
    the place of the per-user file.
    """

    CLI = "cli"
    ENV = "env"
    FILE = "file"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One layer of configuration and the values it contributed.

    Attributes:
        name: Which kind of layer this is.
        path: The TOML file behind a FILE or USER layer; None otherwise.
        exists: False for a file layer whose file is absent, or a CLI layer
            with no overrides.
        values: The raw, unvalidated values read from the layer.
    """

    name: ConfigSourceName
    path: Path | None = None
    exists: bool = True
    values: dict[str, Any] = field(default_factory=dict)  # pyright: ignore[reportExplicitAny]

    @property
    def is_file(self) -> bool:
        return self.name in (ConfigSourceName.FILE, ConfigSourceName.USER)
