"""Built-in configuration values, derived from the section models."""

from typing import Any

from ._models._docker import DockerConfig
from ._models._logging import LoggingConfig
from ._models._paths import PathsConfig
from ._models._supervisor import SupervisorConfig

# Unset optional fields are left out so the result stays TOML-serializable
DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    name: section().model_dump(mode="json", exclude_none=True)
    for name, section in (
        ("logging", LoggingConfig),
        ("docker", DockerConfig),
        ("supervisor", SupervisorConfig),
        ("paths", PathsConfig),
    )
}
