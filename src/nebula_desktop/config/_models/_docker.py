"""Container runtime configuration model."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class DockerConfig(BaseModel):
    """Container runtime configuration section.

    Attributes:
        command_timeout: Default timeout in seconds for runtime commands.
        search_paths: Extra directories probed for the docker binaries
            before the well-known install locations.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    command_timeout: float = Field(default=120.0, gt=0)
    search_paths: tuple[str, ...] = ()
