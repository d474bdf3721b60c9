"""Filesystem locations configuration model."""

from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from nebula_desktop.utils import get_images_dir, get_user_data_dir


class PathsConfig(BaseModel):
    """Filesystem locations section.

    Empty strings select the platform defaults.

    Attributes:
        data_dir: Directory for the compose file and container volumes.
        images_dir: Directory holding the image manifest and archives.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    data_dir: str = ""
    images_dir: str = ""

    def resolve_data_dir(self) -> Path:
        """Return the effective data directory."""
        if self.data_dir:
            return Path(self.data_dir).expanduser().absolute()
        return get_user_data_dir()

    def resolve_images_dir(self) -> Path:
        """Return the effective images directory."""
        if self.images_dir:
            return Path(self.images_dir).expanduser().absolute()
        return get_images_dir(self.resolve_data_dir())
