"""Settings for the supervisor's own log file."""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Threshold below which supervisor log events are dropped."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Rendering of each log event: one JSON object or one key=value line."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """The ``[logging]`` section.

    Rotation is active only when both ``max_bytes`` and ``backup_count``
    are set. An empty ``file`` writes to ``supervisor.log`` in the
    platform log directory.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
    max_bytes: int | None = Field(default=None, gt=0)
    backup_count: int | None = Field(default=None, ge=0)