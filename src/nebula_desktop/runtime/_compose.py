"""The compose project backing the service stack.

The orchestration definition is rendered once from the packaged Jinja2
template, substituting absolute data and log directories, and persisted to
the user data directory. Its presence is what distinguishes "never started"
from "previously started".
"""

from typing import TYPE_CHECKING, final

import anyio
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    UndefinedError,
)

from nebula_desktop.exceptions import ComposeTemplateError
from nebula_desktop.utils import get_null_logger, get_templates_dir

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

PROJECT_NAME = "nebulagraph-desktop"
TEMPLATE_NAME = "docker-compose.yml.j2"
COMPOSE_FILE_NAME = "docker-compose.yml"

# Bind-mounted host directories, relative to the data directory
VOLUME_DIRS: tuple[str, ...] = (
    "data/meta",
    "data/storage",
    "logs/meta",
    "logs/storage",
    "logs/graph",
)


@final
class ComposeProject:
    """Renders the compose file and builds scoped compose command lines.

    Attributes are fixed at construction except `legacy`, which follows the
    most recent runtime check (plugin `docker compose` vs the standalone
    `docker-compose` binary).
    """

    __slots__ = (
        "_data_dir",
        "_images",
        "_logger",
        "_project_name",
        "_templates_dir",
        "legacy",
    )

    def __init__(
        self,
        data_dir: Path,
        *,
        images: Mapping[str, str],
        templates_dir: Path | None = None,
        project_name: str = PROJECT_NAME,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the compose project.

        Args:
            data_dir: Directory holding the compose file and volumes. A
                relative path is anchored at the current directory.
            images: Image reference per compose service name.
            templates_dir: Template directory (defaults to the packaged one).
            project_name: Compose project name.
            logger: Structured logger. Uses a null logger if None.
        """
        # Bind paths in the rendered file must be absolute
        self._data_dir = data_dir.expanduser().absolute()
        self._images = dict(images)
        self._templates_dir = templates_dir or get_templates_dir()
        self._project_name = project_name
        self._logger = logger or get_null_logger()
        self.legacy: bool = False

    @property
    def project_name(self) -> str:
        """Return the compose project name."""
        return self._project_name

    @property
    def data_dir(self) -> Path:
        """Return the data directory."""
        return self._data_dir

    @property
    def compose_file(self) -> Path:
        """Return the path of the rendered compose file."""
        return self._data_dir / COMPOSE_FILE_NAME

    def container_name(self, service: str) -> str:
        """Return the container name compose assigns to a service."""
        return f"{self._project_name}-{service}-1"

    def command(self, *args: str) -> list[str]:
        """Build a compose command scoped to this project.

        Args:
            *args: Compose sub-command and its arguments, e.g. ("up", "-d").

        Returns:
            The full argument vector.
        """
        base = ["docker-compose"] if self.legacy else ["docker", "compose"]
        return [
            *base,
            "-p",
            self._project_name,
            "-f",
            str(self.compose_file),
            *args,
        ]

    def render(self) -> str:
        """Render the compose template for this data directory.

        Raises:
            ComposeTemplateError: If the template is missing or incomplete.
        """
        env = Environment(
            loader=FileSystemLoader(str(self._templates_dir)),
            autoescape=False,  # noqa: S701
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        try:
            template = env.get_template(TEMPLATE_NAME)
            return template.render(
                project_name=self._project_name,
                data_dir=(self._data_dir / "data").as_posix(),
                logs_dir=(self._data_dir / "logs").as_posix(),
                images=self._images,
            )
        except TemplateNotFound as e:
            msg = f"Compose template not found in {self._templates_dir}"
            raise ComposeTemplateError(msg, template=TEMPLATE_NAME) from e
        except UndefinedError as e:
            msg = f"Compose template references an undefined value: {e}"
            raise ComposeTemplateError(msg, template=TEMPLATE_NAME) from e

    async def is_provisioned(self) -> bool:
        """Return True if the compose file exists for this data directory."""
        path = anyio.Path(self.compose_file)
        if not await path.is_file():
            return False
        try:
            content = await path.read_text(encoding="utf-8")
        except OSError:
            return False
        return self._data_dir.as_posix() in content

    async def prepare(self) -> Path:
        """Create the volume directories and (re-)render the compose file.

        Returns:
            The path of the compose file.

        Raises:
            ComposeTemplateError: If the template cannot be rendered.
        """
        for relative in VOLUME_DIRS:
            await anyio.Path(self._data_dir / relative).mkdir(
                parents=True, exist_ok=True
            )

        if not await self.is_provisioned():
            content = self.render()
            _ = await anyio.Path(self.compose_file).write_text(
                content, encoding="utf-8"
            )
            self._logger.info("compose_file_rendered", path=str(self.compose_file))

        return self.compose_file
