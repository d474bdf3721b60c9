"""Container runtime availability checks."""

from typing import TYPE_CHECKING, final

from nebula_desktop.exceptions import CommandError
from nebula_desktop.utils import get_null_logger

from ._models import ComposeStatus, DockerInfo, SystemStatus

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import CommandRunner

_INFO_KEYS: dict[str, str] = {
    "Server Version": "server_version",
    "OS/Arch": "os_arch",
    "Kernel Version": "kernel_version",
}


def parse_docker_info(output: str) -> DockerInfo:
    """Extract the server version, OS/arch and kernel from `docker info`.

    Args:
        output: Text output of `docker info`.

    Returns:
        DockerInfo with whichever fields were present.
    """
    values: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.strip().partition(":")
        if not sep:
            continue
        field_name = _INFO_KEYS.get(key.strip())
        if field_name is not None and field_name not in values:
            values[field_name] = value.strip()
    return DockerInfo(**values)


@final
class RuntimeChecker:
    """Determines whether the container engine and compose are usable.

    Every check is side-effect free and performs no retries; callers that
    want to retry do so themselves.
    """

    __slots__ = ("_logger", "_runner")

    def __init__(
        self,
        runner: CommandRunner,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the checker.

        Args:
            runner: Command runner used for all engine queries.
            logger: Structured logger. Uses a null logger if None.
        """
        self._runner = runner
        self._logger = logger or get_null_logger()

    async def check_docker_status(self) -> bool:
        """Return True if the engine daemon answers an info query."""
        try:
            _ = await self._runner.run(["docker", "info"])
        except CommandError:
            return False
        return True

    async def check_compose(self) -> ComposeStatus:
        """Detect the compose plugin, falling back to the legacy binary."""
        try:
            version = await self._runner.run(["docker", "compose", "version"])
        except CommandError:
            self._logger.info("compose_plugin_missing")
        else:
            return ComposeStatus(is_installed=True, version=version)

        try:
            version = await self._runner.run(["docker-compose", "--version"])
        except CommandError:
            self._logger.warning("compose_not_found")
            return ComposeStatus(is_installed=False)
        return ComposeStatus(is_installed=True, version=version, legacy=True)

    async def check_system(self) -> SystemStatus:
        """Build the consolidated runtime status.

        Returns:
            SystemStatus describing the most advanced stage reached:
            CLI installed, daemon running, compose available.
        """
        try:
            version = await self._runner.run(["docker", "--version"])
        except CommandError as e:
            self._logger.warning("docker_not_installed", error=str(e))
            return SystemStatus(
                is_installed=False,
                is_running=False,
                error="Docker is not installed",
            )

        try:
            info_output = await self._runner.run(["docker", "info"])
        except CommandError as e:
            self._logger.warning("docker_daemon_not_running", error=str(e))
            return SystemStatus(
                is_installed=True,
                is_running=False,
                version=version,
                error="Docker daemon is not running",
            )

        info = parse_docker_info(info_output)
        compose = await self.check_compose()
        if not compose.is_installed:
            return SystemStatus(
                is_installed=True,
                is_running=True,
                version=version,
                compose=compose,
                error="Docker Compose not found",
                info=info,
            )

        self._logger.debug(
            "docker_system_ready",
            version=version,
            compose_version=compose.version,
            legacy_compose=compose.legacy,
        )
        return SystemStatus(
            is_installed=True,
            is_running=True,
            version=version,
            compose=compose,
            info=info,
        )
