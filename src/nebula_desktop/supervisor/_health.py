"""Health resolution for individual services.

Container engines expose three independent and sometimes absent signals:
whether the container exists, whether it is running, and the status of
its native health check. This module combines them into one HealthState
with a fixed fallback order. All parsing of engine output for these
signals is kept here.
"""

from typing import TYPE_CHECKING, Any, final

import httpx
import orjson

from nebula_desktop.exceptions import CommandError
from nebula_desktop.utils import get_null_logger

from ._models import ContainerInspection, ContainerMetrics, HealthState

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from nebula_desktop.runtime import CommandRunner, ComposeProject

    from ._topology import ServiceDefinition, ServiceTopology

STATS_FORMAT = "{{.CPUPerc}};{{.MemUsage}};{{.NetIO}}"

_HEALTHY_MARKERS: tuple[str, ...] = ("ok", "healthy")

_NATIVE_STATES: dict[str, HealthState] = {
    "healthy": HealthState.HEALTHY,
    "unhealthy": HealthState.UNHEALTHY,
    "starting": HealthState.STARTING,
}


def parse_inspection(output: str) -> ContainerInspection | None:
    """Parse `docker inspect` JSON output for a single container.

    Args:
        output: The command's stdout (a JSON array).

    Returns:
        The parsed state, or None if the array is empty.

    Raises:
        ValueError: If the output is not inspect JSON.
    """
    try:
        data: Any = orjson.loads(output)  # pyright: ignore[reportExplicitAny]
    except orjson.JSONDecodeError as e:
        msg = f"Unparsable inspect output: {e}"
        raise ValueError(msg) from e
    if not isinstance(data, list):
        msg = "Inspect output is not a JSON array"
        raise ValueError(msg)
    if not data:
        return None

    state = data[0].get("State") or {}
    health = state.get("Health") or {}
    health_status = health.get("Status")
    return ContainerInspection(
        running=state.get("Running") is True,
        state=str(state.get("Status") or ""),
        health=str(health_status) if health_status else None,
    )


def parse_stats(output: str) -> ContainerMetrics:
    """Parse `docker stats` output in the `CPU%;MemUsage;NetIO` format."""
    parts = [part.strip() for part in output.strip().split(";")]
    parts += [""] * (3 - len(parts))
    cpu, memory, network = parts[:3]
    return ContainerMetrics(
        cpu=cpu.removesuffix("%") or "0",
        memory=memory.split("/")[0].strip() or "0",
        network=network or "0",
    )


def decide(
    inspection: ContainerInspection | None,
    *,
    native_health_check: bool = True,
) -> HealthState:
    """Derive a health verdict from the container's engine-side signals.

    The first conclusive rule wins:
    1. No container: NOT_CREATED.
    2. Container not running: UNKNOWN.
    3. Native status healthy/unhealthy/starting maps one to one.
    4. No native status on a service declared without a health check:
       running counts as HEALTHY.
    5. Otherwise STARTING. A fresh container is never UNHEALTHY merely
       because its check has not run yet.

    Args:
        inspection: Parsed container state, or None if it does not exist.
        native_health_check: Whether the service is expected to carry a
            native health check.

    Returns:
        The health verdict.
    """
    if inspection is None:
        return HealthState.NOT_CREATED
    if not inspection.running:
        return HealthState.UNKNOWN

    native = (inspection.health or "").strip().lower()
    mapped = _NATIVE_STATES.get(native)
    if mapped is not None:
        return mapped

    if not native_health_check:
        return HealthState.HEALTHY
    return HealthState.STARTING


def is_missing_container(stderr: str) -> bool:
    """Return True if engine stderr reports that the container does not exist."""
    lowered = stderr.lower()
    return "no such object" in lowered or "no such container" in lowered


@final
class HealthResolver:
    """Resolves the normalized health state of services."""

    __slots__ = (
        "_compose",
        "_http_fallback",
        "_http_timeout",
        "_logger",
        "_runner",
        "_topology",
        "_transport",
    )

    def __init__(
        self,
        runner: CommandRunner,
        compose: ComposeProject,
        topology: ServiceTopology,
        *,
        http_fallback: bool = True,
        http_timeout: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            runner: Command runner for engine queries.
            compose: Compose project, for container naming.
            topology: Service topology, for name lookup.
            http_fallback: Probe the HTTP status endpoint when the native
                health signal is absent.
            http_timeout: Timeout in seconds for the HTTP probe.
            transport: Optional httpx transport for the probe client.
            logger: Structured logger. Uses a null logger if None.
        """
        self._runner = runner
        self._compose = compose
        self._topology = topology
        self._http_fallback = http_fallback
        self._http_timeout = http_timeout
        self._transport = transport
        self._logger = logger or get_null_logger()

    async def inspect(self, service: ServiceDefinition) -> ContainerInspection | None:
        """Query the container state of a service.

        Returns:
            The parsed state, or None if the container does not exist.

        Raises:
            CommandError: If the engine query fails for another reason.
        """
        container = self._compose.container_name(service.name)
        result = await self._runner.run_unchecked(
            ["docker", "inspect", "--type", "container", container]
        )
        if not result.ok:
            if is_missing_container(result.stderr):
                return None
            msg = f"Failed to inspect container {container}"
            raise CommandError(
                msg,
                command=result.command,
                stderr=result.stderr,
                exit_code=result.exit_code,
            )
        try:
            return parse_inspection(result.stdout)
        except ValueError as e:
            raise CommandError(
                str(e), command=result.command, stderr=result.stderr, cause=e
            ) from e

    async def probe_http(self, service: ServiceDefinition) -> bool:
        """Probe the service's HTTP status endpoint.

        Returns:
            True if the endpoint answered successfully with a healthy marker.
        """
        if service.health_port is None:
            return False
        url = f"http://localhost:{service.health_port}{service.health_path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._http_timeout, transport=self._transport
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            self._logger.debug("http_probe_failed", service=service.name, error=str(e))
            return False
        if not response.is_success:
            return False
        body = response.text.lower()
        return any(marker in body for marker in _HEALTHY_MARKERS)

    async def evaluate(
        self,
        service: ServiceDefinition,
        inspection: ContainerInspection | None,
    ) -> HealthState:
        """Apply the decision procedure, with the optional HTTP fallback.

        The probe only promotes a result to HEALTHY; a failed probe
        leaves the verdict unchanged.
        """
        state = decide(inspection, native_health_check=service.native_health_check)
        if (
            self._http_fallback
            and inspection is not None
            and inspection.running
            and inspection.health is None
            and state is not HealthState.HEALTHY
            and await self.probe_http(service)
        ):
            self._logger.debug("http_probe_promoted", service=service.name)
            return HealthState.HEALTHY
        return state

    async def resolve(self, name: str) -> HealthState:
        """Resolve the health of a service by identity or display name.

        Engine failures degrade to UNKNOWN rather than raising.

        Raises:
            ServiceNotFoundError: If the name matches no service.
        """
        service = self._topology.get(name)
        try:
            inspection = await self.inspect(service)
        except CommandError as e:
            self._logger.warning("inspect_failed", service=service.name, error=str(e))
            return HealthState.UNKNOWN
        return await self.evaluate(service, inspection)

    async def sample_metrics(self, service: ServiceDefinition) -> ContainerMetrics:
        """Sample resource usage; a failed sample yields zeroed metrics."""
        container = self._compose.container_name(service.name)
        try:
            output = await self._runner.run(
                ["docker", "stats", container, "--no-stream", "--format", STATS_FORMAT]
            )
        except CommandError as e:
            self._logger.warning("stats_failed", service=service.name, error=str(e))
            return ContainerMetrics()
        return parse_stats(output)
