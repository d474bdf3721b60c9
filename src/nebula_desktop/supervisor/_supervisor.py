"""Lifecycle coordinator for the service stack.

This module provides the Supervisor class, which starts and stops the
whole stack, runs per-service operations, waits for health convergence
and owns the status cache. Operations are async and run on anyio; task
groups fan out the per-service status evaluation.
"""

import time
from typing import TYPE_CHECKING, final

import anyio

from nebula_desktop.config import SupervisorConfig
from nebula_desktop.exceptions import (
    CommandError,
    HealthTimeoutError,
    ImageProvisioningError,
    RuntimeUnavailableError,
    ServiceNotFoundError,
)
from nebula_desktop.runtime import (
    ComposeProject,
    ImageProvisioner,
    RuntimeChecker,
    find_conflicting_ports,
)
from nebula_desktop.utils import CommandExecutor, get_null_logger

from ._cache import StatusCache
from ._health import HealthResolver
from ._logs import parse_logs
from ._models import (
    SYSTEM_SERVICE,
    ContainerStatus,
    ErrorKind,
    HealthProgress,
    HealthState,
    OperationResult,
    ServiceHealth,
    ServiceStatus,
    StartPhase,
    StatusSnapshot,
)
from ._topology import ServiceTopology

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    import httpx
    from structlog.typing import FilteringBoundLogger

    from nebula_desktop.config import Config
    from nebula_desktop.runtime import CommandRunner, ImageLoadProgress, SystemStatus

    from ._models import LogLine
    from ._protocol import ImageProgressCallback, ProgressCallback
    from ._topology import ServiceDefinition


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    import pendulum  # noqa: PLC0415

    return pendulum.now("UTC").to_iso8601_string()


@final
class Supervisor:
    """Coordinates the container stack.

    Only one whole-stack start may be in flight; a second request is
    rejected, not queued. Per-service operations and status queries may
    run concurrently with each other and with a start.

    Every public mutating operation returns an OperationResult instead of
    raising, so callers can render the message directly.
    """

    __slots__ = (
        "_cache",
        "_checker",
        "_clock",
        "_compose",
        "_images_verified_at",
        "_last_progress",
        "_logger",
        "_phase",
        "_platform",
        "_provisioner",
        "_resolver",
        "_runner",
        "_services_starting",
        "_settings",
        "_sleep",
        "_topology",
    )

    def __init__(  # noqa: PLR0913
        self,
        runner: CommandRunner,
        *,
        data_dir: Path,
        images_dir: Path,
        topology: ServiceTopology | None = None,
        settings: SupervisorConfig | None = None,
        templates_dir: Path | None = None,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
        clock: Callable[[], float] = time.monotonic,
        http_transport: httpx.AsyncBaseTransport | None = None,
        platform: str | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            runner: Command runner for all runtime invocations.
            data_dir: Directory for the compose file and volumes.
            images_dir: Directory holding the image manifest and archives.
            topology: Service topology. Uses the default stack if None.
            settings: Supervisor tunables. Uses defaults if None.
            templates_dir: Compose template directory override.
            sleep: Async sleep function used for every timed wait.
            clock: Monotonic clock used for cache freshness.
            http_transport: Optional httpx transport for health probes.
            platform: Platform key for the port pre-flight.
            logger: Structured logger. Uses a null logger if None.
        """
        self._runner = runner
        self._topology = topology or ServiceTopology()
        self._settings = settings or SupervisorConfig()
        self._sleep = sleep
        self._clock = clock
        self._platform = platform
        self._logger = logger or get_null_logger()

        self._checker = RuntimeChecker(runner, logger=self._logger)
        self._compose = ComposeProject(
            data_dir,
            images=self._topology.images,
            templates_dir=templates_dir,
            logger=self._logger,
        )
        self._provisioner = ImageProvisioner(
            runner,
            self._checker,
            images=tuple(self._topology.images.values()),
            images_dir=images_dir,
            logger=self._logger,
        )
        self._resolver = HealthResolver(
            runner,
            self._compose,
            self._topology,
            http_fallback=self._settings.http_fallback,
            http_timeout=self._settings.http_timeout,
            transport=http_transport,
            logger=self._logger,
        )
        self._cache = StatusCache()

        self._services_starting = False
        self._images_verified_at: float | None = None
        self._phase = StartPhase.IDLE
        self._last_progress: dict[str, HealthProgress] = {}

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> Supervisor:
        """Build a supervisor backed by a real command executor.

        Args:
            config: Loaded configuration.
            logger: Structured logger. Uses a null logger if None.

        Returns:
            A configured Supervisor.
        """
        effective_logger = logger or get_null_logger()
        executor = CommandExecutor(
            search_paths=config.docker.search_paths,
            timeout=config.docker.command_timeout,
            logger=effective_logger,
        )
        return cls(
            executor,
            data_dir=config.paths.resolve_data_dir(),
            images_dir=config.paths.resolve_images_dir(),
            settings=config.supervisor,
            logger=effective_logger,
        )

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def topology(self) -> ServiceTopology:
        """Return the service topology."""
        return self._topology

    @property
    def compose(self) -> ComposeProject:
        """Return the compose project."""
        return self._compose

    @property
    def resolver(self) -> HealthResolver:
        """Return the health resolver."""
        return self._resolver

    @property
    def services_starting(self) -> bool:
        """Return True while a whole-stack start is in flight."""
        return self._services_starting

    @property
    def phase(self) -> StartPhase:
        """Return the phase of the current or most recent stack start."""
        return self._phase

    @property
    def last_progress(self) -> dict[str, HealthProgress]:
        """Return the latest progress event per service."""
        return dict(self._last_progress)

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------

    async def check_docker_status(self) -> bool:
        """Return True if the engine daemon is reachable."""
        return await self._checker.check_docker_status()

    async def get_system_status(self) -> SystemStatus:
        """Return the consolidated runtime status."""
        status = await self._checker.check_system()
        self._compose.legacy = status.compose.legacy
        return status

    async def _require_runtime(self) -> SystemStatus:
        status = await self.get_system_status()
        if not status.is_ready:
            reason = status.reason
            raise RuntimeUnavailableError(reason, reason=reason)
        return status

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def ensure_images_loaded(
        self,
        progress: ImageProgressCallback | None = None,
    ) -> bool:
        """Make the service images available locally.

        Returns:
            True if every declared image is present afterwards.
        """
        loaded = await self._provisioner.ensure_images_loaded(progress)
        self._images_verified_at = self._clock() if loaded else None
        return loaded

    def get_image_loading_progress(self) -> ImageLoadProgress | None:
        """Return image provisioning progress, or None when not loading."""
        return self._provisioner.progress

    def _images_recently_verified(self) -> bool:
        if self._images_verified_at is None:
            return False
        age = self._clock() - self._images_verified_at
        return age < self._settings.image_cache_ttl

    # -------------------------------------------------------------------------
    # Whole-stack operations
    # -------------------------------------------------------------------------

    def _emit(
        self,
        progress: HealthProgress,
        on_progress: ProgressCallback | None,
    ) -> None:
        self._last_progress[progress.service] = progress
        if on_progress is not None:
            on_progress(progress)

    def _set_phase(
        self,
        phase: StartPhase,
        on_progress: ProgressCallback | None,
        *,
        attempt: int = 0,
    ) -> None:
        self._phase = phase
        self._logger.info("start_phase", phase=phase.value)
        self._emit(
            HealthProgress(
                service=SYSTEM_SERVICE,
                attempt=attempt,
                max_attempts=self._settings.max_attempts,
                state=phase.value,
            ),
            on_progress,
        )

    async def start_services(
        self,
        on_progress: ProgressCallback | None = None,
    ) -> OperationResult:
        """Start the whole stack and wait for every service to converge.

        Args:
            on_progress: Receives phase events (as the "system" service) and
                one event per service after every health poll.

        Returns:
            OperationResult; on health timeout it names the services that
            never became healthy.
        """
        if self._services_starting:
            return OperationResult.failed(
                "Services are already starting", ErrorKind.ALREADY_STARTING
            )

        self._services_starting = True
        self._last_progress = {}
        try:
            return await self._start_stack(on_progress)
        except RuntimeUnavailableError as e:
            self._set_phase(StartPhase.ABORTED, on_progress)
            return OperationResult.failed(str(e), ErrorKind.RUNTIME_UNAVAILABLE)
        except ImageProvisioningError as e:
            self._images_verified_at = None
            self._set_phase(StartPhase.ABORTED, on_progress)
            return OperationResult.failed(
                str(e), ErrorKind.IMAGE_PROVISIONING_FAILED
            )
        except HealthTimeoutError as e:
            self._set_phase(StartPhase.TIMED_OUT, on_progress)
            return OperationResult.failed(
                str(e),
                ErrorKind.HEALTH_TIMEOUT,
                unhealthy_services=e.unhealthy_services,
            )
        except CommandError as e:
            self._set_phase(StartPhase.ABORTED, on_progress)
            detail = e.stderr or str(e)
            return OperationResult.failed(
                f"Failed to start services: {detail}", ErrorKind.COMMAND_ERROR
            )
        except Exception:
            self._phase = StartPhase.ABORTED
            self._logger.exception("start_services_failed")
            raise
        finally:
            self._services_starting = False

    async def _start_stack(
        self,
        on_progress: ProgressCallback | None,
    ) -> OperationResult:
        self._set_phase(StartPhase.CHECKING, on_progress)
        _ = await self._require_runtime()

        if self._settings.port_check:
            conflicts = await self._find_port_conflicts()
            if conflicts:
                self._set_phase(StartPhase.ABORTED, on_progress)
                ports = ", ".join(str(p) for p in conflicts)
                return OperationResult.failed(
                    f"Ports already in use: {ports}", ErrorKind.PORT_CONFLICT
                )

        self._set_phase(StartPhase.PROVISIONING, on_progress)
        if not self._images_recently_verified():
            if not await self.ensure_images_loaded():
                msg = "Failed to make the service images available"
                raise ImageProvisioningError(msg)
        _ = await self._compose.prepare()

        self._set_phase(StartPhase.LAUNCHING, on_progress)
        _ = await self._runner.run(
            self._compose.command("up", "-d"), cwd=self._compose.data_dir
        )
        await self._sleep(self._settings.settle_delay)

        self._set_phase(StartPhase.AWAITING_HEALTH, on_progress)
        pending = await self._await_convergence(on_progress)
        if pending:
            msg = f"Services did not become healthy: {', '.join(pending)}"
            raise HealthTimeoutError(msg, unhealthy_services=pending)

        self._set_phase(StartPhase.CONVERGED, on_progress)
        self._logger.info("services_converged")
        return OperationResult.ok()

    async def _await_convergence(
        self,
        on_progress: ProgressCallback | None,
    ) -> list[str]:
        """Poll until every service converges or the attempt budget runs out.

        Returns:
            Identities of the services still not running and healthy.
        """
        max_attempts = self._settings.max_attempts
        pending: list[str] = [s.name for s in self._topology.supervised]

        for attempt in range(1, max_attempts + 1):
            snapshot = await self._compute_snapshot()
            _ = self._cache.replace(snapshot)

            for name, status in snapshot.services.items():
                self._emit(
                    HealthProgress(
                        service=name,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        state=status.health.state.value,
                    ),
                    on_progress,
                )

            pending = [
                name
                for name, status in snapshot.services.items()
                if not status.is_converged
            ]
            if not pending:
                return []

            self._logger.debug("awaiting_health", attempt=attempt, pending=pending)
            if attempt < max_attempts:
                await self._sleep(self._settings.poll_interval)

        return pending

    async def _find_port_conflicts(self) -> list[int]:
        """Return bound host ports of services that are not already running."""
        ports: list[int] = []
        for service in self._topology.supervised:
            try:
                inspection = await self._resolver.inspect(service)
            except CommandError:
                inspection = None
            if inspection is None or not inspection.running:
                ports.extend(service.required_ports)
        return await find_conflicting_ports(
            self._runner, ports, platform=self._platform, logger=self._logger
        )

    async def _compose_action(self, *args: str) -> OperationResult:
        try:
            _ = await self._require_runtime()
            if not await self._compose.is_provisioned():
                # Nothing was ever created
                return OperationResult.ok()
            _ = await self._runner.run(
                self._compose.command(*args), cwd=self._compose.data_dir
            )
        except RuntimeUnavailableError as e:
            return OperationResult.failed(str(e), ErrorKind.RUNTIME_UNAVAILABLE)
        except CommandError as e:
            detail = e.stderr or str(e)
            return OperationResult.failed(
                f"Failed to {args[0]} services: {detail}", ErrorKind.COMMAND_ERROR
            )
        return OperationResult.ok()

    async def stop_services(self) -> OperationResult:
        """Stop every container, keeping them for a later start."""
        result = await self._compose_action("stop")
        if result.success:
            self._logger.info("services_stopped")
        return result

    async def cleanup_services(self) -> OperationResult:
        """Stop and remove every container."""
        result = await self._compose_action("down")
        if result.success:
            self._logger.info("services_removed")
        return result

    # -------------------------------------------------------------------------
    # Per-service operations
    # -------------------------------------------------------------------------

    async def _service_action(self, name: str, *args: str) -> OperationResult:
        try:
            service = self._topology.get(name)
            _ = await self._require_runtime()
            if args[0] == "up":
                _ = await self._compose.prepare()
            elif not await self._compose.is_provisioned():
                # Nothing was ever created
                return OperationResult.ok()
            _ = await self._runner.run(
                self._compose.command(*args, service.name),
                cwd=self._compose.data_dir,
            )
        except ServiceNotFoundError as e:
            return OperationResult.failed(str(e), ErrorKind.SERVICE_NOT_FOUND)
        except RuntimeUnavailableError as e:
            return OperationResult.failed(str(e), ErrorKind.RUNTIME_UNAVAILABLE)
        except CommandError as e:
            detail = e.stderr or str(e)
            return OperationResult.failed(
                f"Failed to {args[0]} {name}: {detail}", ErrorKind.COMMAND_ERROR
            )
        self._logger.info("service_action", service=service.name, action=args[0])
        return OperationResult.ok()

    async def start_service(self, name: str) -> OperationResult:
        """Create and start one service (by identity or display name)."""
        return await self._service_action(name, "up", "-d")

    async def stop_service(self, name: str) -> OperationResult:
        """Stop one service (by identity or display name)."""
        return await self._service_action(name, "stop")

    async def restart_service(self, name: str) -> OperationResult:
        """Restart one service (by identity or display name)."""
        return await self._service_action(name, "restart")

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def _not_created_snapshot(self) -> dict[str, ServiceStatus]:
        now = _get_timestamp()
        return {
            service.name: ServiceStatus(
                name=service.name,
                display_name=service.display_name,
                status=ContainerStatus.NOT_CREATED,
                health=ServiceHealth(state=HealthState.NOT_CREATED, last_check=now),
                ports=service.ports,
            )
            for service in self._topology.supervised
        }

    async def _evaluate_service(
        self,
        service: ServiceDefinition,
        *,
        checked_at: str,
        previous: ServiceStatus | None,
    ) -> tuple[ServiceStatus, bool]:
        """Evaluate one service.

        Returns:
            The status and whether the evaluation succeeded.
        """
        try:
            inspection = await self._resolver.inspect(service)
        except CommandError as e:
            self._logger.warning("service_evaluation_failed", service=service.name, error=str(e))
            status = ServiceStatus(
                name=service.name,
                display_name=service.display_name,
                status=ContainerStatus.ERROR,
                health=ServiceHealth(state=HealthState.UNKNOWN, last_check=checked_at),
                ports=service.ports,
            )
            return status, False

        state = await self._resolver.evaluate(service, inspection)
        failure_count = 0
        if state is HealthState.UNHEALTHY:
            failure_count = (previous.health.failure_count if previous else 0) + 1

        if inspection is None:
            container_status = ContainerStatus.NOT_CREATED
        elif inspection.running:
            container_status = ContainerStatus.RUNNING
        else:
            container_status = ContainerStatus.STOPPED

        metrics = None
        if container_status is ContainerStatus.RUNNING:
            metrics = await self._resolver.sample_metrics(service)

        status = ServiceStatus(
            name=service.name,
            display_name=service.display_name,
            status=container_status,
            health=ServiceHealth(
                state=state, last_check=checked_at, failure_count=failure_count
            ),
            metrics=metrics,
            ports=service.ports,
        )
        return status, True

    async def _compute_snapshot(self) -> StatusSnapshot:
        """Evaluate every supervised service concurrently."""
        started_at = self._clock()
        checked_at = _get_timestamp()
        cached = self._cache.snapshot
        previous = cached.services if cached is not None else {}
        results: dict[str, tuple[ServiceStatus, bool]] = {}

        async def evaluate(service: ServiceDefinition) -> None:
            results[service.name] = await self._evaluate_service(
                service, checked_at=checked_at, previous=previous.get(service.name)
            )

        async with anyio.create_task_group() as tg:
            for service in self._topology.supervised:
                tg.start_soon(evaluate, service)

        ordered = [results[s.name] for s in self._topology.supervised]
        return StatusSnapshot(
            services={status.name: status for status, _ in ordered},
            started_at=started_at,
            complete=all(ok for _, ok in ordered),
        )

    async def get_services_status(self) -> dict[str, ServiceStatus]:
        """Return the status of every supervised service.

        While a stack start is in flight the cached snapshot is returned
        as is. When the stack was never provisioned or the engine is
        unreachable, every service reports NOT_CREATED.
        """
        cached = self._cache.snapshot
        if self._services_starting and cached is not None:
            return dict(cached.services)

        if not await self._compose.is_provisioned():
            return self._not_created_snapshot()
        if not await self._checker.check_docker_status():
            return self._not_created_snapshot()

        snapshot = await self._compute_snapshot()
        if not self._cache.replace(snapshot) and not snapshot.complete:
            self._logger.info("partial_status_not_cached")
        return dict(snapshot.services)

    # -------------------------------------------------------------------------
    # Logs
    # -------------------------------------------------------------------------

    async def get_service_logs(self, name: str) -> list[LogLine]:
        """Fetch and classify the recent log lines of one service.

        Args:
            name: Service identity or display name, case-insensitive.

        Returns:
            Parsed log lines, oldest first. Empty if the fetch failed.

        Raises:
            ServiceNotFoundError: If the name matches no service.
            RuntimeUnavailableError: If the runtime is not usable.
        """
        service = self._topology.get(name)
        _ = await self._require_runtime()
        if not await self._compose.is_provisioned():
            return []

        retrieved_at = _get_timestamp()
        command = self._compose.command(
            "logs",
            "--no-color",
            "--timestamps",
            f"--tail={self._settings.log_tail}",
            service.name,
        )
        try:
            result = await self._runner.run_unchecked(
                command, cwd=self._compose.data_dir
            )
        except CommandError as e:
            self._logger.warning("logs_failed", service=service.name, error=str(e))
            return []
        if not result.ok:
            self._logger.warning(
                "logs_failed", service=service.name, stderr=result.stderr
            )
            return []
        return parse_logs(result.stdout, retrieved_at=retrieved_at)
