"""FastAPI control endpoints for the supervisor.

This module provides REST API endpoints through which a desktop shell
controls and monitors the stack. Failed operations are returned with
`success=false` rather than an error status, so the caller can render
the message; only unknown services (404) and an unavailable runtime
(503) map to HTTP errors.
"""

# pyright: reportUnusedFunction=false
# FastAPI route handlers are registered via decorators, not direct calls

from typing import TYPE_CHECKING, Never

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from nebula_desktop.exceptions import RuntimeUnavailableError, ServiceNotFoundError

from ._models import ErrorKind

if TYPE_CHECKING:
    from nebula_desktop.runtime import SystemStatus

    from ._models import OperationResult, ServiceStatus
    from ._supervisor import Supervisor


class DockerStatusResponse(BaseModel):
    """Response model for the engine reachability check."""

    running: bool


class ComposeStatusResponse(BaseModel):
    """Response model for compose availability."""

    is_installed: bool
    version: str | None
    legacy: bool


class SystemStatusResponse(BaseModel):
    """Response model for the consolidated runtime status."""

    is_installed: bool
    is_running: bool
    version: str | None
    compose: ComposeStatusResponse
    error: str | None
    server_version: str | None
    os_arch: str | None
    kernel_version: str | None


class OperationResponse(BaseModel):
    """Response model for mutating operations."""

    success: bool
    error: str | None = None
    error_kind: str | None = None
    unhealthy_services: list[str] = []


class MetricsResponse(BaseModel):
    """Response model for container resource usage."""

    cpu: str
    memory: str
    network: str


class HealthResponse(BaseModel):
    """Response model for a health verdict."""

    state: str
    last_check: str
    failure_count: int


class ServiceStatusResponse(BaseModel):
    """Response model for service status."""

    name: str
    display_name: str
    status: str
    health: HealthResponse
    metrics: MetricsResponse | None
    ports: list[int]


class ProgressResponse(BaseModel):
    """Response model for one health progress event."""

    service: str
    attempt: int
    max_attempts: int
    state: str


class StartProgressResponse(BaseModel):
    """Response model for whole-stack start progress."""

    starting: bool
    phase: str
    services: dict[str, ProgressResponse]


class LogLineResponse(BaseModel):
    """Response model for one log line."""

    timestamp: str
    message: str
    level: str


class ImageProgressResponse(BaseModel):
    """Response model for image provisioning progress."""

    loading: bool
    current: int = 0
    total: int = 0
    status: str = ""


def _operation_response(result: OperationResult) -> OperationResponse:
    return OperationResponse(
        success=result.success,
        error=result.error,
        error_kind=result.error_kind.value if result.error_kind else None,
        unhealthy_services=list(result.unhealthy_services),
    )


def _system_response(system: SystemStatus) -> SystemStatusResponse:
    info = system.info
    return SystemStatusResponse(
        is_installed=system.is_installed,
        is_running=system.is_running,
        version=system.version,
        compose=ComposeStatusResponse(
            is_installed=system.compose.is_installed,
            version=system.compose.version,
            legacy=system.compose.legacy,
        ),
        error=system.error,
        server_version=info.server_version if info else None,
        os_arch=info.os_arch if info else None,
        kernel_version=info.kernel_version if info else None,
    )


def _service_response(service: ServiceStatus) -> ServiceStatusResponse:
    metrics = service.metrics
    return ServiceStatusResponse(
        name=service.name,
        display_name=service.display_name,
        status=service.status.value,
        health=HealthResponse(
            state=service.health.state.value,
            last_check=service.health.last_check,
            failure_count=service.health.failure_count,
        ),
        metrics=(
            MetricsResponse(cpu=metrics.cpu, memory=metrics.memory, network=metrics.network)
            if metrics is not None
            else None
        ),
        ports=list(service.ports),
    )


def _raise_not_found(name: str, cause: ServiceNotFoundError) -> Never:
    """Raise HTTP 404 for service not found.

    Raises:
        HTTPException: Always raises with 404 status.
    """
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Service '{name}' not found",
    ) from cause


def _raise_unavailable(cause: RuntimeUnavailableError) -> Never:
    """Raise HTTP 503 for an unusable container runtime.

    Raises:
        HTTPException: Always raises with 503 status.
    """
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=cause.reason,
    ) from cause


def create_control_router(supervisor: Supervisor) -> APIRouter:
    """Create a FastAPI router for supervisor control endpoints.

    Args:
        supervisor: The Supervisor instance to control.

    Returns:
        A FastAPI APIRouter with control endpoints.
    """
    router = APIRouter(tags=["supervisor"])

    @router.get("/docker/status", response_model=DockerStatusResponse)
    async def docker_status() -> DockerStatusResponse:
        """Check whether the engine daemon is reachable."""
        return DockerStatusResponse(running=await supervisor.check_docker_status())

    @router.get("/docker/system", response_model=SystemStatusResponse)
    async def docker_system() -> SystemStatusResponse:
        """Get the consolidated runtime status."""
        return _system_response(await supervisor.get_system_status())

    @router.post("/services/start", response_model=OperationResponse)
    async def start_services() -> OperationResponse:
        """Start the whole stack and wait for convergence."""
        return _operation_response(await supervisor.start_services())

    @router.get("/services/start/progress", response_model=StartProgressResponse)
    async def start_progress() -> StartProgressResponse:
        """Get the phase and latest progress event per service."""
        return StartProgressResponse(
            starting=supervisor.services_starting,
            phase=supervisor.phase.value,
            services={
                name: ProgressResponse(
                    service=event.service,
                    attempt=event.attempt,
                    max_attempts=event.max_attempts,
                    state=event.state,
                )
                for name, event in supervisor.last_progress.items()
            },
        )

    @router.post("/services/stop", response_model=OperationResponse)
    async def stop_services() -> OperationResponse:
        """Stop every service."""
        return _operation_response(await supervisor.stop_services())

    @router.post("/services/cleanup", response_model=OperationResponse)
    async def cleanup_services() -> OperationResponse:
        """Stop and remove every service container."""
        return _operation_response(await supervisor.cleanup_services())

    @router.get("/services", response_model=dict[str, ServiceStatusResponse])
    async def list_services() -> dict[str, ServiceStatusResponse]:
        """Get the status of every supervised service, keyed by identity."""
        services = await supervisor.get_services_status()
        return {name: _service_response(s) for name, s in services.items()}

    def _checked(result: OperationResult, name: str) -> OperationResponse:
        if result.error_kind is ErrorKind.SERVICE_NOT_FOUND:
            _raise_not_found(name, ServiceNotFoundError(result.error or name))
        return _operation_response(result)

    @router.post("/services/{name}/start", response_model=OperationResponse)
    async def start_service(name: str) -> OperationResponse:
        """Start a specific service."""
        return _checked(await supervisor.start_service(name), name)

    @router.post("/services/{name}/stop", response_model=OperationResponse)
    async def stop_service(name: str) -> OperationResponse:
        """Stop a specific service."""
        return _checked(await supervisor.stop_service(name), name)

    @router.post("/services/{name}/restart", response_model=OperationResponse)
    async def restart_service(name: str) -> OperationResponse:
        """Restart a specific service."""
        return _checked(await supervisor.restart_service(name), name)

    @router.get("/services/{name}/logs", response_model=list[LogLineResponse])
    async def service_logs(name: str) -> list[LogLineResponse]:
        """Get the recent classified log lines of a service."""
        try:
            lines = await supervisor.get_service_logs(name)
        except ServiceNotFoundError as e:
            _raise_not_found(name, e)
        except RuntimeUnavailableError as e:
            _raise_unavailable(e)
        return [
            LogLineResponse(
                timestamp=line.timestamp, message=line.message, level=line.level.value
            )
            for line in lines
        ]

    @router.post("/images/load", response_model=OperationResponse)
    async def load_images() -> OperationResponse:
        """Make the service images available locally."""
        if await supervisor.ensure_images_loaded():
            return OperationResponse(success=True)
        return OperationResponse(
            success=False,
            error="Failed to make the service images available",
            error_kind=ErrorKind.IMAGE_PROVISIONING_FAILED.value,
        )

    @router.get("/images/progress", response_model=ImageProgressResponse)
    async def image_progress() -> ImageProgressResponse:
        """Get image provisioning progress."""
        progress = supervisor.get_image_loading_progress()
        if progress is None:
            return ImageProgressResponse(loading=False)
        return ImageProgressResponse(
            loading=True,
            current=progress.current,
            total=progress.total,
            status=progress.status,
        )

    return router
