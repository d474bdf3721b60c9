"""Data models for the supervisor.

This module defines the core data types for stack supervision:
- HealthState: Normalized health verdict for one service
- ContainerStatus: Container lifecycle status
- ContainerInspection: Parsed container state from the engine
- ContainerMetrics: Point-in-time resource usage
- ServiceHealth / ServiceStatus: Per-service status record
- StatusSnapshot: Whole-stack status, replaced wholesale
- StartPhase / HealthProgress: Whole-stack start progress
- ErrorKind / OperationResult: Structured result of mutating operations
- LogLevel / LogLine: Classified log output
"""

from dataclasses import dataclass, field
from enum import StrEnum


class HealthState(StrEnum):
    """Normalized health verdict for a service.

    - NOT_CREATED: No container exists for the service
    - UNKNOWN: The container exists but its state could not be determined
    - STARTING: Running but not yet past its health check
    - HEALTHY: Passed its most recent health check
    - UNHEALTHY: Failed its most recent health check
    """

    NOT_CREATED = "not_created"
    UNKNOWN = "unknown"
    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ContainerStatus(StrEnum):
    """Container lifecycle status."""

    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"
    NOT_CREATED = "not_created"


@dataclass(frozen=True, slots=True)
class ContainerInspection:
    """Container state parsed from `docker inspect`.

    Attributes:
        running: Whether the container process is running.
        state: Raw lifecycle state string ("running", "exited", ...).
        health: Native health-check status, or None if not configured.
    """

    running: bool
    state: str = ""
    health: str | None = None


@dataclass(frozen=True, slots=True)
class ContainerMetrics:
    """Point-in-time resource usage of a running container.

    Attributes:
        cpu: CPU usage percentage, without the percent sign.
        memory: Memory in use, e.g. "512MiB".
        network: Network I/O, e.g. "1.2kB / 3.4kB".
    """

    cpu: str = "0"
    memory: str = "0"
    network: str = "0"


@dataclass(frozen=True, slots=True)
class ServiceHealth:
    """Health verdict with its bookkeeping.

    Attributes:
        state: The health verdict.
        last_check: ISO 8601 timestamp of the recomputation.
        failure_count: Consecutive recomputations that yielded UNHEALTHY.
    """

    state: HealthState
    last_check: str
    failure_count: int = 0


@dataclass(frozen=True, slots=True)
class ServiceStatus:
    """Status of one service, as of one recomputation.

    Attributes:
        name: Service identity.
        display_name: Human-readable service name.
        status: Container lifecycle status.
        health: Health verdict and bookkeeping.
        metrics: Resource usage, present if and only if running.
        ports: Declared ports.
        logs: Recent log lines, often empty.
    """

    name: str
    display_name: str
    status: ContainerStatus
    health: ServiceHealth
    metrics: ContainerMetrics | None = None
    ports: tuple[int, ...] = ()
    logs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        running = self.status is ContainerStatus.RUNNING
        if running != (self.metrics is not None):
            msg = f"Service '{self.name}': metrics must be present iff running"
            raise ValueError(msg)

    @property
    def is_converged(self) -> bool:
        """Return True if the service is running and healthy."""
        return (
            self.status is ContainerStatus.RUNNING
            and self.health.state is HealthState.HEALTHY
        )


@dataclass(frozen=True, slots=True)
class StatusSnapshot:
    """Whole-stack status, never patched in place.

    Attributes:
        services: Status per service identity, in start order.
        started_at: Monotonic time at which the computation began.
        complete: Whether every service was evaluated successfully.
    """

    services: dict[str, ServiceStatus]
    started_at: float
    complete: bool = True


class StartPhase(StrEnum):
    """Phase of a whole-stack start."""

    IDLE = "idle"
    CHECKING = "checking"
    PROVISIONING = "provisioning"
    LAUNCHING = "launching"
    AWAITING_HEALTH = "awaiting_health"
    CONVERGED = "converged"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"


# Pseudo-service used for coarse-grained phase progress
SYSTEM_SERVICE = "system"


@dataclass(frozen=True, slots=True)
class HealthProgress:
    """Progress event emitted while a whole-stack start runs.

    Attributes:
        service: Service identity, or "system" for phase events.
        attempt: Current polling attempt (0 outside the polling loop).
        max_attempts: Attempt budget.
        state: Health state (or phase name for "system" events).
    """

    service: str
    attempt: int
    max_attempts: int
    state: str


class ErrorKind(StrEnum):
    """Failure categories surfaced in operation results."""

    RUNTIME_UNAVAILABLE = "runtime_unavailable"
    ALREADY_STARTING = "already_starting"
    IMAGE_PROVISIONING_FAILED = "image_provisioning_failed"
    COMMAND_ERROR = "command_error"
    SERVICE_NOT_FOUND = "service_not_found"
    HEALTH_TIMEOUT = "health_timeout"
    PORT_CONFLICT = "port_conflict"
    INTERNAL = "internal"


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Structured result of a mutating operation.

    Attributes:
        success: Whether the operation succeeded.
        error: Human-readable error message.
        error_kind: Failure category.
        unhealthy_services: Services that never converged, on health timeout.
    """

    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None
    unhealthy_services: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls) -> OperationResult:
        """Return a successful result."""
        return cls(success=True)

    @classmethod
    def failed(
        cls,
        error: str,
        kind: ErrorKind,
        *,
        unhealthy_services: tuple[str, ...] = (),
    ) -> OperationResult:
        """Return a failed result."""
        return cls(
            success=False,
            error=error,
            error_kind=kind,
            unhealthy_services=unhealthy_services,
        )


class LogLevel(StrEnum):
    """Severity of a log line."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LogLine:
    """One classified log line.

    Attributes:
        timestamp: ISO 8601 timestamp from the line, or the retrieval time.
        message: Line content without the compose prefix or timestamp.
        level: Severity classification.
    """

    timestamp: str
    message: str
    level: LogLevel
