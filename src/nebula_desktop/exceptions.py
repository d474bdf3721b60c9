"""nebula-desktop exceptions."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class NebulaDesktopError(Exception):
    """Base exception for nebula-desktop errors."""


class ConfigError(NebulaDesktopError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Runtime Exceptions
# =============================================================================


class CommandError(NebulaDesktopError):
    """Raised when an external command fails or cannot be spawned.

    Attributes:
        command: The command line that was executed.
        stderr: Captured standard error, if the process ran.
        exit_code: Process exit code, or None if the process never ran.
        timed_out: Whether the command was killed after its timeout.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str,
        stderr: str = "",
        exit_code: int | None = None,
        timed_out: bool = False,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and command context.

        Args:
            message: Human-readable error message.
            command: The command line that was executed.
            stderr: Captured standard error.
            exit_code: Process exit code, if available.
            timed_out: Whether the command timed out.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.command: str = command
        self.stderr: str = stderr
        self.exit_code: int | None = exit_code
        self.timed_out: bool = timed_out
        self.cause: Exception | None = cause


class RuntimeUnavailableError(NebulaDesktopError):
    """Raised when the container engine or compose is missing or unreachable.

    Attributes:
        reason: Why the runtime is considered unavailable.
    """

    def __init__(self, message: str, *, reason: str) -> None:
        """Initialize with error message and the unavailability reason."""
        super().__init__(message)
        self.reason: str = reason


class ImageProvisioningError(NebulaDesktopError):
    """Raised when the service images could not be made available locally."""


class ComposeTemplateError(NebulaDesktopError):
    """Raised when the orchestration definition cannot be rendered.

    Attributes:
        template: Name of the template that failed.
    """

    def __init__(self, message: str, *, template: str) -> None:
        """Initialize with error message and template name."""
        super().__init__(message)
        self.template: str = template


# =============================================================================
# Service Exceptions
# =============================================================================


class ServiceError(NebulaDesktopError):
    """Base exception for service errors."""

    def __init__(
        self,
        message: str,
        *,
        service_name: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and service context.

        Args:
            message: Human-readable error message.
            service_name: Name of the service involved.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.service_name: str | None = service_name
        self.cause: Exception | None = cause


class ServiceNotFoundError(ServiceError, KeyError):
    """Raised when a service identity or display name has no match."""

    def __str__(self) -> str:
        """Return the message without KeyError's repr quoting."""
        return str(self.args[0]) if self.args else ""


class HealthTimeoutError(ServiceError):
    """Raised when services never converged within the polling window.

    Attributes:
        unhealthy_services: Services that were not running and healthy
            when the attempt budget ran out.
    """

    def __init__(
        self,
        message: str,
        *,
        unhealthy_services: Sequence[str],
    ) -> None:
        """Initialize with error message and the services that never converged."""
        super().__init__(message)
        self.unhealthy_services: tuple[str, ...] = tuple(unhealthy_services)


class TopologyError(NebulaDesktopError):
    """Raised when the service topology is invalid.

    Attributes:
        service_name: The service whose definition is invalid, if known.
    """

    def __init__(self, message: str, *, service_name: str | None = None) -> None:
        """Initialize with error message and service context."""
        super().__init__(message)
        self.service_name: str | None = service_name
