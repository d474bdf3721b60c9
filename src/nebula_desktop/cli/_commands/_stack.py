# pyright: reportUnusedCallResult=false
"""Whole-stack commands: system, status, start, stop, cleanup."""

from typing import TYPE_CHECKING, Annotated

import anyio
from cyclopts import Parameter
from rich.console import Console
from rich.table import Table

from nebula_desktop.supervisor import ConsoleProgressPrinter, HealthState

from ._context import CLIContext, OutputFormat
from ._shared import (
    ExitCode,
    exit_for_result,
    exit_with_error,
    format_json,
)

if TYPE_CHECKING:
    from nebula_desktop.runtime import SystemStatus
    from nebula_desktop.supervisor import ServiceStatus

_HEALTH_COLORS: dict[HealthState, str] = {
    HealthState.HEALTHY: "green",
    HealthState.STARTING: "cyan",
    HealthState.UNHEALTHY: "red",
    HealthState.UNKNOWN: "yellow",
    HealthState.NOT_CREATED: "dim",
}


def _system_to_dict(system: SystemStatus) -> dict[str, object]:
    info = system.info
    return {
        "is_installed": system.is_installed,
        "is_running": system.is_running,
        "version": system.version,
        "compose": {
            "is_installed": system.compose.is_installed,
            "version": system.compose.version,
            "legacy": system.compose.legacy,
        },
        "error": system.error,
        "server_version": info.server_version if info else None,
        "os_arch": info.os_arch if info else None,
        "kernel_version": info.kernel_version if info else None,
    }


def _service_to_dict(service: ServiceStatus) -> dict[str, object]:
    metrics = service.metrics
    return {
        "name": service.name,
        "display_name": service.display_name,
        "status": service.status.value,
        "health": {
            "state": service.health.state.value,
            "last_check": service.health.last_check,
            "failure_count": service.health.failure_count,
        },
        "metrics": (
            {"cpu": metrics.cpu, "memory": metrics.memory, "network": metrics.network}
            if metrics is not None
            else None
        ),
        "ports": list(service.ports),
    }


def system(
    *,
    format: Annotated[  # noqa: A002
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format (table, json)"),
    ] = OutputFormat.TABLE,
) -> None:
    """Show Docker and Docker Compose availability.

    Exits with RUNTIME_UNAVAILABLE if the stack cannot be managed.

    Args:
        format: Output format (table, json).
    """
    supervisor = CLIContext.get_current().create_supervisor()
    runtime = anyio.run(supervisor.get_system_status)

    if format == OutputFormat.JSON:
        print(format_json(_system_to_dict(runtime)))  # noqa: T201
    else:
        table = Table(show_header=False, box=None)
        table.add_column("key", style="bold")
        table.add_column("value")
        table.add_row("Docker", runtime.version or "not installed")
        table.add_row("Daemon", "running" if runtime.is_running else "not running")
        compose = runtime.compose.version or "not installed"
        if runtime.compose.legacy:
            compose = f"{compose} (docker-compose)"
        table.add_row("Compose", compose)
        if runtime.info is not None:
            table.add_row("Server", runtime.info.server_version or "")
            table.add_row("Platform", runtime.info.os_arch or "")
        Console().print(table)

    if not runtime.is_ready:
        exit_with_error(runtime.reason, ExitCode.RUNTIME_UNAVAILABLE)
    raise SystemExit(ExitCode.SUCCESS)


def status(
    *,
    format: Annotated[  # noqa: A002
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format (table, json)"),
    ] = OutputFormat.TABLE,
) -> None:
    """Show the status of every service.

    Args:
        format: Output format (table, json).
    """
    supervisor = CLIContext.get_current().create_supervisor()
    services = anyio.run(supervisor.get_services_status)

    if format == OutputFormat.JSON:
        by_name = {name: _service_to_dict(s) for name, s in services.items()}
        print(format_json(by_name))  # noqa: T201
        raise SystemExit(ExitCode.SUCCESS)

    table = Table()
    table.add_column("Service")
    table.add_column("Status")
    table.add_column("Health")
    table.add_column("CPU %", justify="right")
    table.add_column("Memory", justify="right")
    table.add_column("Ports")
    for service in services.values():
        color = _HEALTH_COLORS.get(service.health.state, "")
        table.add_row(
            service.display_name,
            service.status.value,
            f"[{color}]{service.health.state.value}[/{color}]",
            service.metrics.cpu if service.metrics else "-",
            service.metrics.memory if service.metrics else "-",
            ", ".join(str(p) for p in service.ports),
        )
    Console().print(table)
    raise SystemExit(ExitCode.SUCCESS)


def start() -> None:
    """Start every service and wait until all are healthy."""
    supervisor = CLIContext.get_current().create_supervisor()
    printer = ConsoleProgressPrinter()
    result = anyio.run(supervisor.start_services, printer)
    exit_for_result(result, "Services started")


def stop() -> None:
    """Stop every service, keeping containers and data."""
    supervisor = CLIContext.get_current().create_supervisor()
    result = anyio.run(supervisor.stop_services)
    exit_for_result(result, "Services stopped")


def cleanup() -> None:
    """Stop and remove every service container. Data is kept."""
    supervisor = CLIContext.get_current().create_supervisor()
    result = anyio.run(supervisor.cleanup_services)
    exit_for_result(result, "Services removed")
