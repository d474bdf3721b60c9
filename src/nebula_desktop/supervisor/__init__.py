"""Supervisor package for the NebulaGraph container stack.

This package coordinates the lifecycle of the stack's services on top of
the container runtime layer and exposes it to control surfaces.

Key Components:
    - ServiceDefinition / ServiceTopology: Static service metadata and order
    - HealthState / ServiceStatus: Normalized per-service status
    - HealthResolver: Combines engine signals into one health verdict
    - StatusCache: Last-known-good status snapshot
    - Supervisor: Whole-stack and per-service operations
    - ConsoleProgressPrinter: Console progress rendering
    - create_control_router: FastAPI endpoint factory

Example:
    >>> from nebula_desktop.config import Config
    >>> from nebula_desktop.supervisor import Supervisor
    >>> supervisor = Supervisor.from_config(Config.load())
    >>> result = await supervisor.start_services()
"""

from ._api import create_control_router
from ._cache import StatusCache
from ._health import HealthResolver, decide, parse_inspection, parse_stats
from ._logs import classify, parse_log_line, parse_logs
from ._models import (
    SYSTEM_SERVICE,
    ContainerInspection,
    ContainerMetrics,
    ContainerStatus,
    ErrorKind,
    HealthProgress,
    HealthState,
    LogLevel,
    LogLine,
    OperationResult,
    ServiceHealth,
    ServiceStatus,
    StartPhase,
    StatusSnapshot,
)
from ._output import ConsoleProgressPrinter
from ._protocol import ImageProgressCallback, ProgressCallback
from ._supervisor import Supervisor
from ._topology import DEFAULT_SERVICES, ServiceDefinition, ServiceRole, ServiceTopology

__all__ = [
    "DEFAULT_SERVICES",
    "SYSTEM_SERVICE",
    "ConsoleProgressPrinter",
    "ContainerInspection",
    "ContainerMetrics",
    "ContainerStatus",
    "ErrorKind",
    "HealthProgress",
    "HealthResolver",
    "HealthState",
    "ImageProgressCallback",
    "LogLevel",
    "LogLine",
    "OperationResult",
    "ProgressCallback",
    "ServiceDefinition",
    "ServiceHealth",
    "ServiceRole",
    "ServiceStatus",
    "ServiceTopology",
    "StartPhase",
    "StatusCache",
    "StatusSnapshot",
    "Supervisor",
    "classify",
    "create_control_router",
    "decide",
    "parse_inspection",
    "parse_log_line",
    "parse_logs",
    "parse_stats",
]
