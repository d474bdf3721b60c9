"""Tests for nebula_desktop.supervisor._models module."""

import pytest

from nebula_desktop.supervisor import (
    ContainerMetrics,
    ContainerStatus,
    ErrorKind,
    HealthState,
    OperationResult,
    ServiceHealth,
    ServiceStatus,
)

HEALTH = ServiceHealth(state=HealthState.HEALTHY, last_check="2024-05-01T00:00:00Z")


class TestServiceStatus:
    def test_running_requires_metrics(self) -> None:
        with pytest.raises(ValueError, match="metrics"):
            _ = ServiceStatus(
                name="graphd",
                display_name="Graph Service",
                status=ContainerStatus.RUNNING,
                health=HEALTH,
            )

    def test_stopped_rejects_metrics(self) -> None:
        with pytest.raises(ValueError, match="metrics"):
            _ = ServiceStatus(
                name="graphd",
                display_name="Graph Service",
                status=ContainerStatus.STOPPED,
                health=HEALTH,
                metrics=ContainerMetrics(),
            )

    def test_converged_when_running_and_healthy(self) -> None:
        status = ServiceStatus(
            name="graphd",
            display_name="Graph Service",
            status=ContainerStatus.RUNNING,
            health=HEALTH,
            metrics=ContainerMetrics(),
        )

        assert status.is_converged

    def test_not_converged_when_stopped(self) -> None:
        status = ServiceStatus(
            name="graphd",
            display_name="Graph Service",
            status=ContainerStatus.STOPPED,
            health=HEALTH,
        )

        assert not status.is_converged


class TestOperationResult:
    def test_ok(self) -> None:
        result = OperationResult.ok()

        assert result.success
        assert result.error is None
        assert result.error_kind is None

    def test_failed(self) -> None:
        result = OperationResult.failed(
            "timed out", ErrorKind.HEALTH_TIMEOUT, unhealthy_services=("graphd",)
        )

        assert not result.success
        assert result.error == "timed out"
        assert result.error_kind is ErrorKind.HEALTH_TIMEOUT
        assert result.unhealthy_services == ("graphd",)
