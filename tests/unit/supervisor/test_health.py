"""Tests for nebula_desktop.supervisor._health module."""

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from nebula_desktop.exceptions import CommandError
from nebula_desktop.runtime import ComposeProject
from nebula_desktop.supervisor import (
    ContainerInspection,
    ContainerMetrics,
    HealthResolver,
    HealthState,
    ServiceTopology,
    decide,
    parse_inspection,
    parse_stats,
)
from tests.conftest import FakeRunner, inspect_json


def _resolver(
    runner: FakeRunner,
    *,
    http_fallback: bool = False,
    handler: Callable[[httpx.Request], httpx.Response] | None = None,
) -> HealthResolver:
    topology = ServiceTopology()
    compose = ComposeProject(Path("/srv/nebula"), images=topology.images)
    transport = httpx.MockTransport(handler) if handler is not None else None
    return HealthResolver(
        runner, compose, topology, http_fallback=http_fallback, transport=transport
    )


class TestParseInspection:
    def test_running_with_health(self) -> None:
        inspection = parse_inspection(inspect_json(running=True, health="starting"))

        assert inspection == ContainerInspection(
            running=True, state="running", health="starting"
        )

    def test_without_health_check(self) -> None:
        inspection = parse_inspection(inspect_json(running=False, health=None))

        assert inspection is not None
        assert inspection.running is False
        assert inspection.health is None

    def test_empty_array(self) -> None:
        assert parse_inspection("[]") is None

    def test_invalid_json(self) -> None:
        with pytest.raises(ValueError, match="Unparsable"):
            _ = parse_inspection("Error")


class TestParseStats:
    def test_parses_fields(self) -> None:
        metrics = parse_stats("1.25%;512MiB / 7.6GiB;1.2kB / 3.4kB")

        assert metrics == ContainerMetrics(
            cpu="1.25", memory="512MiB", network="1.2kB / 3.4kB"
        )

    def test_empty_output_yields_zeros(self) -> None:
        assert parse_stats("") == ContainerMetrics()


class TestDecide:
    def test_missing_container(self) -> None:
        assert decide(None) is HealthState.NOT_CREATED

    def test_not_running(self) -> None:
        inspection = ContainerInspection(running=False, state="exited", health="healthy")

        assert decide(inspection) is HealthState.UNKNOWN

    @pytest.mark.parametrize(
        ("native", "expected"),
        [
            ("healthy", HealthState.HEALTHY),
            ("unhealthy", HealthState.UNHEALTHY),
            ("starting", HealthState.STARTING),
            ("Healthy", HealthState.HEALTHY),
        ],
    )
    def test_native_status(self, native: str, expected: HealthState) -> None:
        assert decide(ContainerInspection(running=True, health=native)) is expected

    def test_running_without_native_status_is_starting(self) -> None:
        assert decide(ContainerInspection(running=True)) is HealthState.STARTING

    def test_running_without_health_check_by_design_is_healthy(self) -> None:
        inspection = ContainerInspection(running=True)

        assert decide(inspection, native_health_check=False) is HealthState.HEALTHY

    def test_unrecognized_native_status_is_starting(self) -> None:
        inspection = ContainerInspection(running=True, health="none")

        assert decide(inspection) is HealthState.STARTING


class TestInspect:
    @pytest.mark.anyio
    async def test_missing_container_is_none(self, runner: FakeRunner) -> None:
        _ = runner.with_missing_container("graphd")
        resolver = _resolver(runner)

        assert await resolver.inspect(ServiceTopology().get("graphd")) is None

    @pytest.mark.anyio
    async def test_other_failure_raises(self, runner: FakeRunner) -> None:
        _ = runner.on("docker inspect", stderr="permission denied", exit_code=1)
        resolver = _resolver(runner)

        with pytest.raises(CommandError) as exc_info:
            _ = await resolver.inspect(ServiceTopology().get("graphd"))

        assert exc_info.value.stderr == "permission denied"


class TestResolve:
    @pytest.mark.anyio
    async def test_resolves_by_display_name(self, runner: FakeRunner) -> None:
        _ = runner.with_container("metad", health="healthy")

        assert await _resolver(runner).resolve("Meta Service") is HealthState.HEALTHY

    @pytest.mark.anyio
    async def test_engine_failure_is_unknown(self, runner: FakeRunner) -> None:
        _ = runner.raises(
            "docker inspect", CommandError("timed out", command="docker", timed_out=True)
        )

        assert await _resolver(runner).resolve("metad") is HealthState.UNKNOWN

    @pytest.mark.anyio
    async def test_activator_without_health_check(self, runner: FakeRunner) -> None:
        _ = runner.with_container("storage-activator", health=None)

        state = await _resolver(runner).resolve("storage-activator")

        assert state is HealthState.HEALTHY


class TestHttpFallback:
    @pytest.mark.anyio
    async def test_promotes_to_healthy(self, runner: FakeRunner) -> None:
        _ = runner.with_container("graphd", health=None)
        urls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(str(request.url))
            return httpx.Response(200, text='status: "ok"')

        resolver = _resolver(runner, http_fallback=True, handler=handler)

        assert await resolver.resolve("graphd") is HealthState.HEALTHY
        assert urls == ["http://localhost:19669/status"]

    @pytest.mark.anyio
    async def test_failed_probe_leaves_starting(self, runner: FakeRunner) -> None:
        _ = runner.with_container("graphd", health=None)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        resolver = _resolver(runner, http_fallback=True, handler=handler)

        assert await resolver.resolve("graphd") is HealthState.STARTING

    @pytest.mark.anyio
    async def test_body_without_marker_is_not_healthy(self, runner: FakeRunner) -> None:
        _ = runner.with_container("graphd", health=None)
        resolver = _resolver(
            runner,
            http_fallback=True,
            handler=lambda _request: httpx.Response(200, text="booting"),
        )

        assert await resolver.resolve("graphd") is HealthState.STARTING

    @pytest.mark.anyio
    async def test_never_demotes_native_status(self, runner: FakeRunner) -> None:
        _ = runner.with_container("graphd", health="unhealthy")
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, text="ok")

        resolver = _resolver(runner, http_fallback=True, handler=handler)

        assert await resolver.resolve("graphd") is HealthState.UNHEALTHY
        assert calls == []

    @pytest.mark.anyio
    async def test_not_probed_when_stopped(self, runner: FakeRunner) -> None:
        _ = runner.with_container("graphd", running=False, health=None)
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, text="ok")

        resolver = _resolver(runner, http_fallback=True, handler=handler)

        assert await resolver.resolve("graphd") is HealthState.UNKNOWN
        assert calls == []


class TestSampleMetrics:
    @pytest.mark.anyio
    async def test_parses_stats(self, runner: FakeRunner) -> None:
        _ = runner.on("docker stats", stdout="0.50%;100MiB / 2GiB;1kB / 2kB")

        metrics = await _resolver(runner).sample_metrics(ServiceTopology().get("metad"))

        assert metrics.cpu == "0.50"
        assert runner.called("docker stats nebulagraph-desktop-metad-1 --no-stream")

    @pytest.mark.anyio
    async def test_failure_yields_zeros(self, runner: FakeRunner) -> None:
        _ = runner.on("docker stats", exit_code=1)

        metrics = await _resolver(runner).sample_metrics(ServiceTopology().get("metad"))

        assert metrics == ContainerMetrics()
