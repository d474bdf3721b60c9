"""Tests for nebula_desktop.runtime._checker module."""

import pytest

from nebula_desktop.runtime import RuntimeChecker, parse_docker_info
from tests.conftest import FakeRunner


class TestParseDockerInfo:
    def test_extracts_highlights(self) -> None:
        output = (
            "Client:\n Version: 27.3.1\n\nServer:\n Server Version: 27.3.1\n"
            " Kernel Version: 6.10.14-linuxkit\n OS/Arch: linux/arm64\n"
        )

        info = parse_docker_info(output)

        assert info.server_version == "27.3.1"
        assert info.kernel_version == "6.10.14-linuxkit"
        assert info.os_arch == "linux/arm64"

    def test_missing_fields_are_none(self) -> None:
        info = parse_docker_info("Server:\n Containers: 3\n")

        assert info.server_version is None
        assert info.os_arch is None


class TestCheckDockerStatus:
    @pytest.mark.anyio
    async def test_running_daemon(self, runner: FakeRunner) -> None:
        _ = runner.on("docker info", stdout="Server Version: 27.3.1")

        assert await RuntimeChecker(runner).check_docker_status() is True

    @pytest.mark.anyio
    async def test_stopped_daemon(self, runner: FakeRunner) -> None:
        _ = runner.on("docker info", stderr="Cannot connect", exit_code=1)

        assert await RuntimeChecker(runner).check_docker_status() is False


class TestCheckCompose:
    @pytest.mark.anyio
    async def test_prefers_plugin(self, runner: FakeRunner) -> None:
        _ = runner.on("docker compose version", stdout="Docker Compose version v2.29.7")
        _ = runner.on("docker-compose --version", stdout="docker-compose version 1.29.2")

        status = await RuntimeChecker(runner).check_compose()

        assert status.is_installed
        assert status.legacy is False
        assert status.version == "Docker Compose version v2.29.7"
        assert not runner.called("docker-compose --version")

    @pytest.mark.anyio
    async def test_falls_back_to_legacy_binary(self, runner: FakeRunner) -> None:
        _ = runner.on("docker-compose --version", stdout="docker-compose version 1.29.2")

        status = await RuntimeChecker(runner).check_compose()

        assert status.is_installed
        assert status.legacy is True

    @pytest.mark.anyio
    async def test_not_installed(self, runner: FakeRunner) -> None:
        status = await RuntimeChecker(runner).check_compose()

        assert status.is_installed is False
        assert status.version is None


class TestCheckSystem:
    @pytest.mark.anyio
    async def test_ready(self, runner: FakeRunner) -> None:
        _ = runner.with_ready_runtime()

        status = await RuntimeChecker(runner).check_system()

        assert status.is_ready
        assert status.error is None
        assert status.version == "Docker version 27.3.1, build ce12230"
        assert status.info is not None
        assert status.info.os_arch == "linux/amd64"

    @pytest.mark.anyio
    async def test_not_installed(self, runner: FakeRunner) -> None:
        status = await RuntimeChecker(runner).check_system()

        assert status.is_installed is False
        assert status.is_running is False
        assert status.error == "Docker is not installed"
        assert not runner.called("docker info")

    @pytest.mark.anyio
    async def test_daemon_not_running(self, runner: FakeRunner) -> None:
        _ = runner.on("docker --version", stdout="Docker version 27.3.1")

        status = await RuntimeChecker(runner).check_system()

        assert status.is_installed is True
        assert status.is_running is False
        assert status.reason == "Docker daemon is not running"

    @pytest.mark.anyio
    async def test_compose_missing(self, runner: FakeRunner) -> None:
        _ = runner.on("docker --version", stdout="Docker version 27.3.1")
        _ = runner.on("docker info", stdout="Server Version: 27.3.1")

        status = await RuntimeChecker(runner).check_system()

        assert status.is_running is True
        assert status.compose.is_installed is False
        assert status.is_ready is False
        assert status.error == "Docker Compose not found"

    @pytest.mark.anyio
    async def test_legacy_compose(self, runner: FakeRunner) -> None:
        _ = runner.with_ready_runtime(legacy=True)

        status = await RuntimeChecker(runner).check_system()

        assert status.is_ready
        assert status.compose.legacy is True
