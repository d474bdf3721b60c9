"""Tests for nebula_desktop.utils._exec module."""

import os
import stat
import sys
from pathlib import Path

import pytest

from nebula_desktop.exceptions import CommandError
from nebula_desktop.utils import (
    KNOWN_BINARY_DIRS,
    CommandExecutor,
    CommandResult,
    build_enhanced_path,
)


def _make_executable(path: Path) -> Path:
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return path


class TestCommandResult:
    def test_ok_for_zero_exit(self) -> None:
        assert CommandResult(command="docker info", exit_code=0).ok is True

    def test_not_ok_for_non_zero_exit(self) -> None:
        assert CommandResult(command="docker info", exit_code=1).ok is False

    def test_frozen(self) -> None:
        result = CommandResult(command="docker info", exit_code=0)
        with pytest.raises(AttributeError):
            result.exit_code = 1  # pyright: ignore[reportAttributeAccessIssue]


class TestBuildEnhancedPath:
    def test_prepends_known_dirs(self) -> None:
        path = build_enhanced_path("darwin", inherited="/home/me/bin")

        parts = path.split(os.pathsep)
        assert parts[: len(KNOWN_BINARY_DIRS["darwin"])] == list(
            KNOWN_BINARY_DIRS["darwin"]
        )
        assert parts[-1] == "/home/me/bin"

    def test_extra_dirs_come_first(self) -> None:
        path = build_enhanced_path("linux", inherited="", extra_dirs=["/opt/docker"])

        assert path.split(os.pathsep)[0] == "/opt/docker"

    def test_removes_duplicates(self) -> None:
        path = build_enhanced_path("linux", inherited=os.pathsep.join(["/usr/bin", "/x"]))

        parts = path.split(os.pathsep)
        assert parts.count("/usr/bin") == 1
        assert "/x" in parts

    def test_unknown_platform_keeps_inherited(self) -> None:
        assert build_enhanced_path("plan9", inherited="/bin") == "/bin"


class TestResolveBinary:
    @pytest.mark.anyio
    async def test_finds_binary_in_search_paths(self, tmp_path: Path) -> None:
        binary = _make_executable(tmp_path / "docker")
        executor = CommandExecutor(platform="linux", search_paths=(str(tmp_path),))

        assert await executor.resolve_binary("docker") == str(binary)

    @pytest.mark.anyio
    async def test_caches_resolution(self, tmp_path: Path) -> None:
        binary = _make_executable(tmp_path / "docker")
        executor = CommandExecutor(platform="linux", search_paths=(str(tmp_path),))

        first = await executor.resolve_binary("docker")
        binary.unlink()
        second = await executor.resolve_binary("docker")

        assert first == second == str(binary)

    @pytest.mark.anyio
    async def test_returns_none_when_missing(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setitem(KNOWN_BINARY_DIRS, "testos", ())
        monkeypatch.setenv("PATH", str(tmp_path))
        executor = CommandExecutor(platform="testos")

        assert await executor.resolve_binary("docker-not-here") is None


class TestRunUnchecked:
    @pytest.mark.anyio
    async def test_captures_output_and_exit_code(self) -> None:
        executor = CommandExecutor()

        result = await executor.run_unchecked(
            [sys.executable, "-c", "import sys; print(' out '); sys.exit(3)"]
        )

        assert result.exit_code == 3
        assert result.stdout == "out"
        assert result.ok is False

    @pytest.mark.anyio
    async def test_accepts_command_string(self) -> None:
        executor = CommandExecutor()

        result = await executor.run_unchecked(f"{sys.executable} -c 'print(42)'")

        assert result.ok
        assert result.stdout == "42"

    @pytest.mark.anyio
    async def test_timeout_raises_command_error(self) -> None:
        executor = CommandExecutor(timeout=0.2)

        with pytest.raises(CommandError) as exc_info:
            _ = await executor.run_unchecked(
                [sys.executable, "-c", "import time; time.sleep(10)"]
            )

        assert exc_info.value.timed_out is True

    @pytest.mark.anyio
    async def test_missing_program_raises_command_error(self) -> None:
        executor = CommandExecutor()

        with pytest.raises(CommandError) as exc_info:
            _ = await executor.run_unchecked(["/nonexistent/program-xyz"])

        assert exc_info.value.exit_code is None
        assert isinstance(exc_info.value.cause, OSError)

    @pytest.mark.anyio
    async def test_empty_command_raises(self) -> None:
        with pytest.raises(CommandError, match="No command specified"):
            _ = await CommandExecutor().run_unchecked([])

    @pytest.mark.anyio
    async def test_child_sees_enhanced_path(self) -> None:
        executor = CommandExecutor(platform="linux", search_paths=("/opt/custom",))

        result = await executor.run_unchecked(
            [sys.executable, "-c", "import os; print(os.environ['PATH'])"]
        )

        assert result.stdout.split(os.pathsep)[0] == "/opt/custom"


class TestRun:
    @pytest.mark.anyio
    async def test_returns_stdout(self) -> None:
        output = await CommandExecutor().run([sys.executable, "-c", "print('hi')"])

        assert output == "hi"

    @pytest.mark.anyio
    async def test_non_zero_exit_raises_with_stderr(self) -> None:
        with pytest.raises(CommandError) as exc_info:
            _ = await CommandExecutor().run(
                [
                    sys.executable,
                    "-c",
                    "import sys; sys.stderr.write('boom'); sys.exit(2)",
                ]
            )

        error = exc_info.value
        assert error.exit_code == 2
        assert error.stderr == "boom"
        assert error.timed_out is False
