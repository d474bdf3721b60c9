"""Execution utilities for container-runtime commands.

This module provides the async command executor used for every Docker and
Docker Compose invocation. It resolves the location of the runtime binaries
explicitly, since the supervisor may run from an environment (a packaged
desktop app, a launchd/systemd unit) whose PATH does not include them.
"""

import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import anyio

from nebula_desktop.exceptions import CommandError

from ._logging import get_null_logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

# Default timeout in seconds
DEFAULT_TIMEOUT: float = 120.0

# Well-known install directories of the Docker CLI per platform
KNOWN_BINARY_DIRS: dict[str, tuple[str, ...]] = {
    "darwin": (
        "/usr/local/bin",
        "/opt/homebrew/bin",
        "/Applications/Docker.app/Contents/Resources/bin",
        "/usr/bin",
    ),
    "linux": (
        "/usr/bin",
        "/usr/local/bin",
    ),
    "win32": (
        "C:\\Program Files\\Docker\\Docker\\resources\\bin",
        "C:\\Program Files\\Docker\\Docker\\resources",
    ),
}

# Binaries whose location is resolved before execution
RESOLVED_BINARIES: frozenset[str] = frozenset({"docker", "docker-compose"})


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from running a command to completion.

    Attributes:
        command: The command line that was executed.
        exit_code: Process exit code.
        stdout: Standard output, trimmed.
        stderr: Standard error, trimmed.
    """

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Return True if the process exited with code 0."""
        return self.exit_code == 0


def build_enhanced_path(
    platform: str | None = None,
    *,
    inherited: str | None = None,
    extra_dirs: Sequence[str] = (),
) -> str:
    """Build a search path with the runtime install directories prepended.

    Args:
        platform: Platform key (defaults to sys.platform).
        inherited: PATH value to extend (defaults to the current PATH).
        extra_dirs: Additional directories, searched first.

    Returns:
        The de-duplicated search path joined with os.pathsep.
    """
    platform = platform or sys.platform
    current = inherited if inherited is not None else os.environ.get("PATH", "")
    candidates = [
        *extra_dirs,
        *KNOWN_BINARY_DIRS.get(platform, ()),
        *(p for p in current.split(os.pathsep) if p),
    ]
    # dict preserves first-seen order
    return os.pathsep.join(dict.fromkeys(candidates))


def _binary_file_name(name: str, platform: str) -> str:
    if platform == "win32" and not name.endswith(".exe"):
        return f"{name}.exe"
    return name


@dataclass(slots=True)
class CommandExecutor:
    """Runs container-runtime commands with explicit binary resolution.

    Binary locations are probed once per name (well-known install
    directories first, then a PATH lookup) and cached for the lifetime
    of the executor.

    Attributes:
        platform: Platform key used to select well-known install locations.
        search_paths: Extra directories probed before the well-known ones.
        timeout: Default per-command timeout in seconds.
        logger: Structured logger for command events.
    """

    platform: str = field(default_factory=lambda: sys.platform)
    search_paths: tuple[str, ...] = ()
    timeout: float = DEFAULT_TIMEOUT
    logger: FilteringBoundLogger = field(default_factory=get_null_logger)
    _resolved: dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _env: dict[str, str] | None = field(default=None, init=False, repr=False)

    @property
    def env(self) -> dict[str, str]:
        """Return the child-process environment with the enhanced PATH."""
        if self._env is None:
            self._env = {
                **os.environ,
                "PATH": build_enhanced_path(
                    self.platform, extra_dirs=self.search_paths
                ),
            }
        return self._env

    async def resolve_binary(self, name: str) -> str | None:
        """Find the absolute location of a runtime binary.

        Args:
            name: Binary name, e.g. "docker".

        Returns:
            The resolved path, or None if the binary cannot be found.
        """
        cached = self._resolved.get(name)
        if cached is not None:
            return cached

        file_name = _binary_file_name(name, self.platform)
        directories = (*self.search_paths, *KNOWN_BINARY_DIRS.get(self.platform, ()))
        for directory in directories:
            candidate = anyio.Path(directory) / file_name
            if await candidate.exists():
                self.logger.debug("binary_resolved", binary=name, path=str(candidate))
                self._resolved[name] = str(candidate)
                return str(candidate)

        found = shutil.which(name, path=self.env["PATH"])
        if found:
            self.logger.debug("binary_resolved", binary=name, path=found, via="path")
            self._resolved[name] = found
            return found

        self.logger.warning("binary_not_found", binary=name)
        return None

    async def _prepare(self, command: Sequence[str] | str) -> list[str]:
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not argv:
            msg = "No command specified"
            raise CommandError(msg, command="")
        if argv[0] in RESOLVED_BINARIES:
            resolved = await self.resolve_binary(argv[0])
            if resolved is not None:
                argv[0] = resolved
        return argv

    async def run_unchecked(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run a command and return its result whatever the exit code.

        A non-zero exit is a valid answer here ("not found", "no such
        container"), so only spawn failures and timeouts raise.

        Args:
            command: Argument vector, or a command line split with shlex.
            cwd: Working directory for the process.
            timeout: Timeout in seconds (defaults to the executor timeout).

        Returns:
            CommandResult with the exit code and trimmed output.

        Raises:
            CommandError: If the process cannot be spawned or times out.
        """
        argv = await self._prepare(command)
        command_line = shlex.join(argv)
        effective_timeout = timeout if timeout is not None else self.timeout

        self.logger.debug("command_started", command=command_line)
        try:
            with anyio.fail_after(effective_timeout):
                completed = await anyio.run_process(
                    argv,
                    cwd=cwd,
                    env=self.env,
                    check=False,
                    stdin=subprocess.DEVNULL,
                )
        except TimeoutError as e:
            msg = f"Command timed out after {effective_timeout}s: {command_line}"
            self.logger.warning("command_timed_out", command=command_line)
            raise CommandError(
                msg, command=command_line, timed_out=True, cause=e
            ) from e
        except OSError as e:
            msg = f"Failed to run command: {command_line}: {e}"
            self.logger.warning("command_spawn_failed", command=command_line, error=str(e))
            raise CommandError(msg, command=command_line, cause=e) from e

        result = CommandResult(
            command=command_line,
            exit_code=completed.returncode,
            stdout=completed.stdout.decode("utf-8", errors="replace").strip(),
            stderr=completed.stderr.decode("utf-8", errors="replace").strip(),
        )
        self.logger.debug(
            "command_finished", command=command_line, exit_code=result.exit_code
        )
        return result

    async def run(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run a command and return its trimmed standard output.

        Args:
            command: Argument vector, or a command line split with shlex.
            cwd: Working directory for the process.
            timeout: Timeout in seconds (defaults to the executor timeout).

        Returns:
            The trimmed standard output.

        Raises:
            CommandError: If the command exits non-zero, cannot be spawned,
                or times out.
        """
        result = await self.run_unchecked(command, cwd=cwd, timeout=timeout)
        if not result.ok:
            self.logger.warning(
                "command_failed",
                command=result.command,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
            msg = f"Command failed with exit code {result.exit_code}: {result.command}"
            raise CommandError(
                msg,
                command=result.command,
                stderr=result.stderr,
                exit_code=result.exit_code,
            )
        if result.stderr:
            self.logger.debug("command_stderr", command=result.command, stderr=result.stderr)
        return result.stdout
