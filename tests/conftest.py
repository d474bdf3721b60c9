"""Shared test fixtures for nebula-desktop tests."""

import shlex
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import orjson
import pytest

from nebula_desktop.config import SupervisorConfig
from nebula_desktop.exceptions import CommandError
from nebula_desktop.supervisor import Supervisor
from nebula_desktop.utils import CommandResult

type Outcome = CommandResult | Exception


@dataclass(slots=True)
class _Rule:
    pattern: str
    outcomes: list[Outcome]


@dataclass(slots=True)
class FakeRunner:
    """Scripted CommandRunner.

    Rules match by substring of the joined command line; the most
    recently added rule wins. A rule with several outcomes yields them in
    order and then repeats the last one. Unmatched commands exit 127.
    """

    rules: list[_Rule] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def on(
        self,
        pattern: str,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
    ) -> FakeRunner:
        outcome = CommandResult(
            command=pattern, exit_code=exit_code, stdout=stdout, stderr=stderr
        )
        self.rules.append(_Rule(pattern, [outcome]))
        return self

    def on_sequence(self, pattern: str, outcomes: Sequence[Outcome]) -> FakeRunner:
        self.rules.append(_Rule(pattern, list(outcomes)))
        return self

    def raises(self, pattern: str, error: Exception) -> FakeRunner:
        self.rules.append(_Rule(pattern, [error]))
        return self

    def with_ready_runtime(self, *, legacy: bool = False) -> FakeRunner:
        self.on("docker --version", stdout="Docker version 27.3.1, build ce12230")
        self.on(
            "docker info",
            stdout=(
                "Server:\n Server Version: 27.3.1\n OS/Arch: linux/amd64\n"
                " Kernel Version: 6.10.14\n"
            ),
        )
        if legacy:
            self.on("docker-compose --version", stdout="docker-compose version 1.29.2")
        else:
            self.on("docker compose version", stdout="Docker Compose version v2.29.7")
        return self

    def with_images_present(self) -> FakeRunner:
        return self.on("docker image inspect", stdout="[{}]")

    def with_container(
        self,
        service: str,
        *,
        running: bool = True,
        health: str | None = "healthy",
    ) -> FakeRunner:
        return self.on(
            f"inspect --type container nebulagraph-desktop-{service}-1",
            stdout=inspect_json(running=running, health=health),
        )

    def with_missing_container(self, service: str) -> FakeRunner:
        return self.on(
            f"inspect --type container nebulagraph-desktop-{service}-1",
            stderr="Error: No such object: nebulagraph-desktop-{service}-1",
            exit_code=1,
        )

    def called(self, pattern: str) -> bool:
        return any(pattern in call for call in self.calls)

    def count(self, pattern: str) -> int:
        return sum(1 for call in self.calls if pattern in call)

    async def run_unchecked(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        line = command if isinstance(command, str) else shlex.join(command)
        self.calls.append(line)
        for rule in reversed(self.rules):
            if rule.pattern not in line:
                continue
            outcome = rule.outcomes[0] if len(rule.outcomes) == 1 else rule.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return CommandResult(
                command=line,
                exit_code=outcome.exit_code,
                stdout=outcome.stdout,
                stderr=outcome.stderr,
            )
        return CommandResult(command=line, exit_code=127, stderr="command not found")

    async def run(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> str:
        result = await self.run_unchecked(command, cwd=cwd, timeout=timeout)
        if not result.ok:
            msg = f"Command failed with exit code {result.exit_code}: {result.command}"
            raise CommandError(
                msg,
                command=result.command,
                stderr=result.stderr,
                exit_code=result.exit_code,
            )
        return result.stdout


def inspect_json(*, running: bool = True, health: str | None = "healthy") -> str:
    """Render `docker inspect` output for one container."""
    state: dict[str, object] = {
        "Status": "running" if running else "exited",
        "Running": running,
    }
    if health is not None:
        state["Health"] = {"Status": health}
    return orjson.dumps([{"State": state}]).decode()


@dataclass(slots=True)
class FakeClock:
    """Manually advanced monotonic clock."""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass(slots=True)
class RecordingSleep:
    """Async sleep replacement that records delays and returns at once."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


FAST_SETTINGS = SupervisorConfig(
    poll_interval=0.5,
    max_attempts=3,
    settle_delay=1.0,
    port_check=False,
    http_fallback=False,
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    path = tmp_path / "images"
    path.mkdir()
    return path


@pytest.fixture
def supervisor(
    runner: FakeRunner,
    data_dir: Path,
    images_dir: Path,
    sleep: RecordingSleep,
    clock: FakeClock,
) -> Supervisor:
    return Supervisor(
        runner,
        data_dir=data_dir,
        images_dir=images_dir,
        settings=FAST_SETTINGS,
        sleep=sleep,
        clock=clock,
        platform="linux",
    )


SUPERVISED = ("metad", "storaged", "graphd", "studio")
