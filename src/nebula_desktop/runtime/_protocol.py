"""Protocol definitions for the runtime layer.

This module defines the interface between the runtime components and the
process that actually runs external commands:
- CommandRunner: Protocol satisfied by CommandExecutor and by test fakes
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from nebula_desktop.utils import CommandResult


@runtime_checkable
class CommandRunner(Protocol):
    """Protocol for running container-runtime commands.

    All parsing of command output happens above this boundary, so a
    scripted implementation is enough to exercise every component.
    """

    async def run(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run a command and return trimmed stdout.

        Raises:
            CommandError: On non-zero exit, spawn failure or timeout.
        """
        ...

    async def run_unchecked(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run a command and return its result whatever the exit code.

        Raises:
            CommandError: On spawn failure or timeout.
        """
        ...
