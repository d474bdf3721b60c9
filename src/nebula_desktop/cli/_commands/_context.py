# pyright: reportUnusedCallResult=false
"""Per-invocation state shared by every command.

The meta app loads configuration and builds the logger once, then stores
the result in a context variable that commands read back.
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from nebula_desktop.config import Config
from nebula_desktop.supervisor import Supervisor

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import FilteringBoundLogger


class OutputFormat(StrEnum):
    """How a command renders what it reports."""

    TABLE = "table"
    JSON = "json"
    TOML = "toml"


_active: ContextVar[CLIContext | None] = ContextVar("nebula_desktop_cli", default=None)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """What the global options resolved to for this run.

    Attributes:
        config: The loaded configuration, or the defaults after a load
            failure.
        verbose: ``--verbose`` was given.
        config_error: Why the configuration fell back to the defaults.
        logger: File logger passed on to the supervisor.
        supervisor_factory: Replaces `Supervisor.from_config` when set,
            so commands can run against a prepared supervisor.
    """

    config: Config = field(repr=False)
    verbose: bool = False
    config_error: str | None = None
    logger: FilteringBoundLogger | None = field(default=None, repr=False)
    supervisor_factory: Callable[[Config], Supervisor] | None = field(
        default=None, repr=False
    )

    def create_supervisor(self) -> Supervisor:
        if self.supervisor_factory is None:
            return Supervisor.from_config(self.config, logger=self.logger)
        return self.supervisor_factory(self.config)

    @classmethod
    def get_current(cls) -> CLIContext:
        """Return the active context, or one holding the defaults."""
        return _active.get() or cls(config=Config())

    @classmethod
    def set_current(cls, ctx: CLIContext) -> None:
        _active.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Forget the active context."""
        _active.set(None)
