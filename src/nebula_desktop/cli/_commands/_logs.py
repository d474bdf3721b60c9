# pyright: reportUnusedCallResult=false
"""Service log command."""

import anyio
from rich.console import Console
from rich.text import Text

from nebula_desktop.exceptions import RuntimeUnavailableError, ServiceNotFoundError
from nebula_desktop.supervisor import LogLevel

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

_LEVEL_STYLES: dict[LogLevel, str] = {
    LogLevel.INFO: "",
    LogLevel.WARN: "yellow",
    LogLevel.ERROR: "red",
}


def logs(name: str, /) -> None:
    """Show the recent log lines of one service.

    Args:
        name: Service identity or display name.
    """
    supervisor = CLIContext.get_current().create_supervisor()
    try:
        lines = anyio.run(supervisor.get_service_logs, name)
    except ServiceNotFoundError as e:
        exit_with_error(str(e), ExitCode.NOT_FOUND)
    except RuntimeUnavailableError as e:
        exit_with_error(e.reason, ExitCode.RUNTIME_UNAVAILABLE)

    console = Console()
    for line in lines:
        text = Text()
        text.append(line.timestamp, style="dim")
        text.append(" ")
        text.append(line.message, style=_LEVEL_STYLES[line.level])
        console.print(text)
    raise SystemExit(ExitCode.SUCCESS)
