# pyright: reportUnusedCallResult=false
"""Per-service commands."""

from typing import TYPE_CHECKING

import anyio
from cyclopts import App

from ._context import CLIContext
from ._shared import exit_for_result

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from nebula_desktop.supervisor import OperationResult

app = App(name="service", help="Manage a single service", help_on_error=True)


def _run(
    action: Callable[[str], Awaitable[OperationResult]],
    name: str,
    done: str,
) -> None:
    result = anyio.run(action, name)
    exit_for_result(result, f"{name}: {done}")


@app.command(name="start")
def _start(name: str, /) -> None:
    """Start one service.

    Args:
        name: Service identity or display name (e.g. graphd, "Graph Service").
    """
    supervisor = CLIContext.get_current().create_supervisor()
    _run(supervisor.start_service, name, "started")


@app.command(name="stop")
def _stop(name: str, /) -> None:
    """Stop one service.

    Args:
        name: Service identity or display name.
    """
    supervisor = CLIContext.get_current().create_supervisor()
    _run(supervisor.stop_service, name, "stopped")


@app.command(name="restart")
def _restart(name: str, /) -> None:
    """Restart one service.

    Args:
        name: Service identity or display name.
    """
    supervisor = CLIContext.get_current().create_supervisor()
    _run(supervisor.restart_service, name, "restarted")
