"""nebula-desktop CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._config import app as config_app
from ._context import CLIContext, OutputFormat
from ._images import app as images_app
from ._logs import logs
from ._serve import create_control_app, serve
from ._service import app as service_app
from ._shared import (
    ExitCode,
    exit_for_result,
    exit_with_error,
    exit_with_success,
    format_json,
    get_error_console,
)
from ._stack import cleanup, start, status, stop, system

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "CLIContext",
    "ExitCode",
    "OutputFormat",
    "config_app",
    "create_control_app",
    "exit_for_result",
    "exit_with_error",
    "exit_with_success",
    "format_json",
    "get_error_console",
    "images_app",
    "register_commands",
    "service_app",
]


def register_commands(app: App) -> None:
    app.command(system)
    app.command(status)
    app.command(start)
    app.command(stop)
    app.command(cleanup)
    app.command(logs)
    app.command(serve)
    app.command(service_app)
    app.command(images_app)
    app.command(config_app)

    @app.command(name="--prefix")
    def _prefix() -> None:  # pyright: ignore[reportUnusedFunction]
        """Show nebula-desktop's install path."""
        from nebula_desktop.utils import get_package_dir  # noqa: PLC0415

        print(get_package_dir())  # noqa: T201
