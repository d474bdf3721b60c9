# pyright: reportUnusedCallResult=false
"""Control API server command."""

from typing import TYPE_CHECKING, Annotated, Literal

from cyclopts import Parameter
from fastapi import FastAPI

from nebula_desktop.supervisor import create_control_router

from ._context import CLIContext

if TYPE_CHECKING:
    from nebula_desktop.supervisor import Supervisor

LogLevel = Literal["critical", "error", "warning", "info", "debug", "trace"]


def create_control_app(supervisor: Supervisor) -> FastAPI:
    """Create the FastAPI control application.

    Args:
        supervisor: The Supervisor instance to control.

    Returns:
        A FastAPI application with supervisor control endpoints.
    """
    app = FastAPI(
        title="NebulaGraph Desktop Control",
        docs_url=None,
        redoc_url=None,
    )
    app.include_router(create_control_router(supervisor))
    return app


def serve(
    *,
    host: Annotated[str, Parameter(help="Bind socket to this host.")] = "127.0.0.1",
    port: Annotated[int, Parameter(help="Bind socket to this port.")] = 6280,
    log_level: Annotated[LogLevel, Parameter(help="Log level.")] = "warning",
    access_log: Annotated[bool, Parameter(help="Enable access log.")] = False,
) -> None:
    """Run the control API server using uvicorn."""
    import uvicorn  # noqa: PLC0415

    supervisor = CLIContext.get_current().create_supervisor()
    uvicorn.run(
        create_control_app(supervisor),
        host=host,
        port=port,
        log_level=log_level,
        access_log=access_log,
    )
