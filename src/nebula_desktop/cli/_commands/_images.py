# pyright: reportUnusedCallResult=false
"""Image provisioning commands."""

import anyio
from cyclopts import App

from nebula_desktop.supervisor import ConsoleProgressPrinter

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error, exit_with_success

app = App(name="images", help="Manage the service images", help_on_error=True)


@app.command(name="load")
def _load() -> None:
    """Load the bundled image archives if any image is missing."""
    supervisor = CLIContext.get_current().create_supervisor()
    printer = ConsoleProgressPrinter()
    if anyio.run(supervisor.ensure_images_loaded, printer.image_progress):
        exit_with_success("Images available")
    exit_with_error(
        "Failed to make the service images available", ExitCode.OPERATION_FAILED
    )
