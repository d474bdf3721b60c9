"""The ``nebula-desktop`` command-line application."""
# ruff: noqa: TC003  # cyclopts resolves the Path annotation at runtime

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from nebula_desktop.config import safe_load_config
from nebula_desktop.utils import create_supervisor_logger

from ._commands import CLIContext, register_commands


def _bootstrap(*, verbose: bool, config_path: Path | None) -> CLIContext:
    """Resolve the global options into the context commands will see."""
    overrides = {"logging": {"level": "debug"}} if verbose else None
    config, config_error = safe_load_config(config_path=config_path, cli_overrides=overrides)
    settings = config.logging
    logger = create_supervisor_logger(
        level=settings.level.value,
        log_format=settings.format.value,  # type: ignore[arg-type]
        log_file=settings.file,
        max_bytes=settings.max_bytes,
        backup_count=settings.backup_count,
    )
    return CLIContext(
        config=config, verbose=verbose, config_error=config_error, logger=logger
    )


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the application with every command registered.

    Each call returns an independent app, so tests can capture output
    through their own consoles.
    """
    application = App(
        name="nebula-desktop",
        help="Run a local NebulaGraph stack on Docker.",
        help_on_error=True,
        console=console or Console(),
        error_console=error_console or Console(stderr=True),
        exit_on_error=exit_on_error,
    )

    @application.meta.default
    def _launch(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Enable debug logging")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Apply the global options, then run the requested command."""
        CLIContext.set_current(_bootstrap(verbose=verbose, config_path=config))
        try:
            application(tokens)
        finally:
            CLIContext.reset()

    register_commands(application)
    return application


app = create_app()


def main() -> None:
    """Console-script entry point."""
    app.meta()


if __name__ == "__main__":
    main()
