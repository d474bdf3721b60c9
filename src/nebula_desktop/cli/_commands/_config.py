# pyright: reportUnusedCallResult=false
"""Configuration commands."""

from typing import Annotated

from cyclopts import App, Parameter

from ._context import CLIContext, OutputFormat
from ._shared import ExitCode, exit_with_error, format_json

app = App(name="config", help="Inspect nebula-desktop configuration", help_on_error=True)


@app.command(name="show")
def _show(
    *,
    format: Annotated[  # noqa: A002
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format (toml, json)"),
    ] = OutputFormat.TOML,
    no_defaults: Annotated[
        bool,
        Parameter(name="--no-defaults", help="Exclude default values"),
    ] = False,
) -> None:
    """Display the merged configuration.

    Args:
        format: Output format (toml, json).
        no_defaults: Exclude default values from output.
    """
    ctx = CLIContext.get_current()
    config = ctx.config

    match format:
        case OutputFormat.JSON:
            output = format_json(config.to_dict(include_defaults=not no_defaults))
        case OutputFormat.TOML:
            output = config.to_toml(include_defaults=not no_defaults)
        case _:
            exit_with_error(f"Unsupported format: {format}", ExitCode.LOAD_ERROR)

    print(output.rstrip())  # noqa: T201
    if ctx.config_error:
        exit_with_error(ctx.config_error, ExitCode.LOAD_ERROR)
    raise SystemExit(ExitCode.SUCCESS)
