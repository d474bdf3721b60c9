# pyright: reportExplicitAny=false
"""Exit codes and output helpers used by every command."""

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

import orjson
from rich.console import Console

from nebula_desktop.supervisor import ErrorKind

if TYPE_CHECKING:
    from nebula_desktop.supervisor import OperationResult

FormattableData = dict[str, Any] | list[Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "exit_for_result",
    "exit_with_error",
    "exit_with_success",
    "format_json",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Process exit status of a command."""

    SUCCESS = 0
    LOAD_ERROR = 1
    RUNTIME_UNAVAILABLE = 2
    NOT_FOUND = 3
    OPERATION_FAILED = 4
    INTERNAL_ERROR = 5


# Kinds not listed here exit with OPERATION_FAILED
_EXIT_CODE_BY_KIND: dict[ErrorKind, ExitCode] = {
    ErrorKind.RUNTIME_UNAVAILABLE: ExitCode.RUNTIME_UNAVAILABLE,
    ErrorKind.SERVICE_NOT_FOUND: ExitCode.NOT_FOUND,
    ErrorKind.INTERNAL: ExitCode.INTERNAL_ERROR,
}


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Serialize command output with orjson."""
    return orjson.dumps(data, option=orjson.OPT_INDENT_2 if indent else None).decode()


def get_error_console() -> Console:
    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Report ``message`` on stderr and end the command with ``code``.

    Raises:
        SystemExit: Always.
    """
    (console or get_error_console()).print(f"[red]Error:[/red] {message}")
    raise SystemExit(code)


def exit_with_success(message: str | None = None, *, console: Console | None = None) -> Never:
    """End the command successfully, printing ``message`` first if given.

    Raises:
        SystemExit: Always, with status 0.
    """
    if message is not None:
        (console or get_error_console()).print(message)
    raise SystemExit(ExitCode.SUCCESS)


def exit_for_result(
    result: OperationResult,
    success_message: str,
    *,
    console: Console | None = None,
) -> Never:
    """End the command according to a supervisor operation result.

    A failure that left services unhealthy lists them after the message.

    Raises:
        SystemExit: Always; the status follows the result's error kind.
    """
    if result.success:
        exit_with_success(success_message, console=console)

    message = result.error or "Operation failed"
    if result.unhealthy_services:
        message += f" (unhealthy: {', '.join(result.unhealthy_services)})"
    code = ExitCode.OPERATION_FAILED
    if result.error_kind is not None:
        code = _EXIT_CODE_BY_KIND.get(result.error_kind, code)
    exit_with_error(message, code, console=console)
