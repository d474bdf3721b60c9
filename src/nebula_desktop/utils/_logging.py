"""structlog loggers for the supervisor log file.

Loggers are built with `structlog.wrap_logger` and own their output
stream, so creating one never touches the global structlog configuration.
"""

import logging
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, cast

import structlog

from ._paths import get_supervisor_log_file

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]


def _resolve_level(level: str | None) -> int:
    """Map a level name to its numeric value.

    ``NEBULA_DESKTOP_DEBUG`` wins over everything. Without an explicit
    ``level`` the ``NEBULA_DESKTOP_LOG_LEVEL`` variable applies, then info.
    Unknown names fall back to info.
    """
    if getenv("NEBULA_DESKTOP_DEBUG"):
        return logging.DEBUG
    name = level or getenv("NEBULA_DESKTOP_LOG_LEVEL", "info")
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _processors(log_format: LogFormatType) -> list[Processor]:
    chain: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "text":
        chain.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        chain += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return chain


def _rotating_sink(path: Path, level: int, max_bytes: int, backup_count: int) -> logging.Logger:
    """Return a private stdlib logger feeding a size-rotated file."""
    sink = logging.getLogger(f"nebula_desktop.file.{path}")
    sink.handlers.clear()
    sink.propagate = False
    sink.setLevel(level)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(logging.Formatter("%(message)s"))
    sink.addHandler(handler)
    return sink


def create_supervisor_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    log_file: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    """Build the logger handed to the supervisor and its collaborators.

    Events are appended to ``log_file``, or to ``supervisor.log`` in the
    per-user log directory when it is empty. Giving both ``max_bytes`` and
    ``backup_count`` switches to a rotating file.

    Args:
        level: Threshold name (debug, info, warning, error).
        log_format: ``"json"`` for one object per line, ``"text"`` for
            ``timestamp [level] event key=value`` lines.
        log_file: Destination file; parent directories are created.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files to keep.
    """
    path = Path(log_file) if log_file else get_supervisor_log_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    threshold = _resolve_level(level)

    sink: Any
    if max_bytes is not None and backup_count is not None:
        sink = _rotating_sink(path, threshold, max_bytes, backup_count)
    else:
        sink = structlog.WriteLogger(path.open("a", encoding="utf-8"))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            sink,
            processors=_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(threshold),
            context_class=dict,
        ),
    )


def get_null_logger() -> FilteringBoundLogger:
    """Return a logger that discards every event."""
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[],
            wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
            context_class=dict,
        ),
    )
