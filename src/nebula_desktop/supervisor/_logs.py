"""Parsing and classification of compose log output."""

import re

import pendulum
from pendulum.parsing.exceptions import ParserError

from ._models import LogLevel, LogLine

# "<container>  | message", as printed by compose for each line
_COMPOSE_PREFIX = re.compile(r"^[\w.-]+\s*\|\s?")

# Leading RFC 3339 timestamp, as printed with --timestamps
_TIMESTAMP = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2}))\s+"
)

# Engine timestamps carry nanoseconds
_FRACTION = re.compile(r"\.(\d{6})\d+")


def _truncate_fraction(value: str) -> str:
    return _FRACTION.sub(r".\1", value, count=1)


def classify(message: str) -> LogLevel:
    """Classify severity by case-insensitive substring match."""
    lowered = message.lower()
    if "error" in lowered:
        return LogLevel.ERROR
    if "warn" in lowered:
        return LogLevel.WARN
    return LogLevel.INFO


def parse_log_line(line: str, *, retrieved_at: str) -> LogLine | None:
    """Parse one line of `compose logs` output.

    Args:
        line: Raw output line.
        retrieved_at: ISO 8601 timestamp used when the line carries none.

    Returns:
        The parsed line, or None for blank lines.
    """
    text = _COMPOSE_PREFIX.sub("", line.rstrip(), count=1)
    if not text.strip():
        return None

    timestamp = retrieved_at
    match = _TIMESTAMP.match(text)
    if match:
        try:
            parsed = pendulum.parse(_truncate_fraction(match.group(1)))
        except (ParserError, ValueError):
            parsed = None
        if isinstance(parsed, pendulum.DateTime):
            timestamp = parsed.in_timezone("UTC").to_iso8601_string()
            text = text[match.end() :]

    return LogLine(timestamp=timestamp, message=text, level=classify(text))


def parse_logs(output: str, *, retrieved_at: str) -> list[LogLine]:
    """Parse `compose logs` output, dropping blank lines."""
    lines: list[LogLine] = []
    for raw in output.splitlines():
        parsed = parse_log_line(raw, retrieved_at=retrieved_at)
        if parsed is not None:
            lines.append(parsed)
    return lines
