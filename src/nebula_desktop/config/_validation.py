# pyright: reportAny=false, reportExplicitAny=false, reportUnknownArgumentType=false, reportUnknownMemberType=false, reportUnknownVariableType=false
"""Checking a merged configuration mapping before it is used.

Each known table is validated with its section model. Unknown top-level
tables pass unless ``strict`` is requested.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, TypedDict

from pydantic import ConfigDict, TypeAdapter, ValidationError, with_config

from nebula_desktop.exceptions import ConfigValidationError

from ._models._docker import DockerConfig
from ._models._logging import LoggingConfig
from ._models._paths import PathsConfig
from ._models._supervisor import SupervisorConfig

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single rejected configuration value.

    Attributes:
        key: Dotted location of the value, e.g. ``supervisor.poll_interval``.
        message: What pydantic reported.
        expected: The bound or choice that was violated, when one is known.
        actual: The offending input.
        source: The layer the value came from, when known.
        severity: Always ``"error"`` for values pydantic rejects.
    """

    key: str
    message: str
    expected: str | None
    actual: Any
    source: str | None = None
    severity: Literal["error", "warning"] = "error"


class _Sections(TypedDict, total=False):
    logging: LoggingConfig
    docker: DockerConfig
    supervisor: SupervisorConfig
    paths: PathsConfig


@with_config(ConfigDict(extra="forbid"))
class _StrictSections(_Sections, total=False):
    pass


_ADAPTERS: dict[bool, TypeAdapter[Any]] = {
    False: TypeAdapter(_Sections),
    True: TypeAdapter(_StrictSections),
}

_BOUNDS = (("gt", ">"), ("ge", ">="), ("lt", "<"), ("le", "<="))


def _expected(error: ErrorDetails) -> str | None:
    ctx = error.get("ctx") or {}
    if "expected" in ctx:
        return str(ctx["expected"])
    for name, symbol in _BOUNDS:
        if name in ctx:
            return f"{symbol} {ctx[name]}"
    return None


def validate_config(config: dict[str, Any], *, strict: bool = False) -> list[ValidationIssue]:
    """Return every problem in ``config``; an empty list means it is usable."""
    try:
        _ = _ADAPTERS[strict].validate_python(config)
    except ValidationError as e:
        return [
            ValidationIssue(
                key=".".join(str(part) for part in error["loc"]),
                message=error["msg"],
                expected=_expected(error),
                actual=error.get("input"),
            )
            for error in e.errors()
        ]
    return []


def ensure_valid(
    config: dict[str, Any],
    *,
    strict: bool = False,
    source: str | None = None,
) -> None:
    """Raise for the first problem found in ``config``.

    Raises:
        ConfigValidationError: Naming the offending key, and ``source`` when
            given.
    """
    errors = [i for i in validate_config(config, strict=strict) if i.severity == "error"]
    if not errors:
        return
    first = errors[0]
    msg = f"Invalid configuration value for '{first.key}': {first.message}"
    raise ConfigValidationError(
        msg,
        key=first.key,
        value=first.actual,
        expected=first.expected or first.message,
        source=source or first.source,
    )
