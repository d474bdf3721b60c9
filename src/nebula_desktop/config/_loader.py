# pyright: reportAny=false, reportExplicitAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Reading raw configuration layers and combining them."""

import os
import tomllib
from typing import TYPE_CHECKING, Any

import orjson

from nebula_desktop.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ENV_PREFIX = "NEBULA_DESKTOP_"

# Process switches that share the prefix but are not configuration keys
RESERVED_ENV_VARS: frozenset[str] = frozenset(
    {
        "NEBULA_DESKTOP_DEBUG",
        "NEBULA_DESKTOP_LOG_LEVEL",
        "NEBULA_DESKTOP_STRICT_CONFIG",
    }
)

_BOOLEANS = {"true": True, "false": False}


def read_toml_file(path: Path) -> dict[str, Any]:
    """Parse one TOML configuration file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ConfigLoadError: If the content is not valid TOML. The error carries
            the line and column reported by the parser.
    """
    text = path.read_text(encoding="utf-8")
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e


def copy_value(value: Any) -> Any:
    """Return an independent copy of a nested dict/list structure."""
    match value:
        case dict():
            return {key: copy_value(item) for key, item in value.items()}
        case list():
            return [copy_value(item) for item in value]
        case _:
            return value


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Lay ``override`` over ``base`` and return the result as a new dict.

    Tables merge key by key at every depth. Anything else in ``override``,
    arrays included, replaces what ``base`` holds. Neither argument is
    modified.
    """
    merged = copy_value(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy_value(value)
    return merged


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Collect configuration overrides from environment variables.

    A double underscore separates table levels, so
    ``NEBULA_DESKTOP_SUPERVISOR__POLL_INTERVAL=0.5`` becomes
    ``{"supervisor": {"poll_interval": 0.5}}``. Values are typed with
    `parse_string_value`.
    """
    overrides: dict[str, Any] = {}
    for name, raw in (os.environ if environ is None else environ).items():
        key = name.removeprefix(prefix)
        if key == name or not key or name in RESERVED_ENV_VARS:
            continue
        set_nested_key(overrides, key.replace("__", ".").lower(), parse_string_value(raw))
    return overrides


def _parse_number(value: str) -> int | float | None:
    convert = float if "." in value else int
    try:
        return convert(value)
    except ValueError:
        return None


def parse_string_value(value: str) -> Any:
    """Turn a string from the environment or command line into a typed value.

    Booleans are recognised case-insensitively. Text with a decimal point is
    tried as a float and other text as an int. Bracketed or braced text is
    tried as JSON. Whatever fails every attempt comes back unchanged.

    Examples:
        >>> parse_string_value("False")
        False
        >>> parse_string_value("250")
        250
        >>> parse_string_value("0.5")
        0.5
        >>> parse_string_value('["/opt/docker/bin"]')
        ['/opt/docker/bin']
        >>> parse_string_value("graphd")
        'graphd'
    """
    if (flag := _BOOLEANS.get(value.lower())) is not None:
        return flag

    if (number := _parse_number(value)) is not None:
        return number

    if value[:1] + value[-1:] in ("[]", "{}"):
        try:
            return orjson.loads(value)
        except orjson.JSONDecodeError:
            pass

    return value


def set_nested_key(d: dict[str, Any], key_path: str, value: Any) -> None:
    """Assign ``value`` at a dotted path, creating or replacing tables on the way.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "supervisor.log_tail", 250)
        >>> d
        {'supervisor': {'log_tail': 250}}
    """
    *parents, leaf = key_path.split(".")
    node = d
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value
