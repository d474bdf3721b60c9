"""Loading configuration at process start without crashing on bad input."""

import os
import sys
from typing import TYPE_CHECKING, NoReturn

from nebula_desktop.exceptions import ConfigError

from ._models import Config

if TYPE_CHECKING:
    from pathlib import Path

STRICT_ENV_VAR = "NEBULA_DESKTOP_STRICT_CONFIG"


def _abort(message: str) -> NoReturn:
    print(f"Error: {message}", file=sys.stderr)  # noqa: T201
    sys.exit(1)


def safe_load_config(
    *,
    config_path: Path | None = None,
    cli_overrides: dict[str, object] | None = None,
) -> tuple[Config, str | None]:
    """Load the layered configuration, degrading to defaults on failure.

    A broken config file or invalid value is reported on stderr and the
    built-in defaults are used instead, so the supervisor still starts.
    With ``NEBULA_DESKTOP_STRICT_CONFIG=1`` the same failure exits with
    status 1. A ``config_path`` that does not exist always exits, since the
    user asked for that file by name.

    Returns:
        The configuration and, when the defaults were substituted, the
        reason why.
    """
    if config_path is not None and not config_path.exists():
        _abort(f"Config file not found: {config_path}")

    try:
        config = Config.load(
            config_path=config_path,
            include_cli=cli_overrides is not None,
            cli_overrides=cli_overrides,
        )
    except (ConfigError, OSError) as e:
        reason = str(e)
        if os.environ.get(STRICT_ENV_VAR) == "1":
            _abort(reason)
        print(f"Warning: Failed to load config: {reason}", file=sys.stderr)  # noqa: T201
        return Config(), reason
    return config, None
