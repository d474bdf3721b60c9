"""Host port pre-flight checks."""

import re
import sys
from typing import TYPE_CHECKING

from nebula_desktop.exceptions import CommandError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from structlog.typing import FilteringBoundLogger

    from ._protocol import CommandRunner

# netstat -ano: "  TCP    0.0.0.0:7001    0.0.0.0:0    LISTENING    1234"
_NETSTAT_LISTEN = re.compile(r"^\s*TCP\s+\S*:(\d+)\s+\S+\s+LISTENING", re.IGNORECASE)


def parse_netstat_ports(output: str) -> set[int]:
    """Return the TCP ports in LISTENING state from `netstat -ano` output."""
    ports: set[int] = set()
    for line in output.splitlines():
        match = _NETSTAT_LISTEN.match(line)
        if match:
            ports.add(int(match.group(1)))
    return ports


async def is_port_in_use(
    runner: CommandRunner,
    port: int,
    *,
    platform: str | None = None,
) -> bool:
    """Return True if some process is bound to the port.

    A lookup that cannot run at all is treated as "available"; the
    orchestration layer will then report the conflict itself.
    """
    platform = platform or sys.platform
    try:
        if platform == "win32":
            result = await runner.run_unchecked(["netstat", "-ano"])
            return result.ok and port in parse_netstat_ports(result.stdout)
        result = await runner.run_unchecked(["lsof", "-i", f":{port}"])
    except CommandError:
        return False
    return result.ok and bool(result.stdout)


async def find_conflicting_ports(
    runner: CommandRunner,
    ports: Iterable[int],
    *,
    platform: str | None = None,
    logger: FilteringBoundLogger | None = None,
) -> list[int]:
    """Return the ports from `ports` that are already bound, in order."""
    conflicts: list[int] = []
    for port in ports:
        if await is_port_in_use(runner, port, platform=platform):
            conflicts.append(port)
    if conflicts and logger is not None:
        logger.warning("port_conflicts", ports=conflicts)
    return conflicts
