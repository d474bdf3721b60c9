"""Console rendering of supervisor progress.

This module provides concrete implementations of the ProgressCallback and
ImageProgressCallback protocols that print to a rich Console.
"""

from typing import TYPE_CHECKING, final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._models import SYSTEM_SERVICE, HealthState

if TYPE_CHECKING:
    from nebula_desktop.runtime import ImageLoadProgress

    from ._models import HealthProgress


@final
class ConsoleProgressPrinter:
    """Prints start and image provisioning progress.

    Phase events are printed as `==> phase`. Per-service events are
    printed as `[service] state (attempt/max)`, only when a service's
    state changes, so a long wait does not flood the console.
    """

    __slots__ = ("_console", "_last_states", "_state_styles")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the printer.

        Args:
            console: Rich Console instance for output. If None, creates a new one.
        """
        self._console = console or Console()
        self._last_states: dict[str, str] = {}
        self._state_styles: dict[str, Style] = {
            HealthState.HEALTHY.value: Style(color="green", bold=True),
            HealthState.STARTING.value: Style(color="cyan"),
            HealthState.UNHEALTHY.value: Style(color="red", bold=True),
            HealthState.UNKNOWN.value: Style(color="yellow"),
            HealthState.NOT_CREATED.value: Style(dim=True),
        }

    def __call__(self, progress: HealthProgress) -> None:
        """Print one health progress event."""
        if progress.service == SYSTEM_SERVICE:
            text = Text()
            _ = text.append("==> ", style=Style(color="blue", bold=True))
            _ = text.append(progress.state.replace("_", " "), style=Style(bold=True))
            self._console.print(text)
            return

        if self._last_states.get(progress.service) == progress.state:
            return
        self._last_states[progress.service] = progress.state

        text = Text()
        _ = text.append(f"[{progress.service}]", style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(progress.state, style=self._state_styles.get(progress.state, Style()))
        _ = text.append(
            f" ({progress.attempt}/{progress.max_attempts})", style=Style(dim=True)
        )
        self._console.print(text)

    def image_progress(self, progress: ImageLoadProgress) -> None:
        """Print one image provisioning update."""
        text = Text()
        _ = text.append(
            f"[{progress.current}/{progress.total}]", style=Style(color="blue", bold=True)
        )
        _ = text.append(f" Loading {progress.status}")
        self._console.print(text)
