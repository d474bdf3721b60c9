"""Protocol definitions for the supervisor.

This module defines the callback interfaces that decouple the supervisor
from whoever renders its progress (CLI, control API):
- ProgressCallback: Receives health-convergence progress events
- ImageProgressCallback: Receives image provisioning progress
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from nebula_desktop.runtime import ImageLoadProgress

    from ._models import HealthProgress


@runtime_checkable
class ProgressCallback(Protocol):
    """Protocol for consuming whole-stack start progress."""

    def __call__(self, progress: HealthProgress) -> None:
        """Receive one progress event.

        Args:
            progress: Service, attempt, attempt budget and state.
        """
        ...


@runtime_checkable
class ImageProgressCallback(Protocol):
    """Protocol for consuming image provisioning progress."""

    def __call__(self, progress: ImageLoadProgress) -> None:
        """Receive one progress update before an archive load starts."""
        ...
