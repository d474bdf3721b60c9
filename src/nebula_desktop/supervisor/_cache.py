"""Last-known-good status snapshot."""

from typing import TYPE_CHECKING, final

if TYPE_CHECKING:
    from ._models import StatusSnapshot


@final
class StatusCache:
    """Holds the most recent complete status snapshot.

    The snapshot is swapped as a whole and never patched field by field.
    A snapshot whose computation began before the cached one's is
    discarded, so a slow recomputation cannot overwrite a fresher result.
    """

    __slots__ = ("_snapshot",)

    def __init__(self) -> None:
        self._snapshot: StatusSnapshot | None = None

    @property
    def snapshot(self) -> StatusSnapshot | None:
        """Return the cached snapshot, or None if nothing was cached yet."""
        return self._snapshot

    def replace(self, snapshot: StatusSnapshot) -> bool:
        """Swap in a new snapshot.

        Args:
            snapshot: The freshly computed snapshot.

        Returns:
            True if the snapshot was stored, False if it was incomplete or
            older than the cached one.
        """
        if not snapshot.complete:
            return False
        current = self._snapshot
        if current is not None and snapshot.started_at < current.started_at:
            return False
        self._snapshot = snapshot
        return True

    def clear(self) -> None:
        """Drop the cached snapshot."""
        self._snapshot = None
