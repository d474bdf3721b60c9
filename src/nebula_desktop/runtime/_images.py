"""Image provisioning from bundled archives.

The service images are normally pulled from a registry by compose. For
offline installs the packaging tool ships each image as a `docker save`
archive next to a manifest; this module loads those archives when any
declared image is missing locally.
"""

from typing import TYPE_CHECKING, final

import anyio
import orjson

from nebula_desktop.exceptions import CommandError, ImageProvisioningError
from nebula_desktop.utils import get_null_logger

from ._models import ImageLoadProgress, ImageManifest, ManifestImage

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from ._checker import RuntimeChecker
    from ._protocol import CommandRunner

MANIFEST_FILE_NAME = "manifest.json"

# Loading an image archive can take minutes
LOAD_TIMEOUT: float = 900.0


def parse_manifest(content: bytes | str) -> ImageManifest:
    """Parse the image manifest.

    Args:
        content: Raw manifest JSON.

    Returns:
        The parsed manifest, entries in file order.

    Raises:
        ImageProvisioningError: If the content is not a valid manifest.
    """
    try:
        data = orjson.loads(content)
    except orjson.JSONDecodeError as e:
        msg = f"Image manifest is not valid JSON: {e}"
        raise ImageProvisioningError(msg) from e

    if not isinstance(data, dict) or not isinstance(data.get("images"), dict):
        msg = "Image manifest has no 'images' table"
        raise ImageProvisioningError(msg)

    entries: list[ManifestImage] = []
    for key, entry in data["images"].items():
        if not isinstance(entry, dict) or "name" not in entry or "tag" not in entry:
            msg = f"Image manifest entry '{key}' must have 'name' and 'tag'"
            raise ImageProvisioningError(msg)
        entries.append(
            ManifestImage(
                key=str(key),
                name=str(entry["name"]),
                tag=str(entry["tag"]),
                size=str(entry["size"]) if entry.get("size") is not None else None,
                checksum=(
                    str(entry["checksum"])
                    if entry.get("checksum") is not None
                    else None
                ),
            )
        )

    def _optional(name: str) -> str | None:
        value = data.get(name)
        return str(value) if value is not None else None

    return ImageManifest(
        images=tuple(entries),
        version=_optional("version"),
        timestamp=_optional("timestamp"),
        platform=_optional("platform"),
        arch=_optional("arch"),
    )


@final
class ImageProvisioner:
    """Ensures the declared service images are present in the local engine.

    Re-entrant: once every image is present, `ensure_images_loaded`
    returns after the presence probes without loading anything.
    """

    __slots__ = (
        "_checker",
        "_images",
        "_images_dir",
        "_logger",
        "_progress",
        "_runner",
    )

    def __init__(
        self,
        runner: CommandRunner,
        checker: RuntimeChecker,
        *,
        images: Sequence[str],
        images_dir: Path,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the provisioner.

        Args:
            runner: Command runner for engine invocations.
            checker: Runtime checker consulted before provisioning.
            images: Image references that must be present.
            images_dir: Directory holding the manifest and archives.
            logger: Structured logger. Uses a null logger if None.
        """
        self._runner = runner
        self._checker = checker
        self._images = tuple(images)
        self._images_dir = images_dir
        self._logger = logger or get_null_logger()
        self._progress: ImageLoadProgress | None = None

    @property
    def progress(self) -> ImageLoadProgress | None:
        """Return the progress of the current run, or None when idle."""
        return self._progress

    @property
    def manifest_path(self) -> Path:
        """Return the location of the image manifest."""
        return self._images_dir / MANIFEST_FILE_NAME

    async def image_exists(self, reference: str) -> bool:
        """Return True if the engine has the image locally."""
        try:
            result = await self._runner.run_unchecked(
                ["docker", "image", "inspect", reference]
            )
        except CommandError:
            return False
        return result.ok

    async def images_present(self) -> bool:
        """Probe each declared image, stopping at the first missing one."""
        for reference in self._images:
            if not await self.image_exists(reference):
                self._logger.info("image_missing", image=reference)
                return False
        return True

    async def read_manifest(self) -> ImageManifest:
        """Read and parse the manifest from the images directory.

        Raises:
            ImageProvisioningError: If the manifest is missing or invalid.
        """
        path = anyio.Path(self.manifest_path)
        try:
            content = await path.read_bytes()
        except OSError as e:
            msg = f"Cannot read image manifest {self.manifest_path}: {e}"
            raise ImageProvisioningError(msg) from e
        return parse_manifest(content)

    async def load_images(
        self,
        progress: Callable[[ImageLoadProgress], None] | None = None,
    ) -> None:
        """Load every manifest archive into the engine, in manifest order.

        Args:
            progress: Called before each archive load starts.

        Raises:
            ImageProvisioningError: If the manifest is unusable or any
                archive fails to load. Archives loaded earlier stay loaded.
        """
        manifest = await self.read_manifest()
        total = len(manifest.images)

        for index, image in enumerate(manifest.images, start=1):
            update = ImageLoadProgress(
                current=index, total=total, status=image.reference
            )
            self._progress = update
            if progress is not None:
                progress(update)

            archive = self._images_dir / f"{image.key}.tar"
            self._logger.info(
                "image_loading", image=image.reference, archive=str(archive)
            )
            try:
                _ = await self._runner.run(
                    ["docker", "load", "-i", str(archive)], timeout=LOAD_TIMEOUT
                )
            except CommandError as e:
                msg = f"Failed to load image {image.reference}: {e}"
                raise ImageProvisioningError(msg) from e

    async def ensure_images_loaded(
        self,
        progress: Callable[[ImageLoadProgress], None] | None = None,
    ) -> bool:
        """Make every declared image available locally.

        Args:
            progress: Called with `{current, total, status}` before each load.

        Returns:
            True if all images are present afterwards, False otherwise.
        """
        status = await self._checker.check_system()
        if not (status.is_installed and status.is_running):
            self._logger.warning("image_provisioning_skipped", reason=status.reason)
            return False

        if await self.images_present():
            return True

        try:
            await self.load_images(progress)
        except ImageProvisioningError as e:
            self._logger.error("image_provisioning_failed", error=str(e))
            return False
        finally:
            self._progress = None

        self._logger.info("image_provisioning_complete")
        return True
