"""Data models for the container runtime layer.

This module defines the value types produced by the runtime checker and
the image provisioner:
- ComposeStatus: Availability of the compose orchestration layer
- DockerInfo: Highlights parsed from the engine's info output
- SystemStatus: Consolidated runtime availability
- ImageLoadProgress: Progress of an in-flight image provisioning run
- ManifestImage / ImageManifest: The image archive manifest
"""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ComposeStatus:
    """Availability of the compose orchestration layer.

    Attributes:
        is_installed: Whether any compose implementation answered.
        version: Version string reported by the compose tool.
        legacy: True if only the standalone docker-compose binary is present.
    """

    is_installed: bool = False
    version: str | None = None
    legacy: bool = False


@dataclass(frozen=True, slots=True)
class DockerInfo:
    """Highlights parsed from `docker info` output."""

    server_version: str | None = None
    os_arch: str | None = None
    kernel_version: str | None = None


@dataclass(frozen=True, slots=True)
class SystemStatus:
    """Consolidated container runtime availability.

    Degraded states (engine stopped, compose missing) are reported here
    with an explanatory error rather than raised.

    Attributes:
        is_installed: Whether the engine CLI answered a version query.
        is_running: Whether the engine daemon answered an info query.
        version: Engine version string.
        compose: Compose availability.
        error: Human-readable explanation of a degraded state.
        info: Parsed daemon info, when the daemon is running.
    """

    is_installed: bool
    is_running: bool
    version: str | None = None
    compose: ComposeStatus = field(default_factory=ComposeStatus)
    error: str | None = None
    info: DockerInfo | None = None

    @property
    def is_ready(self) -> bool:
        """Return True if the stack can be managed through this runtime."""
        return self.is_installed and self.is_running and self.compose.is_installed

    @property
    def reason(self) -> str:
        """Return why the runtime is not ready, or an empty string."""
        if self.is_ready:
            return ""
        if self.error:
            return self.error
        if not self.is_installed:
            return "Docker is not installed"
        if not self.is_running:
            return "Docker daemon is not running"
        return "Docker Compose not found"


@dataclass(frozen=True, slots=True)
class ImageLoadProgress:
    """Progress of an image provisioning run.

    Attributes:
        current: One-based index of the image being loaded.
        total: Number of images to load.
        status: Human-readable status, usually the image reference.
    """

    current: int
    total: int
    status: str


@dataclass(frozen=True, slots=True)
class ManifestImage:
    """One entry of the image archive manifest.

    Attributes:
        key: Manifest key; the archive file is `<key>.tar`.
        name: Repository name, e.g. "vesoft/nebula-metad".
        tag: Image tag.
        size: Archive size as recorded by the packaging tool.
        checksum: Archive checksum as recorded by the packaging tool.
    """

    key: str
    name: str
    tag: str
    size: str | None = None
    checksum: str | None = None

    @property
    def reference(self) -> str:
        """Return the full image reference, `name:tag`."""
        return f"{self.name}:{self.tag}"


@dataclass(frozen=True, slots=True)
class ImageManifest:
    """The manifest describing the bundled image archives."""

    images: tuple[ManifestImage, ...]
    version: str | None = None
    timestamp: str | None = None
    platform: str | None = None
    arch: str | None = None
