"""Container runtime layer.

Everything that talks to the Docker engine or compose lives here, behind
the CommandRunner protocol:
    - RuntimeChecker: engine and compose availability
    - ImageProvisioner: loads bundled image archives when images are missing
    - ComposeProject: renders the compose file, builds scoped commands
    - find_conflicting_ports: host port pre-flight
"""

from ._checker import RuntimeChecker, parse_docker_info
from ._compose import COMPOSE_FILE_NAME, PROJECT_NAME, VOLUME_DIRS, ComposeProject
from ._images import MANIFEST_FILE_NAME, ImageProvisioner, parse_manifest
from ._models import (
    ComposeStatus,
    DockerInfo,
    ImageLoadProgress,
    ImageManifest,
    ManifestImage,
    SystemStatus,
)
from ._ports import find_conflicting_ports, is_port_in_use, parse_netstat_ports
from ._protocol import CommandRunner

__all__ = [
    "COMPOSE_FILE_NAME",
    "MANIFEST_FILE_NAME",
    "PROJECT_NAME",
    "VOLUME_DIRS",
    "CommandRunner",
    "ComposeProject",
    "ComposeStatus",
    "DockerInfo",
    "ImageLoadProgress",
    "ImageManifest",
    "ImageProvisioner",
    "ManifestImage",
    "RuntimeChecker",
    "SystemStatus",
    "find_conflicting_ports",
    "is_port_in_use",
    "parse_docker_info",
    "parse_manifest",
]
