"""Tests for nebula_desktop.runtime._images module."""

from pathlib import Path

import orjson
import pytest

from nebula_desktop.exceptions import ImageProvisioningError
from nebula_desktop.runtime import (
    MANIFEST_FILE_NAME,
    ImageLoadProgress,
    ImageProvisioner,
    RuntimeChecker,
    parse_manifest,
)
from nebula_desktop.utils import CommandResult
from tests.conftest import FakeRunner

IMAGES = ("vesoft/nebula-metad:v3.8.0", "vesoft/nebula-graphd:v3.8.0")

MANIFEST = {
    "version": "1.0.0",
    "platform": "darwin",
    "arch": "arm64",
    "images": {
        "metad": {"name": "vesoft/nebula-metad", "tag": "v3.8.0", "size": "120MB"},
        "graphd": {"name": "vesoft/nebula-graphd", "tag": "v3.8.0"},
    },
}


def _write_manifest(images_dir: Path, data: object = MANIFEST) -> None:
    _ = (images_dir / MANIFEST_FILE_NAME).write_bytes(orjson.dumps(data))


def _provisioner(runner: FakeRunner, images_dir: Path) -> ImageProvisioner:
    return ImageProvisioner(
        runner, RuntimeChecker(runner), images=IMAGES, images_dir=images_dir
    )


class TestParseManifest:
    def test_entries_in_file_order(self) -> None:
        manifest = parse_manifest(orjson.dumps(MANIFEST))

        assert [i.key for i in manifest.images] == ["metad", "graphd"]
        assert manifest.images[0].reference == "vesoft/nebula-metad:v3.8.0"
        assert manifest.images[0].size == "120MB"
        assert manifest.images[1].checksum is None
        assert manifest.platform == "darwin"

    def test_invalid_json(self) -> None:
        with pytest.raises(ImageProvisioningError, match="not valid JSON"):
            _ = parse_manifest(b"{not json")

    def test_missing_images_table(self) -> None:
        with pytest.raises(ImageProvisioningError, match="no 'images' table"):
            _ = parse_manifest(b'{"version": "1"}')

    def test_entry_without_tag(self) -> None:
        with pytest.raises(ImageProvisioningError, match="'metad'"):
            _ = parse_manifest(b'{"images": {"metad": {"name": "x"}}}')


class TestEnsureImagesLoaded:
    @pytest.mark.anyio
    async def test_all_present_loads_nothing(
        self, runner: FakeRunner, images_dir: Path
    ) -> None:
        _ = runner.with_ready_runtime().with_images_present()

        assert await _provisioner(runner, images_dir).ensure_images_loaded() is True
        assert runner.count("docker image inspect") == len(IMAGES)
        assert not runner.called("docker load")

    @pytest.mark.anyio
    async def test_loads_archives_in_manifest_order(
        self, runner: FakeRunner, images_dir: Path
    ) -> None:
        _ = runner.with_ready_runtime()
        _ = runner.on("docker image inspect", exit_code=1, stderr="No such image")
        _ = runner.on("docker load", stdout="Loaded image")
        _write_manifest(images_dir)
        updates: list[ImageLoadProgress] = []
        provisioner = _provisioner(runner, images_dir)

        assert await provisioner.ensure_images_loaded(updates.append) is True

        loads = [c for c in runner.calls if "docker load" in c]
        assert loads[0].endswith(str(images_dir / "metad.tar"))
        assert loads[1].endswith(str(images_dir / "graphd.tar"))
        assert updates == [
            ImageLoadProgress(1, 2, "vesoft/nebula-metad:v3.8.0"),
            ImageLoadProgress(2, 2, "vesoft/nebula-graphd:v3.8.0"),
        ]
        assert provisioner.progress is None

    @pytest.mark.anyio
    async def test_stops_probing_at_first_missing_image(
        self, runner: FakeRunner, images_dir: Path
    ) -> None:
        _ = runner.with_ready_runtime()
        _ = runner.on("docker image inspect", exit_code=1)
        _ = runner.on("docker load", stdout="Loaded image")
        _write_manifest(images_dir)

        _ = await _provisioner(runner, images_dir).ensure_images_loaded()

        assert runner.count("docker image inspect") == 1

    @pytest.mark.anyio
    async def test_missing_manifest_fails(
        self, runner: FakeRunner, images_dir: Path
    ) -> None:
        _ = runner.with_ready_runtime()
        _ = runner.on("docker image inspect", exit_code=1)

        assert await _provisioner(runner, images_dir).ensure_images_loaded() is False

    @pytest.mark.anyio
    async def test_failed_load_stops_and_clears_progress(
        self, runner: FakeRunner, images_dir: Path
    ) -> None:
        _ = runner.with_ready_runtime()
        _ = runner.on("docker image inspect", exit_code=1)
        _ = runner.on("docker load", exit_code=1, stderr="archive corrupt")
        _write_manifest(images_dir)
        provisioner = _provisioner(runner, images_dir)

        assert await provisioner.ensure_images_loaded() is False
        assert runner.count("docker load") == 1
        assert provisioner.progress is None

    @pytest.mark.anyio
    async def test_runtime_not_running_fails_without_probing(
        self, runner: FakeRunner, images_dir: Path
    ) -> None:
        _ = runner.on("docker --version", stdout="Docker version 27.3.1")

        assert await _provisioner(runner, images_dir).ensure_images_loaded() is False
        assert not runner.called("docker image inspect")

    @pytest.mark.anyio
    async def test_reentrant_once_present(
        self, runner: FakeRunner, images_dir: Path
    ) -> None:
        _ = runner.with_ready_runtime()
        _ = runner.on_sequence(
            "docker image inspect",
            [
                CommandResult(command="docker image inspect", exit_code=1),
                CommandResult(command="docker image inspect", exit_code=0),
            ],
        )
        _ = runner.on("docker load", stdout="Loaded image")
        _write_manifest(images_dir)
        provisioner = _provisioner(runner, images_dir)

        assert await provisioner.ensure_images_loaded() is True
        loads_after_first = runner.count("docker load")
        assert await provisioner.ensure_images_loaded() is True

        assert runner.count("docker load") == loads_after_first

