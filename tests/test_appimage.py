"""Tests for builders.appimage.AppImageBuilder."""

import os

import pytest

from builders.appimage import AppImageBuilder
from conftest import FakeRunner
from errors import MissingExpectedFile, PackagingError
from planning.models import PackageRequest, PackageType
from planning.resolver import resolve


@pytest.fixture
def appimage_script(settings):
    os.makedirs(settings.tools_dir)
    script = os.path.join(settings.tools_dir, "appimage.sh")
    with open(script, "w", encoding="utf-8") as f:
        f.write("#!/bin/bash\n")
    return script


def _creates(*names):
    def fake_script(cmd, cwd):
        for name in names:
            with open(os.path.join(cwd, name), "w", encoding="utf-8") as f:
                f.write("image")
        return ""
    return fake_script


class TestAppImageBuilder:
    def test_supported_only_on_trusty(self, ubuntu14, ubuntu16, settings, fake_runner):
        assert AppImageBuilder(ubuntu14, settings, fake_runner).supported()
        assert not AppImageBuilder(ubuntu16, settings, fake_runner).supported()

    def test_versioned_rename(self, ubuntu14, settings, appimage_script):
        runner = FakeRunner(outputs={"bash": _creates("PowerShell-x86_64.AppImage")})
        plan = resolve(PackageRequest(type=PackageType.APPIMAGE, version="6.0.0-beta.1"), ubuntu14)
        result = AppImageBuilder(ubuntu14, settings, runner).build(plan)

        assert runner.calls[0] == (["bash", "-iex", appimage_script], settings.output_dir)
        assert result.artifact_path == os.path.join(settings.output_dir, "PowerShell-6.0.0-beta.1-x86_64.AppImage")
        assert os.path.isfile(result.artifact_path)

    def test_no_image_produced(self, ubuntu14, settings, appimage_script):
        plan = resolve(PackageRequest(type=PackageType.APPIMAGE, version="6.0.0"), ubuntu14)
        with pytest.raises(MissingExpectedFile):
            AppImageBuilder(ubuntu14, settings, FakeRunner()).build(plan)

    def test_more_than_one_image(self, ubuntu14, settings, appimage_script):
        runner = FakeRunner(outputs={"bash": _creates("PowerShell-a.AppImage", "PowerShell-b.AppImage")})
        plan = resolve(PackageRequest(type=PackageType.APPIMAGE, version="6.0.0"), ubuntu14)
        with pytest.raises(PackagingError, match="more than one AppImage"):
            AppImageBuilder(ubuntu14, settings, runner).build(plan)

    def test_missing_script(self, ubuntu14, settings, fake_runner):
        plan = resolve(PackageRequest(type=PackageType.APPIMAGE, version="6.0.0"), ubuntu14)
        with pytest.raises(MissingExpectedFile, match="appimage.sh"):
            AppImageBuilder(ubuntu14, settings, fake_runner).build(plan)
