"""Shared fixtures: platform snapshots, settings rooted in tmp_path, a fake tool runner."""

import os

import pytest

from cli_config import PackagingSettings
from common.tool_runner import ToolResult, ToolRunner
from errors import ToolInvocationError
from planning.models import PlatformFacts, PlatformFamily

BUILD_ARTIFACTS = (
    "powershell",
    "powershell.dll",
    "powershell.deps.json",
    "powershell.pdb",
    "powershell.runtimeconfig.json",
    "powershell.xml",
)


class FakeRunner(ToolRunner):
    """ToolRunner that records calls and imitates ronn/gzip side effects."""

    def __init__(self, available=("fpm", "ronn", "gzip"), outputs=None, fail=()):
        super().__init__(env={"PATH": "/nonexistent"})
        self.available = set(available)
        self.outputs = dict(outputs or {})
        self.fail = set(fail)
        self.calls = []

    def which(self, tool):
        return f"/usr/bin/{tool}" if tool in self.available else None

    def run(self, command, *, cwd=None, check=True):
        cmd = [str(c) for c in command]
        self.calls.append((cmd, cwd))
        tool = cmd[0]
        if tool in self.fail:
            raise ToolInvocationError(cmd, 1, f"{tool} failed")
        if tool == "ronn":
            with open(cmd[-1][: -len(".ronn")], "w", encoding="utf-8") as f:
                f.write(".TH POWERSHELL 1\n")
        elif tool == "gzip":
            target = cmd[-1]
            with open(target + ".gz", "wb") as f:
                f.write(b"gz")
            os.remove(target)
        output = self.outputs.get(tool, "")
        if callable(output):
            output = output(cmd, cwd)
        return ToolResult(command=cmd, returncode=0, output=output)

    def calls_for(self, tool):
        return [cmd for cmd, _cwd in self.calls if cmd[0] == tool]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def ubuntu16():
    return PlatformFacts(family=PlatformFamily.LINUX, distro_id="ubuntu", distro_version="16.04",
                         pretty_name="Ubuntu 16.04.2 LTS")


@pytest.fixture
def ubuntu14():
    return PlatformFacts(family=PlatformFamily.LINUX, distro_id="ubuntu", distro_version="14.04",
                         pretty_name="Ubuntu 14.04.5 LTS")


@pytest.fixture
def fedora24():
    return PlatformFacts(family=PlatformFamily.LINUX, distro_id="fedora", distro_version="24",
                         pretty_name="Fedora 24 (Workstation Edition)")


@pytest.fixture
def centos7():
    return PlatformFacts(family=PlatformFamily.LINUX, distro_id="centos", distro_version="7",
                         pretty_name="CentOS Linux 7 (Core)")


@pytest.fixture
def opensuse42():
    return PlatformFacts(family=PlatformFamily.LINUX, distro_id="opensuse", distro_version="42.1",
                         pretty_name="openSUSE Leap 42.1")


@pytest.fixture
def macos():
    return PlatformFacts(family=PlatformFamily.MACOS, distro_id="macos", distro_version="10.12.4",
                         pretty_name="macOS 10.12.4")


@pytest.fixture
def windows():
    return PlatformFacts(family=PlatformFamily.WINDOWS, distro_id="windows", distro_version="10.0.14393",
                         pretty_name="Windows 10")


@pytest.fixture
def settings(tmp_path):
    repo = tmp_path / "repo"
    assets = repo / "assets"
    assets.mkdir(parents=True)
    (assets / "powershell.1.ronn").write_text("powershell(1) -- shell\n", encoding="utf-8")
    (tmp_path / "linktmp").mkdir()
    return PackagingSettings(
        repo_root=str(repo),
        staging_dir=str(tmp_path / "staging"),
        output_dir=str(tmp_path / "out"),
        link_source_dir=str(tmp_path / "linktmp"),
        gems_dir=str(tmp_path / "gems"),
    )


@pytest.fixture
def source_tree(tmp_path):
    publish = tmp_path / "publish"
    (publish / "Modules" / "Microsoft.PowerShell.Utility").mkdir(parents=True)
    for name in BUILD_ARTIFACTS:
        (publish / name).write_text(name, encoding="utf-8")
    (publish / "Modules" / "Microsoft.PowerShell.Utility" / "Utility.psd1").write_text("@{}", encoding="utf-8")
    return str(publish)
