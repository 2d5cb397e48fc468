"""Tests for planning.facts and the PlatformFacts predicates."""

import pytest

from planning.facts import detect_platform_facts, parse_os_release
from planning.models import PlatformFacts, PlatformFamily

UBUNTU_OS_RELEASE = """\
NAME="Ubuntu"
VERSION="16.04.2 LTS (Xenial Xerus)"
ID=ubuntu
ID_LIKE=debian
PRETTY_NAME="Ubuntu 16.04.2 LTS"
VERSION_ID="16.04"
# comment line
"""


class TestParseOsRelease:
    def test_quoted_and_bare_values(self):
        info = parse_os_release(UBUNTU_OS_RELEASE)
        assert info["ID"] == "ubuntu"
        assert info["VERSION_ID"] == "16.04"
        assert info["PRETTY_NAME"] == "Ubuntu 16.04.2 LTS"

    def test_ignores_comments_and_blank_lines(self):
        info = parse_os_release("\n# ID=nope\nID=fedora\n")
        assert info == {"ID": "fedora"}


class TestDetectPlatformFacts:
    def test_linux_reads_os_release(self, tmp_path):
        path = tmp_path / "os-release"
        path.write_text(UBUNTU_OS_RELEASE, encoding="utf-8")
        facts = detect_platform_facts(system="Linux", os_release_path=str(path))
        assert facts.family == PlatformFamily.LINUX
        assert facts.is_ubuntu16
        assert not facts.is_ubuntu14
        assert facts.pretty_name == "Ubuntu 16.04.2 LTS"

    def test_linux_without_os_release(self, tmp_path):
        facts = detect_platform_facts(system="Linux", os_release_path=str(tmp_path / "missing"))
        assert facts.is_linux
        assert facts.distro_id is None
        assert not facts.is_ubuntu

    def test_darwin(self):
        facts = detect_platform_facts(system="Darwin")
        assert facts.is_macos
        assert facts.distro_id == "macos"

    def test_windows(self):
        assert detect_platform_facts(system="Windows").is_windows

    def test_unknown_system(self):
        with pytest.raises(ValueError, match="Unsupported operating system"):
            detect_platform_facts(system="SunOS")


class TestPlatformPredicates:
    def test_redhat_family(self, centos7, fedora24, opensuse42, ubuntu16):
        assert centos7.is_redhat_family and centos7.is_centos
        assert fedora24.is_redhat_family and fedora24.is_fedora
        assert opensuse42.is_redhat_family and opensuse42.is_opensuse
        assert not ubuntu16.is_redhat_family

    def test_distro_predicates_require_linux(self):
        odd = PlatformFacts(family=PlatformFamily.MACOS, distro_id="ubuntu", distro_version="16.04")
        assert not odd.is_ubuntu
        assert odd.ubuntu_release is None

    def test_describe_prefers_pretty_name(self, fedora24):
        assert fedora24.describe() == "Fedora 24 (Workstation Edition)"
        assert PlatformFacts(family=PlatformFamily.LINUX).describe() == "Linux"
