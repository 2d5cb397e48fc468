"""Tests for planning.resolver: table-driven package plan resolution."""

import logging

import pytest

from errors import PlatformMismatch, UnsupportedPlatform
from planning.models import PackageRequest, PackageType, PlatformFacts, PlatformFamily
from planning.resolver import (
    derive_suffix,
    resolve,
    resolve_default_types,
    resolve_dependencies,
    windows_name_suffix,
)

UBUNTU_BASE = [
    "libc6",
    "libcurl3",
    "libgcc1",
    "libgssapi-krb5-2",
    "liblttng-ust0",
    "libstdc++6",
    "libunwind8",
    "libuuid1",
    "zlib1g",
]


class TestPlatformGate:
    """Explicit types on the wrong platform fail with PlatformMismatch."""

    def test_deb_on_macos_names_ubuntu(self, macos):
        request = PackageRequest(type=PackageType.DEB, version="6.0.0")
        with pytest.raises(PlatformMismatch) as excinfo:
            resolve(request, macos)
        assert excinfo.value.required_platform == "Ubuntu"
        assert "Ubuntu" in str(excinfo.value)

    def test_rpm_on_ubuntu(self, ubuntu16):
        with pytest.raises(PlatformMismatch) as excinfo:
            resolve(PackageRequest(type=PackageType.RPM, version="6.0.0"), ubuntu16)
        assert excinfo.value.required_platform == "Redhat Family"

    def test_osxpkg_on_windows(self, windows):
        with pytest.raises(PlatformMismatch):
            resolve(PackageRequest(type=PackageType.OSXPKG, version="6.0.0"), windows)

    def test_msi_on_linux(self, fedora24):
        with pytest.raises(PlatformMismatch) as excinfo:
            resolve(PackageRequest(type=PackageType.MSI, version="6.0.0"), fedora24)
        assert excinfo.value.required_platform == "Windows"

    def test_appimage_requires_ubuntu(self, centos7):
        with pytest.raises(PlatformMismatch):
            resolve(PackageRequest(type=PackageType.APPIMAGE, version="6.0.0"), centos7)

    def test_zip_allowed_everywhere(self, ubuntu16, macos, windows, centos7):
        for facts in (ubuntu16, macos, windows, centos7):
            plan = resolve(PackageRequest(type=PackageType.ZIP, version="6.0.0"), facts)
            assert plan.package_type == PackageType.ZIP


class TestPaths:
    """Destination and link directories per platform family."""

    def test_linux_paths(self, ubuntu16):
        plan = resolve(PackageRequest(type=PackageType.DEB, version="6.0.0"), ubuntu16)
        assert plan.destination_path == "/opt/microsoft/powershell/6.0.0"
        assert plan.link_path == "/usr/bin"
        assert plan.executable_install_path == "/opt/microsoft/powershell/6.0.0/powershell"

    def test_macos_paths(self, macos):
        plan = resolve(PackageRequest(type=PackageType.OSXPKG, version="6.0.0"), macos)
        assert plan.destination_path == "/usr/local/microsoft/powershell/6.0.0"
        assert plan.link_path == "/usr/local/bin"

    def test_windows_has_no_paths(self, windows):
        plan = resolve(PackageRequest(type=PackageType.MSI, version="6.0.0"), windows)
        assert plan.destination_path is None
        assert plan.link_path is None

    def test_side_by_side_name_uses_suffix(self, fedora24):
        plan = resolve(PackageRequest(type=PackageType.RPM, version="6.0.0", name="powershell-preview"), fedora24)
        assert plan.suffix == "-preview"
        assert plan.destination_path == "/opt/microsoft/powershell/-preview"


class TestSuffix:
    """Side-by-side suffix derivation."""

    def test_custom_name(self):
        assert derive_suffix("powershell6", "6.0.0") == "6"

    def test_default_name_falls_back_to_version(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert derive_suffix("powershell", "6.0.0-beta.1") == "6.0.0-beta.1"
        assert "suffix not given" in caplog.text

    def test_idempotent_without_prefix(self):
        once = derive_suffix("powershell-lts", "6.0.0")
        assert derive_suffix(once, "6.0.0") == once


class TestDependencies:
    """Fixed dependency table per distro and release."""

    def test_ubuntu_releases_differ_only_in_icu(self, ubuntu14, ubuntu16):
        deps14 = list(resolve_dependencies(ubuntu14))
        deps16 = list(resolve_dependencies(ubuntu16))
        assert deps14[: len(UBUNTU_BASE)] == UBUNTU_BASE
        assert deps16[: len(UBUNTU_BASE)] == UBUNTU_BASE
        assert [d for d in deps14 if d not in deps16] == ["libicu52"]
        assert [d for d in deps16 if d not in deps14] == ["libicu55"]
        assert len(deps14) == len(deps16)

    def test_fedora_and_centos_get_libicu(self, fedora24, centos7):
        assert resolve_dependencies(fedora24)[-1] == "libicu"
        assert resolve_dependencies(centos7)[-1] == "libicu"
        assert resolve_dependencies(fedora24)[0] == "glibc"

    def test_opensuse_gets_versioned_icu(self, opensuse42):
        deps = resolve_dependencies(opensuse42)
        assert deps[-1] == "libicu52_1"
        assert "libicu" not in deps

    def test_macos_has_none(self, macos):
        assert resolve_dependencies(macos) == ()

    def test_zip_plan_has_no_dependencies(self, ubuntu16):
        plan = resolve(PackageRequest(type=PackageType.ZIP, version="6.0.0"), ubuntu16)
        assert plan.dependencies == ()


class TestEndToEndScenarios:
    """Reference plans."""

    def test_deb_on_ubuntu16(self, ubuntu16):
        plan = resolve(PackageRequest(type=PackageType.DEB, name="powershell", version="6.0.0"), ubuntu16)
        assert plan.destination_path == "/opt/microsoft/powershell/6.0.0"
        assert plan.iteration_tag == "1ubuntu1.16.04.1"
        assert "libicu55" in plan.dependencies
        assert "libicu52" not in plan.dependencies

    def test_iteration_on_ubuntu14(self, ubuntu14):
        plan = resolve(PackageRequest(type=PackageType.DEB, version="6.0.0", iteration="2"), ubuntu14)
        assert plan.iteration_tag == "2ubuntu1.14.04.1"

    def test_rpm_on_fedora(self, fedora24):
        plan = resolve(PackageRequest(type=PackageType.RPM, version="6.0.0"), fedora24)
        assert plan.dist_tag == "fedora.24"
        assert plan.iteration_tag == "1"

    def test_rpm_dist_tags(self, centos7, opensuse42):
        assert resolve(PackageRequest(type=PackageType.RPM, version="6.0.0"), centos7).dist_tag == "el7"
        assert resolve(PackageRequest(type=PackageType.RPM, version="6.0.0"), opensuse42).dist_tag == "suse.42.1"

    @pytest.mark.parametrize("distro_id,expected", [("fedora", None), ("opensuse", None), ("centos", "el7")])
    def test_rpm_dist_tag_without_version(self, distro_id, expected):
        facts = PlatformFacts(family=PlatformFamily.LINUX, distro_id=distro_id)
        assert resolve(PackageRequest(type=PackageType.RPM, version="6.0.0"), facts).dist_tag == expected

    def test_msi_downlevel_suffix(self, windows):
        request = PackageRequest(type=PackageType.MSI, version="6.0.0", windows_downlevel_runtime="win7-x64")
        assert resolve(request, windows).name_suffix == "win7-win2008r2-x64"

    def test_deb_on_macos_fails(self, macos):
        with pytest.raises(PlatformMismatch, match="Ubuntu"):
            resolve(PackageRequest(type=PackageType.DEB, version="6.0.0"), macos)


class TestMaintainerScripts:
    """After-install / after-remove scripts register the shell path."""

    def test_ubuntu_uses_add_shell(self, ubuntu16):
        plan = resolve(PackageRequest(type=PackageType.DEB, version="6.0.0"), ubuntu16)
        assert 'add-shell "/usr/bin/powershell"' in plan.after_install_script
        assert 'remove-shell "/usr/bin/powershell"' in plan.after_remove_script

    def test_redhat_edits_etc_shells(self, centos7):
        plan = resolve(PackageRequest(type=PackageType.RPM, version="6.0.0", name="powershell6"), centos7)
        assert 'grep -q "^/usr/bin/powershell6$" /etc/shells' in plan.after_install_script
        assert "grep -v '^/usr/bin/powershell6$' /etc/shells" in plan.after_remove_script
        assert plan.after_install_script.startswith("#!/bin/sh")

    def test_macos_has_no_scripts(self, macos):
        plan = resolve(PackageRequest(type=PackageType.OSXPKG, version="6.0.0"), macos)
        assert plan.after_install_script is None
        assert plan.after_remove_script is None


class TestWindowsSuffix:
    """Downlevel runtime ids map to decorated suffixes."""

    @pytest.mark.parametrize("runtime,expected", [
        ("win7-x64", "win7-win2008r2-x64"),
        ("win81-x64", "win81-win2012r2-x64"),
        ("win10-x64", "win10-win2016-x64"),
        ("win7-x86", "win7-x86"),
    ])
    def test_mapping(self, runtime, expected):
        assert windows_name_suffix(runtime) == expected

    def test_none(self):
        assert windows_name_suffix(None) is None

    def test_build_runtime_used_without_downlevel(self, windows):
        plan = resolve(PackageRequest(type=PackageType.ZIP, version="6.0.0"), windows, runtime="win10-x64")
        assert plan.name_suffix == "win10-win2016-x64"

    def test_explicit_suffix_wins(self, windows):
        request = PackageRequest(type=PackageType.ZIP, version="6.0.0", name_suffix="custom",
                                 windows_downlevel_runtime="win7-x64")
        assert resolve(request, windows).name_suffix == "custom"

    def test_linux_has_no_name_suffix(self, ubuntu16):
        plan = resolve(PackageRequest(type=PackageType.ZIP, version="6.0.0"), ubuntu16, runtime="ubuntu.16.04-x64")
        assert plan.name_suffix is None


class TestDefaultTypes:
    """One default per platform family."""

    def test_defaults(self, ubuntu16, centos7, macos, windows):
        assert resolve_default_types(ubuntu16) == [PackageType.DEB]
        assert resolve_default_types(centos7) == [PackageType.RPM]
        assert resolve_default_types(macos) == [PackageType.OSXPKG]
        assert resolve_default_types(windows) == [PackageType.MSI, PackageType.APPX]

    def test_unsupported_distro(self):
        debian = PlatformFacts(family=PlatformFamily.LINUX, distro_id="debian", distro_version="8",
                               pretty_name="Debian GNU/Linux 8 (jessie)")
        with pytest.raises(UnsupportedPlatform, match="Debian GNU/Linux 8"):
            resolve_default_types(debian)
