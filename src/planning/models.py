"""Data models for package planning and build results."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set, Tuple

from constants import Constants
from planning.version import parse_version


class PlatformFamily(Enum):
    """Operating system family the build runs on."""
    LINUX = "Linux"
    MACOS = "MacOS"
    WINDOWS = "Windows"


class PackageType(Enum):
    """Artifact kinds this tool knows how to produce."""
    DEB = "deb"
    RPM = "rpm"
    OSXPKG = "osxpkg"
    MSI = "msi"
    APPX = "appx"
    ZIP = "zip"
    APPIMAGE = "AppImage"

    @classmethod
    def parse(cls, text: str) -> "PackageType":
        """Case-insensitive lookup by value."""
        wanted = str(text).strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        raise ValueError(f"Unknown package type: {text}")

    @property
    def is_unix(self) -> bool:
        return self in (PackageType.DEB, PackageType.RPM, PackageType.OSXPKG)


_REDHAT_IDS = ("centos", "fedora", "opensuse")


@dataclass(frozen=True)
class PlatformFacts:
    """Read-only snapshot of the host OS, captured once at startup."""
    family: PlatformFamily
    distro_id: Optional[str] = None
    distro_version: Optional[str] = None
    pretty_name: Optional[str] = None
    architecture: Optional[str] = None

    @property
    def is_linux(self) -> bool:
        return self.family == PlatformFamily.LINUX

    @property
    def is_macos(self) -> bool:
        return self.family == PlatformFamily.MACOS

    @property
    def is_windows(self) -> bool:
        return self.family == PlatformFamily.WINDOWS

    def _id_matches(self, needle: str) -> bool:
        return self.is_linux and bool(self.distro_id) and needle in self.distro_id.lower()

    @property
    def is_ubuntu(self) -> bool:
        return self._id_matches("ubuntu")

    @property
    def ubuntu_release(self) -> Optional[str]:
        return self.distro_version if self.is_ubuntu else None

    @property
    def is_ubuntu14(self) -> bool:
        return self.ubuntu_release == "14.04"

    @property
    def is_ubuntu16(self) -> bool:
        return self.ubuntu_release == "16.04"

    @property
    def is_centos(self) -> bool:
        return self._id_matches("centos")

    @property
    def is_fedora(self) -> bool:
        return self._id_matches("fedora")

    @property
    def is_opensuse(self) -> bool:
        return self._id_matches("opensuse")

    @property
    def is_redhat_family(self) -> bool:
        return any(self._id_matches(i) for i in _REDHAT_IDS)

    def describe(self) -> str:
        return self.pretty_name or self.distro_id or self.family.value


@dataclass(frozen=True)
class PackageRequest:
    """User intent for one package type."""
    type: PackageType
    version: str
    name: str = Constants.PRODUCT_NAME
    iteration: str = Constants.DEFAULT_ITERATION
    name_suffix: Optional[str] = None
    windows_downlevel_runtime: Optional[str] = None
    force: bool = False

    def validate(self) -> None:
        """Raise ValueError if the request cannot be packaged."""
        if not self.name.startswith(Constants.PRODUCT_NAME):
            raise ValueError(f"Package name '{self.name}' must start with '{Constants.PRODUCT_NAME}'")
        if not self.version or not self.version.strip():
            raise ValueError("A package version is required")
        parse_version(self.version)
        if not self.iteration:
            raise ValueError("Iteration must not be empty")


@dataclass(frozen=True)
class PackagePlan:
    """Everything a builder needs, derived deterministically from request + facts."""
    package_type: PackageType
    name: str
    version: str
    suffix: str
    destination_path: Optional[str]
    link_path: Optional[str]
    dependencies: Tuple[str, ...] = ()
    iteration_tag: str = Constants.DEFAULT_ITERATION
    dist_tag: Optional[str] = None
    after_install_script: Optional[str] = None
    after_remove_script: Optional[str] = None
    name_suffix: Optional[str] = None

    @property
    def executable_install_path(self) -> Optional[str]:
        if self.destination_path is None:
            return None
        return f"{self.destination_path}/{self.name}"


@dataclass
class StagingArea:
    """Transient on-disk state for one build; torn down by StagingManager.unstage."""
    root_path: str
    created_symlinks: Set[str] = field(default_factory=set)
    created_temp_files: Set[str] = field(default_factory=set)
    created_temp_dirs: Set[str] = field(default_factory=set)
    link_source: Optional[str] = None
    man_page_path: Optional[str] = None
    man_page_target: Optional[str] = None
    after_install_path: Optional[str] = None
    after_remove_path: Optional[str] = None
    moved_aside: Optional[Tuple[str, str]] = None
    torn_down: bool = False

    def executable(self, name: str) -> str:
        return os.path.join(self.root_path, name)


@dataclass(frozen=True)
class BuildResult:
    """One produced artifact."""
    artifact_path: str
    type: PackageType
