"""Package plan resolution.

Turns (PackageRequest, PlatformFacts) into a PackagePlan. Pure decision logic:
no filesystem or process access. Platform differences live in the tables
below; supporting a new distro release means adding rows, not branches.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

from constants import Constants
from errors import PlatformMismatch, UnsupportedPlatform

from .models import PackagePlan, PackageRequest, PackageType, PlatformFacts, PlatformFamily
from .scripts import render_maintainer_scripts

logger = logging.getLogger(__name__)

# ---------- Platform gates ----------

_PLATFORM_REQUIREMENTS: Dict[PackageType, Tuple[str, Callable[[PlatformFacts], bool]]] = {
    PackageType.DEB: ("Ubuntu", lambda f: f.is_ubuntu),
    PackageType.APPIMAGE: ("Ubuntu", lambda f: f.is_ubuntu),
    PackageType.RPM: ("Redhat Family", lambda f: f.is_redhat_family),
    PackageType.OSXPKG: ("macOS", lambda f: f.is_macos),
    PackageType.MSI: ("Windows", lambda f: f.is_windows),
    PackageType.APPX: ("Windows", lambda f: f.is_windows),
}

# ---------- Filesystem hierarchy ----------

_FAMILY_PATHS: Dict[PlatformFamily, Tuple[str, str]] = {
    PlatformFamily.LINUX: ("/opt/{vendor}/{product}/{suffix}", "/usr/bin"),
    PlatformFamily.MACOS: ("/usr/local/{vendor}/{product}/{suffix}", "/usr/local/bin"),
}

# ---------- Dependencies ----------
# These should match the runtime images, excluding tools such as git or curl.

_UBUNTU_BASE = (
    "libc6",
    "libcurl3",
    "libgcc1",
    "libgssapi-krb5-2",
    "liblttng-ust0",
    "libstdc++6",
    "libunwind8",
    "libuuid1",
    "zlib1g",
)

_REDHAT_BASE = (
    "glibc",
    "libcurl",
    "libgcc",
    "libstdc++",
    "krb5-libs",
    "libunwind",
    "libuuid",
    "zlib",
    "openssl-libs",
)

# Note the different libicu majors per Ubuntu release.
_DEPENDENCY_TABLE: Dict[Tuple[str, Optional[str]], Tuple[str, ...]] = {
    ("ubuntu", None): _UBUNTU_BASE,
    ("ubuntu", "14.04"): _UBUNTU_BASE + ("libssl1.0.0", "libicu52"),
    ("ubuntu", "16.04"): _UBUNTU_BASE + ("libssl1.0.0", "libicu55"),
    ("redhat", None): _REDHAT_BASE,
    ("redhat", "centos"): _REDHAT_BASE + ("libicu",),
    ("redhat", "fedora"): _REDHAT_BASE + ("libicu",),
    ("redhat", "opensuse"): _REDHAT_BASE + ("libicu52_1",),
}

# ---------- Revision / distribution tags ----------

# Appended to the iteration, which becomes the debian_revision.
_ITERATION_QUALIFIERS: Dict[str, str] = {
    "14.04": "ubuntu1.14.04.1",
    "16.04": "ubuntu1.16.04.1",
}

_DIST_TAGS: Dict[str, Callable[[Optional[str]], Optional[str]]] = {
    "centos": lambda _version: "el7",
    "fedora": lambda version: f"fedora.{version}" if version else None,
    "opensuse": lambda version: f"suse.{version}" if version else None,
}

# ---------- Windows ----------

# dotnet reports the same runtime for client and server; add the server name.
_WINDOWS_RUNTIME_SUFFIXES: Dict[str, str] = {
    "win81-x64": "win81-win2012r2-x64",
    "win10-x64": "win10-win2016-x64",
    "win7-x64": "win7-win2008r2-x64",
}

_DEFAULT_TYPES: List[Tuple[Callable[[PlatformFacts], bool], List[PackageType]]] = [
    (lambda f: f.is_ubuntu, [PackageType.DEB]),
    (lambda f: f.is_redhat_family, [PackageType.RPM]),
    (lambda f: f.is_macos, [PackageType.OSXPKG]),
    (lambda f: f.is_windows, [PackageType.MSI, PackageType.APPX]),
]


def distro_family(facts: PlatformFacts) -> Optional[str]:
    """Return "ubuntu", "redhat" or None."""
    if facts.is_ubuntu:
        return "ubuntu"
    if facts.is_redhat_family:
        return "redhat"
    return None


def _distro_bucket(facts: PlatformFacts) -> Optional[str]:
    if facts.is_ubuntu:
        return facts.ubuntu_release
    for distro in ("centos", "fedora", "opensuse"):
        if getattr(facts, f"is_{distro}"):
            return distro
    return None


def check_platform(package_type: PackageType, facts: PlatformFacts) -> None:
    """Raise PlatformMismatch if ``package_type`` cannot be built on this host."""
    requirement = _PLATFORM_REQUIREMENTS.get(package_type)
    if requirement is None:
        return
    required_platform, predicate = requirement
    if not predicate(facts):
        raise PlatformMismatch(required_platform, package_type.value)


def derive_suffix(name: str, version: str) -> str:
    """Side-by-side suffix: the name without the product prefix, else the version."""
    suffix = re.sub(f"^{re.escape(Constants.PRODUCT_NAME)}", "", name)
    if not suffix:
        logger.warning("Side-by-side suffix not given, building primary %s package!", Constants.PRODUCT_NAME)
        suffix = version
    return suffix


def resolve_paths(facts: PlatformFacts, suffix: str) -> Tuple[Optional[str], Optional[str]]:
    """(destination, link directory) for the host family; Windows has neither."""
    entry = _FAMILY_PATHS.get(facts.family)
    if entry is None:
        return None, None
    destination, link = entry
    return destination.format(vendor=Constants.PACKAGE_VENDOR_DIR, product=Constants.PRODUCT_NAME, suffix=suffix), link


def resolve_dependencies(facts: PlatformFacts) -> Tuple[str, ...]:
    family = distro_family(facts)
    if family is None:
        return ()
    bucket = _distro_bucket(facts)
    return _DEPENDENCY_TABLE.get((family, bucket), _DEPENDENCY_TABLE[(family, None)])


def resolve_iteration(base: str, facts: PlatformFacts) -> str:
    if facts.is_ubuntu:
        return base + _ITERATION_QUALIFIERS.get(facts.ubuntu_release or "", "")
    return base


def resolve_dist_tag(facts: PlatformFacts) -> Optional[str]:
    bucket = _distro_bucket(facts) if facts.is_redhat_family else None
    factory = _DIST_TAGS.get(bucket or "")
    return factory(facts.distro_version) if factory else None


def windows_name_suffix(runtime: Optional[str]) -> Optional[str]:
    if not runtime:
        return None
    return _WINDOWS_RUNTIME_SUFFIXES.get(runtime, runtime)


def resolve_default_types(facts: PlatformFacts) -> List[PackageType]:
    """Package types built when none are requested explicitly."""
    for predicate, types in _DEFAULT_TYPES:
        if predicate(facts):
            return list(types)
    raise UnsupportedPlatform.for_distro(facts.describe())


def resolve(request: PackageRequest, facts: PlatformFacts, runtime: Optional[str] = None) -> PackagePlan:
    """Compute the PackagePlan for ``request`` on this platform.

    Args:
        request: Validated package request.
        facts: Host platform snapshot.
        runtime: Runtime identifier of the build output, used for Windows
            name suffixes when no downlevel runtime is requested.

    Raises:
        PlatformMismatch: the type cannot be built on this platform family.
    """
    check_platform(request.type, facts)

    suffix = derive_suffix(request.name, request.version)
    destination, link = resolve_paths(facts, suffix)

    dependencies: Tuple[str, ...] = ()
    dist_tag = None
    after_install = after_remove = None
    if request.type in (PackageType.DEB, PackageType.RPM):
        dependencies = resolve_dependencies(facts)
        if request.type == PackageType.RPM:
            dist_tag = resolve_dist_tag(facts)
        if link is not None:
            after_install, after_remove = render_maintainer_scripts(distro_family(facts), f"{link}/{request.name}")

    name_suffix = request.name_suffix
    if name_suffix is None and facts.is_windows:
        name_suffix = windows_name_suffix(request.windows_downlevel_runtime or runtime)

    plan = PackagePlan(
        package_type=request.type,
        name=request.name,
        version=request.version,
        suffix=suffix,
        destination_path=destination,
        link_path=link,
        dependencies=dependencies,
        iteration_tag=resolve_iteration(request.iteration, facts),
        dist_tag=dist_tag,
        after_install_script=after_install,
        after_remove_script=after_remove,
        name_suffix=name_suffix,
    )
    logger.debug("Resolved plan: %s", plan)
    return plan
