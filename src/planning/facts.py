"""Capture PlatformFacts from the running host.

Called once by the CLI; everything downstream receives the resulting value
explicitly.
"""

from __future__ import annotations

import logging
import platform
import shlex
from typing import Dict, Optional

from .models import PlatformFacts, PlatformFamily

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = "/etc/os-release"

_SYSTEM_FAMILIES = {
    "linux": PlatformFamily.LINUX,
    "darwin": PlatformFamily.MACOS,
    "windows": PlatformFamily.WINDOWS,
}


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release KEY=value lines, honoring shell quoting."""
    values: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            tokens = shlex.split(value)
        except ValueError:
            tokens = [value.strip("\"'")]
        values[key.strip()] = tokens[0] if tokens else ""
    return values


def _read_os_release(path: str) -> Dict[str, str]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return parse_os_release(fh.read())
    except OSError:
        logger.warning("Could not read %s; distribution is unknown", path)
        return {}


def detect_platform_facts(system: Optional[str] = None, os_release_path: str = OS_RELEASE_PATH) -> PlatformFacts:
    """Build PlatformFacts for this host.

    Raises:
        ValueError: if the operating system is not Linux, macOS or Windows.
    """
    system_name = (system or platform.system()).lower()
    family = _SYSTEM_FAMILIES.get(system_name)
    if family is None:
        raise ValueError(f"Unsupported operating system: {system_name}")

    arch = platform.machine() or None
    if family == PlatformFamily.LINUX:
        info = _read_os_release(os_release_path)
        facts = PlatformFacts(
            family=family,
            distro_id=info.get("ID"),
            distro_version=info.get("VERSION_ID"),
            pretty_name=info.get("PRETTY_NAME"),
            architecture=arch,
        )
    elif family == PlatformFamily.MACOS:
        release = platform.mac_ver()[0] or None
        facts = PlatformFacts(family=family, distro_id="macos", distro_version=release,
                              pretty_name=f"macOS {release}" if release else "macOS", architecture=arch)
    else:
        facts = PlatformFacts(family=family, distro_id="windows", distro_version=platform.version() or None,
                              pretty_name=f"Windows {platform.release()}", architecture=arch)

    logger.debug("Platform facts: %s", facts)
    return facts
