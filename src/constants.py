"""Constants used in the project."""

import os
from enum import Enum
from typing import Any, Dict, Optional


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    BUILD_FAILED = 1
    PREREQUISITE_ERROR = 2
    UNSUPPORTED_PLATFORM = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PRODUCT_NAME = "powershell"
    PACKAGE_VENDOR_DIR = "microsoft"
    PACKAGE_MAINTAINER = "PowerShell Team <PowerShellTeam@hotmail.com>"
    PACKAGE_VENDOR = "Microsoft Corporation"
    PACKAGE_URL = "https://microsoft.com/powershell"
    PACKAGE_LICENSE = "MIT License"
    PACKAGE_CATEGORY = "shells"
    PACKAGE_DESCRIPTION = (
        "PowerShell is an automation and configuration management platform.\n"
        "It consists of a cross-platform command-line shell and associated scripting language."
    )
    DEFAULT_ITERATION = "1"

    # Upstream build expectations
    BUILD_CONFIGURATION = "Release"
    BUILD_FRAMEWORK = "netcoreapp1.1"
    BUILD_OPTIONS_FILE = "psoptions.json"

    # Filesystem layout
    MAN_PAGE_DIR = "/usr/local/share/man/man1"
    MAN_PAGE_SOURCE = "powershell.1.ronn"
    LINK_SOURCE_DIR = "/tmp"
    FPM_SYMLINK_HACK_PREFIX = "_fpm_symlink_hack_"
    STAGING_DIR_NAME = "staging"
    ASSETS_DIR_NAME = "assets"
    TOOLS_DIR_NAME = "tools"
    APPIMAGE_SCRIPT = "appimage.sh"
    RUBY_GEMS_DIR = "/usr/lib64/ruby/gems"

    # Remediation hint for missing packaging tools
    BOOTSTRAP_HINT = "Run the bootstrap step with package tooling enabled (gem install fpm ronn)"
    WIX_HINT = "Install the WiX Toolset and make sure its bin directory is on PATH"
    MAKEAPPX_HINT = "Install the Windows 10 SDK and make sure makeappx.exe is on PATH"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "PSPACKAGE_LOG_LEVEL"
    ENV_CONFIG = "PSPACKAGE_CONFIG"
    TOOL_TIMEOUT = None  # external tools run to completion


def _candidate_config_paths() -> list:
    """Default configuration locations, highest precedence first."""
    paths = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        paths.append(env_path)
    cwd = os.getcwd()
    paths.extend([
        os.path.join(cwd, "pspackage.yml"),
        os.path.join(cwd, "pspackage.yaml"),
        os.path.join(cwd, "pspackage.json"),
        os.path.expanduser("~/.config/pspackage/pspackage.yml"),
    ])
    return paths


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first configuration file found (YAML or JSON).

    An explicit path that does not exist is an error; default locations are
    skipped silently.
    """
    import json  # pylint: disable=import-outside-toplevel

    import yaml  # pylint: disable=import-outside-toplevel

    if path:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Config file not found: {path}")
        candidates = [path]
    else:
        candidates = [p for p in _candidate_config_paths() if os.path.isfile(p)]
    for candidate in candidates:
        with open(candidate, "r", encoding="utf-8") as fh:
            if candidate.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
        if isinstance(data, dict):
            return data
        return {}
    return {}
