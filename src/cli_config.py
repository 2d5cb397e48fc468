"""Runtime settings assembled from defaults, the YAML config file and CLI flags.

Precedence (highest first): CLI flags, config file, ``Constants`` defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from constants import Constants, _load_yaml_config

logger = logging.getLogger(__name__)

# config-file section -> {key: settings attribute}
_CONFIG_KEYS: Dict[str, Dict[str, str]] = {
    "package": {
        "maintainer": "maintainer",
        "vendor": "vendor",
        "url": "url",
        "license": "license",
        "description": "description",
        "category": "category",
    },
    "paths": {
        "repo_root": "repo_root",
        "staging_dir": "staging_dir",
        "output_dir": "output_dir",
        "assets_dir": "assets_dir",
        "tools_dir": "tools_dir",
        "temp_dir": "link_source_dir",
        "keep_staging": "keep_staging",
    },
    "build": {
        "configuration": "configuration",
        "framework": "framework",
        "options_file": "options_file",
        "runtime": "runtime",
    },
    "tools": {
        "gems_dir": "gems_dir",
        "timeout": "tool_timeout",
    },
}

_PATH_FIELDS = ("repo_root", "staging_dir", "output_dir", "assets_dir", "tools_dir",
                "link_source_dir", "options_file", "gems_dir")


@dataclass
class PackagingSettings:
    """Tunables shared by staging, builders and the orchestrator."""

    maintainer: str = Constants.PACKAGE_MAINTAINER
    vendor: str = Constants.PACKAGE_VENDOR
    url: str = Constants.PACKAGE_URL
    license: str = Constants.PACKAGE_LICENSE
    description: str = Constants.PACKAGE_DESCRIPTION
    category: str = Constants.PACKAGE_CATEGORY
    repo_root: str = "."
    staging_dir: Optional[str] = None
    output_dir: Optional[str] = None
    assets_dir: Optional[str] = None
    tools_dir: Optional[str] = None
    link_source_dir: str = Constants.LINK_SOURCE_DIR
    keep_staging: bool = False
    configuration: str = Constants.BUILD_CONFIGURATION
    framework: str = Constants.BUILD_FRAMEWORK
    options_file: Optional[str] = None
    runtime: Optional[str] = None
    gems_dir: str = Constants.RUBY_GEMS_DIR
    tool_timeout: Optional[float] = Constants.TOOL_TIMEOUT

    def __post_init__(self) -> None:
        self.finalize()

    def finalize(self) -> None:
        """Expand paths and derive defaults relative to repo_root."""
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str) and value:
                setattr(self, name, os.path.abspath(os.path.expanduser(value)))
        root = self.repo_root
        if not self.staging_dir:
            self.staging_dir = os.path.join(root, Constants.STAGING_DIR_NAME)
        if not self.output_dir:
            self.output_dir = os.getcwd()
        if not self.assets_dir:
            self.assets_dir = os.path.join(root, Constants.ASSETS_DIR_NAME)
        if not self.tools_dir:
            self.tools_dir = os.path.join(root, Constants.TOOLS_DIR_NAME)
        if not self.options_file:
            self.options_file = os.path.join(root, Constants.BUILD_OPTIONS_FILE)
        if self.tool_timeout is not None:
            self.tool_timeout = float(self.tool_timeout)
        self.keep_staging = bool(self.keep_staging)

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]], overrides: Optional[Dict[str, Any]] = None) -> "PackagingSettings":
        """Create settings from a parsed config mapping plus CLI overrides.

        Unknown sections and keys are logged and ignored.
        """
        values: Dict[str, Any] = {}
        for section, mapping in (data or {}).items():
            keys = _CONFIG_KEYS.get(section)
            if keys is None or not isinstance(mapping, dict):
                logger.warning("Ignoring unknown config section: %s", section)
                continue
            for key, value in mapping.items():
                attr = keys.get(key)
                if attr is None:
                    logger.warning("Ignoring unknown config key: %s.%s", section, key)
                    continue
                values[attr] = value
        values.update(overrides or {})
        return cls(**values)

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def cli_overrides(args: Any) -> Dict[str, Any]:
    """Settings values given explicitly on the command line."""
    overrides: Dict[str, Any] = {}
    for attr, dest in (("output_dir", "OUTPUT_DIR"), ("options_file", "OPTIONS_FILE"), ("repo_root", "REPO_ROOT")):
        value = getattr(args, dest, None)
        if value:
            overrides[attr] = value
    if getattr(args, "KEEP_STAGING", False):
        overrides["keep_staging"] = True
    return overrides


def load_settings(args: Any = None) -> PackagingSettings:
    """Load settings from the config file named on the CLI (or default locations)."""
    path = getattr(args, "CONFIG", None) if args is not None else None
    data = _load_yaml_config(path)
    if data:
        logger.info("Loaded configuration from %s", path or "default location")
    return PackagingSettings.from_config(data, cli_overrides(args) if args is not None else None)
