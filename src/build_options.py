"""Recorded build metadata and the check that the output is packageable.

Artifacts cannot be introspected cheaply, so the upstream build writes its
options (runtime, configuration, framework, crossgen, output path) to a JSON
file and packaging refuses to run unless they match what the format needs.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from cli_config import PackagingSettings
from common.tool_runner import ToolRunner
from errors import BuildPrerequisiteMissing, ToolInvocationError
from planning.models import PlatformFacts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOptions:
    """Options of the last upstream build."""
    runtime: str
    configuration: str
    framework: str
    crossgen: bool
    output: str

    @property
    def source_path(self) -> str:
        """Directory that holds the published output (parent of the executable)."""
        return os.path.dirname(self.output)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildOptions":
        lowered = {str(k).lower(): v for k, v in data.items()}
        missing = [k for k in ("runtime", "configuration", "framework", "output") if not lowered.get(k)]
        if missing:
            raise ValueError(f"Build options are missing: {', '.join(missing)}")
        return cls(
            runtime=str(lowered["runtime"]),
            configuration=str(lowered["configuration"]),
            framework=str(lowered["framework"]),
            crossgen=bool(lowered.get("crossgen", False)),
            output=str(lowered["output"]),
        )


def load_build_options(path: str) -> Optional[BuildOptions]:
    """Read build options from ``path``; None when the file does not exist.

    Raises:
        BuildPrerequisiteMissing: the file exists but is not valid options JSON.
    """
    if not os.path.isfile(path):
        logger.debug("No build options at %s", path)
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        return BuildOptions.from_dict(data)
    except (OSError, ValueError) as exc:
        raise BuildPrerequisiteMissing(f"Build options file {path} is unreadable: {exc}") from exc


def host_runtime(facts: PlatformFacts) -> Optional[str]:
    """Runtime identifier of the host, e.g. ``ubuntu.16.04-x64`` or ``osx.10.12-x64``.

    None when the distribution or its version is unknown.
    """
    if not facts.distro_version:
        return None
    if facts.is_macos:
        major_minor = ".".join(facts.distro_version.split(".")[:2])
        return f"osx.{major_minor}-x64"
    if facts.is_linux and facts.distro_id:
        return f"{facts.distro_id}.{facts.distro_version}-x64"
    return None


def expected_runtime(facts: PlatformFacts, options: Optional[BuildOptions],
                     windows_downlevel: Optional[str] = None,
                     override: Optional[str] = None) -> Optional[str]:
    """Runtime the package must be built from.

    A Windows downlevel runtime wins, then an explicit ``override``. On Windows
    the recorded runtime is used with any ``winNN`` prefix mapped to ``win7``
    for the universal package; elsewhere the host runtime is derived from facts.
    """
    if windows_downlevel:
        return windows_downlevel
    if override:
        return override
    if facts.is_windows:
        if options is None:
            return None
        return re.sub(r"win\d+", "win7", options.runtime)
    runtime = host_runtime(facts)
    if runtime is None:
        logger.warning("Cannot derive the host runtime for %s %s; runtime is not checked",
                       facts.distro_id, facts.distro_version)
    return runtime


def verify_build_options(options: Optional[BuildOptions], runtime: Optional[str],
                         settings: PackagingSettings) -> BuildOptions:
    """Raise BuildPrerequisiteMissing unless ``options`` match the packaging requirements."""
    configuration = settings.configuration
    wanted_runtime = runtime or (options.runtime if options else "<runtime>")
    if options is None:
        raise BuildPrerequisiteMissing.rebuild_required(wanted_runtime, configuration, "No build output was found")

    mismatches = []
    if not options.crossgen:
        mismatches.append("build was not crossgen'd")
    if options.configuration != configuration:
        mismatches.append(f"configuration is '{options.configuration}', expected '{configuration}'")
    if options.framework != settings.framework:
        mismatches.append(f"framework is '{options.framework}', expected '{settings.framework}'")
    if runtime and options.runtime != runtime:
        mismatches.append(f"runtime is '{options.runtime}', expected '{runtime}'")
    if mismatches:
        raise BuildPrerequisiteMissing.rebuild_required(
            wanted_runtime, configuration, "Build output does not match: " + "; ".join(mismatches)
        )
    logger.info("Packaging RID: '%s'; Packaging Configuration: '%s'", options.runtime, options.configuration)
    return options


def version_from_git(runner: ToolRunner, repo_root: str) -> str:
    """Version from ``git describe`` with the leading ``v`` removed."""
    try:
        result = runner.run(["git", f"--git-dir={os.path.join(repo_root, '.git')}", "describe"])
    except ToolInvocationError as exc:
        raise BuildPrerequisiteMissing(f"No version given and git describe failed: {exc}") from exc
    lines = result.lines
    if not lines:
        raise BuildPrerequisiteMissing("No version given and git describe printed nothing")
    return re.sub(r"^v", "", lines[-1].strip())
