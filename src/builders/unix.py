"""fpm-based builder for deb, rpm and osxpkg packages."""

from __future__ import annotations

import glob
import logging
import os
from typing import List, Optional

from cli_config import PackagingSettings
from common.logging_utils import extra_context, is_debug_enabled
from common.tool_runner import ToolRunner
from constants import Constants
from errors import DependencyMissing, MissingExpectedFile
from planning.models import BuildResult, PackagePlan, PackageRequest, PackageType, PlatformFacts, StagingArea

from .fpm_output import parse_created_package

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = ("fpm", "ronn")


def find_in_ruby_gems(tool: str, gems_dir: str) -> Optional[str]:
    """Best-effort lookup of a gem executable that is not on PATH.

    Some distributions (OpenSUSE) do not add gem bin directories to PATH.
    Looks in the most recently modified Ruby version under ``gems_dir`` and
    returns the directory holding the newest ``tool`` executable, if any.
    """
    if not os.path.isdir(gems_dir):
        return None
    versions = [p for p in glob.glob(os.path.join(gems_dir, "*")) if os.path.isdir(p)]
    if not versions:
        return None
    newest = max(versions, key=os.path.getmtime)
    candidates: List[str] = []
    for gem_dir in glob.glob(os.path.join(newest, "gems", f"{tool}*")):
        for dirpath, _dirnames, filenames in os.walk(gem_dir):
            if tool in filenames:
                candidates.append(os.path.join(dirpath, tool))
    if not candidates:
        return None
    return os.path.dirname(max(candidates, key=os.path.getmtime))


def append_runtime_to_filename(path: str, runtime: str) -> str:
    """Rename ``x.pkg`` to ``x-<runtime>.pkg`` and return the new path."""
    if not os.path.lexists(path):
        raise MissingExpectedFile(path)
    root, ext = os.path.splitext(path)
    renamed = f"{root}-{runtime}{ext}"
    os.replace(path, renamed)
    logger.info("Renamed package to %s", renamed)
    return renamed


class UnixPackageBuilder:
    """Assembles fpm arguments from a plan and runs fpm against a staging area."""

    def __init__(self, facts: PlatformFacts, settings: PackagingSettings, runner: ToolRunner,
                 runtime: Optional[str] = None):
        self._facts = facts
        self._settings = settings
        self._runner = runner
        self._runtime = runtime

    def precheck(self) -> None:
        """Ensure fpm and ronn are available before anything is staged.

        Raises:
            DependencyMissing: a tool is absent from PATH and from the gems fallback.
        """
        for tool in REQUIRED_TOOLS:
            if self._runner.which(tool):
                continue
            gem_bin = find_in_ruby_gems(tool, self._settings.gems_dir)
            if gem_bin:
                original = self._runner.extend_path(gem_bin)
                if self._runner.which(tool):
                    logger.info("Found %s in %s", tool, gem_bin)
                    continue
                self._runner.restore_path(original)
            raise DependencyMissing(tool, Constants.BOOTSTRAP_HINT)

    def fpm_arguments(self, plan: PackagePlan, area: StagingArea) -> List[str]:
        """Deterministic fpm argument list for ``plan``."""
        s = self._settings
        args = [
            "--force", "--verbose",
            "--name", plan.name,
            "--version", plan.version,
            "--iteration", plan.iteration_tag,
            "--maintainer", s.maintainer,
            "--vendor", s.vendor,
            "--url", s.url,
            "--license", s.license,
            "--description", s.description,
            "--category", s.category,
            "-t", plan.package_type.value,
            "-s", "dir",
        ]
        for dependency in plan.dependencies:
            args += ["--depends", dependency]
        if area.after_install_path:
            args += ["--after-install", area.after_install_path]
        if area.after_remove_path:
            args += ["--after-remove", area.after_remove_path]
        if plan.dist_tag:
            args += ["--rpm-dist", plan.dist_tag, "--rpm-os", "linux"]
        args += [
            f"{area.root_path}/={plan.destination_path}/",
            f"{area.man_page_path}={area.man_page_target}",
            f"{area.link_source}={plan.link_path}",
        ]
        return args

    def build(self, plan: PackagePlan, request: PackageRequest, area: StagingArea) -> BuildResult:
        """Run fpm and return the produced artifact.

        Raises:
            ToolInvocationError: fpm exited non-zero.
            UnparseableToolOutput: the package path is missing from fpm's output.
        """
        work_dir = self._settings.output_dir
        os.makedirs(work_dir, exist_ok=True)
        arguments = self.fpm_arguments(plan, area)
        if is_debug_enabled(logger):
            logger.debug(
                "fpm arguments",
                extra=extra_context(event="fpm_args", component="unix_builder", target=plan.package_type.value,
                                    count=len(arguments)),
            )
        result = self._runner.run(["fpm"] + arguments, cwd=work_dir)
        artifact = parse_created_package(result.output, base_dir=work_dir)

        if self._facts.is_macos and request.type == PackageType.OSXPKG and self._runtime:
            artifact = append_runtime_to_filename(artifact, self._runtime)

        logger.info("Created %s package: %s", plan.package_type.value, artifact)
        return BuildResult(artifact_path=artifact, type=plan.package_type)
