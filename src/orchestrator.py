"""Top-level packaging flow.

Verifies the upstream build once, resolves the package types to build, then
builds each type independently: one type failing does not stop the others.
Only the build verification is fatal for the whole invocation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from build_options import BuildOptions, expected_runtime, load_build_options, verify_build_options
from builders import AppImageBuilder, AppxPackageBuilder, MsiPackageBuilder, UnixPackageBuilder, ZipPackageBuilder
from cli_config import PackagingSettings
from common.logging_utils import extra_context, is_debug_enabled
from common.tool_runner import ToolRunner
from constants import Constants
from errors import PackagingError
from planning.models import BuildResult, PackagePlan, PackageRequest, PackageType, PlatformFacts
from planning.resolver import resolve, resolve_default_types
from staging import StagingManager

logger = logging.getLogger(__name__)


class OrchestratorState(Enum):
    """Lifecycle of one orchestrator run."""
    IDLE = "idle"
    BUILD_VERIFIED = "build_verified"
    TYPE_RESOLVED = "type_resolved"
    BUILT = "built"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class OrchestratorReport:
    """Per-type outcome of a run."""
    results: List[BuildResult] = field(default_factory=list)
    failures: Dict[PackageType, str] = field(default_factory=dict)
    skipped: List[PackageType] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class PackageOrchestrator:
    """Dispatches package requests to the matching builder."""

    def __init__(self, facts: PlatformFacts, settings: PackagingSettings, runner: Optional[ToolRunner] = None):
        self.facts = facts
        self.settings = settings
        self.runner = runner or ToolRunner(timeout=settings.tool_timeout)
        self.state = OrchestratorState.IDLE
        self._dispatch: Dict[PackageType, Callable[[PackageRequest, PackagePlan, str, Optional[str]],
                                                   Optional[BuildResult]]] = {
            PackageType.DEB: self._build_unix,
            PackageType.RPM: self._build_unix,
            PackageType.OSXPKG: self._build_unix,
            PackageType.ZIP: self._build_zip,
            PackageType.MSI: self._build_msi,
            PackageType.APPX: self._build_appx,
            PackageType.APPIMAGE: self._build_appimage,
        }

    # ---------- phases ----------

    def verify_build(self, options: Optional[BuildOptions] = None,
                     windows_downlevel: Optional[str] = None) -> BuildOptions:
        """Check the recorded build options; fatal for the whole run."""
        if options is None:
            options = load_build_options(self.settings.options_file)
        runtime = expected_runtime(self.facts, options, windows_downlevel, self.settings.runtime)
        try:
            verified = verify_build_options(options, runtime, self.settings)
        except PackagingError:
            self.state = OrchestratorState.FAILED
            raise
        self.state = OrchestratorState.BUILD_VERIFIED
        return verified

    def resolve_types(self, requested: Optional[Sequence[PackageType]]) -> List[PackageType]:
        if requested:
            types = list(dict.fromkeys(requested))
        else:
            try:
                types = resolve_default_types(self.facts)
            except PackagingError:
                self.state = OrchestratorState.FAILED
                raise
            logger.warning("Type was not specified, continuing with %s!", ", ".join(t.value for t in types))
        self.state = OrchestratorState.TYPE_RESOLVED
        logger.info("Packaging Type: %s", ", ".join(t.value for t in types))
        return types

    def run(self, version: str, types: Optional[Sequence[PackageType]] = None, *,
            name: str = Constants.PRODUCT_NAME, iteration: str = Constants.DEFAULT_ITERATION,
            windows_downlevel: Optional[str] = None, name_suffix: Optional[str] = None,
            force: bool = False, options: Optional[BuildOptions] = None) -> OrchestratorReport:
        """Build every requested (or inferred) package type.

        Raises:
            BuildPrerequisiteMissing: the build output does not match.
            UnsupportedPlatform: no type given and none can be inferred.
        """
        verified = self.verify_build(options, windows_downlevel)
        runtime = expected_runtime(self.facts, verified, windows_downlevel, self.settings.runtime) or verified.runtime
        package_types = self.resolve_types(types)

        report = OrchestratorReport()
        for package_type in package_types:
            request = PackageRequest(
                type=package_type,
                version=version,
                name=name,
                iteration=iteration,
                name_suffix=name_suffix,
                windows_downlevel_runtime=windows_downlevel,
                force=force,
            )
            try:
                result = self.build_one(request, verified.source_path, runtime)
            except (PackagingError, ValueError, OSError) as exc:
                logger.error("Failed to build %s package: %s", package_type.value, exc)
                report.failures[package_type] = str(exc)
                continue
            if result is None:
                report.skipped.append(package_type)
            else:
                report.results.append(result)

        self.state = OrchestratorState.BUILT
        if is_debug_enabled(logger):
            logger.debug(
                "Packaging finished",
                extra=extra_context(event="function_exit", component="orchestrator", action="run",
                                    outcome="success" if report.ok else "partial_failure",
                                    count=len(report.results)),
            )
        self.state = OrchestratorState.FINALIZED
        return report

    def build_one(self, request: PackageRequest, source_path: str,
                  runtime: Optional[str] = None) -> Optional[BuildResult]:
        """Build a single package type; None when the type is skipped on this host."""
        request.validate()
        plan = resolve(request, self.facts, runtime)
        return self._dispatch[request.type](request, plan, source_path, runtime)

    # ---------- builder variants ----------

    def _build_unix(self, request: PackageRequest, plan: PackagePlan, source_path: str,
                    runtime: Optional[str]) -> BuildResult:
        builder = UnixPackageBuilder(self.facts, self.settings, self.runner, runtime)
        builder.precheck()
        staging = StagingManager(self.facts, self.settings, self.runner)
        with staging.staged(source_path, plan, request) as area:
            return builder.build(plan, request, area)

    def _build_zip(self, request: PackageRequest, plan: PackagePlan, source_path: str,
                   runtime: Optional[str]) -> BuildResult:
        return ZipPackageBuilder(self.settings).build(plan, source_path, force=request.force)

    def _build_msi(self, request: PackageRequest, plan: PackagePlan, source_path: str,
                   runtime: Optional[str]) -> BuildResult:
        builder = MsiPackageBuilder(self.settings, self.runner, runtime)
        builder.precheck()
        return builder.build(plan, source_path, force=request.force)

    def _build_appx(self, request: PackageRequest, plan: PackagePlan, source_path: str,
                    runtime: Optional[str]) -> BuildResult:
        builder = AppxPackageBuilder(self.settings, self.runner, runtime)
        builder.precheck()
        return builder.build(plan, source_path, force=request.force)

    def _build_appimage(self, request: PackageRequest, plan: PackagePlan, source_path: str,
                        runtime: Optional[str]) -> Optional[BuildResult]:
        builder = AppImageBuilder(self.facts, self.settings, self.runner)
        if not builder.supported():
            logger.warning("Ignoring AppImage type for non Ubuntu Trusty platform")
            return None
        return builder.build(plan)
