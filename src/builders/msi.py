"""Windows Installer (MSI) builder using the WiX Toolset (heat, candle, light)."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from typing import Optional

from cli_config import PackagingSettings
from common.tool_runner import ToolRunner
from constants import Constants
from errors import DependencyMissing, MissingExpectedFile
from planning.models import BuildResult, PackagePlan, PackageType
from planning.version import artifact_file_name, msi_version, semantic_version_without_build

logger = logging.getLogger(__name__)

WIX_TOOLS = ("heat", "candle", "light")
PRODUCT_WXS = "Product.wxs"
LICENSE_RTF = "license.rtf"


def target_architecture(runtime: Optional[str]) -> str:
    return "x86" if runtime and "-x86" in runtime else "x64"


class MsiPackageBuilder:
    """Harvests the output tree with heat, then compiles and links the MSI."""

    def __init__(self, settings: PackagingSettings, runner: ToolRunner, runtime: Optional[str] = None):
        self._settings = settings
        self._runner = runner
        self._runtime = runtime

    def precheck(self) -> None:
        wix_home = os.environ.get("WIX")
        for tool in WIX_TOOLS:
            if self._runner.which(tool):
                continue
            if wix_home:
                original = self._runner.extend_path(os.path.join(wix_home, "bin"))
                if self._runner.which(tool):
                    continue
                self._runner.restore_path(original)
            raise DependencyMissing(tool, Constants.WIX_HINT)

    def build(self, plan: PackagePlan, source_path: str, force: bool = False) -> BuildResult:
        """Create ``<name>-<semver>[-<suffix>].msi`` in the output directory."""
        product_wxs = os.path.join(self._settings.assets_dir, PRODUCT_WXS)
        license_rtf = os.path.join(self._settings.assets_dir, LICENSE_RTF)
        for required in (product_wxs, license_rtf):
            if not os.path.isfile(required):
                raise MissingExpectedFile(required)

        msi_path = os.path.join(self._settings.output_dir,
                                artifact_file_name(plan.name, plan.version, "msi", plan.name_suffix))
        if os.path.exists(msi_path):
            if not force:
                raise FileExistsError(f"{msi_path} already exists; use --force to overwrite")
            os.remove(msi_path)
        os.makedirs(self._settings.output_dir, exist_ok=True)

        semver = semantic_version_without_build(plan.version)
        version_with_name = f"{plan.name}_{semver}"
        arch = target_architecture(self._runtime)
        work_dir = tempfile.mkdtemp(prefix="pspackage-msi-")
        try:
            files_wxs = os.path.join(work_dir, "files.wxs")
            self._runner.run([
                "heat", "dir", source_path,
                "-dr", version_with_name, "-cg", version_with_name,
                "-gg", "-sfrag", "-srd", "-scom", "-sreg",
                "-var", "var.ProductSourcePath",
                "-out", files_wxs, "-v",
            ])
            self._runner.run([
                "candle", "-nologo",
                f"-dProductSemanticVersion={semver}",
                f"-dProductVersion={msi_version(plan.version)}",
                f"-dProductVersionWithName={version_with_name}",
                f"-dProductTargetArchitecture={arch}",
                f"-dProductSourcePath={source_path}",
                "-arch", arch,
                "-out", work_dir + os.sep,
                product_wxs, files_wxs,
                "-ext", "WixUIExtension", "-v",
            ])
            self._runner.run([
                "light", "-nologo",
                "-out", msi_path,
                os.path.join(work_dir, "Product.wixobj"),
                os.path.join(work_dir, "files.wixobj"),
                "-ext", "WixUIExtension",
                f"-dWixUILicenseRtf={license_rtf}",
                "-v",
            ])
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        if not os.path.isfile(msi_path):
            raise MissingExpectedFile(msi_path)
        logger.info("Created MSI package: %s", msi_path)
        return BuildResult(artifact_path=msi_path, type=PackageType.MSI)
