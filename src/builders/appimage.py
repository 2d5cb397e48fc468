"""AppImage builder: wraps the repository's appimage.sh script."""

from __future__ import annotations

import glob
import logging
import os

from cli_config import PackagingSettings
from common.tool_runner import ToolRunner
from constants import Constants
from errors import MissingExpectedFile, PackagingError
from planning.models import BuildResult, PackagePlan, PackageType, PlatformFacts

logger = logging.getLogger(__name__)

APPIMAGE_PATTERN = "PowerShell-*.AppImage"


class AppImageBuilder:
    """Runs tools/appimage.sh and versions the resulting file name."""

    def __init__(self, facts: PlatformFacts, settings: PackagingSettings, runner: ToolRunner):
        self._facts = facts
        self._settings = settings
        self._runner = runner

    def supported(self) -> bool:
        """The script only targets Ubuntu 14.04 (Trusty)."""
        return self._facts.is_ubuntu14

    def build(self, plan: PackagePlan) -> BuildResult:
        script = os.path.join(self._settings.tools_dir, Constants.APPIMAGE_SCRIPT)
        if not os.path.isfile(script):
            raise MissingExpectedFile(script)
        work_dir = self._settings.output_dir
        os.makedirs(work_dir, exist_ok=True)

        self._runner.run(["bash", "-iex", script], cwd=work_dir)

        found = sorted(glob.glob(os.path.join(work_dir, APPIMAGE_PATTERN)))
        if not found:
            raise MissingExpectedFile(os.path.join(work_dir, APPIMAGE_PATTERN))
        if len(found) > 1:
            raise PackagingError(
                "Found more than one AppImage package, remove all *.AppImage files "
                "and try to create the package again"
            )
        image = found[0]
        base = os.path.basename(image)
        versioned = os.path.join(work_dir, base.replace("-", f"-{plan.version}-", 1))
        os.replace(image, versioned)
        logger.info("Created AppImage package: %s", versioned)
        return BuildResult(artifact_path=versioned, type=PackageType.APPIMAGE)
