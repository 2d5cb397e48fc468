"""Zip package builder."""

from __future__ import annotations

import logging
import os
import zipfile
from typing import List

from cli_config import PackagingSettings
from planning.models import BuildResult, PackagePlan, PackageType
from planning.version import artifact_file_name

logger = logging.getLogger(__name__)


def _iter_files(root_dir: str) -> List[str]:
    """Relative paths of every file under ``root_dir``, sorted."""
    files = []
    for cur_root, cur_dirs, cur_files in os.walk(root_dir):
        cur_dirs.sort()
        rel_root = os.path.relpath(cur_root, root_dir)
        for name in sorted(cur_files):
            rel = name if rel_root == "." else os.path.join(rel_root, name)
            files.append(rel)
    return files


class ZipPackageBuilder:
    """Archives the contents of the build output directory."""

    def __init__(self, settings: PackagingSettings):
        self._settings = settings

    def build(self, plan: PackagePlan, source_path: str, force: bool = False) -> BuildResult:
        """Write ``<name>-<semver>[-<suffix>].zip`` into the output directory.

        Raises:
            FileExistsError: the archive exists and ``force`` is not set.
        """
        file_name = artifact_file_name(plan.name, plan.version, "zip", plan.name_suffix)
        zip_path = os.path.join(self._settings.output_dir, file_name)
        if os.path.exists(zip_path):
            if not force:
                raise FileExistsError(f"{zip_path} already exists; use --force to overwrite")
            os.remove(zip_path)
        os.makedirs(self._settings.output_dir, exist_ok=True)

        files = _iter_files(source_path)
        with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for rel in files:
                zf.write(os.path.join(source_path, rel), rel.replace(os.sep, "/"))
        logger.info("Created Zip Package: %s (%d files)", zip_path, len(files))
        return BuildResult(artifact_path=zip_path, type=PackageType.ZIP)
