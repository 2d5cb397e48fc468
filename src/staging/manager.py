"""Staging area management for Unix packages.

``StagingManager.stage`` copies the build output into an isolated staging
root and creates every transient artifact fpm needs (link source symlink,
OpenSSL compatibility links, maintainer script files, compressed man page).
``unstage`` reverts all of it. Use ``staged()`` so teardown runs exactly once
on every exit path, including KeyboardInterrupt during a tool call.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from typing import Iterator, Optional

from cli_config import PackagingSettings
from common.tool_runner import ToolRunner
from constants import Constants
from errors import MissingExpectedFile
from planning.models import PackagePlan, PackageRequest, PlatformFacts, StagingArea

from .manpage import build_man_page

logger = logging.getLogger(__name__)

# Top-level build artifacts renamed for side-by-side packages.
RENAMED_ARTIFACTS = (
    "powershell",
    "powershell.dll",
    "powershell.deps.json",
    "powershell.pdb",
    "powershell.runtimeconfig.json",
    "powershell.xml",
)

# libmi.so links against these names; RedHat-family systems ship them as .so.10.
# Ubuntu provides the files itself and macOS builds against its own versions.
OPENSSL_SHIMS = {
    "libssl.so.1.0.0": "/lib64/libssl.so.10",
    "libcrypto.so.1.0.0": "/lib64/libcrypto.so.10",
}

DIR_MODE = 0o755
FILE_MODE = 0o644
EXECUTABLE_MODE = 0o755


def _remove_quietly(path: str) -> None:
    """Remove a file or symlink; absence is not an error."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        logger.debug("Already removed: %s", path)
    except OSError as exc:
        logger.warning("Failed to remove %s: %s", path, exc)


class FpmSymlinkQuirk:
    """Work around an fpm defect on macOS.

    If the target of the link-source symlink exists on the build machine, fpm
    aborts with a ``utime`` error. The existing path is moved to a fixed
    alias so the symlink is dangling while fpm runs, then moved back by
    ``revert``. This is a tool workaround, not packaging behavior.
    """

    def __init__(self, work_dir: str):
        self._work_dir = work_dir

    def alias_for(self, name: str) -> str:
        return os.path.join(self._work_dir, f"{Constants.FPM_SYMLINK_HACK_PREFIX}{name}")

    def apply(self, area: StagingArea, plan: PackagePlan) -> None:
        target = plan.executable_install_path
        if not target or not os.path.lexists(target):
            return
        alias = self.alias_for(plan.name)
        logger.warning("Move %s to %s (fpm utime bug)", target, alias)
        os.makedirs(self._work_dir, exist_ok=True)
        shutil.move(target, alias)
        area.moved_aside = (target, alias)

    @staticmethod
    def revert(area: StagingArea) -> None:
        if area.moved_aside is None:
            return
        target, alias = area.moved_aside
        if os.path.lexists(alias):
            logger.warning("Move %s to %s (fpm utime bug)", alias, target)
            shutil.move(alias, target)
        area.moved_aside = None


class StagingManager:
    """Creates and tears down the staging area for one Unix package build."""

    def __init__(self, facts: PlatformFacts, settings: PackagingSettings, runner: ToolRunner):
        self._facts = facts
        self._settings = settings
        self._runner = runner
        self._quirk = FpmSymlinkQuirk(settings.output_dir)

    @contextlib.contextmanager
    def staged(self, source_path: str, plan: PackagePlan, request: PackageRequest) -> Iterator[StagingArea]:
        """Context manager around stage/unstage."""
        area = self.stage(source_path, plan, request)
        try:
            yield area
        finally:
            self.unstage(area)

    def stage(self, source_path: str, plan: PackagePlan, request: PackageRequest) -> StagingArea:
        """Prepare the staging area.

        On failure everything created so far is reverted before the exception
        propagates.

        Raises:
            MissingExpectedFile: a renamed artifact or the man page source is absent.
            ToolInvocationError: ronn or gzip failed.
        """
        area = StagingArea(root_path=self._settings.staging_dir)
        try:
            self._copy_tree(source_path, area)
            if request.name != Constants.PRODUCT_NAME:
                self._rename_artifacts(area, request.name)
            self._create_link_source(area, plan)
            if self._facts.is_redhat_family:
                self._create_openssl_shims(area)
            self._write_maintainer_scripts(area, plan)
            if self._facts.is_macos:
                self._quirk.apply(area, plan)
            self._build_man_page(area, plan)
            self._apply_permissions(area, plan.name)
        except BaseException:
            self.unstage(area)
            raise
        return area

    def unstage(self, area: StagingArea) -> None:
        """Revert everything ``stage`` created. Safe to call more than once."""
        if area.torn_down:
            return
        for link in sorted(area.created_symlinks):
            _remove_quietly(link)
        for path in sorted(area.created_temp_files):
            _remove_quietly(path)
        for directory in sorted(area.created_temp_dirs):
            shutil.rmtree(directory, ignore_errors=True)
        self._quirk.revert(area)
        if not self._settings.keep_staging:
            shutil.rmtree(area.root_path, ignore_errors=True)
        area.torn_down = True
        logger.debug("Staging area %s torn down", area.root_path)

    # ---------- steps ----------

    @staticmethod
    def _copy_tree(source_path: str, area: StagingArea) -> None:
        if not os.path.isdir(source_path):
            raise MissingExpectedFile(source_path)
        if os.path.lexists(area.root_path):
            shutil.rmtree(area.root_path)
        logger.info("Staging %s in %s", source_path, area.root_path)
        shutil.copytree(source_path, area.root_path, symlinks=True)

    @staticmethod
    def _rename_artifacts(area: StagingArea, name: str) -> None:
        for filename in RENAMED_ARTIFACTS:
            current = os.path.join(area.root_path, filename)
            if not os.path.lexists(current):
                raise MissingExpectedFile(current)
            renamed = name + filename[len(Constants.PRODUCT_NAME):]
            os.replace(current, os.path.join(area.root_path, renamed))

    def _create_link_source(self, area: StagingArea, plan: PackagePlan) -> None:
        """Symlink <tmp>/<name> -> <destination>/<name>; fpm maps it into the link dir."""
        link_source = os.path.join(self._settings.link_source_dir, plan.name)
        _force_symlink(plan.executable_install_path, link_source)
        area.link_source = link_source
        area.created_symlinks.add(link_source)

    @staticmethod
    def _create_openssl_shims(area: StagingArea) -> None:
        for link_name, target in OPENSSL_SHIMS.items():
            _force_symlink(target, os.path.join(area.root_path, link_name))

    @staticmethod
    def _write_maintainer_scripts(area: StagingArea, plan: PackagePlan) -> None:
        area.after_install_path = _write_temp_script(area, plan.after_install_script, "after-install")
        area.after_remove_path = _write_temp_script(area, plan.after_remove_script, "after-remove")

    def _build_man_page(self, area: StagingArea, plan: PackagePlan) -> None:
        work_dir = tempfile.mkdtemp(prefix="pspackage-man-")
        area.created_temp_dirs.add(work_dir)
        ronn_source = os.path.join(self._settings.assets_dir, Constants.MAN_PAGE_SOURCE)
        area.man_page_path, area.man_page_target = build_man_page(self._runner, ronn_source, plan.name, work_dir)

    @staticmethod
    def _apply_permissions(area: StagingArea, name: str) -> None:
        """Directories 755, files 644; only the executable is executable."""
        for dirpath, _dirnames, filenames in os.walk(area.root_path):
            os.chmod(dirpath, DIR_MODE)
            for entry in filenames:
                path = os.path.join(dirpath, entry)
                if os.path.islink(path):
                    continue
                os.chmod(path, FILE_MODE)
        if area.man_page_path:
            os.chmod(area.man_page_path, FILE_MODE)
        executable = area.executable(name)
        if os.path.isfile(executable) and not os.path.islink(executable):
            os.chmod(executable, EXECUTABLE_MODE)


def _force_symlink(target: Optional[str], link_path: str) -> None:
    if target is None:
        raise ValueError("Cannot create a link without a target")
    if os.path.lexists(link_path):
        os.unlink(link_path)
    os.symlink(target, link_path)


def _write_temp_script(area: StagingArea, content: Optional[str], label: str) -> Optional[str]:
    if content is None:
        return None
    fd, path = tempfile.mkstemp(prefix=f"pspackage-{label}-", suffix=".sh")
    area.created_temp_files.add(path)
    with os.fdopen(fd, "w", encoding="ascii", newline="\n") as f:
        f.write(content)
    return path
