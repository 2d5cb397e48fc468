"""Man page generation: ronn markdown -> roff -> gzip."""

from __future__ import annotations

import logging
import os
import shutil
from typing import Tuple

from common.tool_runner import ToolRunner
from constants import Constants
from errors import MissingExpectedFile

logger = logging.getLogger(__name__)


def man_page_target(name: str) -> str:
    """Install location of the compressed man page."""
    return f"{Constants.MAN_PAGE_DIR}/{name}.1.gz"


def build_man_page(runner: ToolRunner, ronn_source: str, name: str, work_dir: str) -> Tuple[str, str]:
    """Convert ``ronn_source`` into ``<work_dir>/<name>.1.gz``.

    ronn does not cope with file names such as ``powershell6.0.1``, so the page
    is always generated as ``powershell.1`` and renamed afterwards.

    Returns:
        (path of the gzip file, install target path)

    Raises:
        MissingExpectedFile: the ronn source or its roff output is missing.
        ToolInvocationError: ronn or gzip failed.
    """
    if not os.path.isfile(ronn_source):
        raise MissingExpectedFile(ronn_source)

    ronn_copy = os.path.join(work_dir, os.path.basename(ronn_source))
    shutil.copyfile(ronn_source, ronn_copy)
    runner.run(["ronn", "--roff", ronn_copy], cwd=work_dir)

    roff_file = ronn_copy[: -len(".ronn")] if ronn_copy.endswith(".ronn") else ronn_copy
    if not os.path.isfile(roff_file):
        raise MissingExpectedFile(roff_file)

    fixed_roff = os.path.join(work_dir, f"{name}.1")
    if roff_file != fixed_roff:
        os.replace(roff_file, fixed_roff)

    runner.run(["gzip", "-f", fixed_roff], cwd=work_dir)
    gzip_file = f"{fixed_roff}.gz"
    if not os.path.isfile(gzip_file):
        raise MissingExpectedFile(gzip_file)
    logger.debug("Man page ready at %s", gzip_file)
    return gzip_file, man_page_target(name)
