"""Staging of build output for Unix packages.

- manager.py: StagingManager (stage/unstage/staged) and the macOS fpm quirk
- manpage.py: ronn/gzip man page generation
"""

from .manager import FpmSymlinkQuirk, StagingManager  # noqa: F401

__all__ = ["FpmSymlinkQuirk", "StagingManager"]
