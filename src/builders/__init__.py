"""Package builders, one per artifact family.

- unix.py: fpm for deb/rpm/osxpkg
- fpm_output.py: parser for fpm's created-package line
- archive.py: zip
- msi.py: WiX MSI
- appx.py: makeappx AppX
- appimage.py: appimage.sh wrapper
"""

from .appimage import AppImageBuilder  # noqa: F401
from .appx import AppxPackageBuilder  # noqa: F401
from .archive import ZipPackageBuilder  # noqa: F401
from .msi import MsiPackageBuilder  # noqa: F401
from .unix import UnixPackageBuilder  # noqa: F401

__all__ = [
    "AppImageBuilder",
    "AppxPackageBuilder",
    "MsiPackageBuilder",
    "UnixPackageBuilder",
    "ZipPackageBuilder",
]
