"""Package planning.

- models.py: PlatformFacts, PackageRequest, PackagePlan, StagingArea, BuildResult
- facts.py: host detection (os-release, platform module)
- resolver.py: table-driven plan resolution
- scripts.py: maintainer script templates
- version.py: SemVer helpers (semantic_version)
"""

from .models import (  # noqa: F401
    BuildResult,
    PackagePlan,
    PackageRequest,
    PackageType,
    PlatformFacts,
    PlatformFamily,
    StagingArea,
)
from .resolver import resolve, resolve_default_types  # noqa: F401

__all__ = [
    "BuildResult",
    "PackagePlan",
    "PackageRequest",
    "PackageType",
    "PlatformFacts",
    "PlatformFamily",
    "StagingArea",
    "resolve",
    "resolve_default_types",
]
