"""Version string helpers shared by planning and the builders."""

import re
from typing import Optional

import semantic_version

# Tail appended by `git describe` when HEAD is past the tag: -<commits>-g<sha>
_GIT_DESCRIBE_TAIL = re.compile(r"-(\d+)-g([0-9a-fA-F]+)$")


def normalize_version(text: str) -> str:
    """Turn a tag or `git describe` string into a SemVer string.

    Leading "v" is dropped and a describe tail becomes build metadata, e.g.
    ``v6.0.0-alpha.15-34-gabc123`` -> ``6.0.0-alpha.15+34.gabc123``.
    """
    value = text.strip()
    if value[:1] in ("v", "V"):
        value = value[1:]
    match = _GIT_DESCRIBE_TAIL.search(value)
    if match and "+" not in value:
        value = f"{value[:match.start()]}+{match.group(1)}.g{match.group(2)}"
    return value


def parse_version(text: str) -> semantic_version.Version:
    """Parse a version string, raising ValueError with a readable message."""
    normalized = normalize_version(text)
    try:
        return semantic_version.Version(normalized)
    except ValueError as exc:
        raise ValueError(f"Version '{text}' is not a valid semantic version") from exc


def semantic_version_without_build(text: str) -> str:
    """SemVer string with build metadata removed; prerelease is kept."""
    return str(parse_version(text).truncate("prerelease"))


def msi_version(text: str) -> str:
    """Four-part numeric version for Windows installers.

    The revision is the trailing numeric prerelease identifier, so
    ``6.0.0-alpha.15`` becomes ``6.0.0.15`` and ``6.0.0`` becomes ``6.0.0.0``.
    """
    version = parse_version(text)
    revision = 0
    for part in reversed(version.prerelease):
        if part.isdigit():
            revision = int(part)
            break
    return f"{version.major}.{version.minor}.{version.patch}.{revision}"


def artifact_file_name(name: str, version: str, extension: str, suffix: Optional[str] = None) -> str:
    """``<name>-<semverWithoutBuildMetadata>[-<suffix>].<ext>``"""
    stem = f"{name}-{semantic_version_without_build(version)}"
    if suffix:
        stem = f"{stem}-{suffix}"
    return f"{stem}.{extension.lstrip('.')}"
