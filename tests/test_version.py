"""Tests for planning.version helpers."""

import pytest

from planning.version import (
    artifact_file_name,
    msi_version,
    normalize_version,
    parse_version,
    semantic_version_without_build,
)


class TestNormalizeVersion:
    def test_strips_leading_v(self):
        assert normalize_version("v6.0.0") == "6.0.0"

    def test_git_describe_tail_becomes_build_metadata(self):
        assert normalize_version("v6.0.0-alpha.15-34-gabc123") == "6.0.0-alpha.15+34.gabc123"

    def test_plain_prerelease_untouched(self):
        assert normalize_version("6.0.0-beta.1") == "6.0.0-beta.1"

    def test_whitespace(self):
        assert normalize_version("  6.0.0\n") == "6.0.0"


class TestParseVersion:
    def test_valid(self):
        version = parse_version("6.0.0-alpha.15")
        assert (version.major, version.minor, version.patch) == (6, 0, 0)

    def test_invalid_raises_value_error(self):
        with pytest.raises(ValueError, match="not a valid semantic version"):
            parse_version("six")


class TestSemanticVersionWithoutBuild:
    def test_drops_build_metadata(self):
        assert semantic_version_without_build("6.0.0-alpha.15+34.gabc123") == "6.0.0-alpha.15"

    def test_describe_output(self):
        assert semantic_version_without_build("v6.0.0-beta.1-2-gdeadbeef") == "6.0.0-beta.1"

    def test_release(self):
        assert semantic_version_without_build("6.0.0") == "6.0.0"


class TestMsiVersion:
    def test_prerelease_number_becomes_revision(self):
        assert msi_version("6.0.0-alpha.15") == "6.0.0.15"

    def test_release_has_zero_revision(self):
        assert msi_version("6.0.1") == "6.0.1.0"

    def test_non_numeric_prerelease(self):
        assert msi_version("6.0.0-rc") == "6.0.0.0"


class TestArtifactFileName:
    def test_without_suffix(self):
        assert artifact_file_name("powershell", "6.0.0-alpha.15+3.gabc", "zip") == "powershell-6.0.0-alpha.15.zip"

    def test_with_suffix(self):
        name = artifact_file_name("powershell", "6.0.0", ".msi", "win7-win2008r2-x64")
        assert name == "powershell-6.0.0-win7-win2008r2-x64.msi"
