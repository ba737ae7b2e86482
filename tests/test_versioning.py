"""Tests for version extraction and ordering of branch names."""

from __future__ import annotations

import pytest
from packaging.version import Version

from cascade_merge.services.versioning import (
    MAX_VERSION,
    ZERO_VERSION,
    extract_version,
    parse_version,
    sort_by_version,
)


class TestExtractVersion:
    @pytest.mark.parametrize(
        "branch",
        ["release/22.1.1", "release/v22.1.1", "release/version_22.1.1"],
    )
    def test_valid_versions(self, branch):
        assert extract_version(branch) == Version("22.1.1")

    def test_devel_is_maximal(self):
        assert extract_version("devel") == MAX_VERSION

    @pytest.mark.parametrize("branch", ["release/not-int", "invalid format", "release/", "", "release/\u0661.\u0662"])
    def test_unparsable_is_zero(self, branch):
        assert extract_version(branch) == ZERO_VERSION

    def test_short_versions(self):
        assert extract_version("release/2") == Version("2")
        assert extract_version("release/2.1") == Version("2.1")

    def test_nested_path_uses_last_segment(self):
        assert extract_version("hotfix/team/3.4.5") == Version("3.4.5")

    def test_custom_development_name(self):
        assert extract_version("develop", development_name="develop") == MAX_VERSION
        assert extract_version("develop") == ZERO_VERSION

    def test_four_components_rejected(self):
        assert parse_version("release/1.2.3.4") is None

    @pytest.mark.parametrize(
        "branch",
        ["release/1.0.0-1", "release/1.2.3-hotfix", "release/2.0.0-SNAPSHOT", "release/1.0.0-beta.x", "release/1.0+build"],
    )
    def test_suffixed_versions_have_no_key(self, branch):
        assert parse_version(branch) is None
        assert extract_version(branch) == ZERO_VERSION

    def test_suffixed_branch_never_sorts_after_its_release(self):
        assert sort_by_version(["release/1.0.0", "release/1.0.0-1"]) == ["release/1.0.0-1", "release/1.0.0"]


class TestSortByVersion:
    def test_numeric_not_lexical(self):
        branches = ["release/10.0.0", "release/9.0.0", "release/9.10.0", "release/9.2.0"]
        assert sort_by_version(branches) == [
            "release/9.0.0",
            "release/9.2.0",
            "release/9.10.0",
            "release/10.0.0",
        ]

    def test_devel_sorts_last(self):
        assert sort_by_version(["devel", "release/3", "release/2"]) == ["release/2", "release/3", "devel"]

    def test_unparsable_sorts_first(self):
        assert sort_by_version(["release/1", "release/next"]) == ["release/next", "release/1"]

    def test_stable_for_equal_keys(self):
        assert sort_by_version(["release/2.0", "release/2"]) == ["release/2.0", "release/2"]
        assert sort_by_version(["release/2", "release/2.0"]) == ["release/2", "release/2.0"]
