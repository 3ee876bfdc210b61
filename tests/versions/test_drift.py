"""Tests for versions/drift.py: declared major.minor vs upstream."""

import pytest

from dtdash.versions.drift import out_of_date
from dtdash.versions.semver import Version


class TestZeroMajorBoundary:
    """On 0.x every minor bump counts as breaking."""

    def test_minor_bump_is_major(self) -> None:
        assert out_of_date(0, 3, Version.parse("0.4.0"), is_latest=True) == "major"

    def test_patch_bump_is_current(self) -> None:
        assert out_of_date(0, 3, Version.parse("0.3.9"), is_latest=True) is None

    def test_leaving_zero_is_major(self) -> None:
        assert out_of_date(0, 3, Version.parse("1.0.0"), is_latest=False) == "major"


class TestNonZeroMajorBoundary:
    """Major and minor lag on 1.x and later."""

    def test_minor_bump_is_minor(self) -> None:
        assert out_of_date(2, 1, Version.parse("2.5.0"), is_latest=True) == "minor"

    def test_major_bump_is_major(self) -> None:
        assert out_of_date(2, 1, Version.parse("3.0.0"), is_latest=True) == "major"

    def test_same_line_is_current(self) -> None:
        assert out_of_date(4, 14, Version.parse("4.14.200"), is_latest=True) is None


class TestTooNew:
    """Declared types ahead of the resolved upstream."""

    def test_latest_variant_ahead_of_upstream(self) -> None:
        assert out_of_date(5, 2, Version.parse("5.0.0"), is_latest=True) == "too-new"

    def test_older_variant_is_never_too_new(self) -> None:
        assert out_of_date(5, 2, Version.parse("5.0.0"), is_latest=False) is None

    @pytest.mark.parametrize("current", ["5.2.0-beta.1", "5.2.3", "5.3.0"])
    def test_on_or_after_declared_line_is_not_too_new(self, current: str) -> None:
        assert out_of_date(5, 2, Version.parse(current), is_latest=True) != "too-new"
