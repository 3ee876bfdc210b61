"""Declared DT ``major.minor`` versus the resolved upstream version."""

from typing import Literal

from dtdash.versions.semver import Version

OutOfDate = Literal["major", "minor", "too-new"]


def out_of_date(
    declared_major: int,
    declared_minor: int,
    current: Version,
    *,
    is_latest: bool,
) -> OutOfDate | None:
    """Classify how the resolved upstream version relates to the declared types.

    Checked in fixed priority, so at most one flag is returned:

    1. ``too-new``: the latest variant declares a version ahead of what
       upstream resolved to.
    2. ``major``: upstream moved to a new major. On the 0.x line every minor
       bump counts as breaking.
    3. ``minor``: same major, newer minor (never reported for 0.x).
    """
    declared = (declared_major, declared_minor)
    if is_latest and (current.major, current.minor) < declared:
        return "too-new"

    if declared_major == 0:
        if current.major > 0 or current.minor > declared_minor:
            return "major"
        return None

    if current.major > declared_major:
        return "major"
    if current.major == declared_major and current.minor > declared_minor:
        return "minor"
    return None
