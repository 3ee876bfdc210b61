"""Version model exports."""

from dtdash.versions.drift import OutOfDate, out_of_date
from dtdash.versions.semver import Version, VersionRange

__all__ = [
    "OutOfDate",
    "Version",
    "VersionRange",
    "out_of_date",
]
