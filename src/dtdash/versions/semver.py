"""Loose semantic versions and the handful of npm range forms we resolve.

Parsing is deliberately forgiving (``v1.2.3``, ``=1.2.3``, ``1.2.3beta``)
because upstream registries contain plenty of non-canonical versions.
Ordering follows semver precedence: a prerelease sorts before its release,
numeric identifiers compare numerically and sort before alphanumeric ones.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import total_ordering

from dtdash.core.errors import MalformedVersionError

_LOOSE_VERSION = re.compile(
    r"""
    ^\s*[v=\s]*
    (?P<major>\d+)\.
    (?P<minor>\d+)\.
    (?P<patch>\d+)
    (?:-?(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    (?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    \s*$
    """,
    re.VERBOSE,
)

_SHORTHAND = re.compile(
    r"^\s*(?P<caret>\^)?\s*v?(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<patch>\d+))?\s*$"
)


def _identifier_key(identifier: str) -> tuple[int, int | str]:
    if identifier.isdigit():
        return (0, int(identifier))
    return (1, identifier)


@total_ordering
@dataclass(frozen=True)
class Version:
    """A parsed version. Build metadata is dropped, as npm does."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Version:
        match = _LOOSE_VERSION.match(text)
        if match is None:
            raise MalformedVersionError.for_text(text)
        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(prerelease.split(".")) if prerelease else (),
        )

    @classmethod
    def try_parse(cls, text: str) -> Version | None:
        try:
            return cls.parse(text)
        except MalformedVersionError:
            return None

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def format(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{core}-{'.'.join(self.prerelease)}"
        return core

    def __str__(self) -> str:
        return self.format()

    def _sort_key(self) -> tuple[int, int, int, int, tuple[tuple[int, int | str], ...]]:
        # A release (no prerelease) outranks every prerelease of the same triple
        release_rank = 0 if self.prerelease else 1
        return (
            self.major,
            self.minor,
            self.patch,
            release_rank,
            tuple(_identifier_key(part) for part in self.prerelease),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()


@dataclass(frozen=True)
class VersionRange:
    """Half-open interval ``[lower, upper)``, or an exact pin.

    Covers the specifier shapes the dashboard issues: ``"4"``, ``"0.3"``,
    ``"^5.2"``, and exact versions.
    """

    lower: Version
    upper: Version | None = None
    exact: bool = False
    include_prerelease: bool = False

    @classmethod
    def parse(cls, specifier: str, *, include_prerelease: bool = False) -> VersionRange | None:
        """Parse a specifier, returning None for anything that is not a range (e.g. a dist-tag)."""
        exact = Version.try_parse(specifier)
        if exact is not None:
            return cls(lower=exact, exact=True, include_prerelease=include_prerelease)

        match = _SHORTHAND.match(specifier)
        if match is None:
            return None
        major = int(match.group("major"))
        minor = int(match.group("minor")) if match.group("minor") is not None else None
        patch = int(match.group("patch")) if match.group("patch") is not None else None

        if match.group("caret"):
            return cls.caret(major, minor, patch, include_prerelease=include_prerelease)
        if minor is None:
            return cls._between(
                Version(major, 0, 0), Version(major + 1, 0, 0), include_prerelease
            )
        return cls._between(
            Version(major, minor, 0), Version(major, minor + 1, 0), include_prerelease
        )

    @classmethod
    def caret(
        cls,
        major: int,
        minor: int | None,
        patch: int | None = None,
        *,
        include_prerelease: bool = False,
    ) -> VersionRange:
        """``^major[.minor[.patch]]``: compatible within the leftmost non-zero component.

        As in npm, ``^0`` spans all of 0.x and ``^0.0`` the whole 0.0.x line.
        ``^0.0.3`` pins 0.0.3.
        """
        if major > 0 or minor is None:
            upper = Version(major + 1, 0, 0)
        elif minor > 0 or patch is None:
            upper = Version(0, minor + 1, 0)
        else:
            upper = Version(0, 0, patch + 1)
        return cls._between(Version(major, minor or 0, patch or 0), upper, include_prerelease)

    @classmethod
    def _between(cls, lower: Version, upper: Version, include_prerelease: bool) -> VersionRange:
        if include_prerelease:
            # -0 is the lowest possible prerelease, so 5.2.0-beta satisfies ^5.2
            # and no 6.0.0 prerelease satisfies it
            lower = Version(lower.major, lower.minor, lower.patch, ("0",))
        upper = Version(upper.major, upper.minor, upper.patch, ("0",))
        return cls(lower=lower, upper=upper, include_prerelease=include_prerelease)

    def satisfied_by(self, version: Version) -> bool:
        if self.exact:
            return version == self.lower
        if version.is_prerelease and not self.include_prerelease:
            return False
        if version < self.lower:
            return False
        return self.upper is None or version < self.upper

    def max_satisfying(self, versions: Iterable[Version]) -> Version | None:
        matching = [v for v in versions if self.satisfied_by(v)]
        return max(matching) if matching else None
