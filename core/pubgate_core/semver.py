"""
semver.py - semantic version value type

Parses, orders and bumps versions of the form
major.minor.patch[-prerelease][+build] following semver 2.0.0 precedence.
"""

import enum
import re
from dataclasses import dataclass

SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

# Unanchored, group-free form for finding a version inside other text
SEMVER_SEARCH = (
    r"(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
)


class VersionIncrement(enum.Enum):
    """Which component a release bump advances."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @classmethod
    def from_name(cls, name):
        try:
            return cls(name.strip().lower())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown version increment {name!r} (expected one of: {allowed})"
            ) from None

    def __str__(self):
        return self.value


def _prerelease_key(identifier):
    # Numeric identifiers sort before alphanumeric ones
    if identifier.isdigit():
        return (0, int(identifier), "")
    return (1, 0, identifier)


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: tuple = ()
    build: tuple = ()

    @classmethod
    def parse(cls, text):
        """Parse a version string; a leading 'v' is accepted.

        Raises:
            ValueError: If the string is not a semantic version.
        """
        if not isinstance(text, str):
            raise ValueError(f"Invalid version: {text!r}")
        s = text.strip()
        if s[:1] in ("v", "V"):
            s = s[1:]
        m = SEMVER_RE.match(s)
        if not m:
            raise ValueError(f"Invalid version: {text!r}")
        major, minor, patch, pre, build = m.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            patch=int(patch),
            prerelease=tuple(pre.split(".")) if pre else (),
            build=tuple(build.split(".")) if build else (),
        )

    @property
    def is_prerelease(self):
        return bool(self.prerelease)

    def _precedence(self):
        # A release sorts above any of its pre-releases
        if self.prerelease:
            pre = (0, tuple(_prerelease_key(p) for p in self.prerelease))
        else:
            pre = (1, ())
        return (self.major, self.minor, self.patch, pre)

    # Ordering is by precedence only; == stays value equality including build.
    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __le__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() <= other._precedence()

    def __gt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() > other._precedence()

    def __ge__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() >= other._precedence()

    def compare(self, other):
        """Return -1, 0 or 1 by precedence, ignoring build metadata."""
        a, b = self._precedence(), other._precedence()
        return (a > b) - (a < b)

    def next_patch(self):
        return Version(self.major, self.minor, self.patch + 1)

    def next_minor(self):
        return Version(self.major, self.minor + 1, 0)

    def next_major(self):
        return Version(self.major + 1, 0, 0)

    def bump(self, increment):
        if increment is VersionIncrement.PATCH:
            return self.next_patch()
        if increment is VersionIncrement.MINOR:
            return self.next_minor()
        if increment is VersionIncrement.MAJOR:
            return self.next_major()
        raise ValueError(f"Unknown version increment: {increment!r}")

    def __str__(self):
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            s += "-" + ".".join(self.prerelease)
        if self.build:
            s += "+" + ".".join(self.build)
        return s
