"""Semantic version triple used throughout the solver."""

from typing import NamedTuple

import semantic_version

from ..errors import ConstraintParseError


class Version(NamedTuple):
    """A ``major.minor.patch`` version.

    Ordering is plain tuple ordering; pre-release and build metadata do not
    exist in this model.
    """

    major: int
    minor: int
    patch: int

    @classmethod
    def lowest(cls) -> "Version":
        return cls(0, 0, 0)

    def bump_patch(self) -> "Version":
        return Version(self.major, self.minor, self.patch + 1)

    def bump_minor(self) -> "Version":
        return Version(self.major, self.minor + 1, 0)

    def bump_major(self) -> "Version":
        return Version(self.major + 1, 0, 0)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str) -> Version:
    """Parse ``a.b.c`` into a Version.

    Raises:
        ConstraintParseError: if the text is not a plain semantic version.
    """
    if not isinstance(text, str):
        raise ConstraintParseError(repr(text), "expected a version string")
    raw = text.strip()
    try:
        parsed = semantic_version.Version(raw)
    except ValueError as exc:
        raise ConstraintParseError(text, f"not a valid version ({exc})") from exc
    if parsed.prerelease or parsed.build:
        raise ConstraintParseError(text, "pre-release and build metadata are not supported")
    return Version(parsed.major, parsed.minor, parsed.patch)
