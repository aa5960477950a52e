"""Data models for package identifiers."""

import re
from typing import NamedTuple

from ..errors import PackageNameError

_AUTHOR_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9]))*$")
_NAME_RE = re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)*$")


class PackageName(NamedTuple):
    """An ``author/name`` package identifier.

    Build instances with :meth:`parse`, which validates the syntax; the
    tuple ordering (author, then name) gives the total order.
    """

    author: str
    name: str

    @classmethod
    def parse(cls, text: str) -> "PackageName":
        """Parse and validate ``author/name``.

        Raises:
            PackageNameError: if the identifier is malformed.
        """
        if not isinstance(text, str):
            raise PackageNameError(repr(text), "expected a string")
        parts = text.split("/")
        if len(parts) != 2:
            raise PackageNameError(text, "expected exactly one '/' between author and name")
        author, name = parts
        if not _AUTHOR_RE.match(author):
            raise PackageNameError(
                text, "author may only contain letters, digits and single inner hyphens"
            )
        if not _NAME_RE.match(name):
            raise PackageNameError(
                text,
                "name must start with a lower case letter and only contain "
                "lower case letters, digits and single inner hyphens",
            )
        return cls(author, name)

    def __str__(self) -> str:
        if not self.name:
            return self.author
        return f"{self.author}/{self.name}"


# Synthetic root of an application project; never a valid parsed name.
ROOT_PACKAGE = PackageName("root", "")
