"""Version, constraint and package identifier model."""

from .constraint import Range
from .models import PackageName, ROOT_PACKAGE
from .parser import parse_constraint, parse_additional_constraints, tokenize_rightmost_colon
from .version import Version, parse_version

__all__ = [
    "PackageName",
    "ROOT_PACKAGE",
    "Range",
    "Version",
    "parse_additional_constraints",
    "parse_constraint",
    "parse_version",
    "tokenize_rightmost_colon",
]
