"""Constraint and token parsing utilities."""

import re
from typing import Dict, Mapping, Optional, Tuple

from ..errors import ConstraintParseError
from .constraint import Range
from .models import PackageName
from .version import Version, parse_version

_BOTH_RE = re.compile(r"^([^\s<]+)\s*(<=|<)\s*v\s*(<=|<)\s*([^\s<]+)$")
_LOWER_RE = re.compile(r"^([^\s<]+)\s*(<=|<)\s*v$")
_UPPER_RE = re.compile(r"^v\s*(<=|<)\s*([^\s<]+)$")


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule.

    Used for CLI tokens such as ``elm/core:1.0.0 <= v < 2.0.0``.
    """
    s = s.strip()
    if ':' not in s:
        return s, None
    parts = s.rsplit(':', 1)
    identifier = parts[0].strip()
    spec_part = parts[1].strip() if len(parts) > 1 else ''
    spec = spec_part if spec_part else None
    return identifier, spec


def _lower_bound(version: Version, op: str) -> Version:
    return version if op == "<=" else version.bump_patch()


def _upper_bound(version: Version, op: str) -> Version:
    return version if op == "<" else version.bump_patch()


def _parse_segment(part: str) -> Range:
    if part == "*":
        return Range.any()
    if part == "none":
        return Range.none()
    m = _BOTH_RE.match(part)
    if m:
        low = _lower_bound(parse_version(m.group(1)), m.group(2))
        high = _upper_bound(parse_version(m.group(4)), m.group(3))
        return Range.between(low, high)
    m = _LOWER_RE.match(part)
    if m:
        return Range.higher_than(_lower_bound(parse_version(m.group(1)), m.group(2)))
    m = _UPPER_RE.match(part)
    if m:
        return Range.strictly_lower_than(_upper_bound(parse_version(m.group(2)), m.group(1)))
    return Range.exact(parse_version(part))


def parse_constraint(text: str, package: Optional[str] = None) -> Range:
    """Parse a constraint such as ``1.0.0 <= v < 2.0.0`` into a Range.

    Accepts unions separated by ``||``. A syntactically valid constraint may
    still be empty (``2.0.0 <= v < 1.0.0``).

    Raises:
        ConstraintParseError: carrying the raw text and, when given, the package.
    """
    if not isinstance(text, str):
        raise ConstraintParseError(repr(text), "expected a constraint string", package)
    raw = text.strip()
    if not raw:
        raise ConstraintParseError(text, "empty constraint", package)
    result = Range.none()
    for part in raw.split("||"):
        part = part.strip()
        if not part:
            raise ConstraintParseError(text, "empty alternative in union", package)
        try:
            result = result.union(_parse_segment(part))
        except ConstraintParseError as exc:
            raise ConstraintParseError(text, exc.reason, package) from exc
    return result


def parse_additional_constraints(raw: Mapping[str, str]) -> Dict[PackageName, Range]:
    """Parse caller-supplied ``{package: constraint}`` overrides.

    Raises:
        PackageNameError: for a malformed key.
        ConstraintParseError: for a malformed value, naming its package.
    """
    parsed: Dict[PackageName, Range] = {}
    for pkg_text, constraint_text in raw.items():
        pkg = PackageName.parse(pkg_text)
        constraint = parse_constraint(constraint_text, package=str(pkg))
        if pkg in parsed:
            constraint = parsed[pkg].intersection(constraint)
        parsed[pkg] = constraint
    return parsed
