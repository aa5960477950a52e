"""Version constraints as finite unions of half-open ranges.

A Range is stored in canonical form: segments are sorted, non-empty,
pairwise disjoint and non-adjacent. Two ranges allowing the same versions
therefore compare (and hash) equal, which the solver relies on when it
compares terms.
"""

from typing import Iterable, List, Optional, Tuple

from .version import Version

# (low, high): low is inclusive, high exclusive, None means unbounded.
Segment = Tuple[Version, Optional[Version]]


def _high_le(a: Optional[Version], b: Optional[Version]) -> bool:
    """a <= b where None stands for +infinity."""
    if b is None:
        return True
    if a is None:
        return False
    return a <= b


def _min_high(a: Optional[Version], b: Optional[Version]) -> Optional[Version]:
    return a if _high_le(a, b) else b


def _normalize(segments: Iterable[Segment]) -> Tuple[Segment, ...]:
    ordered = sorted(
        (seg for seg in segments if seg[1] is None or seg[0] < seg[1]),
        key=lambda seg: seg[0],
    )
    merged: List[Segment] = []
    for low, high in ordered:
        if merged:
            prev_low, prev_high = merged[-1]
            # overlapping or adjacent
            if prev_high is None or low <= prev_high:
                merged[-1] = (prev_low, None if prev_high is None or high is None else max(prev_high, high))
                continue
        merged.append((low, high))
    return tuple(merged)


class Range:
    """A set of versions."""

    __slots__ = ("_segments",)

    def __init__(self, segments: Iterable[Segment] = ()) -> None:
        self._segments = _normalize(segments)

    # Constructors

    @classmethod
    def none(cls) -> "Range":
        return cls()

    @classmethod
    def any(cls) -> "Range":
        return cls([(Version.lowest(), None)])

    @classmethod
    def exact(cls, version: Version) -> "Range":
        return cls([(version, version.bump_patch())])

    @classmethod
    def between(cls, low: Version, high: Version) -> "Range":
        """Versions in ``[low, high)``."""
        return cls([(low, high)])

    @classmethod
    def higher_than(cls, version: Version) -> "Range":
        """Versions ``>= version``."""
        return cls([(version, None)])

    @classmethod
    def strictly_lower_than(cls, version: Version) -> "Range":
        return cls([(Version.lowest(), version)])

    # Queries

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    def is_empty(self) -> bool:
        return not self._segments

    def is_any(self) -> bool:
        return self._segments == ((Version.lowest(), None),)

    def allows(self, version: Version) -> bool:
        for low, high in self._segments:
            if version < low:
                return False
            if high is None or version < high:
                return True
        return False

    def allows_all(self, other: "Range") -> bool:
        """True when ``other`` is a subset of this range."""
        return other.difference(self).is_empty()

    def allows_any(self, other: "Range") -> bool:
        """True when both ranges share at least one version."""
        return not self.intersection(other).is_empty()

    def lowest(self) -> Optional[Version]:
        return self._segments[0][0] if self._segments else None

    # Algebra

    def union(self, other: "Range") -> "Range":
        return Range(self._segments + other._segments)

    def intersection(self, other: "Range") -> "Range":
        result: List[Segment] = []
        left, right = self._segments, other._segments
        i = j = 0
        while i < len(left) and j < len(right):
            low = max(left[i][0], right[j][0])
            high = _min_high(left[i][1], right[j][1])
            if high is None or low < high:
                result.append((low, high))
            if _high_le(left[i][1], right[j][1]):
                i += 1
            else:
                j += 1
        return Range(result)

    def complement(self) -> "Range":
        result: List[Segment] = []
        cursor = Version.lowest()
        for low, high in self._segments:
            if cursor < low:
                result.append((cursor, low))
            if high is None:
                return Range(result)
            cursor = high
        result.append((cursor, None))
        return Range(result)

    def difference(self, other: "Range") -> "Range":
        return self.intersection(other.complement())

    # Dunder

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __contains__(self, version: Version) -> bool:
        return self.allows(version)

    def __repr__(self) -> str:
        return f"Range({str(self)!r})"

    def __str__(self) -> str:
        if not self._segments:
            return "none"
        lowest = Version.lowest()
        parts = []
        for low, high in self._segments:
            if high is None:
                parts.append("*" if low == lowest else f"{low} <= v")
            elif high == low.bump_patch():
                parts.append(str(low))
            elif low == lowest:
                parts.append(f"v < {high}")
            else:
                parts.append(f"{low} <= v < {high}")
        return " || ".join(parts)
