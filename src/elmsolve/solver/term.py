"""Terms: a statement that a package's version is (or is not) in a range."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from ..versioning.constraint import Range
from ..versioning.models import PackageName


class SetRelation(Enum):
    """How one term relates to another."""

    SUBSET = "subset"  # every selection satisfying the first satisfies the other
    DISJOINT = "disjoint"  # no selection satisfies both
    OVERLAPPING = "overlapping"


class Term:
    """``package in range`` (positive) or ``not package in range`` (negative).

    A negative term also holds when the package is not selected at all.
    """

    __slots__ = ("package", "constraint", "is_positive")

    def __init__(self, package: PackageName, constraint: Range, is_positive: bool = True) -> None:
        self.package = package
        self.constraint = constraint
        self.is_positive = is_positive

    @property
    def inverse(self) -> "Term":
        return Term(self.package, self.constraint, not self.is_positive)

    def satisfies(self, other: "Term") -> bool:
        return self.package == other.package and self.relation(other) == SetRelation.SUBSET

    def relation(self, other: "Term") -> SetRelation:
        if self.package != other.package:
            raise ValueError(f"{other} should refer to {self.package}")

        other_constraint = other.constraint
        if other.is_positive:
            if self.is_positive:
                # foo 1.5.0 <= v < 2.0.0 is a subset of foo 1.0.0 <= v < 2.0.0
                if other_constraint.allows_all(self.constraint):
                    return SetRelation.SUBSET
                if not self.constraint.allows_any(other_constraint):
                    return SetRelation.DISJOINT
                return SetRelation.OVERLAPPING
            # not foo 1.0.0 <= v < 2.0.0 is disjoint with foo 1.5.0 <= v < 2.0.0
            if self.constraint.allows_all(other_constraint):
                return SetRelation.DISJOINT
            return SetRelation.OVERLAPPING

        if self.is_positive:
            # foo 2.0.0 <= v is a subset of not foo v < 2.0.0
            if not other_constraint.allows_any(self.constraint):
                return SetRelation.SUBSET
            if other_constraint.allows_all(self.constraint):
                return SetRelation.DISJOINT
            return SetRelation.OVERLAPPING
        # not foo v < 2.0.0 is a subset of not foo v < 1.0.0
        if self.constraint.allows_all(other_constraint):
            return SetRelation.SUBSET
        return SetRelation.OVERLAPPING

    def intersect(self, other: "Term") -> "Term":
        """Return a term satisfied exactly when both terms are."""
        if self.package != other.package:
            raise ValueError(f"{other} should refer to {self.package}")

        if self.is_positive != other.is_positive:
            positive = self if self.is_positive else other
            negative = other if self.is_positive else self
            return Term(self.package, positive.constraint.difference(negative.constraint), True)
        if self.is_positive:
            return Term(self.package, self.constraint.intersection(other.constraint), True)
        return Term(self.package, self.constraint.union(other.constraint), False)

    def difference(self, other: "Term") -> Optional["Term"]:
        """Return a term satisfied by this one but not ``other``, None if there is none."""
        result = self.intersect(other.inverse)
        if result.constraint.is_empty():
            return None
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Term):
            return NotImplemented
        return (
            self.package == other.package
            and self.constraint == other.constraint
            and self.is_positive == other.is_positive
        )

    def __hash__(self) -> int:
        return hash((self.package, self.constraint, self.is_positive))

    def __str__(self) -> str:
        prefix = "" if self.is_positive else "not "
        return f"{prefix}{describe(self.package, self.constraint)}"

    def __repr__(self) -> str:
        return f"<Term {self}>"


def describe(package: PackageName, constraint: Range) -> str:
    """Human text for ``package`` restricted to ``constraint``."""
    if constraint.is_any():
        return str(package)
    return f"{package} {constraint}"
