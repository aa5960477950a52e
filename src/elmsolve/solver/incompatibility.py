"""Incompatibilities: sets of terms that must not all hold at once.

Incompatibilities are append-only for the whole solve. Derived ones refer
to the two incompatibilities they were resolved from by their index in the
owning :class:`IncompatibilityStore`, which keeps the derivation graph a
plain DAG of integers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..versioning.constraint import Range
from ..versioning.models import PackageName
from ..versioning.version import Version
from .term import Term, describe


@dataclass(frozen=True)
class RootCause:
    """The root package must be selected at its own version."""

    package: PackageName
    version: Version


@dataclass(frozen=True)
class NoVersionsCause:
    """No listed version satisfies the term."""


@dataclass(frozen=True)
class DependencyCause:
    """A package version declares a dependency."""

    package: PackageName
    dependency: PackageName


@dataclass(frozen=True)
class ConflictCause:
    """Derived during conflict resolution from two stored incompatibilities."""

    conflict: int
    other: int


class Incompatibility:
    """A set of terms, at most one per package, that cannot all be true."""

    def __init__(self, terms: List[Term], cause, root: Optional[PackageName] = None) -> None:
        if (
            root is not None
            and len(terms) != 1
            and isinstance(cause, ConflictCause)
            and any(term.is_positive and term.package == root for term in terms)
        ):
            # The root is always selected, so positive root terms carry no information.
            terms = [term for term in terms if not (term.is_positive and term.package == root)]

        by_package: Dict[PackageName, Term] = {}
        for term in terms:
            if term.package in by_package:
                by_package[term.package] = by_package[term.package].intersect(term)
            else:
                by_package[term.package] = term

        self.terms: List[Term] = list(by_package.values())
        self.cause = cause
        self.id: Optional[int] = None

    @classmethod
    def not_root(cls, package: PackageName, version: Version) -> "Incompatibility":
        return cls([Term(package, Range.exact(version), False)], RootCause(package, version))

    @classmethod
    def no_versions(cls, package: PackageName, constraint: Range) -> "Incompatibility":
        return cls([Term(package, constraint, True)], NoVersionsCause())

    @classmethod
    def from_dependency(
        cls, package: PackageName, version: Version, dependency: PackageName, constraint: Range
    ) -> "Incompatibility":
        return cls(
            [
                Term(package, Range.exact(version), True),
                Term(dependency, constraint, False),
            ],
            DependencyCause(package, dependency),
        )

    def is_failure(self, root: PackageName) -> bool:
        return not self.terms or (
            len(self.terms) == 1
            and self.terms[0].is_positive
            and self.terms[0].package == root
        )

    def get(self, package: PackageName) -> Optional[Term]:
        for term in self.terms:
            if term.package == package:
                return term
        return None

    def __str__(self) -> str:
        cause = self.cause
        if isinstance(cause, RootCause):
            return f"we are solving dependencies of {cause.package} {cause.version}"
        if isinstance(cause, NoVersionsCause):
            term = self.terms[0]
            return f"there is no available version for {describe(term.package, term.constraint)}"
        if isinstance(cause, DependencyCause):
            depender = self.get(cause.package)
            dependee = self.get(cause.dependency)
            if depender is not None and dependee is not None:
                return (
                    f"{describe(depender.package, depender.constraint)} depends on "
                    f"{describe(dependee.package, dependee.constraint)}"
                )
        return terms_to_string(self.terms)

    def __repr__(self) -> str:
        return f"<Incompatibility #{self.id} {self}>"


def terms_to_string(terms: List[Term]) -> str:
    """Describe what a set of incompatible terms forbids."""
    if not terms:
        return "version solving failed"
    if len(terms) == 1:
        term = terms[0]
        if term.is_positive:
            return f"{describe(term.package, term.constraint)} is forbidden"
        return f"{describe(term.package, term.constraint)} is mandatory"
    if len(terms) == 2 and terms[0].is_positive != terms[1].is_positive:
        positive = terms[0] if terms[0].is_positive else terms[1]
        negative = terms[1] if terms[0].is_positive else terms[0]
        return (
            f"{describe(positive.package, positive.constraint)} depends on "
            f"{describe(negative.package, negative.constraint)}"
        )
    return ", ".join(str(term) for term in terms) + " are incompatible"


class IncompatibilityStore:
    """Append-only arena of incompatibilities indexed by insertion order."""

    def __init__(self) -> None:
        self._items: List[Incompatibility] = []
        self._by_package: Dict[PackageName, List[int]] = {}

    def add(self, incompatibility: Incompatibility) -> int:
        """Store ``incompatibility`` and return its index; it is not yet watched."""
        index = len(self._items)
        incompatibility.id = index
        self._items.append(incompatibility)
        return index

    def watch(self, index: int) -> None:
        """Make a stored incompatibility visible to unit propagation."""
        for term in self._items[index].terms:
            self._by_package.setdefault(term.package, []).append(index)

    def __getitem__(self, index: int) -> Incompatibility:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def for_package(self, package: PackageName) -> List[int]:
        """Indices of incompatibilities mentioning ``package``, oldest first."""
        return list(self._by_package.get(package, ()))
