"""Partial solution: the ordered list of decisions and derived terms."""
from __future__ import annotations

from typing import Dict, List, Optional

from ..errors import InternalFailure
from ..versioning.constraint import Range
from ..versioning.models import PackageName
from ..versioning.version import Version
from .incompatibility import Incompatibility
from .term import SetRelation, Term


class Assignment(Term):
    """A term in the partial solution, with where and why it was added.

    Decisions have no cause; derivations point at the incompatibility that
    forced them.
    """

    __slots__ = ("decision_level", "index", "cause")

    def __init__(
        self,
        package: PackageName,
        constraint: Range,
        is_positive: bool,
        decision_level: int,
        index: int,
        cause: Optional[Incompatibility] = None,
    ) -> None:
        super().__init__(package, constraint, is_positive)
        self.decision_level = decision_level
        self.index = index
        self.cause = cause

    @property
    def is_decision(self) -> bool:
        return self.cause is None


class PartialSolution:
    """Assignments in the order they were made, grouped by decision level.

    For every package the positive assignments are kept intersected in
    ``_positive``; packages with only negative assignments keep their
    intersection in ``_negative``.
    """

    def __init__(self) -> None:
        self._assignments: List[Assignment] = []
        self._decisions: Dict[PackageName, Version] = {}
        self._positive: Dict[PackageName, Term] = {}
        self._negative: Dict[PackageName, Term] = {}
        self._attempted_solutions = 1
        self._backtracking = False

    @property
    def decisions(self) -> Dict[PackageName, Version]:
        return dict(self._decisions)

    @property
    def decision_level(self) -> int:
        return len(self._decisions)

    @property
    def attempted_solutions(self) -> int:
        return self._attempted_solutions

    @property
    def unsatisfied(self) -> List[PackageName]:
        """Packages required by a positive term but not decided yet, in order of appearance."""
        return [pkg for pkg in self._positive if pkg not in self._decisions]

    def positive_constraint(self, package: PackageName) -> Optional[Range]:
        term = self._positive.get(package)
        return term.constraint if term is not None else None

    def decide(self, package: PackageName, version: Version) -> None:
        """Select ``version`` of ``package``, opening a new decision level."""
        if self._backtracking:
            self._attempted_solutions += 1
        self._backtracking = False
        self._decisions[package] = version
        self._assign(
            Assignment(package, Range.exact(version), True, self.decision_level, len(self._assignments))
        )

    def derive(self, term: Term, cause: Incompatibility) -> None:
        """Record that ``term`` must hold because of ``cause``."""
        self._assign(
            Assignment(
                term.package,
                term.constraint,
                term.is_positive,
                self.decision_level,
                len(self._assignments),
                cause,
            )
        )

    def _assign(self, assignment: Assignment) -> None:
        self._assignments.append(assignment)
        self._register(assignment)

    def _register(self, assignment: Assignment) -> None:
        package = assignment.package
        old_positive = self._positive.get(package)
        if old_positive is not None:
            self._positive[package] = old_positive.intersect(assignment)
            return

        old_negative = self._negative.get(package)
        term = assignment if old_negative is None else assignment.intersect(old_negative)
        if term.is_positive:
            self._negative.pop(package, None)
            self._positive[package] = term
        else:
            self._negative[package] = term

    def backtrack(self, decision_level: int) -> None:
        """Drop every assignment made above ``decision_level``."""
        self._backtracking = True

        packages = []
        while self._assignments and self._assignments[-1].decision_level > decision_level:
            removed = self._assignments.pop()
            if removed.package not in packages:
                packages.append(removed.package)
            if removed.is_decision:
                del self._decisions[removed.package]

        # Recompute the accumulated terms of every touched package.
        for package in packages:
            self._positive.pop(package, None)
            self._negative.pop(package, None)

        for assignment in self._assignments:
            if assignment.package in packages:
                self._register(assignment)

    def relation(self, term: Term) -> SetRelation:
        positive = self._positive.get(term.package)
        if positive is not None:
            return positive.relation(term)
        negative = self._negative.get(term.package)
        if negative is None:
            return SetRelation.OVERLAPPING
        return negative.relation(term)

    def satisfies(self, term: Term) -> bool:
        return self.relation(term) == SetRelation.SUBSET

    def satisfier(self, term: Term) -> Assignment:
        """Return the earliest assignment after which ``term`` is satisfied."""
        assigned_term: Optional[Term] = None
        for assignment in self._assignments:
            if assignment.package != term.package:
                continue
            if assigned_term is None:
                assigned_term = assignment
            else:
                assigned_term = assigned_term.intersect(assignment)
            if assigned_term.satisfies(term):
                return assignment
        raise InternalFailure(f"{term} is not satisfied by the partial solution")
