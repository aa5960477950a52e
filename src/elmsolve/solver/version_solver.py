"""Conflict-driven version solver (PubGrub).

The solver alternates unit propagation and decisions. When propagation
finds an incompatibility fully satisfied by the partial solution it derives
a new, more general incompatibility by resolution, backjumps to the level
where that one becomes useful, and carries on. Deriving an incompatibility
that only involves the root proves there is no solution.
"""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Union

from ..common.logging_utils import TRACE, extra_context
from ..errors import ImpossibleDependencyError, InternalFailure, NoSolutionError, SelfDependencyError
from ..project import Dependencies
from ..registry.base import DependencyProvider
from ..versioning.models import PackageName
from ..versioning.version import Version
from .incompatibility import ConflictCause, Incompatibility, IncompatibilityStore
from .metadata import MetadataCache
from .partial_solution import PartialSolution
from .report import build_report
from .term import SetRelation, Term

logger = logging.getLogger(__name__)

_CONFLICT = object()


class VersionSolver:
    """Finds one version per required package, or explains why none exist.

    One instance runs exactly one solve.
    """

    def __init__(
        self,
        root: PackageName,
        root_version: Version,
        root_dependencies: Dependencies,
        provider: Union[DependencyProvider, MetadataCache],
    ) -> None:
        self._root = root
        self._root_version = root_version
        self._root_dependencies = dict(root_dependencies)
        if isinstance(provider, MetadataCache):
            self._metadata = provider
        else:
            self._metadata = MetadataCache(provider)
        self._store = IncompatibilityStore()
        self._solution = PartialSolution()

    @property
    def metadata(self) -> MetadataCache:
        return self._metadata

    @property
    def store(self) -> IncompatibilityStore:
        return self._store

    @property
    def solution(self) -> PartialSolution:
        return self._solution

    def solve(self) -> Dict[PackageName, Version]:
        """Run the solve.

        Returns:
            The selected version of every package, root included.

        Raises:
            NoSolutionError: when the requirements are unsatisfiable.
            ImpossibleDependencyError, SelfDependencyError: for broken manifests.
            FetchError, VersionListError, CancelledError: from the provider.
        """
        start = time.time()
        self._add_incompatibility(Incompatibility.not_root(self._root, self._root_version))

        try:
            next_package: Optional[PackageName] = self._root
            while next_package is not None:
                self._propagate(next_package)
                next_package = self._choose_package_version()
        finally:
            logger.debug(
                "Version solving took %.3f seconds. Tried %d solutions.",
                time.time() - start,
                self._solution.attempted_solutions,
                extra=extra_context(
                    event="solve_finished",
                    component="solver",
                    fetch_count=self._metadata.fetch_count,
                    list_count=self._metadata.list_count,
                ),
            )
        return self._solution.decisions

    # Unit propagation

    def _propagate(self, package: PackageName) -> None:
        # Ordered set of packages whose incompatibilities must be rechecked.
        changed: Dict[PackageName, None] = {package: None}
        while changed:
            current = next(iter(changed))
            del changed[current]

            # Newest incompatibilities first: they are usually the most
            # specific, so conflicts surface sooner.
            for index in reversed(self._store.for_package(current)):
                incompatibility = self._store[index]
                result = self._propagate_incompatibility(incompatibility)
                if result is _CONFLICT:
                    root_cause = self._resolve_conflict(incompatibility)
                    # After backjumping, root_cause is almost satisfied.
                    derived = self._propagate_incompatibility(root_cause)
                    if not isinstance(derived, PackageName):
                        raise InternalFailure(
                            f"{root_cause} should be almost satisfied after backtracking"
                        )
                    changed.clear()
                    changed[derived] = None
                    break
                if result is not None:
                    changed[result] = None

    def _propagate_incompatibility(self, incompatibility: Incompatibility):
        """Derive the last undetermined term of ``incompatibility``, if any.

        Returns the package of the derived term, _CONFLICT when the
        incompatibility is already satisfied, or None when nothing follows.
        """
        unsatisfied: Optional[Term] = None
        for term in incompatibility.terms:
            relation = self._solution.relation(term)
            if relation == SetRelation.DISJOINT:
                return None
            if relation == SetRelation.OVERLAPPING:
                if unsatisfied is not None:
                    return None
                unsatisfied = term

        if unsatisfied is None:
            return _CONFLICT

        logger.log(TRACE, "derived: %s", unsatisfied.inverse)
        self._solution.derive(unsatisfied.inverse, incompatibility)
        return unsatisfied.package

    # Conflict resolution

    def _resolve_conflict(self, incompatibility: Incompatibility) -> Incompatibility:
        logger.debug("conflict: %s", incompatibility)
        new_incompatibility = False
        while not incompatibility.is_failure(self._root):
            most_recent_term: Optional[Term] = None
            most_recent_satisfier = None
            difference: Optional[Term] = None

            # Decision level just before most_recent_satisfier; where we
            # backjump to when that satisfier is a decision or when the
            # incompatibility becomes almost satisfied there.
            previous_satisfier_level = 1

            for term in incompatibility.terms:
                satisfier = self._solution.satisfier(term)
                if most_recent_satisfier is None:
                    most_recent_term = term
                    most_recent_satisfier = satisfier
                elif most_recent_satisfier.index < satisfier.index:
                    previous_satisfier_level = max(
                        previous_satisfier_level, most_recent_satisfier.decision_level
                    )
                    most_recent_term = term
                    most_recent_satisfier = satisfier
                    difference = None
                else:
                    previous_satisfier_level = max(previous_satisfier_level, satisfier.decision_level)

                if most_recent_term == term:
                    # The satisfier may only cover part of the term; the
                    # remainder was satisfied earlier by another assignment.
                    difference = most_recent_satisfier.difference(most_recent_term)
                    if difference is not None:
                        previous_satisfier_level = max(
                            previous_satisfier_level,
                            self._solution.satisfier(difference.inverse).decision_level,
                        )

            if most_recent_satisfier is None or most_recent_term is None:
                raise InternalFailure(f"{incompatibility} has no satisfier")

            if (
                previous_satisfier_level < most_recent_satisfier.decision_level
                or most_recent_satisfier.cause is None
            ):
                self._solution.backtrack(previous_satisfier_level)
                if new_incompatibility:
                    self._store.watch(incompatibility.id)
                logger.debug("backtracked to level %d: %s", previous_satisfier_level, incompatibility)
                return incompatibility

            # Resolve against the satisfier's cause to get an incompatibility
            # that would have fired before the satisfier was assigned.
            new_terms: List[Term] = [term for term in incompatibility.terms if term != most_recent_term]
            new_terms.extend(
                term
                for term in most_recent_satisfier.cause.terms
                if term.package != most_recent_satisfier.package
            )
            if difference is not None:
                new_terms.append(difference.inverse)

            incompatibility = Incompatibility(
                new_terms,
                ConflictCause(incompatibility.id, most_recent_satisfier.cause.id),
                root=self._root,
            )
            self._store.add(incompatibility)
            new_incompatibility = True

            logger.debug(
                "! %s is partially satisfied by %s, which is caused by %s; derived %s",
                most_recent_term,
                most_recent_satisfier,
                most_recent_satisfier.cause,
                incompatibility,
            )

        raise NoSolutionError(build_report(incompatibility, self._store), incompatibility)

    # Decisions

    def _choose_package_version(self) -> Optional[PackageName]:
        unsatisfied = self._solution.unsatisfied
        if not unsatisfied:
            return None

        if len(unsatisfied) == 1:
            package = unsatisfied[0]
        else:
            # Most constrained first: fewer candidates means fewer fetches
            # and earlier conflicts.
            package = min(unsatisfied, key=lambda pkg: (self._candidate_count(pkg), pkg))

        constraint = self._solution.positive_constraint(package)
        if package == self._root:
            version = self._root_version
            dependencies = self._root_dependencies
        else:
            version = self._metadata.best_version(package, constraint)
            if version is None:
                logger.debug("no versions of %s match %s", package, constraint)
                self._add_incompatibility(Incompatibility.no_versions(package, constraint))
                return package
            dependencies = self._metadata.dependencies(package, version)

        self._check_dependencies(package, version, dependencies)

        conflict = False
        for dependency, dep_constraint in dependencies.items():
            incompatibility = Incompatibility.from_dependency(package, version, dependency, dep_constraint)
            self._add_incompatibility(incompatibility)
            # Already satisfied: deciding this version would conflict. Keep
            # the incompatibilities and let propagation pick another version.
            conflict = conflict or all(
                term.package == package or self._solution.satisfies(term)
                for term in incompatibility.terms
            )

        if not conflict:
            self._solution.decide(package, version)
            logger.debug("selecting %s %s", package, version)
        return package

    def _candidate_count(self, package: PackageName) -> int:
        if package == self._root:
            return 1
        return self._metadata.count_versions(package, self._solution.positive_constraint(package))

    @staticmethod
    def _check_dependencies(package: PackageName, version: Version, dependencies: Dependencies) -> None:
        if package in dependencies:
            raise SelfDependencyError(str(package), str(version))
        for dependency, constraint in dependencies.items():
            if constraint.is_empty():
                raise ImpossibleDependencyError(str(package), str(version), str(dependency))

    def _add_incompatibility(self, incompatibility: Incompatibility) -> None:
        logger.log(TRACE, "fact: %s", incompatibility)
        self._store.watch(self._store.add(incompatibility))
