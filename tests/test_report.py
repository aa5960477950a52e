"""Tests for failure explanations."""

from elmsolve.solver.incompatibility import (
    ConflictCause,
    DependencyCause,
    Incompatibility,
    IncompatibilityStore,
    terms_to_string,
)
from elmsolve.solver.report import Derived, External, build_derivation_tree, build_report, report_tree
from elmsolve.solver.term import Term
from elmsolve.versioning import PackageName, Range, parse_constraint, parse_version

ROOT = PackageName("test", "root")
A = PackageName("test", "a")
B = PackageName("test", "b")


def dep(package, version, dependency, constraint):
    return Incompatibility.from_dependency(package, parse_version(version), dependency, parse_constraint(constraint))


class TestIncompatibilityText:
    """One-line descriptions."""

    def test_dependency(self):
        assert str(dep(A, "1.0.0", B, "2.0.0 <= v < 3.0.0")) == "test/a 1.0.0 depends on test/b 2.0.0 <= v < 3.0.0"

    def test_no_versions(self):
        incompat = Incompatibility.no_versions(A, parse_constraint("1.0.0 <= v < 2.0.0"))
        assert str(incompat) == "there is no available version for test/a 1.0.0 <= v < 2.0.0"

    def test_root(self):
        incompat = Incompatibility.not_root(ROOT, parse_version("1.0.0"))
        assert str(incompat) == "we are solving dependencies of test/root 1.0.0"

    def test_terms(self):
        assert terms_to_string([]) == "version solving failed"
        assert terms_to_string([Term(A, Range.any(), True)]) == "test/a is forbidden"
        assert terms_to_string([Term(A, Range.any(), False)]) == "test/a is mandatory"

    def test_root_terms_dropped_from_derived(self):
        """Positive root terms carry nothing once the root is decided."""
        terms = [Term(ROOT, Range.exact(parse_version("1.0.0")), True), Term(A, Range.any(), False)]
        incompat = Incompatibility(terms, ConflictCause(0, 1), root=ROOT)
        assert [term.package for term in incompat.terms] == [A]

    def test_terms_merged_per_package(self):
        terms = [
            Term(A, parse_constraint("1.0.0 <= v < 3.0.0"), True),
            Term(A, parse_constraint("2.0.0 <= v < 4.0.0"), True),
        ]
        incompat = Incompatibility(terms, DependencyCause(A, A))
        assert len(incompat.terms) == 1
        assert incompat.terms[0].constraint == parse_constraint("2.0.0 <= v < 3.0.0")


class TestReport:
    """Derivation trees rendered as sentences."""

    def _store_for_simple_conflict(self):
        store = IncompatibilityStore()
        root_a = dep(ROOT, "1.0.0", A, "1.0.0")
        a_b = dep(A, "1.0.0", B, "2.0.0 <= v < 3.0.0")
        no_b = Incompatibility.no_versions(B, parse_constraint("2.0.0 <= v < 3.0.0"))
        for incompat in (root_a, a_b, no_b):
            store.add(incompat)
        a_fails = Incompatibility(
            [Term(A, Range.exact(parse_version("1.0.0")), True)], ConflictCause(a_b.id, no_b.id), root=ROOT
        )
        store.add(a_fails)
        failure = Incompatibility(
            [Term(ROOT, Range.exact(parse_version("1.0.0")), True)],
            ConflictCause(a_fails.id, root_a.id),
            root=ROOT,
        )
        store.add(failure)
        return store, failure

    def test_tree_shape(self):
        store, failure = self._store_for_simple_conflict()
        tree = build_derivation_tree(failure, store)
        assert isinstance(tree, Derived)
        assert isinstance(tree.cause1, Derived)
        assert isinstance(tree.cause2, External)
        assert tree.shared_id is None

    def test_chain_is_reported_in_order(self):
        store, failure = self._store_for_simple_conflict()
        report = build_report(failure, store)
        assert report.splitlines() == [
            "Because test/a 1.0.0 depends on test/b 2.0.0 <= v < 3.0.0 and there is no available "
            "version for test/b 2.0.0 <= v < 3.0.0, test/a 1.0.0 is forbidden.",
            "And because test/root 1.0.0 depends on test/a 1.0.0, version solving failed.",
        ]

    def test_external_only(self):
        incompat = Incompatibility.no_versions(A, Range.any())
        assert report_tree(External(incompat)) == "there is no available version for test/a"

    def test_shared_nodes_get_line_numbers(self):
        """A derivation used twice is explained once and referred back to."""
        store = IncompatibilityStore()
        a_b = dep(A, "1.0.0", B, "2.0.0")
        no_b = Incompatibility.no_versions(B, parse_constraint("2.0.0"))
        store.add(a_b)
        store.add(no_b)
        shared = Incompatibility([Term(A, Range.exact(parse_version("1.0.0")), True)], ConflictCause(a_b.id, no_b.id))
        store.add(shared)
        left = Incompatibility([Term(A, Range.exact(parse_version("1.0.0")), False)], ConflictCause(shared.id, a_b.id))
        store.add(left)
        failure = Incompatibility([], ConflictCause(left.id, shared.id))
        store.add(failure)

        report = build_report(failure, store)
        lines = report.splitlines()
        assert lines[0].endswith("test/a 1.0.0 is forbidden. (1)")
        assert "(2)" in report
        assert report.splitlines()[-1].endswith("version solving failed.")
