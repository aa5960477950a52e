"""Failure explanations.

The derivation tree of the final incompatibility is rebuilt from the store
only when solving fails. Derived incompatibilities reached more than once
get a line number the first time they are explained, and later paragraphs
refer back to that number instead of explaining them again.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .incompatibility import ConflictCause, Incompatibility, IncompatibilityStore, terms_to_string


@dataclass
class External:
    """A leaf: an incompatibility stated by a manifest, the root or a listing."""

    incompatibility: Incompatibility

    def __str__(self) -> str:
        return str(self.incompatibility)


@dataclass
class Derived:
    """An incompatibility obtained by resolving two others."""

    incompatibility: Incompatibility
    cause1: "Node"
    cause2: "Node"
    shared_id: Optional[int] = None


Node = Union[External, Derived]


def _reference_counts(root: Incompatibility, store: IncompatibilityStore) -> Dict[int, int]:
    counts: Dict[int, int] = {}
    stack = [root]
    while stack:
        current = stack.pop()
        cause = current.cause
        if not isinstance(cause, ConflictCause):
            continue
        for child in (cause.conflict, cause.other):
            counts[child] = counts.get(child, 0) + 1
            if counts[child] == 1:
                stack.append(store[child])
    return counts


def build_derivation_tree(incompatibility: Incompatibility, store: IncompatibilityStore) -> Node:
    """Rebuild the DAG below ``incompatibility`` as shared tree nodes."""
    counts = _reference_counts(incompatibility, store)
    built: Dict[int, Node] = {}

    def build(current: Incompatibility) -> Node:
        if current.id is not None and current.id in built:
            return built[current.id]
        cause = current.cause
        if isinstance(cause, ConflictCause):
            shared = current.id if counts.get(current.id, 0) > 1 else None
            node: Node = Derived(current, build(store[cause.conflict]), build(store[cause.other]), shared)
        else:
            node = External(current)
        if current.id is not None:
            built[current.id] = node
        return node

    return build(incompatibility)


class _Reporter:
    def __init__(self, failure: Incompatibility) -> None:
        self.failure = failure
        self.ref_count = 0
        self.shared_with_ref: Dict[int, int] = {}
        self.lines: List[str] = []

    def _terms(self, node: Node) -> str:
        incompatibility = node.incompatibility
        if incompatibility is self.failure:
            return "version solving failed"
        return terms_to_string(incompatibility.terms)

    def build_recursive(self, derived: Derived) -> None:
        self._build_recursive_helper(derived)
        if derived.shared_id is not None and derived.shared_id not in self.shared_with_ref:
            self._add_line_ref()
            self.shared_with_ref[derived.shared_id] = self.ref_count

    def _add_line_ref(self) -> None:
        self.ref_count += 1
        if self.lines:
            self.lines[-1] = f"{self.lines[-1]} ({self.ref_count})"

    def _line_ref_of(self, shared_id: Optional[int]) -> Optional[int]:
        if shared_id is None:
            return None
        return self.shared_with_ref.get(shared_id)

    def _build_recursive_helper(self, current: Derived) -> None:
        cause1, cause2 = current.cause1, current.cause2
        conclusion = self._terms(current)

        if isinstance(cause1, External) and isinstance(cause2, External):
            self.lines.append(f"Because {cause1} and {cause2}, {conclusion}.")
            return

        if isinstance(cause1, Derived) and isinstance(cause2, External):
            self._report_one_each(cause1, cause2, conclusion)
            return
        if isinstance(cause1, External) and isinstance(cause2, Derived):
            self._report_one_each(cause2, cause1, conclusion)
            return

        ref1 = self._line_ref_of(cause1.shared_id)
        ref2 = self._line_ref_of(cause2.shared_id)
        if ref1 is not None and ref2 is not None:
            self.lines.append(
                f"Because {self._terms(cause1)} ({ref1}) and {self._terms(cause2)} ({ref2}), {conclusion}."
            )
        elif ref1 is not None:
            self.build_recursive(cause2)
            self.lines.append(f"And because {self._terms(cause1)} ({ref1}), {conclusion}.")
        elif ref2 is not None:
            self.build_recursive(cause1)
            self.lines.append(f"And because {self._terms(cause2)} ({ref2}), {conclusion}.")
        else:
            self.build_recursive(cause1)
            if cause1.shared_id is not None:
                # cause1 now has a line number; explain current again using it.
                self.lines.append("")
                self.build_recursive(current)
            else:
                self._add_line_ref()
                ref1 = self.ref_count
                self.lines.append("")
                self.build_recursive(cause2)
                self.lines.append(f"And because {self._terms(cause1)} ({ref1}), {conclusion}.")

    def _report_one_each(self, derived: Derived, external: External, conclusion: str) -> None:
        ref = self._line_ref_of(derived.shared_id)
        if ref is not None:
            self.lines.append(f"Because {self._terms(derived)} ({ref}) and {external}, {conclusion}.")
            return

        prior_derived: Optional[Derived] = None
        prior_external: Optional[External] = None
        if isinstance(derived.cause1, Derived) and isinstance(derived.cause2, External):
            prior_derived, prior_external = derived.cause1, derived.cause2
        elif isinstance(derived.cause1, External) and isinstance(derived.cause2, Derived):
            prior_derived, prior_external = derived.cause2, derived.cause1

        if prior_derived is not None:
            # Chain the two external facts in one sentence.
            self.build_recursive(prior_derived)
            self.lines.append(f"And because {prior_external} and {external}, {conclusion}.")
        else:
            self.build_recursive(derived)
            self.lines.append(f"And because {external}, {conclusion}.")


def report_tree(tree: Node) -> str:
    """Render a derivation tree as numbered, causally ordered sentences."""
    if isinstance(tree, External):
        return str(tree)
    reporter = _Reporter(tree.incompatibility)
    reporter.build_recursive(tree)
    return "\n".join(reporter.lines)


def build_report(incompatibility: Incompatibility, store: IncompatibilityStore) -> str:
    """Explain why ``incompatibility`` (a failure) holds."""
    return report_tree(build_derivation_tree(incompatibility, store))
