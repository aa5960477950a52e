"""Incompatibility-based version solving.

- term.py: terms and set relations
- incompatibility.py: incompatibilities, causes and their arena
- partial_solution.py: assignments, decision levels, backtracking
- metadata.py: per-solve memoization of provider calls
- version_solver.py: the solving loop
- report.py: derivation trees and failure explanations
"""

from .metadata import MetadataCache
from .report import build_derivation_tree, build_report, report_tree
from .version_solver import VersionSolver

__all__ = [
    "MetadataCache",
    "VersionSolver",
    "build_derivation_tree",
    "build_report",
    "report_tree",
]
