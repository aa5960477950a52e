"""elmsolve: dependency solver for Elm projects.

Typical use::

    from elmsolve import solve_offline
    solution = solve_offline(open("elm.json").read(), use_test=False)
"""

from .errors import (
    CancelledError,
    ConstraintParseError,
    ElmSolveError,
    FetchError,
    ImpossibleDependencyError,
    InternalFailure,
    ManifestDecodeError,
    NoSolutionError,
    PackageNameError,
    SelfDependencyError,
    VersionListError,
)
from .registry import DependencyProvider, OfflineProvider, OnlineProvider
from .service import format_solution, solve_deps, solve_offline, solve_online, solve_with_fallback

__version__ = "0.1.0"

__all__ = [
    "CancelledError",
    "ConstraintParseError",
    "DependencyProvider",
    "ElmSolveError",
    "FetchError",
    "ImpossibleDependencyError",
    "InternalFailure",
    "ManifestDecodeError",
    "NoSolutionError",
    "OfflineProvider",
    "OnlineProvider",
    "PackageNameError",
    "SelfDependencyError",
    "VersionListError",
    "format_solution",
    "solve_deps",
    "solve_offline",
    "solve_online",
    "solve_with_fallback",
]
