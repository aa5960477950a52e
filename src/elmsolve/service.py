"""Solve entry points: decode the project, seed the solver, assemble the result."""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Union

from .common.logging_utils import extra_context, is_debug_enabled, report_error
from .errors import ElmSolveError, FetchError, InternalFailure, NoSolutionError, VersionListError
from .project import decode_project, root_identity, root_requirements
from .registry.base import DependencyProvider
from .registry.offline import OfflineProvider
from .registry.online import OnlineProvider
from .solver.metadata import MetadataCache
from .solver.version_solver import VersionSolver
from .versioning.models import PackageName
from .versioning.parser import parse_additional_constraints
from .versioning.version import Version

logger = logging.getLogger(__name__)

ProjectInput = Union[str, bytes, Mapping[str, Any]]

# Errors that more registry data may fix.
_RETRY_ONLINE = (NoSolutionError, FetchError, VersionListError)


def assemble_solution(
    decisions: Mapping[PackageName, Version],
    root: PackageName,
    metadata: MetadataCache,
) -> Dict[str, str]:
    """Turn solver decisions into ``{package: version}`` sorted by package.

    The root is only kept when another selected package depends on it.
    """
    root_is_dependency = any(
        root in metadata.dependencies(pkg, version)
        for pkg, version in decisions.items()
        if pkg != root
    )
    return {
        str(pkg): str(version)
        for pkg, version in sorted(decisions.items())
        if pkg != root or root_is_dependency
    }


def solve_deps(
    project_elm_json: ProjectInput,
    use_test: bool,
    additional_constraints: Optional[Mapping[str, str]],
    provider: DependencyProvider,
) -> Dict[str, str]:
    """Solve the dependencies of a project elm.json.

    Args:
        project_elm_json: elm.json text, or the already decoded mapping.
        use_test: also require the test dependencies.
        additional_constraints: ``{package: constraint}`` intersected with
            the project requirements.
        provider: where versions and dependency elm.json files come from.

    Returns:
        ``{package: version}`` for every selected package.

    Raises:
        ElmSolveError: one of the subclasses in elmsolve.errors; the error
            is logged before it propagates.
    """
    try:
        project = decode_project(project_elm_json)
        extra = parse_additional_constraints(additional_constraints or {})
        root, root_version = root_identity(project)
        requirements = root_requirements(project, use_test, extra)
        if is_debug_enabled(logger):
            logger.debug(
                "Solving %s %s with %d root requirements",
                root,
                root_version,
                len(requirements),
                extra=extra_context(event="solve_start", component="service", use_test=use_test),
            )
        metadata = MetadataCache(provider)
        decisions = VersionSolver(root, root_version, requirements, metadata).solve()
        return assemble_solution(decisions, root, metadata)
    except ElmSolveError as exc:
        report_error(logger, exc)
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        failure = InternalFailure(f"{type(exc).__name__}: {exc}")
        report_error(logger, failure)
        raise failure from exc


def solve_offline(
    project_elm_json: ProjectInput,
    use_test: bool,
    additional_constraints: Optional[Mapping[str, str]] = None,
    home: Optional[os.PathLike] = None,
) -> Dict[str, str]:
    """Solve using only what is installed under ELM_HOME."""
    return solve_deps(project_elm_json, use_test, additional_constraints, OfflineProvider(home))


def solve_online(
    project_elm_json: ProjectInput,
    use_test: bool,
    additional_constraints: Optional[Mapping[str, str]] = None,
    home: Optional[os.PathLike] = None,
    registry_url: Optional[str] = None,
) -> Dict[str, str]:
    """Solve with the package server as a complement to ELM_HOME."""
    provider = OnlineProvider(home, registry_url)
    return solve_deps(project_elm_json, use_test, additional_constraints, provider)


def solve_with_fallback(
    project_elm_json: ProjectInput,
    use_test: bool,
    additional_constraints: Optional[Mapping[str, str]] = None,
    home: Optional[os.PathLike] = None,
    registry_url: Optional[str] = None,
) -> Dict[str, str]:
    """Try offline first, then online when the local data is not enough."""
    try:
        return solve_offline(project_elm_json, use_test, additional_constraints, home)
    except _RETRY_ONLINE:
        logger.warning("Offline solver failed, switching to online solver.")
    return solve_online(project_elm_json, use_test, additional_constraints, home, registry_url)


def format_solution(solution: Mapping[str, str]) -> str:
    """Serialize a solution as a flat JSON object."""
    return json.dumps(dict(solution))
