"""Manifest model: project and dependency elm.json files.

Decoding the JSON text is a thin layer; the interesting output is the set of
root requirements handed to the solver and the dependency map of each
package version.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ConstraintParseError, ManifestDecodeError
from .versioning.constraint import Range
from .versioning.models import PackageName, ROOT_PACKAGE
from .versioning.parser import parse_constraint
from .versioning.version import Version, parse_version

logger = logging.getLogger(__name__)

Dependencies = Dict[PackageName, Range]

APPLICATION_ROOT_VERSION = Version(1, 0, 0)


@dataclass
class PackageConfig:
    """elm.json of ``"type": "package"``."""

    name: PackageName
    version: Version
    dependencies: Dependencies = field(default_factory=dict)
    test_dependencies: Dependencies = field(default_factory=dict)


@dataclass
class ApplicationConfig:
    """elm.json of ``"type": "application"``; dependencies are pinned versions."""

    direct: Dict[PackageName, Version] = field(default_factory=dict)
    indirect: Dict[PackageName, Version] = field(default_factory=dict)
    test_direct: Dict[PackageName, Version] = field(default_factory=dict)
    test_indirect: Dict[PackageName, Version] = field(default_factory=dict)


ProjectConfig = Union[PackageConfig, ApplicationConfig]


def _load_json(text: Union[str, bytes, Mapping[str, Any]], what: str) -> Mapping[str, Any]:
    if isinstance(text, Mapping):
        return text
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ManifestDecodeError(f"Failed to decode the {what}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestDecodeError(f"Failed to decode the {what}: expected a JSON object")
    return data


def _object(data: Mapping[str, Any], key: str, what: str, required: bool = True) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        if required:
            raise ManifestDecodeError(f"Failed to decode the {what}: missing field {key!r}")
        return {}
    if not isinstance(value, dict):
        raise ManifestDecodeError(f"Failed to decode the {what}: field {key!r} must be an object")
    return value


def _decode_ranges(raw: Mapping[str, Any], what: str) -> Dependencies:
    deps: Dependencies = {}
    for pkg_text, constraint_text in raw.items():
        try:
            pkg = PackageName.parse(pkg_text)
            deps[pkg] = parse_constraint(constraint_text, package=pkg_text)
        except ConstraintParseError as exc:
            raise ManifestDecodeError(f"Failed to decode the {what}: {exc}") from exc
    return deps


def _decode_pins(raw: Mapping[str, Any], what: str) -> Dict[PackageName, Version]:
    pins: Dict[PackageName, Version] = {}
    for pkg_text, version_text in raw.items():
        try:
            pins[PackageName.parse(pkg_text)] = parse_version(version_text)
        except ConstraintParseError as exc:
            raise ManifestDecodeError(f"Failed to decode the {what}: {exc}") from exc
    return pins


def _decode_package(data: Mapping[str, Any], what: str) -> PackageConfig:
    try:
        name = PackageName.parse(data.get("name"))
        version = parse_version(data.get("version"))
    except ConstraintParseError as exc:
        raise ManifestDecodeError(f"Failed to decode the {what}: {exc}") from exc
    return PackageConfig(
        name=name,
        version=version,
        dependencies=_decode_ranges(_object(data, "dependencies", what), what),
        test_dependencies=_decode_ranges(
            _object(data, "test-dependencies", what, required=False), what
        ),
    )


def _decode_application(data: Mapping[str, Any], what: str) -> ApplicationConfig:
    deps = _object(data, "dependencies", what)
    test_deps = _object(data, "test-dependencies", what, required=False)
    return ApplicationConfig(
        direct=_decode_pins(_object(deps, "direct", what), what),
        indirect=_decode_pins(_object(deps, "indirect", what), what),
        test_direct=_decode_pins(_object(test_deps, "direct", what, required=False), what),
        test_indirect=_decode_pins(_object(test_deps, "indirect", what, required=False), what),
    )


def decode_project(text: Union[str, bytes, Mapping[str, Any]]) -> ProjectConfig:
    """Decode the project elm.json (text or already-decoded mapping).

    Unknown fields are ignored.

    Raises:
        ManifestDecodeError: for invalid JSON, missing fields or bad values.
    """
    what = "elm.json"
    data = _load_json(text, what)
    kind = data.get("type")
    if kind == "package":
        return _decode_package(data, what)
    if kind == "application":
        return _decode_application(data, what)
    raise ManifestDecodeError(
        f"Failed to decode the {what}: field 'type' must be \"application\" or \"package\""
    )


def decode_dependencies(text: Union[str, bytes, Mapping[str, Any]], package: str, version: str) -> Dependencies:
    """Decode the elm.json of a published package version into its dependencies.

    Raises:
        ManifestDecodeError: when the document is not a valid package elm.json.
    """
    what = f"elm.json of {package}@{version}"
    data = _load_json(text, what)
    if data.get("type") != "package":
        raise ManifestDecodeError(f"Failed to decode the {what}: not a package elm.json")
    return _decode_ranges(_object(data, "dependencies", what), what)


def _merge(target: Dependencies, pkg: PackageName, constraint: Range) -> None:
    if pkg in target:
        target[pkg] = target[pkg].intersection(constraint)
    else:
        target[pkg] = constraint


def root_identity(project: ProjectConfig) -> tuple:
    """Return the (package, version) the solver uses as root."""
    if isinstance(project, PackageConfig):
        return project.name, project.version
    return ROOT_PACKAGE, APPLICATION_ROOT_VERSION


def root_requirements(
    project: ProjectConfig,
    use_test: bool,
    additional: Optional[Mapping[PackageName, Range]] = None,
) -> Dependencies:
    """Seed requirements: normal deps, test deps when asked, then overrides.

    Additional constraints intersect an existing requirement for the same
    package, or add a new one.
    """
    requirements: Dependencies = {}
    if isinstance(project, PackageConfig):
        for pkg, constraint in project.dependencies.items():
            _merge(requirements, pkg, constraint)
        if use_test:
            for pkg, constraint in project.test_dependencies.items():
                _merge(requirements, pkg, constraint)
    else:
        pinned = [project.direct, project.indirect]
        if use_test:
            pinned += [project.test_direct, project.test_indirect]
        for pins in pinned:
            for pkg, version in pins.items():
                _merge(requirements, pkg, Range.exact(version))
    for pkg, constraint in (additional or {}).items():
        _merge(requirements, pkg, constraint)
    return requirements
