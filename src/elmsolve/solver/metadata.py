"""Per-solve memoization around a DependencyProvider.

Every (package, version) elm.json is fetched at most once, and each version
listing is pulled lazily, only as far as the solver needs.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from ..common.logging_utils import TRACE, Timer, extra_context, is_debug_enabled
from ..errors import (
    CancelledError,
    ConstraintParseError,
    FetchError,
    ManifestDecodeError,
    VersionListError,
)
from ..project import Dependencies, decode_dependencies
from ..registry.base import DependencyProvider
from ..versioning.constraint import Range
from ..versioning.models import PackageName
from ..versioning.version import Version, parse_version

logger = logging.getLogger(__name__)


class _VersionCursor:
    """Buffered, single-pass view over a provider's version listing."""

    def __init__(self, package: PackageName, source: Iterator[str]) -> None:
        self.package = package
        self._source: Optional[Iterator[str]] = source
        self.pulled: List[Version] = []

    def pull(self) -> Optional[Version]:
        """Return the next parsable version, or None once the listing is done."""
        while self._source is not None:
            try:
                raw = next(self._source)
            except StopIteration:
                self._source = None
                return None
            except CancelledError:
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                raise VersionListError(str(self.package), str(exc)) from exc
            try:
                version = parse_version(raw)
            except ConstraintParseError:
                logger.debug("Ignoring unparsable version %r of %s", raw, self.package)
                continue
            self.pulled.append(version)
            return version
        return None


class MetadataCache:
    """Typed, memoized access to one provider for the length of one solve."""

    def __init__(self, provider: DependencyProvider) -> None:
        self._provider = provider
        self._cursors: Dict[PackageName, _VersionCursor] = {}
        self._dependencies: Dict[tuple, Dependencies] = {}
        self.fetch_count = 0
        self.list_count = 0

    def _cursor(self, package: PackageName) -> _VersionCursor:
        cursor = self._cursors.get(package)
        if cursor is None:
            self.list_count += 1
            try:
                source = iter(self._provider.list_available_versions(str(package)))
            except CancelledError:
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                raise VersionListError(str(package), str(exc)) from exc
            cursor = _VersionCursor(package, source)
            self._cursors[package] = cursor
        return cursor

    def best_version(self, package: PackageName, constraint: Range) -> Optional[Version]:
        """First listed version allowed by ``constraint``, pulling no further than needed."""
        cursor = self._cursor(package)
        for version in cursor.pulled:
            if constraint.allows(version):
                return version
        while True:
            version = cursor.pull()
            if version is None:
                return None
            if constraint.allows(version):
                return version

    def count_versions(self, package: PackageName, constraint: Range) -> int:
        """Number of listed versions allowed by ``constraint``; drains the listing."""
        cursor = self._cursor(package)
        while cursor.pull() is not None:
            pass
        return sum(1 for version in cursor.pulled if constraint.allows(version))

    def dependencies(self, package: PackageName, version: Version) -> Dependencies:
        """Dependencies declared by ``package`` at ``version``.

        Raises:
            FetchError: when the provider fails or returns an invalid elm.json.
            CancelledError: when the provider aborts the solve.
        """
        key = (package, version)
        cached = self._dependencies.get(key)
        if cached is not None:
            return cached

        self.fetch_count += 1
        with Timer() as timer:
            try:
                text = self._provider.fetch_elm_json(str(package), str(version))
            except CancelledError:
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                raise FetchError(str(package), str(version), str(exc)) from exc
        try:
            deps = decode_dependencies(text, str(package), str(version))
        except ManifestDecodeError as exc:
            raise FetchError(str(package), str(version), exc.message) from exc

        if is_debug_enabled(logger):
            logger.debug(
                "Fetched elm.json",
                extra=extra_context(
                    event="fetch_elm_json",
                    component="metadata",
                    target=f"{package}@{version}",
                    duration_ms=timer.duration_ms(),
                    dependency_count=len(deps),
                ),
            )
        if logger.isEnabledFor(TRACE):
            for dep, constraint in deps.items():
                logger.log(TRACE, "%s@%s depends on %s %s", package, version, dep, constraint)
        self._dependencies[key] = deps
        return deps
