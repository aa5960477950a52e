"""Provider backed by the Elm package server, with on-disk caches.

Installed packages are always preferred. Anything else is downloaded from
the registry and kept under ``<ELM_HOME>/pubgrub`` so later solves can run
offline.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..common.http_client import get_json, get_text
from ..common.logging_utils import extra_context, is_debug_enabled
from ..constants import Constants
from .offline import OfflineProvider, version_sort_key

logger = logging.getLogger(__name__)


class RegistryCacheError(Exception):
    """Raised when registry data cannot be interpreted."""


def split_pkg_version(entry: str) -> Tuple[str, str]:
    """Split an ``author/name@version`` registry entry."""
    pkg, sep, version = entry.partition("@")
    if not sep or not pkg or not version:
        raise RegistryCacheError(f"Unexpected registry entry: {entry!r}")
    return pkg, version


def parse_online_versions(data: Any) -> Dict[str, List[str]]:
    """Validate the ``{package: [versions...]}`` mapping served by the registry."""
    if not isinstance(data, dict):
        kind = "null" if data is None else type(data).__name__
        raise RegistryCacheError(f"Expected an object, but got: {kind}")
    result: Dict[str, List[str]] = {}
    for key, value in data.items():
        if not isinstance(value, list):
            raise RegistryCacheError(
                f"Expected {json.dumps(key)} to be an array, but got: {type(value).__name__}"
            )
        for index, item in enumerate(value):
            if not isinstance(item, str):
                raise RegistryCacheError(
                    f"Expected {json.dumps(key)}->{index} to be a string, "
                    f"but got: {type(item).__name__}"
                )
        result[key] = list(value)
    return result


class OnlineProvider(OfflineProvider):
    """Offline lookups first, then the package server."""

    def __init__(self, home: Optional[os.PathLike] = None, registry_url: Optional[str] = None) -> None:
        super().__init__(home)
        self.registry_url = (registry_url or Constants.REGISTRY_URL).rstrip("/")
        self._online_versions: Optional[Dict[str, List[str]]] = None
        self._online_memo: Dict[str, List[str]] = {}

    @property
    def versions_cache_path(self) -> Path:
        return self.home / Constants.PUBGRUB_DIR / Constants.VERSIONS_CACHE_FILE

    @property
    def all_packages_url(self) -> str:
        return f"{self.registry_url}/all-packages"

    def remote_elm_json_url(self, package: str, version: str) -> str:
        return f"{self.registry_url}/packages/{package}/{version}/{Constants.ELM_JSON_FILE}"

    def fetch_elm_json(self, package: str, version: str) -> str:
        try:
            return super().fetch_elm_json(package, version)
        except OSError:
            url = self.remote_elm_json_url(package, version)
            text = get_text(url)
            cache_path = self.cache_elm_json_path(package, version)
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            cache_path.write_text(text, encoding="utf-8")
            if is_debug_enabled(logger):
                logger.debug(
                    "Cached remote elm.json",
                    extra=extra_context(
                        event="cache_write",
                        component="online_provider",
                        target=str(cache_path),
                    ),
                )
            return text

    def list_available_versions(self, package: str) -> List[str]:
        memo = self._online_memo.get(package)
        if memo is not None:
            return memo
        merged = set(self.update_versions_cache().get(package, []))
        merged.update(super().list_available_versions(package))
        versions = sorted(merged, key=version_sort_key, reverse=True)
        self._online_memo[package] = versions
        return versions

    # Versions cache

    def update_versions_cache(self) -> Dict[str, List[str]]:
        """Load the versions cache from disk, then bring it up to date.

        Runs at most once per provider instance and returns the
        ``{package: [versions, oldest first]}`` mapping.
        """
        if self._online_versions is not None:
            return self._online_versions
        self.versions_cache_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            cache_text = self.versions_cache_path.read_text(encoding="utf-8")
        except OSError:
            return self._update_from_scratch()
        try:
            known = parse_online_versions(json.loads(cache_text))
        except (ValueError, RegistryCacheError) as exc:
            logger.warning(
                "Failed to parse the cache file %s, rebuilding it: %s",
                self.versions_cache_path,
                exc,
            )
            return self._update_from_scratch()
        return self._update_since(known)

    def _update_from_scratch(self) -> Dict[str, List[str]]:
        data = get_json(self.all_packages_url, use_cache=False)
        try:
            versions = parse_online_versions(data)
        except RegistryCacheError as exc:
            raise RegistryCacheError(
                f"Failed to parse the response from the request to {self.all_packages_url}.\n{exc}"
            ) from exc
        self._save(versions)
        logger.info("Rebuilt the versions cache from %s", self.all_packages_url)
        return versions

    def _update_since(self, known: Dict[str, List[str]]) -> Dict[str, List[str]]:
        count = sum(len(versions) for versions in known.values())
        # -1 so the answer always repeats one known entry; an empty answer
        # means the registry lost a package.
        url = f"{self.all_packages_url}/since/{count - 1}"
        new_entries = get_json(url, use_cache=False)
        if not isinstance(new_entries, list) or not new_entries:
            return self._update_from_scratch()
        # Newest first; the last entry should be the newest we already know.
        pkg, version = split_pkg_version(new_entries[-1])
        if not known.get(pkg) or known[pkg][-1] != version:
            return self._update_from_scratch()
        for entry in reversed(new_entries[:-1]):
            pkg, version = split_pkg_version(entry)
            known.setdefault(pkg, []).append(version)
        if len(new_entries) > 1:
            self._save(known)
        self._online_versions = known
        logger.debug("Versions cache updated with %d new entries", len(new_entries) - 1)
        return known

    def _save(self, versions: Dict[str, List[str]]) -> None:
        self._online_versions = versions
        self.versions_cache_path.write_text(json.dumps(versions), encoding="utf-8")
