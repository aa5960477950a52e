"""Provider reading packages already installed under ELM_HOME."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..constants import Constants, elm_home
from ..errors import ConstraintParseError
from ..versioning.version import parse_version
from .base import DependencyProvider

logger = logging.getLogger(__name__)


def split_author_pkg(package: str) -> Tuple[str, str]:
    """Split ``author/name``; raises ValueError when the shape is wrong."""
    parts = package.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"not an author/name package identifier: {package!r}")
    return parts[0], parts[1]


def version_sort_key(text: str):
    """Sort key placing parsable versions by value and the rest after, by text."""
    try:
        return (1, parse_version(text), text)
    except ConstraintParseError:
        return (0, (), text)


class OfflineProvider(DependencyProvider):
    """Look up elm.json files and versions on disk only.

    Layout::

        <ELM_HOME>/0.19.1/packages/<author>/<name>/<version>/elm.json
        <ELM_HOME>/pubgrub/elm_json_cache/<author>/<name>/<version>/elm.json
    """

    def __init__(self, home: Optional[os.PathLike] = None) -> None:
        self.home = Path(home) if home is not None else elm_home()
        self._versions_memo: Dict[str, List[str]] = {}

    def packages_path(self, package: str) -> Path:
        author, name = split_author_pkg(package)
        return self.home / Constants.ELM_VERSION_DIR / "packages" / author / name

    def home_elm_json_path(self, package: str, version: str) -> Path:
        return self.packages_path(package) / version / Constants.ELM_JSON_FILE

    def cache_elm_json_path(self, package: str, version: str) -> Path:
        author, name = split_author_pkg(package)
        return (
            self.home / Constants.PUBGRUB_DIR / Constants.ELM_JSON_CACHE_DIR
            / author / name / version / Constants.ELM_JSON_FILE
        )

    def fetch_elm_json(self, package: str, version: str) -> str:
        """Read the installed elm.json, then the pubgrub cache copy.

        Raises:
            FileNotFoundError: when neither file exists.
        """
        home_path = self.home_elm_json_path(package, version)
        try:
            return home_path.read_text(encoding="utf-8")
        except OSError:
            cache_path = self.cache_elm_json_path(package, version)
            logger.debug("%s unreadable, trying %s", home_path, cache_path)
            return cache_path.read_text(encoding="utf-8")

    def list_available_versions(self, package: str) -> List[str]:
        """Installed versions, newest first. Missing directories give no versions."""
        memo = self._versions_memo.get(package)
        if memo is not None:
            return memo
        pkg_path = self.packages_path(package)
        try:
            versions = [entry.name for entry in pkg_path.iterdir() if entry.is_dir()]
        except OSError:
            logger.warning(
                "Directory %s does not exist; not asking the package server for "
                "versions of %s while offline.",
                pkg_path,
                package,
            )
            versions = []
        versions.sort(key=version_sort_key, reverse=True)
        self._versions_memo[package] = versions
        return versions
