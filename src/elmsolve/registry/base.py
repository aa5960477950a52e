"""Dependency provider capability interface."""

from abc import ABC, abstractmethod
from typing import Iterable


class DependencyProvider(ABC):
    """Source of package metadata for the solver.

    Both methods are called synchronously, on demand, and only for what the
    solver is currently considering. To abort a solve cooperatively raise
    :class:`elmsolve.errors.CancelledError`; any other exception is reported
    as a fetch or listing failure for the package in question.
    """

    @abstractmethod
    def fetch_elm_json(self, package: str, version: str) -> str:
        """Return the elm.json text of ``package`` at ``version``."""

    @abstractmethod
    def list_available_versions(self, package: str) -> Iterable[str]:
        """Return the versions of ``package``, most preferred first.

        The result may be a lazy iterator; it is consumed at most once per
        solve. Entries that do not parse as versions are skipped.
        """
