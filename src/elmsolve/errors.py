"""Error taxonomy for dependency solving.

Every error is terminal for a given solve invocation. The CLI maps each
class to an exit code (see constants.ExitCodes).
"""

from typing import Optional


class ElmSolveError(Exception):
    """Base exception for all solving errors."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


class ManifestDecodeError(ElmSolveError):
    """Raised when the project elm.json cannot be decoded."""


class ConstraintParseError(ElmSolveError):
    """Raised when a version, constraint or package name fails to parse."""

    what = "constraint"

    def __init__(self, text: str, reason: str, package: Optional[str] = None) -> None:
        self.text = text
        self.reason = reason
        self.package = package
        target = f" for {package}" if package else ""
        super().__init__(f"Invalid {self.what} {text!r}{target}: {reason}")


class PackageNameError(ConstraintParseError):
    """Raised when a package identifier is not a valid author/name pair."""

    what = "package name"


class FetchError(ElmSolveError):
    """Raised when the provider fails to return the elm.json of a package version."""

    def __init__(self, package: str, version: str, reason: str) -> None:
        self.package = package
        self.version = version
        self.reason = reason
        super().__init__(
            f"An error occurred while trying to retrieve dependencies of "
            f"{package}@{version}:\n\n{reason}"
        )


class VersionListError(ElmSolveError):
    """Raised when the provider fails to list the versions of a package."""

    def __init__(self, package: str, reason: str) -> None:
        self.package = package
        self.reason = reason
        super().__init__(
            f"An error occurred while listing available versions of {package}:\n\n{reason}"
        )


class NoSolutionError(ElmSolveError):
    """The constraints are provably unsatisfiable.

    Not a defect: ``report`` holds the rendered derivation tree.
    """

    def __init__(self, report: str, incompatibility=None) -> None:
        self.report = report
        self.incompatibility = incompatibility
        super().__init__(report)


class ImpossibleDependencyError(ElmSolveError):
    """Raised when a package version depends on an empty constraint."""

    def __init__(self, package: str, version: str, dependency: str) -> None:
        self.package = package
        self.version = version
        self.dependency = dependency
        super().__init__(
            f"{package}@{version} has an impossible dependency on {dependency}"
        )


class SelfDependencyError(ElmSolveError):
    """Raised when a package's own elm.json lists itself as a dependency."""

    def __init__(self, package: str, version: str) -> None:
        self.package = package
        self.version = version
        super().__init__(f"{package}@{version} somehow depends on itself")


class CancelledError(ElmSolveError):
    """Raised by a provider to abort solving cooperatively."""

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        super().__init__(f"Dependency resolution was cancelled.\n\n{reason}")


class InternalFailure(ElmSolveError):
    """Solver invariant violation; always surfaced, never recovered."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"An unrecoverable error happened while solving dependencies:\n\n{reason}"
        )
