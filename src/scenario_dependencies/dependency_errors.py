"""Error taxonomy for dependency resolution and replay."""

from __future__ import annotations


class DependencyError(Exception):
    """Base class for every error raised while resolving a scenario dependency."""


class DependencyNotFound(DependencyError):
    """The declared dependency does not resolve to a scenario of the enclosing group."""

    def __init__(self, reference: str, group_title: str) -> None:
        super().__init__(
            f"Dependency test method '{reference}' cannot be found in group '{group_title}'"
        )
        self.reference = reference
        self.group_title = group_title


class NotMarkedAsDependency(DependencyError):
    """The referenced scenario exists but does not carry the eligibility tag."""

    def __init__(self, reference: str, dependency_tag: str) -> None:
        super().__init__(f"Dependency '{reference}' does not have @{dependency_tag} tag.")
        self.reference = reference
        self.dependency_tag = dependency_tag


class InvalidDependencyTarget(DependencyError):
    """The referenced scenario is parametrized (an outline) and cannot be a dependency."""


class DependencyInvocationError(DependencyError):
    """The host failed to run the dependency scenario itself."""


class DependencyFailed(DependencyError):
    """The dependency ran and failed; the original error is kept as ``__cause__``."""

    def __init__(self, message: str, cause: BaseException) -> None:
        super().__init__(f"{message}: {type(cause).__name__}: {cause}")
        self.original_error = cause
        self.__cause__ = cause


class DependencyPreviouslyFailed(DependencyFailed):
    """A dependency scenario was reached again after its recorded failure."""


class DependencyReplaySkipped(Exception):
    """Benign signal: the scenario must be skipped because its outcome is already known."""
