"""Dependency registry entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OutcomeState(str, Enum):
    """Lifecycle state of a dependency identity within one session."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class DependencyOutcome:
    """Recorded result of a dependency-eligible scenario."""

    identity: str
    state: OutcomeState
    error: BaseException | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state is not OutcomeState.PENDING

    @staticmethod
    def pending(identity: str) -> DependencyOutcome:
        return DependencyOutcome(identity=identity, state=OutcomeState.PENDING)

    @staticmethod
    def finished(identity: str, error: BaseException | None) -> DependencyOutcome:
        if error is None:
            return DependencyOutcome(identity=identity, state=OutcomeState.SUCCEEDED)
        return DependencyOutcome(identity=identity, state=OutcomeState.FAILED, error=error)
