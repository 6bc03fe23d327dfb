"""Dependency registry domain exports."""

from .outcome_models import DependencyOutcome, OutcomeState
from .outcome_registry import DependencyRegistry

__all__ = [
    "DependencyOutcome",
    "DependencyRegistry",
    "OutcomeState",
]
