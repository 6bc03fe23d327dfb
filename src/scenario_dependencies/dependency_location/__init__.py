"""Dependency location domain exports."""

from .dependency_locator import DependencyLocator, find_dependency_reference
from .scenario_catalog import (
    RegisteredScenarioGroup,
    ScenarioContext,
    ScenarioGroup,
    ScenarioUnit,
)

__all__ = [
    "DependencyLocator",
    "RegisteredScenarioGroup",
    "ScenarioContext",
    "ScenarioGroup",
    "ScenarioUnit",
    "find_dependency_reference",
]
