"""Dependency execution domain exports."""

from .dependency_executor import DEPENDENCY_FAILED_MESSAGE, DependencyExecutor
from .scenario_hooks import DependencyHooks
from .scenario_host import ScenarioHost

__all__ = [
    "DEPENDENCY_FAILED_MESSAGE",
    "DependencyExecutor",
    "DependencyHooks",
    "ScenarioHost",
]
