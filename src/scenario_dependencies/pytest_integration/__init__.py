"""pytest integration exports."""

from .pytest_host import PytestScenarioGroup, PytestScenarioHost, SuspendedScenario

PLUGIN_NAME = "scenario_dependencies.pytest_integration.pytest_plugin"

__all__ = [
    "PLUGIN_NAME",
    "PytestScenarioGroup",
    "PytestScenarioHost",
    "SuspendedScenario",
]
