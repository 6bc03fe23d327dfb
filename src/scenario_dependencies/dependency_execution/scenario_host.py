"""Boundary between the dependency engine and the host test framework."""

from __future__ import annotations

from typing import Any, Protocol

from scenario_dependencies.dependency_location import ScenarioContext, ScenarioUnit


class ScenarioHost(Protocol):
    """Operations the host test framework provides to run nested scenarios."""

    def suspend_scenario(self, context: ScenarioContext) -> Any:
        """Detach the calling scenario's execution state and return it for later resume."""

    def run_scenario(self, unit: ScenarioUnit) -> BaseException | None:
        """Run ``unit`` as an independently scheduled scenario, hooks included.

        Returns the error the scenario failed with, or None. Errors raised by
        this method itself mean the host could not run the scenario at all.
        """

    def resume_scenario(self, suspended: Any) -> None:
        """Re-establish the execution state returned by ``suspend_scenario``."""

    def is_benign(self, error: BaseException) -> bool:
        """Whether ``error`` signals a skipped or ignored scenario rather than a failure."""
