"""Scenario lifecycle hooks wiring the registry, locator, executor and replay policy."""

from __future__ import annotations

from scenario_dependencies.configuration.runtime_settings import DependencySettings
from scenario_dependencies.dependency_errors import InvalidDependencyTarget
from scenario_dependencies.dependency_location import (
    DependencyLocator,
    ScenarioContext,
    ScenarioUnit,
    find_dependency_reference,
)
from scenario_dependencies.dependency_registry import DependencyRegistry
from scenario_dependencies.replay_policy import ReplayPolicy

from .dependency_executor import DependencyExecutor
from .scenario_host import ScenarioHost


class DependencyHooks:
    """Before/after scenario hooks a host calls for every scenario it runs."""

    def __init__(
        self,
        settings: DependencySettings,
        registry: DependencyRegistry,
        host: ScenarioHost,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.policy = ReplayPolicy(registry, settings, is_benign=host.is_benign)
        self.locator = DependencyLocator(settings)
        self.executor = DependencyExecutor(registry, self.policy, self.locator, host)

    def is_dependency(self, unit: ScenarioUnit) -> bool:
        return self.settings.dependency_tag in unit.tags

    def before_scenario(self, context: ScenarioContext) -> None:
        """Guard against double execution, then run the declared dependency.

        Raises:
          DependencyReplaySkipped: The scenario already ran as a dependency and succeeded.
          DependencyError: Resolution, invocation or the dependency itself failed.
        """
        unit = context.unit
        if self.is_dependency(unit):
            if unit.parameterized:
                raise InvalidDependencyTarget("Scenario Outlines cannot be used as dependency!")
            self.policy.on_claim(unit.identity)

        reference = find_dependency_reference(unit.tags, self.settings.depends_on_prefix)
        if reference is not None:
            self.executor.ensure_dependency(reference, context)

    def after_scenario(self, context: ScenarioContext, error: BaseException | None) -> None:
        """Record the outcome of a dependency scenario for later replay."""
        unit = context.unit
        if self.is_dependency(unit) and not unit.parameterized:
            self.policy.on_commit(unit.identity, error)
