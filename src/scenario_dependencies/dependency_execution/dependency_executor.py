"""Runs a dependency scenario at most once on behalf of a calling scenario."""

from __future__ import annotations

import logging
import threading

from scenario_dependencies.dependency_errors import (
    DependencyError,
    DependencyFailed,
    DependencyInvocationError,
    InvalidDependencyTarget,
)
from scenario_dependencies.dependency_location import (
    DependencyLocator,
    ScenarioContext,
    ScenarioUnit,
)
from scenario_dependencies.dependency_registry import DependencyRegistry
from scenario_dependencies.replay_policy import ReplayPolicy

from .scenario_host import ScenarioHost

LOGGER = logging.getLogger(__name__)

DEPENDENCY_FAILED_MESSAGE = "The dependency failed"


class DependencyExecutor:
    """Executes or replays the dependency declared by a calling scenario."""

    def __init__(
        self,
        registry: DependencyRegistry,
        policy: ReplayPolicy,
        locator: DependencyLocator,
        host: ScenarioHost,
    ) -> None:
        self._registry = registry
        self._policy = policy
        self._locator = locator
        self._host = host
        self._in_progress = threading.local()

    def ensure_dependency(self, reference: str, caller: ScenarioContext) -> None:
        """Make sure the scenario named by ``reference`` has run for ``caller``.

        Raises:
          DependencyFailed: The dependency failed, now or in an earlier run.
          DependencyError: The dependency could not be resolved or invoked.
        """
        unit = self._locator.locate(reference, caller.group)
        if unit.identity == caller.unit.identity:
            raise InvalidDependencyTarget(f"Scenario '{reference}' cannot depend on itself")

        error = self.invoke(unit, caller)
        if error is not None:
            raise DependencyFailed(DEPENDENCY_FAILED_MESSAGE, error)

    def invoke(self, unit: ScenarioUnit, caller: ScenarioContext) -> BaseException | None:
        """Run ``unit`` unless its outcome is already recorded.

        Returns:
          The error the dependency failed with, or None when it succeeded.
        """
        identity = unit.identity
        LOGGER.info("Invoking dependency: %s (%s)", unit.name, identity)

        outcome = self._registry.get(identity)
        if outcome is not None and outcome.is_terminal:
            return self._policy.replay(outcome)
        running = self._running_identities()
        if identity in running:
            raise InvalidDependencyTarget(
                f"Circular dependency: '{identity}' is already running for "
                f"'{caller.unit.identity}'"
            )

        suspended = self._host.suspend_scenario(caller)
        running.extend((caller.unit.identity, identity))
        try:
            error = self._host.run_scenario(unit)
        except DependencyError:
            raise
        except Exception as exc:
            raise DependencyInvocationError(
                f"Dependency '{identity}' could not be invoked"
            ) from exc
        finally:
            del running[-2:]
            self._host.resume_scenario(suspended)
        LOGGER.info("Invoking dependency done: %s", identity)

        recorded = self._registry.get(identity)
        if recorded is not None and recorded.is_terminal:
            error = recorded.error
        elif error is not None and self._policy.is_benign(error):
            error = None

        if error is not None:
            LOGGER.warning("Dependency %s failed with an error: %s", identity, error)
        return error

    def _running_identities(self) -> list[str]:
        """Callers and dependencies on this thread's stack of nested runs."""
        running = getattr(self._in_progress, "identities", None)
        if running is None:
            running = self._in_progress.identities = []
        return running
