"""Resolution of dependency declarations to scenarios of the enclosing group."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from scenario_dependencies.configuration.runtime_settings import DependencySettings
from scenario_dependencies.dependency_errors import (
    DependencyError,
    DependencyInvocationError,
    DependencyNotFound,
    InvalidDependencyTarget,
    NotMarkedAsDependency,
)

from .scenario_catalog import ScenarioGroup, ScenarioUnit

LOGGER = logging.getLogger(__name__)


def find_dependency_reference(tags: Iterable[str], prefix: str) -> str | None:
    """Return the scenario name named by the first ``<prefix><name>`` tag, if any."""
    for tag in tags:
        if tag.startswith(prefix):
            reference = tag[len(prefix) :].strip()
            if reference:
                return reference
    return None


class DependencyLocator:  # pylint: disable=too-few-public-methods
    """Finds the scenario a declaration refers to among its group's scenarios."""

    def __init__(self, settings: DependencySettings) -> None:
        self._settings = settings

    def locate(self, reference: str, group: ScenarioGroup) -> ScenarioUnit:
        """Resolve ``reference`` by scenario name first, then by scenario title.

        Raises:
          DependencyNotFound: No scenario of ``group`` matches.
          NotMarkedAsDependency: A match lacks the dependency tag.
          InvalidDependencyTarget: The match is parametrized.
          DependencyInvocationError: The group could not list its scenarios.
        """
        try:
            units = tuple(group.units())
        except DependencyError:
            raise
        except Exception as exc:
            raise DependencyInvocationError(
                f"Scenarios of group '{group.title}' cannot be listed"
            ) from exc

        candidates = [unit for unit in units if unit.name == reference]
        if not candidates:
            candidates = [unit for unit in units if unit.title == reference]
        if not candidates:
            raise DependencyNotFound(reference, group.title)

        dependency_tag = self._settings.dependency_tag
        if not all(dependency_tag in unit.tags for unit in candidates):
            raise NotMarkedAsDependency(reference, dependency_tag)

        if len(candidates) > 1 or candidates[0].parameterized:
            raise InvalidDependencyTarget(
                f"Scenario outline '{reference}' cannot be used as dependency!"
            )

        LOGGER.debug("Resolved dependency '%s' to %s", reference, candidates[0].identity)
        return candidates[0]
