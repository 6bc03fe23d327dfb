"""pytest implementation of the scenario host boundary."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass

import pytest

from scenario_dependencies.configuration.runtime_settings import DependencySettings
from scenario_dependencies.dependency_location import ScenarioContext, ScenarioUnit

LOGGER = logging.getLogger(__name__)

DESCRIPTION_MARKER = "description"
TAGS_MARKER = "tags"
DEPENDS_ON_MARKER = "depends_on"

SCENARIO_ERROR_KEY = pytest.StashKey[BaseException | None]()
SCENARIO_CONTEXT_KEY = pytest.StashKey[ScenarioContext]()

_CURRENT_TEST_VARIABLE = "PYTEST_CURRENT_TEST"


def _own_marker_text(node: pytest.Item | pytest.Collector, name: str) -> str | None:
    for marker in node.own_markers:
        if marker.name == name and marker.args:
            return str(marker.args[0])
    return None


def group_title(node: pytest.Item | pytest.Collector) -> str:
    """Display title of a group: its ``description`` marker or its structural name."""
    title = _own_marker_text(node, DESCRIPTION_MARKER)
    if title:
        return title
    if isinstance(node, pytest.Module):
        return node.path.stem
    return node.name


def scenario_name(item: pytest.Item) -> str:
    return getattr(item, "originalname", item.name)


def scenario_title(item: pytest.Item) -> str:
    return _own_marker_text(item, DESCRIPTION_MARKER) or scenario_name(item)


def scenario_tags(item: pytest.Item, settings: DependencySettings) -> tuple[str, ...]:
    """Tags of a scenario, including the ones inherited from its class and module."""
    tags: list[str] = []
    for marker in item.iter_markers():
        if marker.name == TAGS_MARKER:
            tags.extend(str(arg) for arg in marker.args)
        elif marker.name == DEPENDS_ON_MARKER:
            tags.extend(f"{settings.depends_on_prefix}{arg}" for arg in marker.args)
        else:
            tags.append(marker.name)
    return tuple(dict.fromkeys(tags))


@dataclass(frozen=True)
class PytestScenarioGroup:
    """Group backed by the parent collector of the scenarios (class or module)."""

    node: pytest.Collector
    settings: DependencySettings

    @property
    def title(self) -> str:
        return group_title(self.node)

    def units(self) -> Sequence[ScenarioUnit]:
        return tuple(
            scenario_unit(item, self.settings)
            for item in self.node.session.items
            if item.parent is self.node and isinstance(item, pytest.Function)
        )


def scenario_unit(item: pytest.Item, settings: DependencySettings) -> ScenarioUnit:
    parent = item.parent
    return ScenarioUnit(
        name=scenario_name(item),
        title=scenario_title(item),
        group_title=group_title(parent) if parent is not None else "",
        tags=scenario_tags(item, settings),
        parameterized=hasattr(item, "callspec"),
        handle=item,
    )


@dataclass(frozen=True)
class SuspendedScenario:
    """State of a calling scenario while its dependency runs."""

    item: pytest.Item
    current_test: str | None


class PytestScenarioHost:
    """Runs dependency scenarios through pytest's own run-test protocol.

    The dependency check happens in the caller's setup phase before any of the
    caller's own nodes are pushed, so the dependency can run with the caller as
    ``nextitem``: shared class, module and session fixtures stay alive and the
    dependency's function-scoped fixtures are torn down before the caller
    resumes.
    """

    def __init__(self, settings: DependencySettings) -> None:
        self._settings = settings
        self._suspended: list[SuspendedScenario] = []

    def scenario_context(self, item: pytest.Item) -> ScenarioContext:
        if item.parent is None:
            raise ValueError(f"Scenario {item.nodeid} does not belong to a group")
        return ScenarioContext(
            unit=scenario_unit(item, self._settings),
            group=PytestScenarioGroup(item.parent, self._settings),
        )

    def suspend_scenario(self, context: ScenarioContext) -> SuspendedScenario:
        suspended = SuspendedScenario(
            item=context.unit.handle,
            current_test=os.environ.get(_CURRENT_TEST_VARIABLE),
        )
        self._suspended.append(suspended)
        return suspended

    def run_scenario(self, unit: ScenarioUnit) -> BaseException | None:
        item = unit.handle
        if not isinstance(item, pytest.Item):
            raise TypeError(f"Scenario {unit.identity} is not a pytest item")
        caller = self._suspended[-1].item if self._suspended else None
        item.stash[SCENARIO_ERROR_KEY] = None
        LOGGER.debug("Running %s before %s", item.nodeid, getattr(caller, "nodeid", None))
        item.ihook.pytest_runtest_protocol(item=item, nextitem=caller)
        return item.stash.get(SCENARIO_ERROR_KEY, None)

    def resume_scenario(self, suspended: SuspendedScenario) -> None:
        if suspended in self._suspended:
            self._suspended.remove(suspended)
        if suspended.current_test is None:
            os.environ.pop(_CURRENT_TEST_VARIABLE, None)
        else:
            os.environ[_CURRENT_TEST_VARIABLE] = suspended.current_test

    def is_benign(self, error: BaseException) -> bool:
        return isinstance(error, (pytest.skip.Exception, pytest.xfail.Exception))
