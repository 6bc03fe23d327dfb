"""Scenario and group entities exposed by a host test framework."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class ScenarioUnit:
    """One invocable scenario of a group.

    ``handle`` is the host's own object for the scenario (a pytest item, a
    callable, ...) and is opaque to the dependency engine.
    """

    name: str
    title: str
    group_title: str
    tags: tuple[str, ...] = ()
    parameterized: bool = False
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def identity(self) -> str:
        return f"{self.group_title}.{self.title}"


class ScenarioGroup(Protocol):
    """Capability of a group: name itself and list the scenarios it owns."""

    @property
    def title(self) -> str: ...

    def units(self) -> Sequence[ScenarioUnit]: ...


@dataclass(frozen=True)
class RegisteredScenarioGroup:
    """Group whose scenarios are registered up front instead of discovered."""

    title: str
    registered_units: tuple[ScenarioUnit, ...] = ()

    def units(self) -> Sequence[ScenarioUnit]:
        return self.registered_units


@dataclass(frozen=True)
class ScenarioContext:
    """Worker-local description of the scenario currently executing."""

    unit: ScenarioUnit
    group: ScenarioGroup
