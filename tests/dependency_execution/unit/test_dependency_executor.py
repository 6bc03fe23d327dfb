"""Dependency executor and scenario hook tests using an in-memory host."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest
from scenario_dependencies.configuration.runtime_settings import DependencySettings
from scenario_dependencies.dependency_errors import (
    DependencyFailed,
    DependencyInvocationError,
    DependencyNotFound,
    DependencyPreviouslyFailed,
    DependencyReplaySkipped,
    InvalidDependencyTarget,
)
from scenario_dependencies.dependency_execution import DEPENDENCY_FAILED_MESSAGE, DependencyHooks
from scenario_dependencies.dependency_location import (
    RegisteredScenarioGroup,
    ScenarioContext,
    ScenarioUnit,
)
from scenario_dependencies.dependency_registry import DependencyRegistry, OutcomeState


class _Skipped(Exception):
    """Skip signal of the in-memory host."""


class _InMemoryHost:
    """Runs scenario callables synchronously, wrapping them in the dependency hooks."""

    def __init__(self) -> None:
        self.hooks: DependencyHooks | None = None
        self.group = RegisteredScenarioGroup(title="Calculator")
        self.events: list[str] = []
        self.fail_to_run = False

    def context(self, unit: ScenarioUnit) -> ScenarioContext:
        return ScenarioContext(unit=unit, group=self.group)

    def run(self, unit: ScenarioUnit) -> BaseException | None:
        """Run ``unit`` the way a scheduler would: hooks, body, hooks."""
        assert self.hooks is not None
        context = self.context(unit)
        error: BaseException | None = None
        try:
            self.hooks.before_scenario(context)
            unit.handle()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            error = exc
        self.hooks.after_scenario(context, error)
        return error

    def suspend_scenario(self, context: ScenarioContext) -> Any:
        self.events.append(f"suspend {context.unit.name}")
        return context

    def run_scenario(self, unit: ScenarioUnit) -> BaseException | None:
        if self.fail_to_run:
            raise RuntimeError("cannot instantiate group")
        self.events.append(f"run {unit.name}")
        return self.run(unit)

    def resume_scenario(self, suspended: Any) -> None:
        self.events.append(f"resume {suspended.unit.name}")

    def is_benign(self, error: BaseException) -> bool:
        return isinstance(error, _Skipped)


def _unit(name: str, body: Callable[[], None], *tags: str, **overrides) -> ScenarioUnit:
    return ScenarioUnit(
        name=name,
        title=name,
        group_title="Calculator",
        tags=tags,
        handle=body,
        **overrides,
    )


def _setup(*units: ScenarioUnit, **settings) -> tuple[_InMemoryHost, DependencyRegistry]:
    host = _InMemoryHost()
    host.group = RegisteredScenarioGroup(title="Calculator", registered_units=units)
    registry = DependencyRegistry()
    host.hooks = DependencyHooks(DependencySettings(**settings), registry, host)
    return host, registry


class _Calculator:
    def __init__(self, expected: int) -> None:
        self.expected = expected
        self.calls = 0
        self._lock = threading.Lock()

    def add_two_numbers(self) -> None:
        with self._lock:
            self.calls += 1
        first, second = 2, 3
        result = first + second
        assert result == self.expected, f"expected {self.expected}, got {result}"


def test_dependent_runs_dependency_once_and_proceeds() -> None:
    calculator = _Calculator(expected=5)
    add = _unit("AddTwoNumbers", calculator.add_two_numbers, "dependency")
    steps: list[str] = []
    use_sum = _unit("UseSum", lambda: steps.append("UseSum"), "dependsOn:AddTwoNumbers")
    host, registry = _setup(add, use_sum)

    assert host.run(use_sum) is None
    assert host.run(add) is not None  # replayed as a skip when reached directly

    assert calculator.calls == 1
    assert steps == ["UseSum"]
    assert host.events == ["suspend UseSum", "run AddTwoNumbers", "resume UseSum"]
    outcome = registry.get("Calculator.AddTwoNumbers")
    assert outcome is not None
    assert outcome.state is OutcomeState.SUCCEEDED


def test_direct_rerun_of_succeeded_dependency_is_skipped() -> None:
    calculator = _Calculator(expected=5)
    add = _unit("AddTwoNumbers", calculator.add_two_numbers, "dependency")
    host, _ = _setup(add)

    assert host.run(add) is None
    rerun_error = host.run(add)

    assert isinstance(rerun_error, DependencyReplaySkipped)
    assert calculator.calls == 1


def test_failed_dependency_fails_dependent_with_original_cause() -> None:
    calculator = _Calculator(expected=99)
    add = _unit("AddTwoNumbers", calculator.add_two_numbers, "dependency")
    steps: list[str] = []
    use_sum = _unit("UseSum", lambda: steps.append("UseSum"), "dependsOn:AddTwoNumbers")
    independent = _unit("Independent", lambda: steps.append("Independent"))
    host, registry = _setup(add, use_sum, independent)

    add_error = host.run(add)
    use_sum_error = host.run(use_sum)
    independent_error = host.run(independent)

    assert isinstance(add_error, AssertionError)
    assert isinstance(use_sum_error, DependencyFailed)
    assert str(use_sum_error).startswith(DEPENDENCY_FAILED_MESSAGE)
    assert use_sum_error.__cause__ is add_error
    assert independent_error is None
    assert steps == ["Independent"]
    assert calculator.calls == 1
    outcome = registry.get("Calculator.AddTwoNumbers")
    assert outcome is not None
    assert outcome.error is add_error


def test_dependency_failing_while_nested_is_recorded_and_replayed() -> None:
    calculator = _Calculator(expected=99)
    add = _unit("AddTwoNumbers", calculator.add_two_numbers, "dependency")
    first = _unit("First", lambda: None, "dependsOn:AddTwoNumbers")
    second = _unit("Second", lambda: None, "dependsOn:AddTwoNumbers")
    host, _ = _setup(add, first, second)

    first_error = host.run(first)
    second_error = host.run(second)
    direct_error = host.run(add)

    assert isinstance(first_error, DependencyFailed)
    assert isinstance(second_error, DependencyFailed)
    assert isinstance(direct_error, DependencyPreviouslyFailed)
    assert first_error.__cause__ is second_error.__cause__ is direct_error.__cause__
    assert calculator.calls == 1


def test_missing_dependency_fails_before_dependent_steps() -> None:
    steps: list[str] = []
    use_sum = _unit("UseSum", lambda: steps.append("UseSum"), "dependsOn:Missing")
    host, _ = _setup(use_sum)

    error = host.run(use_sum)

    assert isinstance(error, DependencyNotFound)
    assert steps == []
    assert host.events == []


def test_parameterized_dependency_is_rejected() -> None:
    outline = _unit("AddTwoNumbers", lambda: None, "dependency", parameterized=True)
    use_sum = _unit("UseSum", lambda: None, "dependsOn:AddTwoNumbers")
    host, _ = _setup(outline, use_sum)

    assert isinstance(host.run(use_sum), InvalidDependencyTarget)
    assert isinstance(host.run(outline), InvalidDependencyTarget)


def test_scenario_depending_on_itself_is_rejected() -> None:
    looping = _unit("Looping", lambda: None, "dependency", "dependsOn:Looping")
    host, _ = _setup(looping)

    error = host.run(looping)

    assert isinstance(error, InvalidDependencyTarget)
    assert "cannot depend on itself" in str(error)


def test_circular_dependencies_are_rejected_instead_of_deadlocking() -> None:
    first = _unit("First", lambda: None, "dependency", "dependsOn:Second")
    second = _unit("Second", lambda: None, "dependency", "dependsOn:First")
    host, _ = _setup(first, second)

    error = host.run(first)

    assert isinstance(error, DependencyFailed)
    assert isinstance(error.__cause__, InvalidDependencyTarget)
    assert "Circular dependency" in str(error.__cause__)


def test_host_failure_is_reported_as_invocation_error() -> None:
    add = _unit("AddTwoNumbers", lambda: None, "dependency")
    use_sum = _unit("UseSum", lambda: None, "dependsOn:AddTwoNumbers")
    host, _ = _setup(add, use_sum)
    host.fail_to_run = True

    error = host.run(use_sum)

    assert isinstance(error, DependencyInvocationError)
    assert isinstance(error.__cause__, RuntimeError)
    assert host.events == ["suspend UseSum", "resume UseSum"]


def test_concurrent_dependents_execute_dependency_business_logic_once() -> None:
    workers = 8
    barrier = threading.Barrier(workers)
    calls: list[str] = []
    calls_lock = threading.Lock()

    def _slow_dependency() -> None:
        with calls_lock:
            calls.append("AddTwoNumbers")
        time.sleep(0.05)

    add = _unit("AddTwoNumbers", _slow_dependency, "dependency")
    dependents = [
        _unit(f"Dependent{index}", lambda: None, "dependsOn:AddTwoNumbers")
        for index in range(workers)
    ]
    host, registry = _setup(add, *dependents)

    def _run(unit: ScenarioUnit) -> BaseException | None:
        barrier.wait()
        return host.run(unit)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        errors = list(executor.map(_run, dependents))

    assert calls == ["AddTwoNumbers"]
    assert errors == [None] * workers
    outcome = registry.get("Calculator.AddTwoNumbers")
    assert outcome is not None
    assert outcome.state is OutcomeState.SUCCEEDED


def test_concurrent_dependents_all_observe_the_same_failure() -> None:
    workers = 4
    barrier = threading.Barrier(workers)
    original = AssertionError("expected 99, got 5")

    def _failing_dependency() -> None:
        time.sleep(0.05)
        raise original

    add = _unit("AddTwoNumbers", _failing_dependency, "dependency")
    dependents = [
        _unit(f"Dependent{index}", lambda: None, "dependsOn:AddTwoNumbers")
        for index in range(workers)
    ]
    host, _ = _setup(add, *dependents)

    def _run(unit: ScenarioUnit) -> BaseException | None:
        barrier.wait()
        return host.run(unit)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        errors = list(executor.map(_run, dependents))

    assert all(isinstance(error, DependencyFailed) for error in errors)
    assert all(error.__cause__ is original for error in errors if error is not None)


def test_replay_of_terminal_outcome_does_not_touch_the_host() -> None:
    add = _unit("AddTwoNumbers", lambda: None, "dependency")
    use_sum = _unit("UseSum", lambda: None, "dependsOn:AddTwoNumbers")
    host, _ = _setup(add, use_sum)
    host.run(add)

    assert host.run(use_sum) is None
    assert host.events == []


@pytest.mark.parametrize("tag", ["dependsOn:AddTwoNumbers", "requires=AddTwoNumbers"])
def test_declaration_prefix_is_configurable(tag: str) -> None:
    calls: list[str] = []
    add = _unit("AddTwoNumbers", lambda: calls.append("add"), "dependency")
    use_sum = _unit("UseSum", lambda: None, tag)
    host, _ = _setup(add, use_sum, depends_on_prefix="requires=")

    host.run(use_sum)

    assert calls == (["add"] if tag.startswith("requires=") else [])


def _skip() -> None:
    raise _Skipped("not applicable")


def test_skipped_dependency_reached_directly_does_not_break_dependent() -> None:
    steps: list[str] = []
    prepare = _unit("Prepare", _skip, "dependency")
    dependent = _unit("Dependent", lambda: steps.append("Dependent"), "dependsOn:Prepare")
    host, registry = _setup(prepare, dependent)

    assert isinstance(host.run(prepare), _Skipped)
    assert host.run(dependent) is None

    assert steps == ["Dependent"]
    assert registry.get("Calculator.Prepare") is None


def test_skipped_dependency_is_never_recorded_for_later_dependents() -> None:
    calls: list[str] = []

    def _prepare() -> None:
        calls.append("Prepare")
        raise _Skipped("not applicable")

    prepare = _unit("Prepare", _prepare, "dependency")
    first = _unit("First", lambda: None, "dependsOn:Prepare")
    second = _unit("Second", lambda: None, "dependsOn:Prepare")
    host, registry = _setup(prepare, first, second)

    assert host.run(first) is None
    assert host.run(second) is None

    assert calls == ["Prepare", "Prepare"]
    assert registry.snapshot() == {}


def test_waiting_dependent_takes_over_when_concurrent_dependency_run_is_skipped() -> None:
    started = threading.Event()
    gate = threading.Event()
    calls: list[str] = []
    calls_lock = threading.Lock()

    def _prepare() -> None:
        with calls_lock:
            calls.append(threading.current_thread().name)
        started.set()
        gate.wait(5)
        raise _Skipped("not applicable")

    prepare = _unit("Prepare", _prepare, "dependency")
    first = _unit("First", lambda: None, "dependsOn:Prepare")
    second = _unit("Second", lambda: None, "dependsOn:Prepare")
    host, registry = _setup(prepare, first, second)
    errors: dict[str, BaseException | None] = {}

    def _run(unit: ScenarioUnit) -> None:
        errors[unit.name] = host.run(unit)

    first_thread = threading.Thread(target=_run, args=(first,), name="first")
    first_thread.start()
    assert started.wait(5)
    second_thread = threading.Thread(target=_run, args=(second,), name="second")
    second_thread.start()
    deadline = time.monotonic() + 5
    while host.events.count("run Prepare") < 2 and time.monotonic() < deadline:
        time.sleep(0.01)
    time.sleep(0.05)
    gate.set()
    first_thread.join(timeout=5)
    second_thread.join(timeout=5)

    assert not first_thread.is_alive()
    assert not second_thread.is_alive()
    assert errors == {"First": None, "Second": None}
    assert sorted(calls) == ["first", "second"]
    assert registry.get("Calculator.Prepare") is None
