"""pytest plugin running declared scenario dependencies at most once per session."""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import pytest

from scenario_dependencies.configuration import (
    Configuration,
    ConfigurationError,
    load_configuration,
)
from scenario_dependencies.dependency_errors import DependencyError, DependencyReplaySkipped
from scenario_dependencies.dependency_execution import DependencyHooks
from scenario_dependencies.dependency_registry import DependencyRegistry
from scenario_dependencies.results_writing import RunMetadata, write_outcome_workbook

from .pytest_host import (
    DEPENDS_ON_MARKER,
    DESCRIPTION_MARKER,
    SCENARIO_CONTEXT_KEY,
    SCENARIO_ERROR_KEY,
    TAGS_MARKER,
    PytestScenarioHost,
)

LOGGER = logging.getLogger(__name__)

_PENDING_FAILURE_KEY = pytest.StashKey[DependencyError | None]()


@dataclass
class DependencySession:
    """Per-session state: the registry lives and dies with the pytest config."""

    configuration: Configuration
    registry: DependencyRegistry
    host: PytestScenarioHost
    hooks: DependencyHooks
    report_path: Path | None
    started_at: datetime


_SESSION_KEY = pytest.StashKey[DependencySession]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("scenario-deps", "scenario dependencies")
    group.addoption(
        "--scenario-deps-config",
        dest="scenario_deps_config",
        default=None,
        help="Path to the YAML scenario dependencies configuration",
    )
    group.addoption(
        "--scenario-deps-report",
        dest="scenario_deps_report",
        default=None,
        help="Write recorded dependency outcomes to this workbook at session end",
    )
    parser.addini(
        "scenario_deps_config",
        help="Path to the YAML scenario dependencies configuration, relative to the rootdir",
        default=None,
    )


def pytest_configure(config: pytest.Config) -> None:
    configuration = _load_session_configuration(config)
    settings = configuration.dependencies

    config.addinivalue_line(
        "markers",
        f"{settings.dependency_tag}: the scenario can be used as a dependency of other scenarios",
    )
    config.addinivalue_line(
        "markers",
        f"{DEPENDS_ON_MARKER}(name): run scenario 'name' of the same group first, once per session",
    )
    config.addinivalue_line(
        "markers",
        f"{TAGS_MARKER}(*tags): free-form scenario tags, e.g. "
        f"'{settings.dependency_tag}' or '{settings.depends_on_prefix}<name>'",
    )
    config.addinivalue_line(
        "markers", f"{DESCRIPTION_MARKER}(text): display title of a scenario or group"
    )

    report_option = config.getoption("scenario_deps_report")
    report_path = Path(report_option) if report_option else configuration.reporting.workbook_path

    registry = DependencyRegistry()
    host = PytestScenarioHost(settings)
    config.stash[_SESSION_KEY] = DependencySession(
        configuration=configuration,
        registry=registry,
        host=host,
        hooks=DependencyHooks(settings, registry, host),
        report_path=report_path,
        started_at=datetime.now(UTC),
    )


def pytest_unconfigure(config: pytest.Config) -> None:
    if _SESSION_KEY in config.stash:
        del config.stash[_SESSION_KEY]


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_setup(item: pytest.Item) -> None:
    session = item.config.stash.get(_SESSION_KEY, None)
    if session is None or not isinstance(item, pytest.Function):
        return

    context = session.host.scenario_context(item)
    item.stash[SCENARIO_CONTEXT_KEY] = context
    item.stash[SCENARIO_ERROR_KEY] = None
    item.stash[_PENDING_FAILURE_KEY] = None
    try:
        session.hooks.before_scenario(context)
    except DependencyReplaySkipped as exc:
        pytest.skip(str(exc))
    except DependencyError as exc:
        # Raised again from the call phase so the scenario fails instead of erroring.
        item.stash[_PENDING_FAILURE_KEY] = exc


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_call(item: pytest.Item) -> None:
    failure = item.stash.get(_PENDING_FAILURE_KEY, None)
    if failure is not None:
        item.stash[_PENDING_FAILURE_KEY] = None
        raise failure


@pytest.hookimpl(wrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None, pytest.TestReport, pytest.TestReport]:
    report = yield
    context = item.stash.get(SCENARIO_CONTEXT_KEY, None)
    session = item.config.stash.get(_SESSION_KEY, None)
    if context is None or session is None:
        return report

    if call.excinfo is not None and item.stash.get(SCENARIO_ERROR_KEY, None) is None:
        item.stash[SCENARIO_ERROR_KEY] = call.excinfo.value
    if call.when == "teardown":
        session.hooks.after_scenario(context, item.stash.get(SCENARIO_ERROR_KEY, None))
        del item.stash[SCENARIO_CONTEXT_KEY]
    return report


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    state = session.config.stash.get(_SESSION_KEY, None)
    if state is None or state.report_path is None:
        return
    outcomes = state.registry.snapshot()
    written = write_outcome_workbook(
        state.report_path,
        outcomes,
        RunMetadata(
            session_start=state.started_at,
            session_end=datetime.now(UTC),
            output_path=state.report_path,
            exit_status=int(exitstatus),
        ),
    )
    LOGGER.info("Wrote dependency outcomes for %d scenarios to %s", len(outcomes), written)


def pytest_terminal_summary(
    terminalreporter: pytest.TerminalReporter, exitstatus: int, config: pytest.Config
) -> None:
    state = config.stash.get(_SESSION_KEY, None)
    if state is None or not state.configuration.reporting.terminal_summary:
        return
    outcomes = state.registry.snapshot()
    if not outcomes:
        return
    terminalreporter.section("scenario dependencies")
    for identity in sorted(outcomes):
        outcome = outcomes[identity]
        line = f"{outcome.state.value:<9} {identity}"
        if outcome.error is not None:
            message = str(outcome.error).splitlines()
            line += f" ({type(outcome.error).__name__}: {message[0] if message else ''})"
        terminalreporter.write_line(line)


def _load_session_configuration(config: pytest.Config) -> Configuration:
    option_path = config.getoption("scenario_deps_config")
    ini_path = config.getini("scenario_deps_config")
    if option_path:
        config_path: Path | None = Path(option_path)
    elif ini_path:
        config_path = config.rootpath / str(ini_path)
    else:
        config_path = None
    try:
        return load_configuration(config_path)
    except ConfigurationError as exc:
        raise pytest.UsageError(f"scenario dependencies: {exc}") from exc
