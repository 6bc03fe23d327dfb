"""Replay of recorded dependency outcomes to later callers."""

from __future__ import annotations

import logging
from collections.abc import Callable

from scenario_dependencies.configuration.runtime_settings import (
    ConcurrentClaimMode,
    DependencySettings,
)
from scenario_dependencies.dependency_errors import (
    DependencyPreviouslyFailed,
    DependencyReplaySkipped,
)
from scenario_dependencies.dependency_registry import DependencyOutcome, DependencyRegistry

LOGGER = logging.getLogger(__name__)

ALREADY_SUCCEEDED_MESSAGE = "The dependency was already executed and succeeded"
ALREADY_FAILED_MESSAGE = "The dependency was already executed and failed"
CONCURRENT_RUN_MESSAGE = "The dependency is being executed concurrently"


def _never_benign(_error: BaseException) -> bool:
    return False


class ReplayPolicy:
    """Decides what a scenario observes once its dependency identity is claimed.

    The first claimant of an identity runs it. Every later claimant replays the
    recorded outcome: a skip when it succeeded, ``DependencyPreviouslyFailed``
    when it failed. Host-specific benign errors (skips) release the claim instead
    of being committed.
    """

    def __init__(
        self,
        registry: DependencyRegistry,
        settings: DependencySettings,
        *,
        is_benign: Callable[[BaseException], bool] = _never_benign,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._host_is_benign = is_benign

    def is_benign(self, error: BaseException) -> bool:
        return isinstance(error, DependencyReplaySkipped) or self._host_is_benign(error)

    def on_claim(self, identity: str) -> bool:
        """Claim ``identity`` for execution or replay its recorded outcome.

        Returns:
          True when the caller is the one that must execute the scenario.

        Raises:
          DependencyReplaySkipped: The outcome is a success, or a concurrent run
            is still pending and the policy does not wait for it.
          DependencyPreviouslyFailed: The recorded outcome is a failure.
        """
        while True:
            if self._registry.try_claim(identity):
                LOGGER.debug("Claimed dependency %s", identity)
                return True

            outcome = self._registry.get(identity)
            if outcome is not None and not outcome.is_terminal and self._should_wait(identity):
                LOGGER.info("Waiting for concurrent run of dependency %s", identity)
                outcome = self._registry.wait_for_outcome(
                    identity, self._settings.wait_timeout_seconds
                )
            if outcome is None:
                # The previous claim was released by a skipped run.
                LOGGER.debug("Claim on dependency %s was released; claiming again", identity)
                continue

            if not outcome.is_terminal:
                LOGGER.warning("Dependency %s is still running elsewhere; skipping", identity)
                raise DependencyReplaySkipped(CONCURRENT_RUN_MESSAGE)

            error = self.replay(outcome)
            if error is None:
                raise DependencyReplaySkipped(ALREADY_SUCCEEDED_MESSAGE)
            raise DependencyPreviouslyFailed(ALREADY_FAILED_MESSAGE, error)

    def replay(self, outcome: DependencyOutcome) -> BaseException | None:
        """Return the error a terminal ``outcome`` surfaces to its caller."""
        if outcome.error is None:
            LOGGER.info("%s: %s", ALREADY_SUCCEEDED_MESSAGE, outcome.identity)
        else:
            LOGGER.info("%s: %s", ALREADY_FAILED_MESSAGE, outcome.identity)
        return outcome.error

    def on_commit(self, identity: str, error: BaseException | None) -> bool:
        """Record the outcome of a finished run of ``identity``.

        A benign error (a skip) is not an outcome: the claim is released so the
        dependency counts as not run and waiting claimants take over.

        Returns:
          True when the registry stored the outcome.
        """
        if error is not None and self.is_benign(error):
            LOGGER.debug("Ignoring benign outcome of %s: %s", identity, type(error).__name__)
            if self._registry.release(identity):
                LOGGER.info("Released claim on skipped dependency %s", identity)
            return False
        committed = self._registry.commit(identity, error)
        if committed:
            LOGGER.debug("Recorded outcome of %s: %s", identity, self._registry.get(identity))
        return committed

    def _should_wait(self, identity: str) -> bool:
        if self._settings.concurrent_claims is not ConcurrentClaimMode.WAIT:
            return False
        # A pending claim of our own thread can only settle after we return.
        return not self._registry.is_pending_in_current_thread(identity)
