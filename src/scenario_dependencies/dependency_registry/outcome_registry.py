"""Session-scoped registry of dependency outcomes."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from .outcome_models import DependencyOutcome


@dataclass
class _Entry:
    outcome: DependencyOutcome
    owner_thread: int
    settled: threading.Event = field(default_factory=threading.Event)


class DependencyRegistry:
    """Thread-safe mapping from dependency identity to its outcome.

    Every operation touches a single key under the registry lock, so a claim
    and a commit are each linearizable. Entries are never removed; the registry
    lives as long as the test session that owns it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def try_claim(self, identity: str) -> bool:
        """Insert a pending entry for ``identity`` unless one exists.

        Returns:
          True only for the call that performed the insertion.
        """
        with self._lock:
            if identity in self._entries:
                return False
            self._entries[identity] = _Entry(
                outcome=DependencyOutcome.pending(identity),
                owner_thread=threading.get_ident(),
            )
            return True

    def get(self, identity: str) -> DependencyOutcome | None:
        with self._lock:
            entry = self._entries.get(identity)
            return entry.outcome if entry is not None else None

    def commit(self, identity: str, error: BaseException | None) -> bool:
        """Move a pending entry to its terminal state.

        Commits on unknown or already terminal entries are ignored.

        Returns:
          True when the stored outcome changed.
        """
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None or entry.outcome.is_terminal:
                return False
            entry.outcome = DependencyOutcome.finished(identity, error)
            entry.settled.set()
            return True

    def release(self, identity: str) -> bool:
        """Drop this thread's pending claim on ``identity`` without an outcome.

        Waiters wake up and find no entry, so the next claimant runs the
        scenario again. Terminal entries and claims of other threads are kept.

        Returns:
          True when the claim was dropped.
        """
        with self._lock:
            entry = self._entries.get(identity)
            if (
                entry is None
                or entry.outcome.is_terminal
                or entry.owner_thread != threading.get_ident()
            ):
                return False
            del self._entries[identity]
            entry.settled.set()
            return True

    def is_pending_in_current_thread(self, identity: str) -> bool:
        """Whether ``identity`` was claimed by this thread and has not finished yet."""
        with self._lock:
            entry = self._entries.get(identity)
            return (
                entry is not None
                and not entry.outcome.is_terminal
                and entry.owner_thread == threading.get_ident()
            )

    def wait_for_outcome(
        self, identity: str, timeout: float | None = None
    ) -> DependencyOutcome | None:
        """Block until ``identity`` is terminal or released, or until ``timeout`` seconds pass.

        Returns the latest known outcome, which is still pending on timeout and
        None for identities that were never claimed or whose claim was released.
        """
        with self._lock:
            entry = self._entries.get(identity)
        if entry is None:
            return None
        entry.settled.wait(timeout)
        return self.get(identity)

    def snapshot(self) -> dict[str, DependencyOutcome]:
        with self._lock:
            return {identity: entry.outcome for identity, entry in self._entries.items()}
