"""Replay policy domain exports."""

from .replay_policy import (
    ALREADY_FAILED_MESSAGE,
    ALREADY_SUCCEEDED_MESSAGE,
    CONCURRENT_RUN_MESSAGE,
    ReplayPolicy,
)

__all__ = [
    "ALREADY_FAILED_MESSAGE",
    "ALREADY_SUCCEEDED_MESSAGE",
    "CONCURRENT_RUN_MESSAGE",
    "ReplayPolicy",
]
