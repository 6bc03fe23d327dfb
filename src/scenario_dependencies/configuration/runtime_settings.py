"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

DEFAULT_DEPENDS_ON_PREFIX = "dependsOn:"
DEFAULT_DEPENDENCY_TAG = "dependency"


class ConcurrentClaimMode(str, Enum):
    """How a second claimant reacts while the first run is still pending."""

    WAIT = "wait"
    SKIP = "skip"


@dataclass(frozen=True)
class DependencySettings:
    """Tag conventions and concurrency behavior of dependency resolution."""

    depends_on_prefix: str = DEFAULT_DEPENDS_ON_PREFIX
    dependency_tag: str = DEFAULT_DEPENDENCY_TAG
    concurrent_claims: ConcurrentClaimMode = ConcurrentClaimMode.WAIT
    wait_timeout_seconds: int | None = None


@dataclass(frozen=True)
class ReportingSettings:
    """Session-end reporting of recorded dependency outcomes."""

    workbook_path: Path | None = None
    terminal_summary: bool = True


@dataclass(frozen=True)
class Configuration:
    """Top-level configuration aggregate."""

    path: Path | None = None
    dependencies: DependencySettings = field(default_factory=DependencySettings)
    reporting: ReportingSettings = field(default_factory=ReportingSettings)
