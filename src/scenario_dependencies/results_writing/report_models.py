"""Results writing entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

OUTCOMES_SHEET_NAME = "Outcomes"
RUN_INFO_SHEET_NAME = "RunInfo"
OUTCOME_COLUMNS = ("Identity", "State", "Error Type", "Error Message")


@dataclass(frozen=True)
class RunMetadata:
    """Metadata rendered into the RunInfo sheet."""

    session_start: datetime
    session_end: datetime
    output_path: Path
    exit_status: int
