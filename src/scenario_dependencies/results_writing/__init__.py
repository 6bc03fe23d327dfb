"""Results writing domain exports."""

from .outcome_report_writer import write_outcome_workbook
from .report_models import OUTCOMES_SHEET_NAME, RUN_INFO_SHEET_NAME, RunMetadata

__all__ = [
    "OUTCOMES_SHEET_NAME",
    "RUN_INFO_SHEET_NAME",
    "RunMetadata",
    "write_outcome_workbook",
]
