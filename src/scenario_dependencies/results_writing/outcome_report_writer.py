"""Dependency outcome workbook writer service."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from scenario_dependencies.dependency_registry import DependencyOutcome, OutcomeState

from .report_models import (
    OUTCOME_COLUMNS,
    OUTCOMES_SHEET_NAME,
    RUN_INFO_SHEET_NAME,
    RunMetadata,
)


def write_outcome_workbook(
    output_path: Path | str,
    outcomes: Mapping[str, DependencyOutcome],
    run_metadata: RunMetadata,
) -> Path:
    """Write one row per recorded dependency plus a RunInfo sheet."""
    workbook = Workbook()
    sheet = workbook.active
    if sheet is None:
        raise RuntimeError("Workbook active sheet is not available.")
    assert isinstance(sheet, Worksheet)
    sheet.title = OUTCOMES_SHEET_NAME

    for column_index, name in enumerate(OUTCOME_COLUMNS, start=1):
        sheet.cell(row=1, column=column_index, value=name).style = "Headline 3"

    for row_index, identity in enumerate(sorted(outcomes), start=2):
        outcome = outcomes[identity]
        error = outcome.error
        values = (
            identity,
            outcome.state.value,
            type(error).__name__ if error is not None else None,
            str(error) if error is not None else None,
        )
        for column_index, value in enumerate(values, start=1):
            sheet.cell(row=row_index, column=column_index, value=value)

    _fit_column_widths(sheet)
    _write_run_info_sheet(workbook, run_metadata, outcomes)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    return output.resolve()


def _fit_column_widths(sheet: Worksheet) -> None:
    for column_index in range(1, len(OUTCOME_COLUMNS) + 1):
        longest = max(
            (len(str(cell.value)) for cell in sheet[get_column_letter(column_index)] if cell.value),
            default=0,
        )
        sheet.column_dimensions[get_column_letter(column_index)].width = max(
            12, min(longest + 4, 80)
        )


def _write_run_info_sheet(
    workbook: Workbook,
    run_metadata: RunMetadata,
    outcomes: Mapping[str, DependencyOutcome],
) -> None:
    sheet = workbook.create_sheet(RUN_INFO_SHEET_NAME)
    states = [outcome.state for outcome in outcomes.values()]
    entries = (
        ("session_start", run_metadata.session_start.isoformat()),
        ("session_end", run_metadata.session_end.isoformat()),
        ("output_path", str(run_metadata.output_path)),
        ("exit_status", run_metadata.exit_status),
        ("dependencies", len(states)),
        ("succeeded", states.count(OutcomeState.SUCCEEDED)),
        ("failed", states.count(OutcomeState.FAILED)),
        ("pending", states.count(OutcomeState.PENDING)),
    )
    for row, (key, value) in enumerate(entries, start=1):
        sheet.cell(row=row, column=1, value=key)
        sheet.cell(row=row, column=2, value=value)
