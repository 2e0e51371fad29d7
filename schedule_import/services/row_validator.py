from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from ..excel.dates import parse_cell_date
from ..models.column_mapping import ColumnMapping, StatusPolicy
from ..models.config_models import DEFAULT_LONG_SPAN_DAYS
from ..models.issue import ConversionIssue, IssueType, RowFix
from ..models.processing_result import ValidationResult
from ..models.row_data import ScheduleRow, is_blank_cell
from ..models.task import StatusClass
from .normalizer import has_progress_value

"""Row validation.

Checks every typed row before normalization and collects (never raises):
- errors:   blank event name, invalid start / end date, start after end
- warnings: blank rows, very long spans, unrecognized status, missing
            optional columns
- fixes:    status values that will default to "planned"

A row with any error is excluded from valid_row_count and accepted_rows.
"""

__all__ = [
    "validate_rows",
    "is_recognized_status",
]

logger = logging.getLogger(__name__)


def _row_issue(issue_type: IssueType, row: ScheduleRow, message: str) -> ConversionIssue:
    return ConversionIssue.create(issue_type, f"row {row.line_number}: {message}", row=row.line_number)


def is_recognized_status(value: str, policy: StatusPolicy) -> bool:
    """True for a known status label, or any text with a leading integer under the numeric policy.

    Numeric values follow the normalizer ("80%" -> 80, "150" -> 100), so only
    text without a number is defaulted to planned.
    """
    if StatusClass.from_label(value) is not None:
        return True
    return policy is StatusPolicy.NUMERIC and has_progress_value(value)


def _check_dates(
    row: ScheduleRow,
    mapping: ColumnMapping,
    long_span_days: int,
    warnings: list[ConversionIssue],
) -> list[ConversionIssue]:
    errors: list[ConversionIssue] = []

    start = parse_cell_date(row.start_raw)
    if start is None:
        errors.append(
            _row_issue(IssueType.ROW_VALIDATION_ERROR, row, f"start date '{row.start_raw}' is invalid")
        )

    end: date | None
    if mapping.end_optional and is_blank_cell(row.end_raw):
        end = start
    else:
        end = parse_cell_date(row.end_raw)
        if end is None:
            errors.append(
                _row_issue(IssueType.ROW_VALIDATION_ERROR, row, f"end date '{row.end_raw}' is invalid")
            )

    if start is not None and end is not None:
        if start > end:
            errors.append(
                _row_issue(
                    IssueType.ROW_VALIDATION_ERROR,
                    row,
                    f"start date {start.isoformat()} is after end date {end.isoformat()}",
                )
            )
        elif (end - start).days > long_span_days:
            warnings.append(
                _row_issue(
                    IssueType.ROW_VALIDATION_WARNING,
                    row,
                    f"span of {(end - start).days} days is unusually long",
                )
            )
    return errors


def validate_rows(
    rows: Sequence[ScheduleRow],
    mapping: ColumnMapping,
    headers: Sequence[str] = (),
    long_span_days: int = DEFAULT_LONG_SPAN_DAYS,
) -> ValidationResult:
    """Validate typed rows against the selected mapping.

    Args:
        rows: Data rows (header excluded) built with the same mapping
        mapping: Selected ColumnMapping
        headers: Header row, used to report missing optional columns
        long_span_days: Spans longer than this produce a warning

    Returns:
        ValidationResult; valid is False when any error exists or no row passed
    """
    errors: list[ConversionIssue] = []
    warnings: list[ConversionIssue] = []
    fixes: list[RowFix] = []
    accepted: set[int] = set()

    header_set = {h for h in headers if h}
    if header_set:
        for column in mapping.missing_optional(header_set):
            warnings.append(
                ConversionIssue.create(
                    IssueType.ROW_VALIDATION_WARNING,
                    f"optional column '{column}' not found; defaults will be used",
                )
            )

    for row in rows:
        if row.blank:
            warnings.append(_row_issue(IssueType.ROW_VALIDATION_WARNING, row, "blank row skipped"))
            continue

        if not row.name:
            errors.append(_row_issue(IssueType.ROW_VALIDATION_ERROR, row, "event name is blank"))
            continue

        row_errors = _check_dates(row, mapping, long_span_days, warnings)
        errors.extend(row_errors)

        # status 列を持たない layout (会議形式) は検査しない
        if mapping.status is not None and not is_recognized_status(row.status, mapping.status_policy):
            warnings.append(
                _row_issue(
                    IssueType.ROW_VALIDATION_WARNING,
                    row,
                    f"status '{row.status}' is not recognized; defaulting to 'planned'",
                )
            )
            fixes.append(
                RowFix(
                    row=row.line_number,
                    field=mapping.status,
                    original=row.status,
                    replacement=StatusClass.PLANNED.value,
                )
            )

        if not row_errors:
            accepted.add(row.row_index)

    if not accepted:
        errors.append(
            ConversionIssue.create(IssueType.ROW_VALIDATION_ERROR, "no valid data rows found")
        )
    else:
        logger.info("validation: %d valid rows (%d errors, %d warnings)", len(accepted), len(errors), len(warnings))

    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        fixes=fixes,
        valid_row_count=len(accepted),
        accepted_rows=frozenset(accepted),
    )
