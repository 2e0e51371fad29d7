from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..excel.dates import parse_cell_date
from ..models.column_mapping import ColumnMapping, StatusPolicy, TaskKind
from ..models.issue import ConversionIssue, IssueType
from ..models.row_data import ScheduleRow, is_blank_cell
from ..models.task import StatusClass, Task

"""Task normalization: typed rows -> canonical Task records.

One pass, parameterized by the selected mapping:
- status policy (numeric progress vs. status label) decides progress and status_class
- the unified layout's event_type cell overrides the mapping's default kind
- a blank end date on an end-optional layout collapses to the start date

Rows whose dates cannot be decoded are skipped here; the validator has
already reported them.
"""

__all__ = [
    "NormalizationOutcome",
    "normalize_rows",
    "has_progress_value",
    "parse_progress",
    "parse_organization_level",
    "task_id_for_row",
]

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class NormalizationOutcome:
    tasks: list[Task]
    issues: list[ConversionIssue]


def task_id_for_row(row_index: int) -> str:
    return f"task-{row_index}"


def has_progress_value(raw: str) -> bool:
    """True when parse_progress reads a number from the text rather than defaulting."""
    return _LEADING_INT.match(raw) is not None


def parse_progress(raw: str) -> int:
    """Leading integer of the text clamped to 0-100; 0 when there is none.

    "75" -> 75, "80%" -> 80, "150" -> 100, "abc" -> 0
    """
    m = _LEADING_INT.match(raw)
    if not m:
        return 0
    return max(0, min(100, int(m.group(1))))


def parse_organization_level(raw: str) -> int | None:
    """Integer organization level ("2", "2.0" -> 2); None when blank or unparseable."""
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not value.is_integer():
        return None
    return int(value)


def _progress_and_status(row: ScheduleRow, policy: StatusPolicy) -> tuple[int, StatusClass]:
    # 数値ポリシーでも "completed" 等のラベルはラベルとして扱う
    if policy is StatusPolicy.NUMERIC and has_progress_value(row.status):
        progress = parse_progress(row.status)
        return progress, StatusClass.from_progress(progress)
    status_class = StatusClass.from_label(row.status) or StatusClass.PLANNED
    return status_class.default_progress, status_class


def _resolve_kind(
    row: ScheduleRow, mapping: ColumnMapping, issues: list[ConversionIssue]
) -> TaskKind:
    if mapping.event_type is None or not row.event_type:
        return mapping.default_kind
    value = row.event_type.strip().lower()
    if value == TaskKind.MEETING.value:
        return TaskKind.MEETING
    if value == TaskKind.CONSTRUCTION.value:
        return TaskKind.CONSTRUCTION
    issues.append(
        ConversionIssue.create(
            IssueType.ROW_VALIDATION_WARNING,
            f"row {row.line_number}: unknown event_type '{row.event_type}'; treated as construction",
            row=row.line_number,
        )
    )
    return TaskKind.CONSTRUCTION


def normalize_rows(
    rows: Sequence[ScheduleRow],
    mapping: ColumnMapping,
    accepted_rows: frozenset[int] | None = None,
) -> NormalizationOutcome:
    """Build one Task per usable row.

    Args:
        rows: Typed data rows
        mapping: Selected ColumnMapping (status policy + default kind)
        accepted_rows: When given, only rows whose row_index is in the set are
            normalized (the validator's accepted rows)

    Returns:
        NormalizationOutcome with tasks in row order and any warnings raised
    """
    tasks: list[Task] = []
    issues: list[ConversionIssue] = []

    for row in rows:
        if row.blank or not row.name:
            continue
        if accepted_rows is not None and row.row_index not in accepted_rows:
            continue

        start = parse_cell_date(row.start_raw)
        if mapping.end_optional and is_blank_cell(row.end_raw):
            end = start
        else:
            end = parse_cell_date(row.end_raw)
        if start is None or end is None or start > end:
            logger.debug("row %d skipped: unusable dates", row.line_number)
            continue

        kind = _resolve_kind(row, mapping, issues)
        progress, status_class = _progress_and_status(row, mapping.status_policy)

        tasks.append(
            Task(
                id=task_id_for_row(row.row_index),
                name=row.name,
                start=start,
                end=end,
                progress=progress,
                status_class=status_class,
                kind=kind,
                raw_dependencies=row.dependencies,
                source_id=row.original_id,
                row_index=row.row_index,
                organization_level=parse_organization_level(row.organization_level),
                organization_type=row.organization_type,
                decision_authority=row.decision_authority,
                report_to=row.report_to,
                frequency=row.frequency,
                assignee=row.assignee,
                attendees=row.attendees,
                location=row.location,
                agenda=row.agenda,
                timeline_color=row.timeline_color,
                priority=row.priority,
                memo=row.memo,
            )
        )

    logger.debug("normalized %d tasks (layout=%s)", len(tasks), mapping.name)
    return NormalizationOutcome(tasks=tasks, issues=issues)
