from __future__ import annotations

import calendar
import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import date, timedelta

from ..models.column_mapping import TaskKind
from ..models.issue import ConversionIssue, IssueType
from ..models.task import StatusClass, Task

"""Meeting aggregation and recurring-meeting expansion.

aggregate_meetings() folds individual meeting tasks into one bar per
organization type, emitted in level order:
    general_meeting   level 1  総会
    board_meeting     level 2  理事会(毎月)
    repair_committee  level 3  修繕委員会(毎月)

expand_recurring_meetings() turns monthly / annual meeting templates into
dated occurrences inside a window.
"""

__all__ = [
    "MeetingGroupSpec",
    "MEETING_GROUPS",
    "DEFAULT_MEETING_TYPE",
    "AggregationOutcome",
    "aggregate_meetings",
    "meeting_group_id",
    "expand_recurring_meetings",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeetingGroupSpec:
    type: str
    display_name: str
    level: int


MEETING_GROUPS: tuple[MeetingGroupSpec, ...] = (
    MeetingGroupSpec("general_meeting", "総会", 1),
    MeetingGroupSpec("board_meeting", "理事会(毎月)", 2),
    MeetingGroupSpec("repair_committee", "修繕委員会(毎月)", 3),
)

DEFAULT_MEETING_TYPE = "board_meeting"


@dataclass(frozen=True)
class AggregationOutcome:
    groups: list[Task]
    issues: list[ConversionIssue]


def meeting_group_id(meeting_type: str) -> str:
    return f"meeting_group_{meeting_type}"


def _build_group(spec: MeetingGroupSpec, members: list[Task]) -> Task:
    starts = sorted(m.start for m in members)
    start, end = starts[0], starts[-1]
    if start == end:
        # 同日のみなら1日幅を確保
        end = start + timedelta(days=1)
    return Task(
        id=meeting_group_id(spec.type),
        name=spec.display_name,
        start=start,
        end=end,
        progress=0,
        status_class=StatusClass.PLANNED,
        kind=TaskKind.MEETING_GROUP,
        organization_level=spec.level,
        organization_type=spec.type,
        members=tuple(members),
    )


def aggregate_meetings(meetings: Sequence[Task]) -> AggregationOutcome:
    """Group meeting tasks by organization_type.

    Blank types fall into board_meeting silently; unknown types fall into
    board_meeting with an AGGREGATION_WARNING. Only non-empty buckets become
    groups. Calling it twice on the same input gives equal output.
    """
    buckets: dict[str, list[Task]] = {spec.type: [] for spec in MEETING_GROUPS}
    issues: list[ConversionIssue] = []

    for meeting in meetings:
        org_type = meeting.organization_type or DEFAULT_MEETING_TYPE
        if org_type not in buckets:
            issues.append(
                ConversionIssue.create(
                    IssueType.AGGREGATION_WARNING,
                    f"{meeting.id} ({meeting.name}): unknown organization_type '{org_type}'; "
                    f"grouped as {DEFAULT_MEETING_TYPE}",
                    row=meeting.row_index + 1 if meeting.row_index is not None else -1,
                )
            )
            org_type = DEFAULT_MEETING_TYPE
        buckets[org_type].append(meeting)

    groups = [
        _build_group(spec, buckets[spec.type])
        for spec in MEETING_GROUPS
        if buckets[spec.type]
    ]
    for g in groups:
        logger.debug(
            "meeting group %s: %d meetings %s..%s",
            g.id, g.meeting_count, g.start.isoformat(), g.end.isoformat(),
        )
    return AggregationOutcome(groups=groups, issues=issues)


def _clamped(year: int, month: int, day: int) -> date:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def _occurrence(meeting: Task, on: date, occurrence_id: str, name: str) -> Task:
    length = meeting.end - meeting.start
    return replace(meeting, id=occurrence_id, name=name, start=on, end=on + length)


def _monthly(meeting: Task, window_start: date, window_end: date) -> list[Task]:
    out: list[Task] = []
    year, month = window_start.year, window_start.month
    on = _clamped(year, month, meeting.start.day)
    if on < window_start:
        month += 1
        if month > 12:
            year, month = year + 1, 1
        on = _clamped(year, month, meeting.start.day)
    n = 1
    while on <= window_end:
        out.append(_occurrence(meeting, on, f"{meeting.id}-{n}", f"{meeting.name}{on.month}月"))
        n += 1
        month += 1
        if month > 12:
            year, month = year + 1, 1
        on = _clamped(year, month, meeting.start.day)
    return out


def _annual(meeting: Task, window_start: date, window_end: date) -> list[Task]:
    out: list[Task] = []
    for year in range(window_start.year, window_end.year + 1):
        on = _clamped(year, meeting.start.month, meeting.start.day)
        if window_start <= on <= window_end:
            out.append(_occurrence(meeting, on, f"{meeting.id}-{year}", f"{year}年度{meeting.name}"))
    return out


def expand_recurring_meetings(
    meetings: Sequence[Task],
    window_start: date,
    window_end: date,
) -> list[Task]:
    """Generate meeting occurrences inside [window_start, window_end].

    Parameters
    ----------
    meetings: Meeting templates; frequency decides the expansion
        - monthly: same day of month (clamped to month end), ids <id>-<n>
        - annual:  same month / day each year, ids <id>-<year>, name <year>年度<name>
        - adhoc:   kept as-is
        Anything else produces nothing.
    window_start, window_end: inclusive window

    Raises
    ------
    ValueError: window_start is after window_end
    """
    if window_start > window_end:
        raise ValueError(
            f"window start {window_start.isoformat()} is after end {window_end.isoformat()}"
        )
    generated: list[Task] = []
    for meeting in meetings:
        frequency = meeting.frequency.strip().lower()
        if frequency == "monthly":
            generated.extend(_monthly(meeting, window_start, window_end))
        elif frequency == "annual":
            generated.extend(_annual(meeting, window_start, window_end))
        elif frequency == "adhoc":
            generated.append(meeting)
    logger.info("recurring meetings expanded: %d -> %d", len(meetings), len(generated))
    return generated
