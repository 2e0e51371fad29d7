from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Column layout models for the schedule import pipeline.

A ColumnMapping associates logical field names with the header strings of one
known spreadsheet layout. Exactly one mapping is selected per dataset by the
schema detector; everything downstream reads named fields through it.

Known layouts, in detection priority order:
- unified:   19-column schema (event_type column present)
- english:   construction schema (name / start / end)
- meeting:   meeting-oriented schema (start_date / end_date)
- localized: Japanese fallback schema (イベント名 / 開始日 / 終了日)
"""

__all__ = [
    "StatusPolicy",
    "TaskKind",
    "ColumnMapping",
    "UNIFIED_MAPPING",
    "ENGLISH_MAPPING",
    "MEETING_MAPPING",
    "LOCALIZED_MAPPING",
    "KNOWN_LAYOUTS",
    "UNIFIED_COLUMNS",
]


class StatusPolicy(Enum):
    """How progress / status are derived from the status column.

    - NUMERIC: the column holds a 0-100 progress number
    - LABEL: the column holds a planned / in-progress / completed label
    """
    NUMERIC = "numeric"
    LABEL = "label"


class TaskKind(Enum):
    """Canonical task kinds."""
    CONSTRUCTION = "construction"
    MEETING = "meeting"
    MEETING_GROUP = "meeting_group"


@dataclass(frozen=True)
class ColumnMapping:
    """Association of logical field names to header strings for one layout.

    Field attributes hold the header text of the column, or None when the
    layout has no such column.
    """
    name: str  # layout 識別子 (unified / english / meeting / localized)
    signature: frozenset[str]  # 全て存在すれば layout 一致
    required: frozenset[str]  # 一致後にヘッダ必須
    status_policy: StatusPolicy
    default_kind: TaskKind
    event_name: str
    start_date: str
    end_date: str
    status: str | None = None
    type: str | None = None
    dependencies: str | None = "dependencies"
    original_id: str | None = "id"
    event_type: str | None = None
    organization_level: str | None = None
    organization_type: str | None = None
    decision_authority: str | None = None
    report_to: str | None = None
    attendees: str | None = None
    location: str | None = None
    agenda: str | None = None
    timeline_color: str | None = None
    priority: str | None = None
    frequency: str | None = None
    memo: str | None = None
    assignee: str | None = None
    end_optional: bool = False  # 会議形式: end_date 空なら start と同日
    optional: frozenset[str] = field(default_factory=frozenset)

    def matches(self, headers: set[str]) -> bool:
        """True when every signature column is present in the header set."""
        return self.signature <= headers

    def missing_required(self, headers: set[str]) -> list[str]:
        """Required columns absent from the header, in sorted order."""
        return sorted(self.required - headers)

    def missing_optional(self, headers: set[str]) -> list[str]:
        return sorted(self.optional - headers)


UNIFIED_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "start",
    "end",
    "progress",
    "dependencies",
    "assignee",
    "event_type",
    "organization_level",
    "organization_type",
    "decision_authority",
    "report_to",
    "attendees",
    "location",
    "agenda",
    "timeline_color",
    "priority",
    "frequency",
    "memo",
)


UNIFIED_MAPPING = ColumnMapping(
    name="unified",
    signature=frozenset({"event_type"}),
    required=frozenset({"name", "start", "end"}),
    status_policy=StatusPolicy.NUMERIC,
    default_kind=TaskKind.CONSTRUCTION,
    event_name="name",
    start_date="start",
    end_date="end",
    status="progress",
    type="assignee",
    event_type="event_type",
    organization_level="organization_level",
    organization_type="organization_type",
    decision_authority="decision_authority",
    report_to="report_to",
    attendees="attendees",
    location="location",
    agenda="agenda",
    timeline_color="timeline_color",
    priority="priority",
    frequency="frequency",
    memo="memo",
    assignee="assignee",
    optional=frozenset(UNIFIED_COLUMNS) - {"name", "start", "end", "event_type"},
)

ENGLISH_MAPPING = ColumnMapping(
    name="english",
    signature=frozenset({"name", "start", "end"}),
    required=frozenset({"name", "start", "end"}),
    status_policy=StatusPolicy.NUMERIC,
    default_kind=TaskKind.CONSTRUCTION,
    event_name="name",
    start_date="start",
    end_date="end",
    status="progress",
    type="assignee",
    assignee="assignee",
    optional=frozenset({"progress", "dependencies", "assignee"}),
)

MEETING_MAPPING = ColumnMapping(
    name="meeting",
    signature=frozenset({"start_date", "end_date"}),
    required=frozenset({"name", "start_date"}),
    status_policy=StatusPolicy.LABEL,
    default_kind=TaskKind.MEETING,
    event_name="name",
    start_date="start_date",
    end_date="end_date",
    type="organization_type",
    organization_level="organization_level",
    organization_type="organization_type",
    decision_authority="decision_authority",
    report_to="report_to",
    priority="priority",
    frequency="frequency",
    end_optional=True,
    optional=frozenset(
        {"end_date", "organization_level", "organization_type", "frequency", "priority"}
    ),
)

LOCALIZED_MAPPING = ColumnMapping(
    name="localized",
    signature=frozenset(),  # フォールバック: 常に一致
    required=frozenset({"イベント名", "開始日", "終了日"}),
    status_policy=StatusPolicy.LABEL,
    default_kind=TaskKind.CONSTRUCTION,
    event_name="イベント名",
    start_date="開始日",
    end_date="終了日",
    status="ステータス",
    type="種類",
    optional=frozenset({"ステータス", "種類", "進捗率"}),
)

# 順序が優先度 (first match wins)
KNOWN_LAYOUTS: tuple[ColumnMapping, ...] = (
    UNIFIED_MAPPING,
    ENGLISH_MAPPING,
    MEETING_MAPPING,
    LOCALIZED_MAPPING,
)
