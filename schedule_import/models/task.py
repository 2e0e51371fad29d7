from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any

from .column_mapping import TaskKind

"""Canonical task model consumed by timeline renderers.

A Task is created once per source row (or per meeting aggregate) during a
conversion pass and is immutable afterwards. The only supported edit is
rescheduling (start / end / memo), which returns a new Task.
"""

__all__ = [
    "StatusClass",
    "STATUS_LABELS",
    "Task",
    "LEVEL_COLORS",
    "FALLBACK_COLOR",
    "level_color",
]

# 組織レベル別デフォルト色 (1=総会, 2=理事会, 3=修繕委員会)
LEVEL_COLORS: dict[int, str] = {
    1: "#8B0000",
    2: "#FF8C00",
    3: "#32CD32",
}
FALLBACK_COLOR = "#666666"


def level_color(level: int | None) -> str:
    """Default bar color of an organization level (FALLBACK_COLOR when unknown)."""
    if level is None:
        return FALLBACK_COLOR
    return LEVEL_COLORS.get(level, FALLBACK_COLOR)


class StatusClass(Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @staticmethod
    def from_progress(progress: int) -> StatusClass:
        if progress >= 100:
            return StatusClass.COMPLETED
        if progress > 0:
            return StatusClass.IN_PROGRESS
        return StatusClass.PLANNED

    @staticmethod
    def from_label(label: str) -> StatusClass | None:
        """Recognize an English (case-insensitive) or localized status label."""
        return STATUS_LABELS.get(label.strip().lower())

    @property
    def default_progress(self) -> int:
        return {
            StatusClass.COMPLETED: 100,
            StatusClass.IN_PROGRESS: 50,
            StatusClass.PLANNED: 0,
        }[self]


STATUS_LABELS: dict[str, StatusClass] = {
    "planned": StatusClass.PLANNED,
    "in-progress": StatusClass.IN_PROGRESS,
    "completed": StatusClass.COMPLETED,
    "予定": StatusClass.PLANNED,
    "進行中": StatusClass.IN_PROGRESS,
    "完了": StatusClass.COMPLETED,
}


@dataclass(frozen=True)
class Task:
    """Canonical, schema-independent task.

    Invariants: name is non-empty, start <= end, 0 <= progress <= 100.
    Meeting-only attributes stay None / "" for construction tasks.
    """
    id: str
    name: str
    start: date
    end: date
    progress: int
    status_class: StatusClass
    kind: TaskKind
    dependencies: tuple[str, ...] = ()
    raw_dependencies: str = ""  # 解決前の依存セル文字列
    source_id: str = ""  # 元データの id 列
    row_index: int | None = None  # 集約タスクは None
    organization_level: int | None = None
    organization_type: str = ""
    decision_authority: str = ""
    report_to: str = ""
    frequency: str = ""
    assignee: str = ""
    attendees: str = ""
    location: str = ""
    agenda: str = ""
    timeline_color: str = ""
    priority: str = ""
    memo: str = ""
    members: tuple[Task, ...] = field(default=(), repr=False)  # meeting_group のみ

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError(f"task {self.id}: name must not be blank")
        if self.start > self.end:
            raise ValueError(
                f"task {self.id}: start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )
        if not 0 <= self.progress <= 100:
            raise ValueError(f"task {self.id}: progress {self.progress} outside 0-100")

    @property
    def is_meeting(self) -> bool:
        return self.kind is TaskKind.MEETING

    @property
    def meeting_count(self) -> int:
        return len(self.members)

    @property
    def bar_class(self) -> str:
        """CSS class a timeline renderer attaches to the bar."""
        if self.kind is TaskKind.MEETING_GROUP:
            return f"meeting-group level-{self.organization_level}"
        if self.kind is TaskKind.MEETING:
            level = self.organization_level if self.organization_level is not None else 2
            return f"meeting level-{level}"
        return self.status_class.value

    @property
    def hierarchy_color(self) -> str:
        return self.timeline_color or level_color(self.organization_level)

    def reschedule(self, start: date, end: date, memo: str | None = None) -> Task:
        """Return a copy with new dates (and optionally memo).

        Raises:
            ValueError: if start is after end
        """
        if start > end:
            raise ValueError(
                f"task {self.id}: start {start.isoformat()} is after end {end.isoformat()}"
            )
        if memo is None:
            return replace(self, start=start, end=end)
        return replace(self, start=start, end=end, memo=memo)

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict (dates as YYYY-MM-DD)."""
        record: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "progress": self.progress,
            "status_class": self.status_class.value,
            "custom_class": self.bar_class,
            "type": self.kind.value,
            "dependencies": list(self.dependencies),
        }
        if self.source_id:
            record["source_id"] = self.source_id
        if self.kind is not TaskKind.CONSTRUCTION:
            record.update(
                {
                    "organization_level": self.organization_level,
                    "organization_type": self.organization_type,
                    "decision_authority": self.decision_authority,
                    "report_to": self.report_to,
                    "frequency": self.frequency,
                    "color": self.hierarchy_color,
                }
            )
        for key in ("assignee", "attendees", "location", "agenda", "priority", "memo"):
            value = getattr(self, key)
            if value:
                record[key] = value
        if self.kind is TaskKind.MEETING_GROUP:
            record["meeting_count"] = self.meeting_count
            record["meetings"] = [m.to_record() for m in self.members]
        return record
