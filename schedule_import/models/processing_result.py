from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .column_mapping import ColumnMapping, TaskKind
from .issue import ConversionIssue, RowFix
from .task import Task

"""Result models for the schedule import pipeline.

Each pipeline stage returns one of these frozen records instead of mutating
shared state; ConversionResult aggregates them for the caller.
"""

__all__ = [
    "ValidationResult",
    "DependencyEdge",
    "DependencyCheck",
    "HierarchyEdge",
    "MeetingHierarchy",
    "ConversionResult",
]


@dataclass(frozen=True)
class ValidationResult:
    """Aggregate outcome of row validation.

    valid is False when any row-level error exists or no valid row remains.
    accepted_rows holds the row_index of every row that passed.
    """
    valid: bool
    errors: list[ConversionIssue]
    warnings: list[ConversionIssue]
    fixes: list[RowFix]
    valid_row_count: int
    accepted_rows: frozenset[int] = frozenset()


@dataclass(frozen=True)
class DependencyEdge:
    """A resolved explicit "from:to" reference that does not target its own row."""
    from_id: str
    to_id: str
    source_id: str  # 記載元タスク
    explicit: bool = True


@dataclass(frozen=True)
class DependencyCheck:
    """Timeline check of one predecessor -> successor pair."""
    from_id: str
    to_id: str
    valid: bool
    reason: str  # ok / task_not_found / timeline_conflict
    gap_days: int | None = None  # 負値 = 矛盾日数


@dataclass(frozen=True)
class HierarchyEdge:
    from_id: str  # 上位 (報告先)
    to_id: str  # 下位
    relationship: str = "reports_to"


@dataclass(frozen=True)
class MeetingHierarchy:
    """Meetings bucketed by organization level (1=assembly, 2=board, 3=committee)."""
    level1: tuple[Task, ...] = ()
    level2: tuple[Task, ...] = ()
    level3: tuple[Task, ...] = ()

    def levels(self) -> dict[int, tuple[Task, ...]]:
        return {1: self.level1, 2: self.level2, 3: self.level3}

    def __len__(self) -> int:
        return len(self.level1) + len(self.level2) + len(self.level3)


@dataclass(frozen=True)
class ConversionResult:
    """Everything one conversion run produces."""
    mapping: ColumnMapping
    validation: ValidationResult
    tasks: list[Task]  # 行由来タスク (工事 + 個別会議)
    meeting_groups: list[Task]
    hierarchy: MeetingHierarchy
    connections: list[HierarchyEdge]
    explicit_edges: list[DependencyEdge]
    dependency_checks: list[DependencyCheck]
    issues: list[ConversionIssue]  # validation 以外の段階で発生した issue
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    row_count: int = 0  # ヘッダを除くデータ行数

    @property
    def errors(self) -> list[ConversionIssue]:
        return self.validation.errors + [i for i in self.issues if i.is_error]

    @property
    def warnings(self) -> list[ConversionIssue]:
        return self.validation.warnings + [i for i in self.issues if not i.is_error]

    @property
    def meetings(self) -> list[Task]:
        return [t for t in self.tasks if t.kind is TaskKind.MEETING]

    @property
    def construction_tasks(self) -> list[Task]:
        return [t for t in self.tasks if t.kind is TaskKind.CONSTRUCTION]

    @property
    def timeline_tasks(self) -> list[Task]:
        """Bars for a timeline: meeting groups (level order) then construction tasks.

        Individual meetings are shown through their group; when no group was
        built (aggregation disabled) they are listed as-is.
        """
        if self.meeting_groups:
            return list(self.meeting_groups) + self.construction_tasks
        return self.meetings + self.construction_tasks

    @property
    def dependency_count(self) -> int:
        return sum(len(t.dependencies) for t in self.tasks) + len(self.explicit_edges)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict for renderers."""
        return {
            "schema": self.mapping.name,
            "tasks": [t.to_record() for t in self.tasks],
            "meeting_groups": [g.to_record() for g in self.meeting_groups],
            "hierarchy": {
                f"level{level}": [t.id for t in bucket]
                for level, bucket in self.hierarchy.levels().items()
            },
            "connections": [
                {"from": e.from_id, "to": e.to_id, "relationship": e.relationship}
                for e in self.connections
            ],
            "explicit_dependencies": [
                {"from": e.from_id, "to": e.to_id, "source": e.source_id}
                for e in self.explicit_edges
            ],
            "dependency_checks": [
                {
                    "from": c.from_id,
                    "to": c.to_id,
                    "valid": c.valid,
                    "reason": c.reason,
                    "gap_days": c.gap_days,
                }
                for c in self.dependency_checks
            ],
            "errors": [i.message for i in self.errors],
            "warnings": [i.message for i in self.warnings],
        }
