from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.issue import ConversionIssue, IssueType
from ..models.processing_result import HierarchyEdge, MeetingHierarchy
from ..models.task import Task, level_color

"""Meeting hierarchy: per-level buckets, reporting edges and display lookups."""

__all__ = [
    "DEFAULT_ORGANIZATION_LEVEL",
    "StructuringOutcome",
    "structure_meetings",
    "build_hierarchy_edges",
    "organization_level_name",
    "authority_name",
    "frequency_name",
    "default_level_color",
]

logger = logging.getLogger(__name__)

DEFAULT_ORGANIZATION_LEVEL = 2

_LEVEL_NAMES = {
    1: "総会（最高決定機関）",
    2: "理事会（運営機関）",
    3: "修繕委員会（実行機関）",
}
_AUTHORITY_NAMES = {"final": "最終決定権", "executive": "執行権", "advisory": "諮問権"}
_FREQUENCY_NAMES = {"annual": "年1回", "monthly": "月1回", "adhoc": "臨時"}
_UNKNOWN = "不明"


@dataclass(frozen=True)
class StructuringOutcome:
    hierarchy: MeetingHierarchy
    issues: list[ConversionIssue]


def structure_meetings(meetings: Sequence[Task]) -> StructuringOutcome:
    """Partition meetings into level1 / level2 / level3.

    An unset organization_level counts as level 2. Levels outside 1-3 are
    left out with a HIERARCHY_WARNING.
    """
    buckets: dict[int, list[Task]] = {1: [], 2: [], 3: []}
    issues: list[ConversionIssue] = []
    for meeting in meetings:
        level = meeting.organization_level
        if level is None:
            level = DEFAULT_ORGANIZATION_LEVEL
        if level not in buckets:
            issues.append(
                ConversionIssue.create(
                    IssueType.HIERARCHY_WARNING,
                    f"{meeting.id} ({meeting.name}): organization_level {level} is outside 1-3; excluded",
                    row=meeting.row_index + 1 if meeting.row_index is not None else -1,
                )
            )
            continue
        buckets[level].append(meeting)

    hierarchy = MeetingHierarchy(
        level1=tuple(buckets[1]),
        level2=tuple(buckets[2]),
        level3=tuple(buckets[3]),
    )
    logger.debug(
        "hierarchy: level1=%d level2=%d level3=%d",
        len(hierarchy.level1), len(hierarchy.level2), len(hierarchy.level3),
    )
    return StructuringOutcome(hierarchy=hierarchy, issues=issues)


def _link(parents: Sequence[Task], children: Sequence[Task]) -> list[HierarchyEdge]:
    edges: list[HierarchyEdge] = []
    # 親ごとに子を走査 (親の並び順で edge を出す)
    for parent in parents:
        for child in children:
            # report_to はタスク id / 元 id のどちらでも可
            if child.report_to and child.report_to in (parent.id, parent.source_id):
                edges.append(HierarchyEdge(from_id=parent.id, to_id=child.id))
    return edges


def build_hierarchy_edges(hierarchy: MeetingHierarchy) -> list[HierarchyEdge]:
    """Reporting edges level1 -> level2 and level2 -> level3 (parent first)."""
    return _link(hierarchy.level1, hierarchy.level2) + _link(hierarchy.level2, hierarchy.level3)


def organization_level_name(level: int | None) -> str:
    return _LEVEL_NAMES.get(level, _UNKNOWN) if level is not None else _UNKNOWN


def authority_name(authority: str) -> str:
    return _AUTHORITY_NAMES.get(authority, _UNKNOWN)


def frequency_name(frequency: str) -> str:
    return _FREQUENCY_NAMES.get(frequency, _UNKNOWN)


def default_level_color(level: int | None) -> str:
    """Same color a Task of this level gets without a timeline_color."""
    return level_color(level)
