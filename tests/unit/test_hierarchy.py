from __future__ import annotations

from datetime import date

import pytest

from schedule_import.models.column_mapping import TaskKind
from schedule_import.models.issue import IssueType
from schedule_import.models.processing_result import HierarchyEdge
from schedule_import.services.hierarchy import (
    authority_name,
    build_hierarchy_edges,
    default_level_color,
    frequency_name,
    organization_level_name,
    structure_meetings,
)


def _meeting(task_factory, task_id, level, **kw):
    return task_factory(task_id, start=date(2025, 1, 1), kind=TaskKind.MEETING, organization_level=level, **kw)


def test_levels_are_partitioned_with_default_two(task_factory):
    meetings = [
        _meeting(task_factory, "task-1", 1),
        _meeting(task_factory, "task-2", None),
        _meeting(task_factory, "task-3", 3),
        _meeting(task_factory, "task-4", 2),
    ]
    outcome = structure_meetings(meetings)
    h = outcome.hierarchy
    assert [t.id for t in h.level1] == ["task-1"]
    assert [t.id for t in h.level2] == ["task-2", "task-4"]
    assert [t.id for t in h.level3] == ["task-3"]
    assert len(h) == 4
    assert outcome.issues == []


def test_out_of_range_level_is_excluded_with_warning(task_factory):
    outcome = structure_meetings([_meeting(task_factory, "task-1", 5, row_index=1)])
    assert len(outcome.hierarchy) == 0
    assert len(outcome.issues) == 1
    assert outcome.issues[0].issue_type == IssueType.HIERARCHY_WARNING.value
    assert outcome.issues[0].row == 2


def test_reporting_edges_match_task_id_or_source_id(task_factory):
    meetings = [
        _meeting(task_factory, "task-1", 1, source_id="GM1"),
        _meeting(task_factory, "task-2", 2, source_id="BM1", report_to="GM1"),
        _meeting(task_factory, "task-3", 3, report_to="task-2"),
        _meeting(task_factory, "task-4", 3, report_to="XX"),
        _meeting(task_factory, "task-5", 2),
    ]
    edges = build_hierarchy_edges(structure_meetings(meetings).hierarchy)
    assert edges == [
        HierarchyEdge(from_id="task-1", to_id="task-2"),
        HierarchyEdge(from_id="task-2", to_id="task-3"),
    ]
    assert edges[0].relationship == "reports_to"


def test_reporting_edges_are_ordered_by_parent(task_factory):
    meetings = [
        _meeting(task_factory, "task-1", 1, source_id="GM-A"),
        _meeting(task_factory, "task-2", 1, source_id="GM-B"),
        _meeting(task_factory, "task-3", 2, report_to="GM-B"),
        _meeting(task_factory, "task-4", 2, report_to="GM-A"),
    ]
    edges = build_hierarchy_edges(structure_meetings(meetings).hierarchy)
    assert [(e.from_id, e.to_id) for e in edges] == [("task-1", "task-4"), ("task-2", "task-3")]


def test_display_lookups():
    assert organization_level_name(1).startswith("総会")
    assert organization_level_name(None) == "不明"
    assert authority_name("final") == "最終決定権"
    assert authority_name("other") == "不明"
    assert frequency_name("monthly") == "月1回"
    assert default_level_color(1) == "#8B0000"
    assert default_level_color(2) == "#FF8C00"
    assert default_level_color(3) == "#32CD32"
    assert default_level_color(7) == "#666666"
    assert default_level_color(None) == "#666666"


@pytest.mark.parametrize("level", [1, 2, 3, 7, None])
def test_default_level_color_matches_task_color(task_factory, level):
    meeting = _meeting(task_factory, "task-1", level)
    assert meeting.hierarchy_color == default_level_color(level)
