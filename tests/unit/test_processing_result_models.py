from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import UTC, date, datetime

import pytest

from schedule_import.models.column_mapping import ENGLISH_MAPPING, TaskKind
from schedule_import.models.issue import ConversionIssue, IssueType
from schedule_import.models.processing_result import (
    ConversionResult,
    DependencyCheck,
    DependencyEdge,
    HierarchyEdge,
    MeetingHierarchy,
    ValidationResult,
)

"""Unit tests for the result models in models/processing_result.py."""


def _result(**overrides) -> ConversionResult:
    now = datetime(2025, 1, 1, tzinfo=UTC)
    fields = dict(
        mapping=ENGLISH_MAPPING,
        validation=ValidationResult(
            valid=True, errors=[], warnings=[], fixes=[], valid_row_count=0
        ),
        tasks=[],
        meeting_groups=[],
        hierarchy=MeetingHierarchy(),
        connections=[],
        explicit_edges=[],
        dependency_checks=[],
        issues=[],
        start_time=now,
        end_time=now,
        elapsed_seconds=0.0,
    )
    fields.update(overrides)
    return ConversionResult(**fields)


class TestMeetingHierarchy:

    def test_levels_and_len(self, task_factory):
        gm = task_factory("task-1", kind=TaskKind.MEETING, organization_level=1)
        bm = task_factory("task-2", kind=TaskKind.MEETING, organization_level=2)
        h = MeetingHierarchy(level1=(gm,), level2=(bm,))
        assert len(h) == 2
        assert h.levels() == {1: (gm,), 2: (bm,), 3: ()}

    def test_frozen(self):
        h = MeetingHierarchy()
        with pytest.raises(FrozenInstanceError):
            h.level1 = ()  # type: ignore[misc]


class TestConversionResult:

    def test_errors_and_warnings_merge_stages(self):
        row_error = ConversionIssue.create(IssueType.ROW_VALIDATION_ERROR, "row 2: event name is blank", row=2)
        row_warning = ConversionIssue.create(IssueType.ROW_VALIDATION_WARNING, "row 3: blank row skipped", row=3)
        timeline = ConversionIssue.create(IssueType.DEPENDENCY_TIMELINE_WARNING, "conflict", row=4)
        validation = ValidationResult(
            valid=False, errors=[row_error], warnings=[row_warning], fixes=[], valid_row_count=1
        )
        result = _result(validation=validation, issues=[timeline])
        assert result.errors == [row_error]
        assert result.warnings == [row_warning, timeline]

    def test_kind_views_and_timeline_order(self, task_factory):
        meeting = task_factory("task-1", kind=TaskKind.MEETING, organization_level=2)
        work = task_factory("task-2")
        group = task_factory("meeting_group_board_meeting", kind=TaskKind.MEETING_GROUP, organization_level=2)
        result = _result(tasks=[meeting, work])
        assert result.meetings == [meeting]
        assert result.construction_tasks == [work]
        assert result.timeline_tasks == [meeting, work]

        grouped = _result(tasks=[meeting, work], meeting_groups=[group])
        assert grouped.timeline_tasks == [group, work]

    def test_dependency_count_includes_explicit_edges(self, task_factory):
        tasks = [
            task_factory("task-1"),
            task_factory("task-2", dependencies=("task-1",)),
            task_factory("task-3", dependencies=("task-1", "task-2")),
        ]
        edges = [DependencyEdge(from_id="task-1", to_id="task-2", source_id="task-3")]
        assert _result(tasks=tasks, explicit_edges=edges).dependency_count == 4

    def test_to_payload(self, task_factory):
        tasks = [
            task_factory("task-1", start=date(2025, 1, 1), end=date(2025, 1, 10)),
            task_factory("task-2", start=date(2025, 1, 5), dependencies=("task-1",)),
        ]
        checks = [DependencyCheck("task-1", "task-2", valid=False, reason="timeline_conflict", gap_days=-5)]
        payload = _result(
            tasks=tasks,
            dependency_checks=checks,
            connections=[HierarchyEdge("task-9", "task-8")],
        ).to_payload()
        assert payload["schema"] == "english"
        assert [t["id"] for t in payload["tasks"]] == ["task-1", "task-2"]
        assert payload["hierarchy"] == {"level1": [], "level2": [], "level3": []}
        assert payload["connections"] == [{"from": "task-9", "to": "task-8", "relationship": "reports_to"}]
        assert payload["dependency_checks"][0]["gap_days"] == -5
        assert payload["errors"] == [] and payload["warnings"] == []
