from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from ..models.issue import ConversionIssue, IssueType
from ..models.processing_result import DependencyCheck, DependencyEdge
from ..models.task import Task

"""Dependency resolution: rewrite dependency cells into task ids.

Mirrors the parent-key propagation idea of a relational import: original
identifiers (the `id` column) are mapped to the synthesized task ids once,
then every dependency token is looked up in that map.

Token grammar (comma separated):
    "T1"       implicit: the current task depends on T1
    "T1:T2"    explicit: T1 precedes T2

Meeting short-codes (GM / BM / RC anywhere in the token, checked in that
order) resolve to the aggregate meeting group ids and take precedence over
the id map.
"""

__all__ = [
    "DependencyReference",
    "ResolutionOutcome",
    "MEETING_GROUP_SHORT_CODES",
    "build_id_map",
    "parse_dependency_references",
    "resolve_reference_endpoint",
    "resolve_dependencies",
    "check_dependency_timeline",
]

logger = logging.getLogger(__name__)

# 短縮コード -> 集約グループ id (順序が優先度)
MEETING_GROUP_SHORT_CODES: tuple[tuple[str, str], ...] = (
    ("GM", "meeting_group_general_meeting"),
    ("BM", "meeting_group_board_meeting"),
    ("RC", "meeting_group_repair_committee"),
)


@dataclass(frozen=True)
class DependencyReference:
    """One parsed dependency token.

    For an implicit reference to_token is None (the owning task is the target).
    """
    from_token: str
    to_token: str | None = None

    @property
    def explicit(self) -> bool:
        return self.to_token is not None


@dataclass(frozen=True)
class ResolutionOutcome:
    tasks: list[Task]
    explicit_edges: list[DependencyEdge]
    issues: list[ConversionIssue]


def parse_dependency_references(cell: str) -> list[DependencyReference]:
    """Split a dependency cell into references (empty tokens dropped)."""
    refs: list[DependencyReference] = []
    for token in cell.split(","):
        token = token.strip()
        if not token:
            continue
        if ":" in token:
            from_token, to_token = token.split(":", 1)
            refs.append(DependencyReference(from_token.strip(), to_token.strip()))
        else:
            refs.append(DependencyReference(token))
    return refs


def build_id_map(tasks: Sequence[Task]) -> tuple[dict[str, str], list[ConversionIssue]]:
    """Map original identifiers to task ids.

    Returns
    -------
    (id_map, issues): a duplicated identifier keeps the later row and yields
    one warning per duplicate.
    """
    id_map: dict[str, str] = {}
    issues: list[ConversionIssue] = []
    for task in tasks:
        if not task.source_id:
            continue
        previous = id_map.get(task.source_id)
        if previous is not None:
            issues.append(
                ConversionIssue.create(
                    IssueType.DEPENDENCY_RESOLUTION_WARNING,
                    f"duplicate id '{task.source_id}' ({previous} and {task.id}); {task.id} is used",
                    row=task.row_index + 1 if task.row_index is not None else -1,
                )
            )
        id_map[task.source_id] = task.id
    return id_map, issues


def resolve_reference_endpoint(token: str, id_map: dict[str, str]) -> str | None:
    """Resolve one endpoint token to a task / meeting group id, or None."""
    if not token:
        return None
    for code, group_id in MEETING_GROUP_SHORT_CODES:
        if code in token:
            return group_id
    return id_map.get(token)


def _rejected_targets(
    ref: DependencyReference, id_map: dict[str, str], rejected: Mapping[str, int]
) -> list[str]:
    """Endpoints of ref that only exist on a rejected row, as "'T4' (row 5)"."""
    found: list[str] = []
    for token in (ref.from_token, ref.to_token):
        if token and resolve_reference_endpoint(token, id_map) is None and token in rejected:
            found.append(f"'{token}' (row {rejected[token]})")
    return found


def _append_unique(deps: list[str], task_id: str, own_id: str) -> None:
    if task_id != own_id and task_id not in deps:
        deps.append(task_id)


def resolve_dependencies(
    tasks: Sequence[Task],
    has_id_column: bool,
    rejected_ids: Mapping[str, int] | None = None,
) -> ResolutionOutcome:
    """Resolve every task's raw dependency cell.

    Parameters
    ----------
    tasks: Normalized tasks carrying raw_dependencies / source_id
    has_id_column: Whether the dataset header has an `id` column; without it
        resolution is skipped and all dependencies are cleared
    rejected_ids: Original id -> sheet line of rows rejected by validation.
        References to them are still dropped, but the warning names the row

    Returns
    -------
    ResolutionOutcome with new Task objects (input tasks are not modified)
    """
    issues: list[ConversionIssue] = []
    edges: list[DependencyEdge] = []

    if not has_id_column:
        cleared = [replace(t, dependencies=()) for t in tasks]
        issues.append(
            ConversionIssue.create(
                IssueType.DEPENDENCY_RESOLUTION_WARNING,
                "id column not found; dependencies are disabled",
            )
        )
        logger.warning("id column not found; dependency resolution skipped")
        return ResolutionOutcome(tasks=cleared, explicit_edges=edges, issues=issues)

    id_map, dup_issues = build_id_map(tasks)
    issues.extend(dup_issues)
    rejected = rejected_ids or {}

    resolved_tasks: list[Task] = []
    resolved_count = 0
    for task in tasks:
        refs = parse_dependency_references(task.raw_dependencies)
        if not refs:
            resolved_tasks.append(replace(task, dependencies=()))
            continue

        deps: list[str] = []
        any_resolved = False
        rejected_refs: list[str] = []
        for ref in refs:
            from_id = resolve_reference_endpoint(ref.from_token, id_map)
            rejected_refs.extend(_rejected_targets(ref, id_map, rejected))
            if not ref.explicit:
                if from_id is not None:
                    any_resolved = True
                    _append_unique(deps, from_id, task.id)
                continue

            to_id = resolve_reference_endpoint(ref.to_token or "", id_map)
            if from_id is None or to_id is None:
                continue
            any_resolved = True
            if to_id == task.id:
                _append_unique(deps, from_id, task.id)
            elif from_id != to_id:
                edges.append(DependencyEdge(from_id=from_id, to_id=to_id, source_id=task.id))

        row = task.row_index + 1 if task.row_index is not None else -1
        rejected_note = f"; rejected {', '.join(rejected_refs)}" if rejected_refs else ""
        if not any_resolved:
            issues.append(
                ConversionIssue.create(
                    IssueType.DEPENDENCY_RESOLUTION_WARNING,
                    f"{task.id} ({task.name}): dependencies '{task.raw_dependencies}' could not be resolved"
                    f"{rejected_note}",
                    row=row,
                )
            )
        else:
            resolved_count += 1
            if rejected_refs:
                issues.append(
                    ConversionIssue.create(
                        IssueType.DEPENDENCY_RESOLUTION_WARNING,
                        f"{task.id} ({task.name}): dependencies on rejected rows dropped: "
                        f"{', '.join(rejected_refs)}",
                        row=row,
                    )
                )
        resolved_tasks.append(replace(task, dependencies=tuple(deps)))

    logger.info("dependencies resolved for %d tasks (%d explicit edges)", resolved_count, len(edges))
    return ResolutionOutcome(tasks=resolved_tasks, explicit_edges=edges, issues=issues)


def check_dependency_timeline(
    tasks: Sequence[Task],
    explicit_edges: Sequence[DependencyEdge] = (),
) -> tuple[list[DependencyCheck], list[ConversionIssue]]:
    """Check that every predecessor ends no later than its successor starts.

    Pairs come from each task's dependencies (dependency -> task) and from the
    explicit edges. Conflicts are reported, never removed.
    """
    by_id = {t.id: t for t in tasks}
    pairs = [(dep, t.id) for t in tasks for dep in t.dependencies]
    pairs.extend((e.from_id, e.to_id) for e in explicit_edges)

    checks: list[DependencyCheck] = []
    issues: list[ConversionIssue] = []
    for from_id, to_id in pairs:
        predecessor = by_id.get(from_id)
        successor = by_id.get(to_id)
        if predecessor is None or successor is None:
            checks.append(DependencyCheck(from_id, to_id, valid=False, reason="task_not_found"))
            continue
        gap = (successor.start - predecessor.end).days
        if gap < 0:
            checks.append(DependencyCheck(from_id, to_id, valid=False, reason="timeline_conflict", gap_days=gap))
            issues.append(
                ConversionIssue.create(
                    IssueType.DEPENDENCY_TIMELINE_WARNING,
                    f"{from_id} ends {predecessor.end.isoformat()} after {to_id} starts "
                    f"{successor.start.isoformat()}",
                    row=successor.row_index + 1 if successor.row_index is not None else -1,
                )
            )
        else:
            checks.append(DependencyCheck(from_id, to_id, valid=True, reason="ok", gap_days=gap))
    return checks, issues
