from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import default_config
from ..excel.reader import ProgressCallback, build_schedule_rows, load_grid
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.issue import ConversionIssue
from ..models.processing_result import ConversionResult
from ..models.row_data import cell_text
from ..models.task import Task
from .dependency_resolver import check_dependency_timeline, resolve_dependencies
from .hierarchy import build_hierarchy_edges, structure_meetings
from .meeting_aggregator import aggregate_meetings, expand_recurring_meetings
from .normalizer import normalize_rows
from .row_validator import validate_rows
from .schema_detector import SchemaDetectionError, detect_schema

logger = logging.getLogger(__name__)

"""Conversion pipeline orchestration.

convert_grid() runs one conversion pass over a raw cell grid:

    header -> detect_schema -> build_schedule_rows -> validate_rows
           -> normalize_rows -> resolve_dependencies
           -> [expand_recurring_meetings] -> aggregate_meetings
           -> structure_meetings / build_hierarchy_edges
           -> check_dependency_timeline

process_file() adds loading (load_grid) in front and writes every collected
issue to the JSON Lines issue log afterwards.

Fatal conditions raise (SchemaDetectionError, ConversionError, GridLoadError);
everything else is collected into the returned ConversionResult.
"""

__all__ = [
    "ConversionError",
    "convert_grid",
    "process_file",
]


class ConversionError(Exception):
    """Fatal conversion failure (no data rows, no valid rows, strict mode).

    issues carries whatever was collected before the failure so that the
    caller can still write it to the issue log.
    """
    def __init__(self, message: str, issues: Sequence[ConversionIssue] = ()) -> None:
        super().__init__(message)
        self.issues = list(issues)


def _first_messages(issues: Sequence[ConversionIssue], limit: int = 3) -> str:
    shown = "; ".join(i.message for i in issues[:limit])
    if len(issues) > limit:
        shown += f"; ... ({len(issues) - limit} more)"
    return shown


def convert_grid(
    grid: Sequence[Sequence[Any]],
    config: ImportConfig | None = None,
) -> ConversionResult:
    """Convert a raw grid (header row + data rows) into canonical tasks.

    Args:
        grid: Raw cells; grid[0] is the header row
        config: Run options (defaults when None)

    Returns:
        ConversionResult. Row-level errors do not raise; they are reported in
        result.errors and the rows are left out.

    Raises:
        SchemaDetectionError: empty grid / header, or no usable layout
        ConversionError: no data rows, zero valid rows, or any row error
            when strict_validation is enabled
    """
    cfg = config or default_config()
    start_time = datetime.now(UTC)

    if not grid:
        raise SchemaDetectionError("grid is empty; a header row is required")
    headers = [cell_text(h) for h in grid[0]]
    mapping = detect_schema(headers)
    logger.info("layout=%s columns=%d", mapping.name, len(headers))

    sheet = build_schedule_rows(grid, mapping)
    if not sheet.rows:
        raise ConversionError("no data rows found below the header")

    validation = validate_rows(sheet.rows, mapping, headers, cfg.long_span_days)
    collected = validation.errors + validation.warnings
    if validation.valid_row_count == 0:
        raise ConversionError(
            f"no valid data rows: {_first_messages(validation.errors)}", issues=collected
        )
    if cfg.strict_validation and validation.errors:
        raise ConversionError(
            f"strict validation: {len(validation.errors)} row errors: "
            f"{_first_messages(validation.errors)}",
            issues=collected,
        )

    issues: list[ConversionIssue] = []
    normalized = normalize_rows(sheet.rows, mapping, validation.accepted_rows)
    issues.extend(normalized.issues)

    has_id_column = mapping.original_id is not None and mapping.original_id in headers
    # 検証で落ちた行の id (依存先として参照されたら警告に行番号を出す)
    rejected_ids = {
        row.original_id: row.line_number
        for row in sheet.rows
        if row.original_id and not row.blank and row.row_index not in validation.accepted_rows
    }
    resolution = resolve_dependencies(normalized.tasks, has_id_column, rejected_ids)
    issues.extend(resolution.issues)

    tasks: list[Task] = resolution.tasks
    meetings = [t for t in tasks if t.is_meeting]
    window = cfg.recurring_window
    if window is not None and meetings:
        # 繰り返し展開: 会議テンプレートを期間内の個別開催に置換
        meetings = expand_recurring_meetings(meetings, window.start, window.end)
        tasks = [t for t in tasks if not t.is_meeting] + meetings

    meeting_groups: list[Task] = []
    if cfg.aggregate_meetings and meetings:
        aggregation = aggregate_meetings(meetings)
        meeting_groups = aggregation.groups
        issues.extend(aggregation.issues)

    structuring = structure_meetings(meetings)
    issues.extend(structuring.issues)
    connections = build_hierarchy_edges(structuring.hierarchy)

    checks, timeline_issues = check_dependency_timeline(
        tasks + meeting_groups, resolution.explicit_edges
    )
    issues.extend(timeline_issues)

    end_time = datetime.now(UTC)
    result = ConversionResult(
        mapping=mapping,
        validation=validation,
        tasks=tasks,
        meeting_groups=meeting_groups,
        hierarchy=structuring.hierarchy,
        connections=connections,
        explicit_edges=resolution.explicit_edges,
        dependency_checks=checks,
        issues=issues,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        row_count=len(sheet.rows),
    )
    logger.info(
        "converted tasks=%d meetings=%d groups=%d errors=%d warnings=%d",
        len(result.tasks),
        len(result.meetings),
        len(result.meeting_groups),
        len(result.errors),
        len(result.warnings),
    )
    return result


def _flush_issues(log: ErrorLogBuffer, issues: Sequence[ConversionIssue]) -> None:
    log.extend(issues)
    try:
        path = log.flush()
    except OSError as e:
        # issue log 書き込み失敗は変換結果を無効にしない
        logger.warning("failed to write issue log: %s", e)
        return
    if path is not None:
        logger.info("issues written to %s", path)


def process_file(
    path: Path,
    config: ImportConfig | None = None,
    progress: ProgressCallback | None = None,
) -> ConversionResult:
    """Load a spreadsheet / CSV file and convert it.

    Args:
        path: .xlsx / .csv file
        config: Run options (defaults when None)
        progress: Optional (percent, message) callback for the load step

    Raises:
        GridLoadError, SchemaDetectionError, ConversionError
    """
    cfg = config or default_config()
    issue_log = ErrorLogBuffer(cfg.error_log_dir)

    grid = load_grid(Path(path), cfg.max_file_size_bytes, progress)
    logger.debug("loaded %s rows=%d", Path(path).name, len(grid))
    try:
        result = convert_grid(grid, cfg)
    except ConversionError as e:
        _flush_issues(issue_log, e.issues)
        raise

    _flush_issues(issue_log, result.validation.errors + result.validation.warnings + result.issues)
    return result
