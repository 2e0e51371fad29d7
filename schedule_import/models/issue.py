from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum

"""Structured issue records collected during a conversion run.

Non-fatal problems (row validation errors, warnings, dependency and meeting
degradations) are never raised; they are collected as ConversionIssue records
and returned alongside the (possibly partial) output. row=-1 marks
dataset-level issues where no single row is responsible.
"""

__all__ = [
    "IssueType",
    "Severity",
    "ConversionIssue",
    "RowFix",
    "DATASET_ROW",
]

DATASET_ROW = -1


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueType(Enum):
    """Issue classification in UPPER_SNAKE_CASE."""
    ROW_VALIDATION_ERROR = "ROW_VALIDATION_ERROR"
    ROW_VALIDATION_WARNING = "ROW_VALIDATION_WARNING"
    DEPENDENCY_RESOLUTION_WARNING = "DEPENDENCY_RESOLUTION_WARNING"
    DEPENDENCY_TIMELINE_WARNING = "DEPENDENCY_TIMELINE_WARNING"
    AGGREGATION_WARNING = "AGGREGATION_WARNING"
    HIERARCHY_WARNING = "HIERARCHY_WARNING"

    @property
    def severity(self) -> Severity:
        if self is IssueType.ROW_VALIDATION_ERROR:
            return Severity.ERROR
        return Severity.WARNING


@dataclass(frozen=True)
class ConversionIssue:
    """Structured issue record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        row: 1-based sheet line (header = 1). -1 for dataset-level issues
        severity: "error" or "warning"
        issue_type: IssueType value
        message: Human readable description including the offending value
    """
    timestamp: str
    row: int
    severity: str
    issue_type: str
    message: str

    @staticmethod
    def create(issue_type: IssueType, message: str, row: int = DATASET_ROW) -> ConversionIssue:
        """Create a new ConversionIssue stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ConversionIssue(
            timestamp=ts,
            row=row,
            severity=issue_type.severity.value,
            issue_type=issue_type.value,
            message=message,
        )

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR.value

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines record (fixed key set)."""
        return json.dumps(asdict(self), ensure_ascii=False)


@dataclass(frozen=True)
class RowFix:
    """An implicit correction the normalizer will apply to a row."""
    row: int  # 1-based sheet line
    field: str
    original: str
    replacement: str
