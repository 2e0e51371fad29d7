"""Domain models for the schedule import pipeline."""

from .column_mapping import KNOWN_LAYOUTS, ColumnMapping, StatusPolicy, TaskKind
from .config_models import ImportConfig, RecurringWindow
from .issue import ConversionIssue, IssueType, RowFix, Severity
from .processing_result import (
    ConversionResult,
    DependencyCheck,
    DependencyEdge,
    HierarchyEdge,
    MeetingHierarchy,
    ValidationResult,
)
from .row_data import ScheduleRow
from .task import StatusClass, Task

__all__ = [
    # Layout models
    "ColumnMapping",
    "KNOWN_LAYOUTS",
    "StatusPolicy",
    "TaskKind",
    # Configuration models
    "ImportConfig",
    "RecurringWindow",
    # Row / task models
    "ScheduleRow",
    "StatusClass",
    "Task",
    # Issue models
    "ConversionIssue",
    "IssueType",
    "RowFix",
    "Severity",
    # Result models
    "ConversionResult",
    "DependencyCheck",
    "DependencyEdge",
    "HierarchyEdge",
    "MeetingHierarchy",
    "ValidationResult",
]
