from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .column_mapping import ColumnMapping

"""Typed row record for the schedule import pipeline.

ScheduleRow replaces positional access into raw spreadsheet rows: it is built
once, right after schema detection, and every later stage reads named fields.

Row numbering:
- row_index: index in the raw grid (header = 0, first data row = 1)
- line_number: 1-based sheet line (header = line 1), used in messages
"""

__all__ = [
    "ScheduleRow",
    "build_column_index",
    "cell_text",
    "is_blank_cell",
]


def is_blank_cell(value: Any) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def cell_text(value: Any) -> str:
    """Render a cell as trimmed text ("" for blank cells).

    Integral floats lose their fraction so that Excel numbers such as 2.0
    read the same as the CSV text "2".
    """
    if is_blank_cell(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def build_column_index(headers: Sequence[Any]) -> dict[str, int]:
    """Map header text to its first position (duplicate headers keep the first)."""
    index: dict[str, int] = {}
    for pos, header in enumerate(headers):
        index.setdefault(cell_text(header), pos)
    return index


@dataclass(frozen=True)
class ScheduleRow:
    """One data row after header mapping.

    Date cells keep their raw value (string, serial number or date object);
    every other field is trimmed text, "" when absent.
    """
    row_index: int
    name: str
    start_raw: Any
    end_raw: Any
    status: str = ""
    type: str = ""
    dependencies: str = ""
    original_id: str = ""
    event_type: str = ""
    organization_level: str = ""
    organization_type: str = ""
    decision_authority: str = ""
    report_to: str = ""
    attendees: str = ""
    location: str = ""
    agenda: str = ""
    timeline_color: str = ""
    priority: str = ""
    frequency: str = ""
    memo: str = ""
    assignee: str = ""
    blank: bool = False  # 全セル空
    raw_values: tuple[Any, ...] = ()

    @property
    def line_number(self) -> int:
        return self.row_index + 1

    @staticmethod
    def from_cells(
        row_index: int,
        cells: Sequence[Any],
        column_index: dict[str, int],
        mapping: ColumnMapping,
        header_count: int,
    ) -> ScheduleRow:
        """Build a ScheduleRow from raw cells.

        Short rows are right-padded with "" up to the header width. Padding only
        appends, so a populated dependencies cell before the pad is kept as-is.
        """
        values = list(cells)
        blank = all(is_blank_cell(v) for v in values)

        if len(values) < header_count:
            values.extend([""] * (header_count - len(values)))

        def raw(column: str | None) -> Any:
            if column is None:
                return None
            pos = column_index.get(column)
            if pos is None or pos >= len(values):
                return None
            return values[pos]

        def text(column: str | None) -> str:
            return cell_text(raw(column))

        return ScheduleRow(
            row_index=row_index,
            name=text(mapping.event_name),
            start_raw=raw(mapping.start_date),
            end_raw=raw(mapping.end_date),
            status=text(mapping.status),
            type=text(mapping.type),
            dependencies=text(mapping.dependencies),
            original_id=text(mapping.original_id),
            event_type=text(mapping.event_type),
            organization_level=text(mapping.organization_level),
            organization_type=text(mapping.organization_type),
            decision_authority=text(mapping.decision_authority),
            report_to=text(mapping.report_to),
            attendees=text(mapping.attendees),
            location=text(mapping.location),
            agenda=text(mapping.agenda),
            timeline_color=text(mapping.timeline_color),
            priority=text(mapping.priority),
            frequency=text(mapping.frequency),
            memo=text(mapping.memo),
            assignee=text(mapping.assignee),
            blank=blank,
            raw_values=tuple(values),
        )
