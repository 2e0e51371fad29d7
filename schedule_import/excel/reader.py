from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from schedule_import.models.column_mapping import ColumnMapping
from schedule_import.models.config_models import DEFAULT_MAX_FILE_SIZE_MB
from schedule_import.models.row_data import ScheduleRow, build_column_index, cell_text

"""Spreadsheet / CSV reader.

load_grid() turns a file into a raw 2-D cell grid (header row + data rows),
reporting progress as percentages:
    0   start
    50  file read
    75  cells converted
    100 done
build_schedule_rows() turns a grid into typed ScheduleRow records once a
ColumnMapping has been selected.
"""

__all__ = [
    "GridLoadError",
    "ProgressCallback",
    "SheetData",
    "SUPPORTED_SUFFIXES",
    "build_schedule_rows",
    "load_grid",
]

ProgressCallback = Callable[[int, str], None]

# .xls は openpyxl で読めないので非対応
SUPPORTED_SUFFIXES = (".xlsx", ".csv")


class GridLoadError(Exception):
    """Raised when a file cannot be turned into a cell grid."""


@dataclass
class SheetData:
    columns: list[str]
    rows: list[ScheduleRow]  # ヘッダを除く全行 (空行含む)


def _report(progress: ProgressCallback | None, percent: int, message: str) -> None:
    if progress is not None:
        progress(percent, message)


def _frame_to_grid(df: pd.DataFrame) -> list[list[Any]]:
    # NaN -> None に統一 (dtype=object にしてから置換)
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.values.tolist()


def load_grid(
    path: Path,
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_MB * 1024 * 1024,
    progress: ProgressCallback | None = None,
) -> list[list[Any]]:
    """Read the first sheet of an .xlsx file, or a CSV file, as a raw grid.

    Parameters
    ----------
    path: .xlsx / .csv file
    max_file_size_bytes: files larger than this are rejected
    progress: optional callback receiving (percent, message)

    Raises
    ------
    GridLoadError: unsupported extension, missing file, size limit, parse failure
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise GridLoadError(
            f"unsupported file type '{path.suffix}' (expected one of {', '.join(SUPPORTED_SUFFIXES)})"
        )
    if not path.is_file():
        raise GridLoadError(f"file not found: {path}")
    size = path.stat().st_size
    if size > max_file_size_bytes:
        limit_mb = max_file_size_bytes // (1024 * 1024)
        raise GridLoadError(f"file too large: {path.name} is {size} bytes (limit {limit_mb}MB)")

    _report(progress, 0, "loading file")
    try:
        if suffix == ".csv":
            # 全セル文字列として読む (日付・進捗の解釈は後段)
            df = pd.read_csv(
                path,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                encoding="utf-8-sig",
            )
        else:
            df = pd.read_excel(path, header=None, sheet_name=0)
    except Exception as e:
        raise GridLoadError(f"failed to read {path.name}: {e}") from e
    _report(progress, 50, "parsing data")

    grid = _frame_to_grid(df)
    _report(progress, 75, "converting data")
    _report(progress, 100, "done")
    return grid


def build_schedule_rows(grid: Sequence[Sequence[Any]], mapping: ColumnMapping) -> SheetData:
    """Convert a raw grid into typed rows using the selected mapping.

    The first grid row is the header. Every following row becomes a
    ScheduleRow whose row_index is its position in the grid.
    """
    headers = [cell_text(h) for h in grid[0]] if grid else []
    column_index = build_column_index(headers)
    rows = [
        ScheduleRow.from_cells(i, grid[i], column_index, mapping, len(headers))
        for i in range(1, len(grid))
    ]
    return SheetData(columns=headers, rows=rows)
