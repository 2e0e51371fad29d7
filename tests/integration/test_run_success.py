from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd  # type: ignore

from schedule_import.cli.__main__ import main as cli_main

"""Integration test: successful runs over real .xlsx and .csv files.

Excel files are generated with pandas + openpyxl so that date cells reach the
reader as decoded datetimes, the same way a hand-edited workbook does.
"""


def _make_excel_file(tmp_path: Path, name: str, rows: list[list[object]]) -> Path:
    """Create a real single-sheet Excel file (no pandas header row)."""
    excel_path = tmp_path / name
    with pd.ExcelWriter(excel_path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Schedule", header=False, index=False)
    return excel_path


def test_run_success_xlsx_english(temp_workdir: Path, write_config: Path, clean_logging, capsys):
    path = _make_excel_file(
        temp_workdir / "data",
        "schedule.xlsx",
        [
            ["id", "name", "start", "end", "progress", "dependencies", "assignee"],
            ["T1", "足場設置", datetime(2025, 1, 6), datetime(2025, 1, 31), 100, None, "業者A"],
            ["T2", "外壁補修", datetime(2025, 2, 1), datetime(2025, 3, 15), 40, "T1", "業者B"],
            ["T3", "防水工事", "2025-03-16", "2025年4月30日", 0, "T2", None],
        ],
    )
    out_path = temp_workdir / "out.json"
    code = cli_main([str(path), "--output", str(out_path)])
    out = capsys.readouterr().out

    assert code == 0
    assert "SUMMARY schema=english rows=3 valid_rows=3 tasks=3 meetings=0 groups=0 dependencies=2 errors=0 warnings=0" in out

    payload = json.loads(out_path.read_text(encoding="utf-8"))
    tasks = {t["id"]: t for t in payload["tasks"]}
    assert tasks["task-1"]["start"] == "2025-01-06"
    assert tasks["task-1"]["status_class"] == "completed"
    assert tasks["task-2"]["status_class"] == "in-progress"
    assert tasks["task-2"]["progress"] == 40
    assert tasks["task-3"]["end"] == "2025-04-30"
    assert tasks["task-3"]["dependencies"] == ["task-2"]
    assert "assignee" not in tasks["task-3"]
    assert all(c["valid"] for c in payload["dependency_checks"])

    # warning / error 0 件なら issue log は作らない
    assert list((temp_workdir / "logs").glob("issues-*.log")) == []


def test_run_success_xlsx_localized(temp_workdir: Path, clean_logging, capsys):
    path = _make_excel_file(
        temp_workdir / "data",
        "予定表.xlsx",
        [
            ["イベント名", "開始日", "終了日", "ステータス", "種類", "進捗率"],
            ["大規模修繕説明会", datetime(2025, 4, 12), datetime(2025, 4, 12), "完了", "meeting", 100],
            ["外壁調査", datetime(2025, 4, 14), datetime(2025, 4, 25), "進行中", "construction", 30],
            ["見積比較", datetime(2025, 5, 1), datetime(2025, 5, 20), "予定", None, None],
        ],
    )
    out_path = temp_workdir / "out.json"
    code = cli_main([str(path), "--output", str(out_path)])
    out = capsys.readouterr().out

    assert code == 0
    assert "SUMMARY schema=localized rows=3 valid_rows=3 tasks=3" in out
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert [t["status_class"] for t in payload["tasks"]] == ["completed", "in-progress", "planned"]
    assert [t["name"] for t in payload["tasks"]] == ["大規模修繕説明会", "外壁調査", "見積比較"]


def test_run_success_csv_meetings(temp_workdir: Path, clean_logging, write_csv, meeting_grid, capsys):
    path = write_csv(meeting_grid)
    out_path = temp_workdir / "out.json"
    code = cli_main([str(path), "--output", str(out_path)])
    out = capsys.readouterr().out

    assert code == 0
    assert "SUMMARY schema=meeting rows=5 valid_rows=5 tasks=5 meetings=5 groups=3" in out
    payload = json.loads(out_path.read_text(encoding="utf-8"))

    board = payload["meeting_groups"][1]
    assert board["id"] == "meeting_group_board_meeting"
    assert board["name"] == "理事会(毎月)"
    assert board["type"] == "meeting_group"
    assert board["start"] == "2025-01-10"
    assert board["end"] == "2025-03-10"
    assert board["meeting_count"] == 3
    assert [m["name"] for m in board["meetings"]] == ["理事会1月", "理事会2月", "理事会3月"]

    # end_date 空欄 -> 開始日と同日
    assert all(t["start"] == t["end"] for t in payload["tasks"])
    assert payload["hierarchy"] == {
        "level1": ["task-1"],
        "level2": ["task-2", "task-3", "task-4"],
        "level3": ["task-5"],
    }
