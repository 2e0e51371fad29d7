# Shared pytest fixtures
from __future__ import annotations
import csv
import tempfile
from datetime import date
from pathlib import Path

import pytest

from schedule_import.logging.init import reset_logging
from schedule_import.models.column_mapping import UNIFIED_COLUMNS, TaskKind
from schedule_import.models.task import StatusClass, Task


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        # .env 経由で設定されても teardown で必ず消えるよう一度 set してから del
        monkeypatch.setenv("SCHEDULE_IMPORT_CONFIG", "")
        monkeypatch.delenv("SCHEDULE_IMPORT_CONFIG")
        yield p


@pytest.fixture()
def clean_logging():
    # StreamHandler は setup 時点の sys.stdout を掴むので capsys 前にリセット
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """max_file_size_mb: 5
long_span_days: 200
strict_validation: false
aggregate_meetings: true
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def english_grid() -> list[list[object]]:
    return [
        ["id", "name", "start", "end", "progress", "dependencies", "assignee"],
        ["T1", "足場設置", "2025-01-06", "2025-01-31", "100", "", "業者A"],
        ["T2", "外壁補修", "2025-02-01", "2025-03-15", "40", "T1", "業者B"],
        ["T3", "防水工事", "2025-03-16", "2025-04-30", "0", "T2", "業者B"],
    ]


@pytest.fixture()
def meeting_grid() -> list[list[object]]:
    return [
        ["id", "name", "start_date", "end_date", "organization_level", "organization_type", "report_to"],
        ["GM1", "通常総会", "2025-05-25", "", "1", "general_meeting", ""],
        ["BM1", "理事会1月", "2025-01-10", "", "2", "board_meeting", "GM1"],
        ["BM2", "理事会2月", "2025-02-10", "", "2", "board_meeting", "GM1"],
        ["BM3", "理事会3月", "2025-03-10", "", "2", "board_meeting", "GM1"],
        ["RC1", "修繕委員会1月", "2025-01-20", "", "3", "repair_committee", "BM1"],
    ]


def _unified_row(**values: str) -> list[str]:
    return [values.get(col, "") for col in UNIFIED_COLUMNS]


@pytest.fixture()
def unified_grid() -> list[list[object]]:
    return [
        list(UNIFIED_COLUMNS),
        _unified_row(
            id="GM1", name="通常総会", start="2024-05-26", end="2024-05-26", progress="0",
            event_type="meeting", organization_level="1", organization_type="general_meeting",
            decision_authority="final", frequency="annual",
        ),
        _unified_row(
            id="BM1", name="理事会4月", start="2024-04-14", end="2024-04-14", progress="0",
            event_type="meeting", organization_level="2", organization_type="board_meeting",
            decision_authority="executive", report_to="GM1", frequency="monthly",
        ),
        _unified_row(
            id="RC1", name="修繕委員会4月", start="2024-04-20", end="2024-04-20", progress="0",
            event_type="meeting", organization_level="3", organization_type="repair_committee",
            decision_authority="advisory", report_to="BM1", frequency="monthly",
        ),
        _unified_row(
            id="T1", name="足場設置", start="2024-06-01", end="2024-06-30", progress="100",
            dependencies="GM1", assignee="業者A", event_type="construction",
        ),
        _unified_row(
            id="T2", name="外壁補修", start="2024-07-01", end="2024-08-31", progress="40",
            dependencies="T1", assignee="業者B", event_type="construction",
        ),
        _unified_row(
            id="T3", name="防水工事", start="2024-08-15", end="2024-09-30", progress="0",
            dependencies="T1:T2, T2", assignee="業者B", event_type="construction",
            memo="雨天順延",
        ),
    ]


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(grid: list[list[object]], name: str = "schedule.csv") -> Path:
        path = temp_workdir / "data" / name
        with path.open("w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerows(grid)
        return path
    return _write


def make_task(
    task_id: str,
    *,
    name: str | None = None,
    start: date = date(2025, 1, 1),
    end: date | None = None,
    source_id: str = "",
    raw_dependencies: str = "",
    dependencies: tuple[str, ...] = (),
    kind: TaskKind = TaskKind.CONSTRUCTION,
    organization_level: int | None = None,
    organization_type: str = "",
    report_to: str = "",
    frequency: str = "",
    row_index: int | None = None,
) -> Task:
    return Task(
        id=task_id,
        name=name or task_id,
        start=start,
        end=end or start,
        progress=0,
        status_class=StatusClass.PLANNED,
        kind=kind,
        dependencies=dependencies,
        raw_dependencies=raw_dependencies,
        source_id=source_id,
        row_index=row_index,
        organization_level=organization_level,
        organization_type=organization_type,
        report_to=report_to,
        frequency=frequency,
    )


@pytest.fixture()
def task_factory():
    return make_task
