from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from schedule_import.models.issue import ConversionIssue

"""Issue log buffering.

- JSON Lines, fixed schema (timestamp, row, severity, issue_type, message)
- one file per run: `<log_dir>/issues-YYYYMMDD-HHMMSS.log` (UTC)
- records are buffered and written on flush()
"""

__all__ = [
    "ConversionIssue",
    "ErrorLogBuffer",
    "DEFAULT_LOG_DIR",
]

DEFAULT_LOG_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer of ConversionIssue records. Flush writes JSON Lines.

    - ファイルパスは初回アクセスで決定
    - 空のまま flush してもファイルは作らない
    - シリアル実行前提 (スレッド安全性不要)
    """
    def __init__(self, log_dir: Path = DEFAULT_LOG_DIR) -> None:
        self.log_dir = Path(log_dir)
        self._records: list[ConversionIssue] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.log_dir / f"issues-{stamp}.log"
        return self._file_path

    def append(self, record: ConversionIssue) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[ConversionIssue]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
