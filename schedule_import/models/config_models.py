from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path

"""Config dataclasses for the schedule import pipeline.

Loaded from YAML by schedule_import.config.loader; every key is optional and
falls back to the defaults below.
"""

__all__ = [
    "RecurringWindow",
    "ImportConfig",
    "DEFAULT_MAX_FILE_SIZE_MB",
    "DEFAULT_LONG_SPAN_DAYS",
]

DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_LONG_SPAN_DAYS = 365


@dataclass(frozen=True)
class RecurringWindow:
    """Date window used to expand monthly / annual meetings into occurrences."""
    start: date
    end: date


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for a conversion run."""
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB  # 読み込み上限
    long_span_days: int = DEFAULT_LONG_SPAN_DAYS  # 超過で長期間警告
    strict_validation: bool = False  # True: 行エラーが1件でもあれば変換中止
    aggregate_meetings: bool = True
    error_log_dir: Path = Path("./logs")
    recurring_window: RecurringWindow | None = None

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024
