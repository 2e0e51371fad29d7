from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

import pandas as pd

from schedule_import.models.row_data import is_blank_cell

"""Date cell decoding.

Spreadsheet date cells arrive in three shapes:
- date / datetime objects (pandas already decoded an Excel date cell)
- text, parsed with pandas.to_datetime (plus the 年月日 notation)
- legacy serial numbers: day count from the 1900 date system epoch
  (1899-12-30 so that serial 1 = 1900-01-01 for all modern dates)

Serial numbers are only trusted when the decoded year is within
[SERIAL_YEAR_MIN, SERIAL_YEAR_MAX]; anything else is treated as invalid.
"""

__all__ = [
    "SERIAL_EPOCH",
    "SERIAL_YEAR_MIN",
    "SERIAL_YEAR_MAX",
    "decode_serial_date",
    "parse_cell_date",
]

SERIAL_EPOCH = "1899-12-30"
SERIAL_YEAR_MIN = 1901
SERIAL_YEAR_MAX = 2099

_NUMERIC_TEXT = re.compile(r"^\d+(\.\d+)?$")
_KANJI_DATE_FORMAT = "%Y年%m月%d日"


def decode_serial_date(value: float) -> date | None:
    """Decode a spreadsheet serial number, None when out of range."""
    try:
        ts = pd.to_datetime(value, unit="D", origin=SERIAL_EPOCH)
    except (ValueError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if not SERIAL_YEAR_MIN <= ts.year <= SERIAL_YEAR_MAX:
        return None
    return ts.date()


def _parse_text(text: str) -> date | None:
    if _NUMERIC_TEXT.match(text):
        # CSV 経由のシリアル値 ("45678")
        return decode_serial_date(float(text))
    try:
        ts = pd.to_datetime(text)
    except (ValueError, TypeError, OverflowError):
        try:
            ts = pd.to_datetime(text, format=_KANJI_DATE_FORMAT)
        except (ValueError, TypeError, OverflowError):
            return None
    if pd.isna(ts):
        return None
    return ts.date()


def parse_cell_date(value: Any) -> date | None:
    """Parse one date cell. Returns None for blank or invalid values."""
    if is_blank_cell(value) or value is pd.NaT:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return decode_serial_date(value)
    return _parse_text(str(value).strip())
