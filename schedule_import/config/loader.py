from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from schedule_import.models.config_models import (
    DEFAULT_LONG_SPAN_DAYS,
    DEFAULT_MAX_FILE_SIZE_MB,
    ImportConfig,
    RecurringWindow,
)

"""Config loader.

Responsibilities:
- Load YAML config (default path config/import.yml)
- Validate against the packaged JSON schema (config_schema.json)
- Apply defaults for every missing key
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "default_config",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the packaged JSON schema.

    Raises:
        ConfigError: schema file missing / broken, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _stringify_dates(value: Any) -> Any:
    # YAML は 2025-01-01 を date に変換するので schema 検証前に文字列へ戻す
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _stringify_dates(v) for k, v in value.items()}
    return value


def _parse_window(raw: dict[str, str] | None) -> RecurringWindow | None:
    if raw is None:
        return None
    try:
        start = date.fromisoformat(raw["start"])
        end = date.fromisoformat(raw["end"])
    except ValueError as e:
        raise ConfigError(f"recurring_window: {e}") from e
    if start > end:
        raise ConfigError(f"recurring_window: start {start} is after end {end}")
    return RecurringWindow(start=start, end=end)


def default_config() -> ImportConfig:
    return ImportConfig()


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    data = _stringify_dates(data)
    _validate_config_schema(data)

    return ImportConfig(
        max_file_size_mb=data.get("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB),
        long_span_days=data.get("long_span_days", DEFAULT_LONG_SPAN_DAYS),
        strict_validation=data.get("strict_validation", False),
        aggregate_meetings=data.get("aggregate_meetings", True),
        error_log_dir=Path(data.get("error_log_dir", "./logs")),
        recurring_window=_parse_window(data.get("recurring_window")),
    )
