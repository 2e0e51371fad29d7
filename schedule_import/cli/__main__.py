from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from schedule_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, default_config, load_config
from schedule_import.excel.reader import GridLoadError, load_grid
from schedule_import.logging.init import log_issues, log_summary, setup_logging
from schedule_import.models.config_models import ImportConfig
from schedule_import.models.row_data import cell_text
from schedule_import.services.orchestrator import ConversionError, process_file
from schedule_import.services.progress import ProgressTracker
from schedule_import.services.schema_detector import SchemaDetectionError, detect_schema
from schedule_import.services.summary import render_summary_line

"""CLI entrypoint.

    python -m schedule_import.cli FILE [--config PATH] [--output PATH]
                                       [--debug] [--inspect-data]

Config resolution order: --config, then $SCHEDULE_IMPORT_CONFIG (a .env file
in the working directory is loaded first), then config/import.yml when it
exists, otherwise built-in defaults.

Exit codes:
    0  converted, no row-level errors
    2  converted, some rows rejected (partial)
    1  fatal (config, load, schema detection, conversion)
"""

__all__ = [
    "EXIT_SUCCESS",
    "EXIT_PARTIAL_FAILURE",
    "EXIT_FATAL",
    "CONFIG_ENV_VAR",
    "main",
]

EXIT_SUCCESS = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

CONFIG_ENV_VAR = "SCHEDULE_IMPORT_CONFIG"


def _load_env_file(path: Path) -> None:
    """Load .env with python-dotenv (existing variables win)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="schedule_import",
        description="Renovation schedule spreadsheet -> canonical task converter",
    )
    p.add_argument("file", type=Path, help=".xlsx / .csv schedule file")
    p.add_argument("--config", type=Path, default=None, help="YAML config path")
    p.add_argument("--output", type=Path, default=None, help="Write the converted tasks as JSON")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print detected layout & first rows then exit")
    return p.parse_args(argv)


def _resolve_config(explicit: Path | None) -> ImportConfig:
    if explicit is not None:
        return load_config(explicit)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return load_config(Path(env_path))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _inspect_data(path: Path, cfg: ImportConfig) -> int:
    try:
        grid = load_grid(path, cfg.max_file_size_bytes)
    except GridLoadError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name} rows={max(len(grid) - 1, 0)}")
    if not grid:
        print("  (empty)")
        return EXIT_SUCCESS
    headers = [cell_text(h) for h in grid[0]]
    try:
        mapping = detect_schema(headers)
        print(f"  layout={mapping.name} cols={headers}")
    except SchemaDetectionError as e:
        print(f"  layout=<none> cols={headers} error={e}")
    for row in grid[1:4]:
        # date / datetime は isoformat で表示
        print("    sample_row=", [v.isoformat() if hasattr(v, "isoformat") else v for v in row])
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # None のときのみ sys.argv を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(args.file, cfg)

    logger.info(f"Converting: {args.file}")
    try:
        with ProgressTracker(description=args.file.name) as progress:
            result = process_file(args.file, cfg, progress=progress)
    except GridLoadError as e:
        logger.error(f"load: {e}")
        return EXIT_FATAL
    except SchemaDetectionError as e:
        logger.error(f"schema: {e}")
        return EXIT_FATAL
    except ConversionError as e:
        logger.error(f"conversion: {e}")
        return EXIT_FATAL

    log_issues(result.errors + result.warnings)

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(
            json.dumps(result.to_payload(), ensure_ascii=False, indent=2), encoding="utf-8"
        )
        logger.info(f"output written: {args.output}")

    # log_summary が "SUMMARY " を付けるので先頭を除く
    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if result.errors:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
