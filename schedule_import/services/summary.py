from __future__ import annotations

from ..models.processing_result import ConversionResult

"""SUMMARY line rendering.

Format:
    SUMMARY schema=<layout> rows=<n> valid_rows=<n> tasks=<n> meetings=<n>
    groups=<n> dependencies=<n> errors=<n> warnings=<n> elapsed_sec=<x>
"""

__all__ = [
    "format_elapsed",
    "render_summary_line",
]


def format_elapsed(seconds: float) -> str:
    """Render seconds without scientific notation ("0", "2", "0.001234", "1.5")."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def render_summary_line(result: ConversionResult) -> str:
    """Render the SUMMARY line for one conversion run.

    Args:
        result: ConversionResult of the run

    Returns:
        Single line string starting with "SUMMARY "
    """
    return (
        f"SUMMARY schema={result.mapping.name} "
        f"rows={result.row_count} "
        f"valid_rows={result.validation.valid_row_count} "
        f"tasks={len(result.tasks)} "
        f"meetings={len(result.meetings)} "
        f"groups={len(result.meeting_groups)} "
        f"dependencies={result.dependency_count} "
        f"errors={len(result.errors)} "
        f"warnings={len(result.warnings)} "
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}"
    )
