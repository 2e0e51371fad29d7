from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..models.column_mapping import KNOWN_LAYOUTS, ColumnMapping
from ..models.row_data import cell_text

"""Schema detection: pick one ColumnMapping from the header row.

Layouts are tried in KNOWN_LAYOUTS order and the first whose signature
columns are all present wins, so a unified header that also satisfies the
english signature still resolves to the unified layout.
"""

__all__ = [
    "SchemaDetectionError",
    "detect_schema",
]

logger = logging.getLogger(__name__)


class SchemaDetectionError(Exception):
    """Raised when no layout matches or a required column is missing."""


def detect_schema(
    headers: Sequence[Any],
    layouts: Sequence[ColumnMapping] = KNOWN_LAYOUTS,
) -> ColumnMapping:
    """Return the first layout whose signature matches the header row.

    Args:
        headers: Header row cells (converted to trimmed text before matching)
        layouts: Candidate layouts in priority order

    Returns:
        The selected ColumnMapping

    Raises:
        SchemaDetectionError: empty header, no matching layout, or a required
            column of the matched layout is absent
    """
    header_set = {cell_text(h) for h in headers} - {""}
    if not header_set:
        raise SchemaDetectionError("header row is empty")

    for mapping in layouts:
        if not mapping.matches(header_set):
            continue
        missing = mapping.missing_required(header_set)
        if missing:
            raise SchemaDetectionError(
                f"layout '{mapping.name}' matched but required columns are missing: "
                f"{missing} (header={[cell_text(h) for h in headers]})"
            )
        logger.debug("schema detected layout=%s", mapping.name)
        return mapping

    raise SchemaDetectionError(
        f"no known layout matches header {[cell_text(h) for h in headers]}"
    )
