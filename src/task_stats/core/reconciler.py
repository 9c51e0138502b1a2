"""
Sheet Reconciler
================

Maps a summary table onto an existing sheet snapshot (header row + data
rows) by date and produces one row update per dated row.

Column positions are looked up from the header on every run, so reordering
sheet columns is safe; only renaming or removing a required header fails.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Sequence

from task_stats.core.dates import normalize_date
from task_stats.core.errors import ConfigurationError
from task_stats.core.models import DailySummary, RowUpdate, SummaryTable

logger = logging.getLogger("task_stats.core.reconciler")

DEFAULT_DATE_COLUMN: Final[str] = "Date"

# Sheet header -> DailySummary attribute
METRIC_COLUMNS: Final[dict[str, str]] = {
    "Total Issues": "total_tasks",
    "Completed Tasks": "done_tasks",
    "Total Bugs": "total_bugs",
    "Total US": "total_us",
    "Completed US": "done_us",
}

_PLAIN_SHEET_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


class ReconcileStatus(str, Enum):
    """Outcome of a reconciliation run."""
    UPDATED = "updated"
    NO_MATCHING_ROWS = "no_matching_rows"
    EMPTY_SHEET = "empty_sheet"


@dataclass
class ReconcileResult:
    """Row updates in sheet order plus the run outcome."""
    status: ReconcileStatus
    updates: list[RowUpdate] = field(default_factory=list)

    @property
    def has_updates(self) -> bool:
        return bool(self.updates)


def column_letter(index: int) -> str:
    """Convert a 0-based column index to A1 letters (0 -> A, 26 -> AA)."""
    if index < 0:
        raise ValueError(f"Column index must be >= 0, got {index}")
    letters = ""
    n = index + 1
    while n:
        n, remainder = divmod(n - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def quote_sheet_name(sheet_name: str) -> str:
    """Quote a sheet name for A1 notation when it is not plain alphanumeric."""
    if _PLAIN_SHEET_NAME_RE.match(sheet_name):
        return sheet_name
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'"


def _resolve_columns(header: Sequence[Any], date_column: str) -> tuple[int, dict[str, int]]:
    """
    Find the date column and metric columns in the header row.

    Raises:
        ConfigurationError: If any required column is missing.
    """
    positions: dict[str, int] = {}
    for index, cell in enumerate(header):
        name = str(cell).strip() if cell is not None else ""
        # First occurrence wins
        positions.setdefault(name, index)

    required = [date_column, *METRIC_COLUMNS]
    missing = [name for name in required if name not in positions]
    if missing:
        raise ConfigurationError(
            f"Sheet header is missing required column(s): {', '.join(missing)}"
        )

    metric_positions = {attr: positions[name] for name, attr in METRIC_COLUMNS.items()}
    return positions[date_column], metric_positions


def _build_row(row: Sequence[Any], bucket: DailySummary, metric_positions: dict[str, int]) -> list[Any]:
    updated = list(row)
    needed = max(metric_positions.values()) + 1
    if len(updated) < needed:
        updated.extend([""] * (needed - len(updated)))
    for attr, index in metric_positions.items():
        updated[index] = getattr(bucket, attr)
    return updated


def reconcile(
    rows: Sequence[Sequence[Any]] | None,
    summary: SummaryTable,
    sheet_name: str,
    date_column: str = DEFAULT_DATE_COLUMN,
) -> ReconcileResult:
    """
    Compute row updates for every dated row of a sheet snapshot.

    Rows whose date has no bucket in ``summary`` are zero-filled so stale
    values are overwritten. Rows with an empty or unparseable date cell are
    left alone.

    Args:
        rows: Sheet values; the first row is the header.
        summary: Output of ``aggregate``.
        sheet_name: Sheet (tab) name used to build A1 ranges.
        date_column: Header of the column holding each row's date.

    Returns:
        ReconcileResult with updates in row order.

    Raises:
        ConfigurationError: If the header lacks the date column or any
            metric column. Raised before any update is computed.
    """
    if not rows:
        logger.info("No data found in sheet %r", sheet_name)
        return ReconcileResult(status=ReconcileStatus.EMPTY_SHEET)

    date_index, metric_positions = _resolve_columns(rows[0], date_column)
    prefix = quote_sheet_name(sheet_name)

    updates: list[RowUpdate] = []
    for offset, row in enumerate(rows[1:], start=2):
        raw = row[date_index] if date_index < len(row) else None
        if raw is None or not str(raw).strip():
            continue

        key = normalize_date(str(raw))
        if key is None:
            logger.warning("Row %d: unparseable date %r, skipping", offset, raw)
            continue

        bucket = summary.get(key) or DailySummary()
        updated = _build_row(row, bucket, metric_positions)
        last = column_letter(len(updated) - 1)
        updates.append(RowUpdate(range=f"{prefix}!A{offset}:{last}{offset}", values=updated))

    if not updates:
        logger.info("No matching due dates found for updates in sheet %r", sheet_name)
        return ReconcileResult(status=ReconcileStatus.NO_MATCHING_ROWS)

    return ReconcileResult(status=ReconcileStatus.UPDATED, updates=updates)
