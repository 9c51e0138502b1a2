"""
Performance Sync
================

Orchestrates one run: fetch tasks for a date range, aggregate them into
per-day counters, reconcile the counters with the sheet, and write the
changed rows back.

All I/O happens through the ``IssueSource`` and ``SheetStore`` protocols;
the aggregation and reconciliation in between are pure. Collaborator
failures surface as ``ExternalIOError`` and are never swallowed here.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol, Sequence

from task_stats.config import AppConfig
from task_stats.core.aggregator import aggregate, summary_to_dict
from task_stats.core.errors import ConfigurationError
from task_stats.core.models import RowUpdate, SummaryTable, TaskRecord
from task_stats.core.reconciler import (
    DEFAULT_DATE_COLUMN,
    ReconcileResult,
    ReconcileStatus,
    reconcile,
)

logger = logging.getLogger("task_stats.sync")


class IssueSource(Protocol):
    """Supplies task records due inside a date range."""

    async def fetch_tasks(self, start_date: str, end_date: str) -> list[TaskRecord]: ...


class SheetStore(Protocol):
    """Reads sheet snapshots and accepts batches of row updates."""

    async def get_values(self, spreadsheet_id: str, range_name: str) -> list[list[Any]]: ...

    async def batch_update(self, spreadsheet_id: str, updates: Sequence[RowUpdate]) -> dict[str, Any]: ...


@dataclass
class SyncResult:
    """Outcome of a sync run."""
    start_date: str
    end_date: str
    summary: SummaryTable
    reconcile: ReconcileResult
    written: bool = False

    def summary_dict(self) -> dict[str, dict[str, int]]:
        return summary_to_dict(self.summary)


def default_date_range(today: date | None = None) -> tuple[str, str]:
    """First and last day of the month containing ``today``, as YYYY-MM-DD."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return (
        today.replace(day=1).isoformat(),
        today.replace(day=last_day).isoformat(),
    )


class PerformanceSync:
    """Runs fetch -> aggregate -> reconcile -> write for one sheet."""

    def __init__(
        self,
        source: IssueSource,
        store: SheetStore,
        spreadsheet_id: str,
        sheet_name: str,
        date_column: str = DEFAULT_DATE_COLUMN,
    ) -> None:
        self.source = source
        self.store = store
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.date_column = date_column

    @classmethod
    def from_config(cls, cfg: AppConfig) -> PerformanceSync:
        from task_stats.integrations.jira import JiraClient
        from task_stats.integrations.sheets import SheetsClient

        return cls(
            JiraClient.from_config(cfg),
            SheetsClient.from_config(cfg),
            spreadsheet_id=cfg.google_sheet_id,
            sheet_name=cfg.sheet_name,
            date_column=cfg.sheet_date_column,
        )

    async def run(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        *,
        dry_run: bool = False,
    ) -> SyncResult:
        """
        Sync stats for a date range into the sheet.

        Args:
            start_date: Inclusive lower bound (YYYY-MM-DD); defaults to the
                first day of the current month.
            end_date: Inclusive upper bound; defaults to the last day of the
                current month.
            dry_run: Compute updates without writing them.

        Returns:
            SyncResult holding the summary table and reconciliation outcome.

        Raises:
            ConfigurationError: If no spreadsheet id is configured or the
                sheet header lacks a required column.
            ExternalIOError: If Jira or Sheets fails.
        """
        if not self.spreadsheet_id:
            raise ConfigurationError("GOOGLE_SHEET_ID is not configured")

        default_start, default_end = default_date_range()
        start = start_date or default_start
        end = end_date or default_end

        logger.info("Syncing performance for %s..%s", start, end)
        records = await self.source.fetch_tasks(start, end)
        summary = aggregate(records)

        rows = await self.store.get_values(self.spreadsheet_id, self.sheet_name)
        result = reconcile(rows, summary, self.sheet_name, self.date_column)

        written = False
        if result.status == ReconcileStatus.UPDATED:
            if dry_run:
                logger.info("Dry run: %d row update(s) not written", len(result.updates))
            else:
                await self.store.batch_update(self.spreadsheet_id, result.updates)
                written = True

        return SyncResult(
            start_date=start,
            end_date=end,
            summary=summary,
            reconcile=result,
            written=written,
        )
