"""Pure aggregation core: date normalization, aggregation, sheet reconciliation."""

from task_stats.core.aggregator import aggregate, summary_to_dict
from task_stats.core.dates import INVALID_DATE_KEY, format_date_key, normalize_date, parse_date
from task_stats.core.errors import (
    ConfigurationError,
    ExternalIOError,
    MalformedRecordError,
    TaskStatsError,
)
from task_stats.core.models import DailySummary, RowUpdate, SummaryTable, TaskRecord
from task_stats.core.reconciler import ReconcileResult, ReconcileStatus, reconcile

__all__ = [
    "INVALID_DATE_KEY",
    "ConfigurationError",
    "DailySummary",
    "ExternalIOError",
    "MalformedRecordError",
    "ReconcileResult",
    "ReconcileStatus",
    "RowUpdate",
    "SummaryTable",
    "TaskRecord",
    "TaskStatsError",
    "aggregate",
    "format_date_key",
    "normalize_date",
    "parse_date",
    "reconcile",
    "summary_to_dict",
]
