"""
Aggregator
==========

Turns a list of task records into per-day completion counters.

Rules, applied per record:
1. Group by ``story_due_date`` for Stories, ``due_date`` otherwise
   (normalized to "Jun 5, 2024"; absent dates land in the
   ``INVALID_DATE_KEY`` bucket).
2. Stories count toward ``total_us``, everything else toward ``total_tasks``.
3. Bugs without the "Takeover" label also count toward ``total_bugs``.
4. Resolved records finished on or before ``story_due_date`` count toward
   ``done_us`` (Stories in "User Stories (In Beta)") or ``done_tasks``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from task_stats.core.dates import INVALID_DATE_KEY, format_date_key
from task_stats.core.errors import MalformedRecordError
from task_stats.core.models import (
    TAKEOVER_LABEL,
    USER_STORY_DONE_STATUS,
    DailySummary,
    SummaryTable,
    TaskRecord,
)

logger = logging.getLogger("task_stats.core.aggregator")


def ensure_bucket(table: SummaryTable, key: str) -> DailySummary:
    """Return the bucket for ``key``, creating a zeroed one if needed."""
    bucket = table.get(key)
    if bucket is None:
        bucket = DailySummary()
        table[key] = bucket
    return bucket


def _grouping_key(record: TaskRecord) -> str:
    try:
        return format_date_key(record.grouping_date())
    except MalformedRecordError as e:
        logger.warning("Malformed record, grouping under %r: %s", INVALID_DATE_KEY, e)
        return INVALID_DATE_KEY


def _count_completion(record: TaskRecord, bucket: DailySummary) -> None:
    if record.resolution_date is None:
        return

    try:
        due = record.comparison_due_date()
    except MalformedRecordError as e:
        logger.debug("Skipping completion check: %s", e)
        return

    if record.resolution_date > due:
        return

    if record.is_story and record.status == USER_STORY_DONE_STATUS:
        bucket.done_us += 1
    else:
        bucket.done_tasks += 1


def aggregate(records: Iterable[TaskRecord] | None) -> SummaryTable:
    """
    Aggregate task records into a date-keyed summary table.

    Never raises for individual malformed records: the step needing the
    missing field is skipped and the record is still counted.

    Args:
        records: Task records; None is treated as empty.

    Returns:
        Mapping of normalized date string to DailySummary.
    """
    table: SummaryTable = {}
    if not records:
        return table

    for record in records:
        bucket = ensure_bucket(table, _grouping_key(record))

        if record.is_story:
            bucket.total_us += 1
        else:
            bucket.total_tasks += 1

        if record.is_bug and TAKEOVER_LABEL not in record.labels:
            bucket.total_bugs += 1

        _count_completion(record, bucket)

    logger.info("Aggregated tasks into %d day bucket(s)", len(table))
    return table


def summary_to_dict(table: SummaryTable) -> dict[str, dict[str, Any]]:
    """Render a summary table as JSON-ready camelCase dictionaries."""
    return {key: bucket.to_dict() for key, bucket in table.items()}
