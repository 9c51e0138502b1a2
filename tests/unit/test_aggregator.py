"""
Aggregator Tests
================

Verifies the classification rules:
1. Grouping date field selection (Story vs everything else)
2. total_us / total_tasks split and per-date record counts
3. total_bugs excludes "Takeover" bugs and is a subset of total_tasks
4. done_us / done_tasks completion rules against story_due_date
5. Malformed records never abort the run
6. Idempotence
Run with: pytest tests/unit/test_aggregator.py -v
"""

import logging
from datetime import date

from task_stats.core.aggregator import aggregate, ensure_bucket, summary_to_dict
from task_stats.core.dates import INVALID_DATE_KEY
from task_stats.core.models import DailySummary, TaskRecord

IN_BETA = "User Stories (In Beta)"


def _story(**kwargs) -> TaskRecord:
    return TaskRecord(issue_type="Story", **kwargs)


def _bug(**kwargs) -> TaskRecord:
    return TaskRecord(issue_type="Bug", **kwargs)


# ---------------------------------------------------------------------------
# Story done in beta plus an open bug on the same day
# ---------------------------------------------------------------------------


class TestScenario:
    """Story in beta + plain bug on the same day."""

    def test_story_and_bug_same_day(self) -> None:
        records = [
            _story(story_due_date=date(2024, 6, 5), status=IN_BETA, resolution_date=date(2024, 6, 4)),
            _bug(due_date=date(2024, 6, 5), labels=frozenset()),
        ]
        table = aggregate(records)

        assert list(table) == ["Jun 5, 2024"]
        assert table["Jun 5, 2024"].to_dict() == {
            "totalUs": 1,
            "doneUs": 1,
            "totalTasks": 1,
            "totalBugs": 1,
            "doneTasks": 0,
        }

    def test_from_raw_jira_issues(self, make_issue) -> None:
        issues = [
            make_issue(issue_type="Story", story_due="2024-06-05", status=IN_BETA,
                       resolved="2024-06-04T18:00:00.000+0000"),
            make_issue(issue_type="Bug", due="2024-06-05"),
        ]
        table = aggregate(TaskRecord.from_jira_issue(issue) for issue in issues)
        assert summary_to_dict(table) == {
            "Jun 5, 2024": {"totalTasks": 1, "doneTasks": 0, "totalBugs": 1, "totalUs": 1, "doneUs": 1},
        }


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


class TestGrouping:
    """Test grouping date selection and bucket creation."""

    def test_story_uses_story_due_date_only(self) -> None:
        table = aggregate([_story(due_date=date(2024, 6, 1), story_due_date=date(2024, 6, 9))])
        assert set(table) == {"Jun 9, 2024"}

    def test_non_story_uses_due_date_only(self) -> None:
        table = aggregate([
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 1), story_due_date=date(2024, 6, 9)),
        ])
        assert set(table) == {"Jun 1, 2024"}

    def test_same_day_records_merge(self) -> None:
        table = aggregate([
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 3)),
            TaskRecord(issue_type="Sub-task", due_date=date(2024, 6, 3)),
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 4)),
        ])
        assert table["Jun 3, 2024"].total_tasks == 2
        assert table["Jun 4, 2024"].total_tasks == 1

    def test_totals_equal_record_count_per_date(self) -> None:
        records = [
            _story(story_due_date=date(2024, 6, 3)),
            _story(story_due_date=date(2024, 6, 3)),
            _bug(due_date=date(2024, 6, 3), labels=frozenset({"Takeover"})),
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 3)),
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 10)),
        ]
        table = aggregate(records)
        bucket = table["Jun 3, 2024"]
        assert bucket.total_tasks + bucket.total_us == 4
        assert table["Jun 10, 2024"].total_tasks + table["Jun 10, 2024"].total_us == 1

    def test_missing_grouping_date_goes_to_invalid_bucket(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="task_stats.core.aggregator"):
            table = aggregate([_story(key="P50-3", due_date=date(2024, 6, 1))])

        assert set(table) == {INVALID_DATE_KEY}
        assert table[INVALID_DATE_KEY].total_us == 1
        assert "P50-3" in caplog.text

    def test_ensure_bucket_is_upsert(self) -> None:
        table: dict[str, DailySummary] = {}
        first = ensure_bucket(table, "Jun 5, 2024")
        first.total_tasks += 1
        second = ensure_bucket(table, "Jun 5, 2024")
        assert second is first
        assert table["Jun 5, 2024"].total_tasks == 1


# ---------------------------------------------------------------------------
# Bugs
# ---------------------------------------------------------------------------


class TestBugCounting:
    """Test total_bugs rules."""

    def test_bug_counts_as_task_and_bug(self) -> None:
        bucket = aggregate([_bug(due_date=date(2024, 6, 5))])["Jun 5, 2024"]
        assert bucket.total_tasks == 1
        assert bucket.total_bugs == 1

    def test_takeover_bug_not_counted_as_bug(self) -> None:
        bucket = aggregate([
            _bug(due_date=date(2024, 6, 5), labels=frozenset({"Takeover", "frontend"}),
                 story_due_date=date(2024, 6, 5), resolution_date=date(2024, 6, 1)),
        ])["Jun 5, 2024"]
        assert bucket.total_bugs == 0
        assert bucket.total_tasks == 1

    def test_bug_label_match_is_exact(self) -> None:
        bucket = aggregate([_bug(due_date=date(2024, 6, 5), labels=frozenset({"takeover"}))])["Jun 5, 2024"]
        assert bucket.total_bugs == 1

    def test_story_never_counts_as_bug(self) -> None:
        bucket = aggregate([_story(story_due_date=date(2024, 6, 5))])["Jun 5, 2024"]
        assert bucket.total_bugs == 0
        assert bucket.total_tasks == 0


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


class TestCompletion:
    """Test done_us / done_tasks rules."""

    def test_story_in_beta_on_time_counts_done_us(self) -> None:
        bucket = aggregate([
            _story(story_due_date=date(2024, 6, 5), status=IN_BETA, resolution_date=date(2024, 6, 5)),
        ])["Jun 5, 2024"]
        assert bucket.done_us == 1
        assert bucket.done_tasks == 0

    def test_story_other_status_on_time_counts_done_tasks(self) -> None:
        bucket = aggregate([
            _story(story_due_date=date(2024, 6, 5), status="Done", resolution_date=date(2024, 6, 4)),
        ])["Jun 5, 2024"]
        assert bucket.done_us == 0
        assert bucket.done_tasks == 1

    def test_late_resolution_counts_nothing(self) -> None:
        bucket = aggregate([
            _story(story_due_date=date(2024, 6, 5), status=IN_BETA, resolution_date=date(2024, 6, 6)),
        ])["Jun 5, 2024"]
        assert bucket.done_us == 0
        assert bucket.done_tasks == 0

    def test_unresolved_counts_totals_only(self) -> None:
        bucket = aggregate([
            _story(story_due_date=date(2024, 6, 5), status=IN_BETA),
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 5), story_due_date=date(2024, 6, 5)),
        ])["Jun 5, 2024"]
        assert (bucket.total_us, bucket.total_tasks) == (1, 1)
        assert (bucket.done_us, bucket.done_tasks) == (0, 0)

    def test_non_story_compares_against_story_due_date(self) -> None:
        """Grouped by due_date, but on-time is judged by story_due_date."""
        table = aggregate([
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 1),
                       story_due_date=date(2024, 6, 10), resolution_date=date(2024, 6, 8)),
        ])
        assert table["Jun 1, 2024"].done_tasks == 1

    def test_non_story_without_story_due_date_is_not_done(self) -> None:
        table = aggregate([
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 1), resolution_date=date(2024, 5, 1)),
        ])
        assert table["Jun 1, 2024"].done_tasks == 0
        assert table["Jun 1, 2024"].total_tasks == 1

    def test_in_beta_status_on_non_story_counts_done_tasks(self) -> None:
        bucket = aggregate([
            _bug(due_date=date(2024, 6, 5), story_due_date=date(2024, 6, 5),
                 status=IN_BETA, resolution_date=date(2024, 6, 5)),
        ])["Jun 5, 2024"]
        assert bucket.done_us == 0
        assert bucket.done_tasks == 1


# ---------------------------------------------------------------------------
# Robustness
# ---------------------------------------------------------------------------


class TestRobustness:
    """Test empty input, malformed records and idempotence."""

    def test_none_input(self) -> None:
        assert aggregate(None) == {}

    def test_empty_input(self) -> None:
        assert aggregate([]) == {}

    def test_completely_empty_record(self) -> None:
        table = aggregate([TaskRecord()])
        assert table[INVALID_DATE_KEY].total_tasks == 1

    def test_idempotent(self) -> None:
        records = [
            _story(story_due_date=date(2024, 6, 5), status=IN_BETA, resolution_date=date(2024, 6, 4)),
            _bug(due_date=date(2024, 6, 5)),
            TaskRecord(issue_type="Task", due_date=date(2024, 6, 6), story_due_date=date(2024, 6, 6),
                       resolution_date=date(2024, 6, 6)),
            TaskRecord(),
        ]
        assert summary_to_dict(aggregate(records)) == summary_to_dict(aggregate(records))

    def test_input_records_unchanged(self) -> None:
        record = _bug(due_date=date(2024, 6, 5), labels=frozenset({"x"}))
        aggregate([record])
        assert record == _bug(due_date=date(2024, 6, 5), labels=frozenset({"x"}))
