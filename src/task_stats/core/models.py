"""Data types for the aggregation core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Final

from task_stats.core.dates import parse_date
from task_stats.core.errors import MalformedRecordError


class IssueType(str, Enum):
    """Issue types the classification rules care about."""
    STORY = "Story"
    BUG = "Bug"


# Status that marks a user story as delivered
USER_STORY_DONE_STATUS: Final[str] = "User Stories (In Beta)"

# Bugs carrying this label are not counted in total_bugs
TAKEOVER_LABEL: Final[str] = "Takeover"

DEFAULT_DUE_DATE_FIELD: Final[str] = "customfield_10033"
DEFAULT_STORY_DUE_DATE_FIELD: Final[str] = "duedate"


def _name_of(value: Any) -> str | None:
    """Read ``{"name": ...}`` objects as Jira returns them for type/status."""
    if isinstance(value, dict):
        name = value.get("name")
        return name if isinstance(name, str) else None
    if isinstance(value, str):
        return value
    return None


@dataclass(frozen=True)
class TaskRecord:
    """A single issue-tracker task, reduced to the fields the stats use.

    Every field is optional; absent values are None (empty set for labels).
    """

    key: str | None = None
    issue_type: str | None = None
    due_date: date | None = None
    story_due_date: date | None = None
    resolution_date: date | None = None
    status: str | None = None
    labels: frozenset[str] = frozenset()

    @property
    def is_story(self) -> bool:
        return self.issue_type == IssueType.STORY.value

    @property
    def is_bug(self) -> bool:
        return self.issue_type == IssueType.BUG.value

    def grouping_date(self) -> date:
        """Date the record is bucketed under.

        Stories are grouped by ``story_due_date``, everything else by
        ``due_date``.

        Raises:
            MalformedRecordError: If the selected field is absent.
        """
        field_name = "story_due_date" if self.is_story else "due_date"
        value = self.story_due_date if self.is_story else self.due_date
        if value is None:
            raise MalformedRecordError(field_name, self.key)
        return value

    def comparison_due_date(self) -> date:
        """Due date used by the on-time completion check, for every type.

        Raises:
            MalformedRecordError: If ``story_due_date`` is absent.
        """
        if self.story_due_date is None:
            raise MalformedRecordError("story_due_date", self.key)
        return self.story_due_date

    @classmethod
    def from_jira_issue(
        cls,
        issue: dict[str, Any],
        due_date_field: str = DEFAULT_DUE_DATE_FIELD,
        story_due_date_field: str = DEFAULT_STORY_DUE_DATE_FIELD,
    ) -> TaskRecord:
        """
        Build a record from a raw Jira REST issue.

        Missing or malformed fields become absent values; this never raises
        for a dict input.

        Args:
            issue: Issue object from the Jira search API.
            due_date_field: Field id holding the generic due date.
            story_due_date_field: Field id holding the story due date.

        Returns:
            TaskRecord with the parsed fields.
        """
        fields = issue.get("fields") if isinstance(issue, dict) else None
        if not isinstance(fields, dict):
            fields = {}

        raw_labels = fields.get("labels")
        labels = frozenset(
            label for label in raw_labels if isinstance(label, str)
        ) if isinstance(raw_labels, list) else frozenset()

        key = issue.get("key") if isinstance(issue, dict) else None

        return cls(
            key=key if isinstance(key, str) else None,
            issue_type=_name_of(fields.get("issuetype")),
            due_date=parse_date(fields.get(due_date_field)),
            story_due_date=parse_date(fields.get(story_due_date_field)),
            resolution_date=parse_date(fields.get("resolutiondate")),
            status=_name_of(fields.get("status")),
            labels=labels,
        )


@dataclass
class DailySummary:
    """Counters for one normalized date (a bucket). All start at 0."""

    total_tasks: int = 0
    done_tasks: int = 0
    total_bugs: int = 0
    total_us: int = 0
    done_us: int = 0

    def to_dict(self) -> dict[str, int]:
        """Serialize with the camelCase names consumers expect."""
        return {
            "totalTasks": self.total_tasks,
            "doneTasks": self.done_tasks,
            "totalBugs": self.total_bugs,
            "totalUs": self.total_us,
            "doneUs": self.done_us,
        }


# Normalized date key -> bucket
SummaryTable = dict[str, DailySummary]


@dataclass(frozen=True)
class RowUpdate:
    """A single row write: A1 range plus the full new row values."""

    range: str
    values: list[Any] = field(default_factory=list)

    def to_api(self) -> dict[str, Any]:
        """Shape expected by the Sheets ``values:batchUpdate`` data list."""
        return {"range": self.range, "values": [list(self.values)]}
