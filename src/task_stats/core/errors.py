"""Error taxonomy shared by the aggregation core and its collaborators."""

from __future__ import annotations


class TaskStatsError(Exception):
    """Base class for every error raised by task_stats."""


class MalformedRecordError(TaskStatsError):
    """A task record lacks (or has an unparseable) date or type field.

    Raised by strict record accessors; the aggregator catches it and skips
    only the step that needed the field.
    """

    def __init__(self, field_name: str, record_key: str | None = None) -> None:
        self.field_name = field_name
        self.record_key = record_key
        where = f" on {record_key}" if record_key else ""
        super().__init__(f"Missing or unparseable '{field_name}'{where}")


class ConfigurationError(TaskStatsError):
    """Required configuration is missing (sheet header columns, settings)."""


class ExternalIOError(TaskStatsError):
    """A collaborator (issue source, spreadsheet store) failed.

    Attributes:
        collaborator: Short name of the failing collaborator ("jira", "sheets").
        status_code: HTTP status returned by the collaborator, if any.
    """

    def __init__(
        self,
        collaborator: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.collaborator = collaborator
        self.status_code = status_code
        super().__init__(f"[{collaborator}] {message}")
