"""
Pytest Configuration and Fixtures
==================================

Shared fixtures for all test modules.
"""

import os
from typing import Any, Callable

import pytest

# Set test environment before any config is loaded
os.environ.setdefault("ENVIRONMENT", "development")

from task_stats.config import reset_config  # noqa: E402

SHEET_HEADER = [
    "Date",
    "Sprint",
    "Total Issues",
    "Completed Tasks",
    "Total Bugs",
    "Total US",
    "Completed US",
]


@pytest.fixture(autouse=True)
def _fresh_config():
    """Reload configuration for every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_issue() -> Callable[..., dict[str, Any]]:
    """Factory for raw Jira issues as returned by the search API."""

    def _make(
        key: str = "P50-1",
        issue_type: str = "Task",
        due: str | None = None,
        story_due: str | None = None,
        resolved: str | None = None,
        status: str = "Done",
        labels: list[str] | None = None,
    ) -> dict[str, Any]:
        return {
            "key": key,
            "fields": {
                "issuetype": {"name": issue_type},
                "customfield_10033": due,
                "duedate": story_due,
                "resolutiondate": resolved,
                "status": {"name": status},
                "labels": labels or [],
            },
        }

    return _make


@pytest.fixture
def sheet_header() -> list[str]:
    """Header row with the date column and the five metric columns."""
    return list(SHEET_HEADER)


@pytest.fixture
def sheet_rows(sheet_header) -> list[list[str]]:
    """A small June sheet with stale metric values."""
    return [
        sheet_header,
        ["06/03/2024", "S1", "9", "9", "9", "9", "9"],
        ["06/04/2024", "S1", "9", "9", "9", "9", "9"],
        ["", "S1", "9", "9", "9", "9", "9"],
        ["06/05/2024", "S1", "9", "9", "9", "9", "9"],
    ]
