"""
Jira Issue Source
=================

Fetches the current user's tasks due inside a date range from the Jira
Cloud REST search API and converts them into TaskRecords.

A task is in range when either its generic "due date" custom field or its
``duedate`` falls between the two bounds (inclusive).

Uses httpx for API calls. Credentials come from JIRA_EMAIL / JIRA_API_KEY
and are never logged.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from task_stats.config import AppConfig
from task_stats.core.errors import ExternalIOError
from task_stats.core.models import (
    DEFAULT_DUE_DATE_FIELD,
    DEFAULT_STORY_DUE_DATE_FIELD,
    TaskRecord,
)

logger = logging.getLogger("task_stats.integrations.jira")

COLLABORATOR = "jira"
SEARCH_PATH = "/rest/api/2/search"


def build_jql(start_date: str, end_date: str) -> str:
    """JQL selecting the current user's issues due between the bounds."""
    return (
        "assignee=currentuser() AND "
        f'(("due date" >= "{start_date}" AND "due date" <= "{end_date}") OR '
        f'(duedate >= "{start_date}" AND duedate <= "{end_date}"))'
    )


class JiraClient:
    """Async client for the Jira search API."""

    def __init__(
        self,
        base_url: str,
        email: str = "",
        api_key: str = "",
        *,
        due_date_field: str = DEFAULT_DUE_DATE_FIELD,
        story_due_date_field: str = DEFAULT_STORY_DUE_DATE_FIELD,
        page_size: int = 50,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.due_date_field = due_date_field
        self.story_due_date_field = story_due_date_field
        self.page_size = page_size
        self.timeout = timeout
        self._auth = (email, api_key) if email and api_key else None
        self._transport = transport

    @classmethod
    def from_config(cls, cfg: AppConfig) -> JiraClient:
        if not cfg.jira_configured:
            logger.warning("Jira credentials not set; requests will be anonymous")
        return cls(
            cfg.jira_base_url,
            cfg.jira_email,
            cfg.jira_api_key,
            due_date_field=cfg.jira_due_date_field,
            story_due_date_field=cfg.jira_story_due_date_field,
            page_size=cfg.jira_page_size,
            timeout=cfg.http_timeout_seconds,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=self._auth,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _search_page(
        self,
        client: httpx.AsyncClient,
        jql: str,
        start_at: int,
    ) -> dict[str, Any]:
        params = {
            "jql": jql,
            "startAt": start_at,
            "maxResults": self.page_size,
        }
        try:
            response = await client.get(SEARCH_PATH, params=params)
        except httpx.HTTPError as e:
            raise ExternalIOError(COLLABORATOR, f"search request failed: {e}") from e

        if response.status_code != 200:
            raise ExternalIOError(
                COLLABORATOR,
                f"search returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalIOError(COLLABORATOR, "search returned invalid JSON") from e

        if not isinstance(data, dict):
            raise ExternalIOError(COLLABORATOR, "search returned an unexpected payload")
        return data

    async def search_issues(self, start_date: str, end_date: str) -> list[dict[str, Any]]:
        """
        Fetch every raw issue due in the range, following pagination.

        Args:
            start_date: Inclusive lower bound, YYYY-MM-DD.
            end_date: Inclusive upper bound, YYYY-MM-DD.

        Returns:
            Raw issue dictionaries as returned by Jira.

        Raises:
            ExternalIOError: On transport errors or non-200 responses.
        """
        jql = build_jql(start_date, end_date)
        issues: list[dict[str, Any]] = []

        async with self._client() as client:
            start_at = 0
            while True:
                page = await self._search_page(client, jql, start_at)
                batch = page.get("issues") or []
                issues.extend(issue for issue in batch if isinstance(issue, dict))

                total = page.get("total")
                start_at += len(batch)
                if not batch or not isinstance(total, int) or start_at >= total:
                    break

        logger.info("Fetched %d issue(s) due %s..%s", len(issues), start_date, end_date)
        return issues

    async def fetch_tasks(self, start_date: str, end_date: str) -> list[TaskRecord]:
        """Fetch issues in range and convert them to TaskRecords."""
        issues = await self.search_issues(start_date, end_date)
        return [
            TaskRecord.from_jira_issue(
                issue,
                due_date_field=self.due_date_field,
                story_due_date_field=self.story_due_date_field,
            )
            for issue in issues
        ]
