"""External collaborators: Jira issue source and Google Sheets store."""

from task_stats.integrations.jira import JiraClient, build_jql
from task_stats.integrations.sheets import SheetsClient

__all__ = ["JiraClient", "SheetsClient", "build_jql"]
