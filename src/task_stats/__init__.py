"""Task Stats Sync -- per-day Jira completion statistics synced into Google Sheets."""

__version__ = "1.0.0"
