"""
Centralized Configuration
=========================

Pydantic Settings based configuration with validation, environment profiles
and a config dump for debugging. Other modules import from here instead of
reading os.environ directly.

Usage:
    from task_stats.config import get_config

    cfg = get_config()
    print(cfg.jira_base_url)
    print(cfg.environment)
    cfg.dump()

Environment Profiles:
    Set ENVIRONMENT=development|staging|production to select a profile.
"""

from __future__ import annotations

import json
import sys
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Environment profiles
# ---------------------------------------------------------------------------

class Environment(str, Enum):
    """Supported environment profiles."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Accepted log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


SECRET_FIELDS = frozenset({"jira_api_key", "google_access_token"})


# ---------------------------------------------------------------------------
# Configuration class
# ---------------------------------------------------------------------------

class AppConfig(BaseSettings):
    """
    Centralized application configuration.

    All environment variables are declared here with types, defaults,
    and validation. Pydantic Settings reads from the process environment
    and from the .env file automatically.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Environment profile
    # ------------------------------------------------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Active environment profile (development, staging, production)",
    )
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Root log level",
    )

    # ------------------------------------------------------------------
    # Jira (issue source)
    # ------------------------------------------------------------------
    jira_base_url: str = Field(
        default="https://pattern50.atlassian.net",
        description="Base URL of the Jira Cloud site",
    )
    jira_email: str = Field(
        default="",
        description="Account email used for Jira basic auth",
    )
    jira_api_key: str = Field(
        default="",
        description="Jira API token used for basic auth",
    )
    jira_due_date_field: str = Field(
        default="customfield_10033",
        description="Field id of the generic due date (non-Story grouping date)",
    )
    jira_story_due_date_field: str = Field(
        default="duedate",
        description="Field id of the story due date (Story grouping and on-time check)",
    )
    jira_page_size: int = Field(
        default=50,
        ge=1,
        le=100,
        description="Issues requested per search page",
    )

    # ------------------------------------------------------------------
    # Google Sheets (spreadsheet store)
    # ------------------------------------------------------------------
    google_sheet_id: str = Field(
        default="",
        description="Spreadsheet id to sync stats into",
    )
    google_access_token: str = Field(
        default="",
        description="OAuth access token with the spreadsheets scope",
    )
    sheet_name: str = Field(
        default="June 2024",
        description="Sheet (tab) holding the daily rows",
    )
    sheet_date_column: str = Field(
        default="Date",
        description="Header of the column holding each row's date",
    )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Timeout for outbound HTTP calls (seconds)",
    )

    # =====================================================================
    # Validators
    # =====================================================================

    @field_validator("jira_base_url")
    @classmethod
    def _validate_jira_url(cls, v: str) -> str:
        """Ensure the Jira URL looks like a valid HTTP(S) endpoint."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Jira URL must start with http:// or https://, got: {v!r}"
            )
        return v.rstrip("/")

    @field_validator("sheet_name", "sheet_date_column")
    @classmethod
    def _validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("value must not be blank")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _warn_production_defaults(self) -> "AppConfig":
        """Log warnings if production profile is missing credentials."""
        if self.environment == Environment.PRODUCTION:
            if not self.jira_api_key or not self.jira_email:
                _print_warning("JIRA_EMAIL / JIRA_API_KEY are empty in production")
            if not self.google_access_token:
                _print_warning("GOOGLE_ACCESS_TOKEN is empty in production")
            if not self.google_sheet_id:
                _print_warning("GOOGLE_SHEET_ID is empty in production")
        return self

    # =====================================================================
    # Derived properties
    # =====================================================================

    @property
    def jira_configured(self) -> bool:
        """True if Jira email and API token are both set."""
        return bool(self.jira_email) and bool(self.jira_api_key)

    @property
    def sheets_configured(self) -> bool:
        """True if spreadsheet id and access token are both set."""
        return bool(self.google_sheet_id) and bool(self.google_access_token)

    # =====================================================================
    # Config dump for debugging
    # =====================================================================

    def dump(self, *, mask_secrets: bool = True) -> str:
        """
        Dump configuration as a human-readable string for debugging.

        Args:
            mask_secrets: If True, mask sensitive values like tokens and keys.

        Returns:
            Multi-line formatted configuration dump.
        """
        lines = [
            "=" * 60,
            "  Configuration Dump",
            "=" * 60,
            f"  Environment: {self.environment.value}",
            "",
        ]

        data = self.model_dump(mode="json")
        for key, value in data.items():
            display_value = value
            if mask_secrets and key in SECRET_FIELDS:
                display_value = _mask_secret(str(value))
            lines.append(f"  {key}: {display_value}")

        lines.append("")
        lines.append("=" * 60)
        return "\n".join(lines)

    def dump_json(self, *, mask_secrets: bool = True) -> str:
        """
        Dump configuration as JSON string for programmatic consumption.

        Args:
            mask_secrets: If True, mask sensitive values.

        Returns:
            JSON-formatted configuration string.
        """
        data = self.model_dump(mode="json")
        if mask_secrets:
            for key in SECRET_FIELDS:
                if key in data and data[key]:
                    data[key] = _mask_secret(str(data[key]))
        return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _mask_secret(value: str) -> str:
    """Mask a secret value, showing only last 4 characters."""
    if not value:
        return "(not set)"
    if len(value) <= 4:
        return "***"
    return "***" + value[-4:]


def _print_warning(msg: str) -> None:
    """Print a configuration warning to stderr."""
    print(f"[config WARNING] {msg}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------

_config_instance: AppConfig | None = None


def get_config() -> AppConfig:
    """
    Get the global configuration singleton.

    The configuration is loaded once from environment variables and .env file.
    Subsequent calls return the cached instance.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig()
    return _config_instance


def reset_config() -> None:
    """
    Reset the configuration singleton (useful for testing).

    The next call to get_config() will reload from environment.
    """
    global _config_instance
    _config_instance = None
