"""
CLI interface for Task Stats Sync.

Usage:
    task-stats sync --start 2024-06-01 --end 2024-06-30
    task-stats sync --dry-run
    task-stats aggregate issues.json
    task-stats serve --port 8000
    task-stats config --json
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from task_stats import __version__

# ---------------------------------------------------------------------------
# Load .env early so all config reads pick up the values
# ---------------------------------------------------------------------------
load_dotenv()


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    from task_stats.config import get_config
    from task_stats.logging_setup import configure_logging

    level = "DEBUG" if verbose else get_config().log_level.value
    configure_logging(level)


def _echo_summary(summary: dict[str, dict[str, int]]) -> None:
    click.echo(json.dumps(summary, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Click group
# ---------------------------------------------------------------------------

@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(__version__, "-V", "--version", prog_name="task-stats")
def cli() -> None:
    """Task Stats -- per-day Jira completion stats synced into Google Sheets."""


# ---------------------------------------------------------------------------
# task-stats sync
# ---------------------------------------------------------------------------

@cli.command()
@click.option(
    "--start",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Inclusive start date (YYYY-MM-DD). [default: first day of this month]",
)
@click.option(
    "--end",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Inclusive end date (YYYY-MM-DD). [default: last day of this month]",
)
@click.option("--dry-run", is_flag=True, default=False, help="Compute updates without writing.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
def sync(start, end, dry_run: bool, verbose: bool) -> None:
    """Fetch tasks, aggregate them and update the sheet."""
    from task_stats.config import get_config
    from task_stats.core.errors import ConfigurationError, ExternalIOError
    from task_stats.sync import PerformanceSync

    _setup_logging(verbose)

    start_date = start.date().isoformat() if start else None
    end_date = end.date().isoformat() if end else None

    service = PerformanceSync.from_config(get_config())
    try:
        result = asyncio.run(service.run(start_date, end_date, dry_run=dry_run))
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(2)
    except ExternalIOError as e:
        click.echo(f"External service error: {e}", err=True)
        raise SystemExit(1)

    _echo_summary(result.summary_dict())
    click.echo(
        f"\nRange {result.start_date}..{result.end_date}  "
        f"sheet={result.reconcile.status.value}  "
        f"rows={len(result.reconcile.updates)}  written={result.written}",
        err=True,
    )


# ---------------------------------------------------------------------------
# task-stats aggregate
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("issues_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def aggregate(issues_file: Path) -> None:
    """Aggregate a saved Jira search response (or issue list) offline."""
    from task_stats.config import get_config
    from task_stats.core.aggregator import aggregate as aggregate_records
    from task_stats.core.aggregator import summary_to_dict
    from task_stats.core.models import TaskRecord

    cfg = get_config()
    try:
        data = json.loads(issues_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{issues_file} is not valid JSON: {e}")

    issues = data.get("issues", []) if isinstance(data, dict) else data
    if not isinstance(issues, list):
        raise click.ClickException("Expected a list of issues or an object with an 'issues' list")

    records = [
        TaskRecord.from_jira_issue(
            issue,
            due_date_field=cfg.jira_due_date_field,
            story_due_date_field=cfg.jira_story_due_date_field,
        )
        for issue in issues
        if isinstance(issue, dict)
    ]
    _echo_summary(summary_to_dict(aggregate_records(records)))


# ---------------------------------------------------------------------------
# task-stats serve
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", type=int, default=8000, show_default=True, help="HTTP port.")
def serve(host: str, port: int) -> None:
    """Start the HTTP API."""
    import uvicorn

    click.echo(f"Starting Task Stats API on http://{host}:{port}")
    uvicorn.run("task_stats.api.server:app", host=host, port=port)


# ---------------------------------------------------------------------------
# task-stats config
# ---------------------------------------------------------------------------

@cli.command("config")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
@click.option(
    "--show-secrets",
    is_flag=True,
    default=False,
    help="Unmask secret values.",
)
def config_cmd(as_json: bool, show_secrets: bool) -> None:
    """Dump current configuration."""
    from pydantic import ValidationError

    from task_stats.config import get_config

    try:
        cfg = get_config()
    except ValidationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)

    mask = not show_secrets
    if as_json:
        click.echo(cfg.dump_json(mask_secrets=mask))
    else:
        click.echo(cfg.dump(mask_secrets=mask))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Package entry point (called by ``task-stats`` console script and ``__main__``)."""
    cli()


if __name__ == "__main__":
    sys.exit(main())
