"""
Task Stats API Server
=====================

Thin FastAPI layer that runs the performance sync and returns the
per-day summary table as JSON.

Endpoints:
- GET  /                 - Sync and return the summary table (dates from
                           query params or a JSON body)
- POST /api/performance  - Sync and return summary plus sync outcome
- GET  /health           - Health check
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from task_stats import __version__
from task_stats.config import get_config
from task_stats.core.errors import ConfigurationError, ExternalIOError
from task_stats.logging_setup import configure_logging
from task_stats.sync import PerformanceSync

logger = logging.getLogger("task_stats.api.server")

app = FastAPI(
    title="Task Stats API",
    description="Per-day Jira completion statistics synced into Google Sheets",
    version=__version__,
)


# =============================================================================
# Data Models
# =============================================================================


class PerformanceRequest(BaseModel):
    """Date range for a sync run."""
    model_config = ConfigDict(populate_by_name=True)

    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    dry_run: bool = Field(default=False, alias="dryRun")


class DaySummary(BaseModel):
    """Counters for one day."""
    totalTasks: int
    doneTasks: int
    totalBugs: int
    totalUs: int
    doneUs: int


class PerformanceResponse(BaseModel):
    """Summary table plus the sheet sync outcome."""
    start_date: str
    end_date: str
    summary: dict[str, DaySummary]
    sheet_status: str
    updated_rows: int
    written: bool


# =============================================================================
# Dependencies / error mapping
# =============================================================================


def get_sync() -> PerformanceSync:
    """Build the sync service from the current configuration."""
    return PerformanceSync.from_config(get_config())


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and start > end:
        raise HTTPException(
            status_code=422,
            detail=f"startDate {start.isoformat()} is after endDate {end.isoformat()}",
        )


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@app.exception_handler(ExternalIOError)
async def external_io_error_handler(request: Request, exc: ExternalIOError) -> JSONResponse:
    logger.error("Collaborator %s failed: %s", exc.collaborator, exc)
    return JSONResponse(
        status_code=502,
        content={"error": str(exc), "collaborator": exc.collaborator},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.on_event("startup")
async def startup_event():
    """Configure logging on startup."""
    configure_logging(get_config().log_level.value)


# =============================================================================
# API Endpoints
# =============================================================================


@app.get("/")
async def get_performance(
    start_date: Optional[date] = Query(None, alias="startDate", description="Inclusive start (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Inclusive end (YYYY-MM-DD)"),
    body: Optional[PerformanceRequest] = Body(None),
    sync: PerformanceSync = Depends(get_sync),
) -> dict[str, Any]:
    """Sync the range into the sheet and return the summary table."""
    if body is not None:
        start_date = body.start_date or start_date
        end_date = body.end_date or end_date
    _check_range(start_date, end_date)

    result = await sync.run(_iso(start_date), _iso(end_date))
    return result.summary_dict()


@app.post("/api/performance")
async def post_performance(
    request: PerformanceRequest,
    sync: PerformanceSync = Depends(get_sync),
) -> PerformanceResponse:
    """Sync the range and report both the summary and the sheet outcome."""
    _check_range(request.start_date, request.end_date)

    result = await sync.run(
        _iso(request.start_date),
        _iso(request.end_date),
        dry_run=request.dry_run,
    )
    return PerformanceResponse(
        start_date=result.start_date,
        end_date=result.end_date,
        summary={key: DaySummary(**value) for key, value in result.summary_dict().items()},
        sheet_status=result.reconcile.status.value,
        updated_rows=len(result.reconcile.updates),
        written=result.written,
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "task-stats", "timestamp": datetime.now().isoformat()}
