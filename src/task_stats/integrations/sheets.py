"""
Google Sheets Store
===================

Reads a sheet's values and writes batches of row updates through the
Google Sheets v4 values API, using an already-issued OAuth access token.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

import httpx

from task_stats.config import AppConfig
from task_stats.core.errors import ExternalIOError
from task_stats.core.models import RowUpdate

logger = logging.getLogger("task_stats.integrations.sheets")

COLLABORATOR = "sheets"
SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
VALUE_INPUT_OPTION = "USER_ENTERED"


class SheetsClient:
    """Async client for the Sheets values endpoints."""

    def __init__(
        self,
        access_token: str = "",
        *,
        api_base: str = SHEETS_API_BASE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._headers = {"Accept": "application/json"}
        if access_token:
            self._headers["Authorization"] = f"Bearer {access_token}"
        self._transport = transport

    @classmethod
    def from_config(cls, cfg: AppConfig) -> SheetsClient:
        return cls(cfg.google_access_token, timeout=cfg.http_timeout_seconds)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalIOError(COLLABORATOR, f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            raise ExternalIOError(
                COLLABORATOR,
                f"{method} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalIOError(COLLABORATOR, "response was not valid JSON") from e
        return data if isinstance(data, dict) else {}

    async def get_values(self, spreadsheet_id: str, range_name: str) -> list[list[Any]]:
        """
        Read the values of a range (a whole sheet when given a sheet name).

        Returns:
            Rows as lists of cell values; empty list when the range is blank.

        Raises:
            ExternalIOError: On transport errors or error responses.
        """
        url = f"{self.api_base}/{spreadsheet_id}/values/{quote(range_name, safe='')}"
        data = await self._request("GET", url)
        rows = data.get("values") or []
        return [list(row) for row in rows if isinstance(row, list)]

    async def batch_update(self, spreadsheet_id: str, updates: Sequence[RowUpdate]) -> dict[str, Any]:
        """
        Write row updates in a single batch request.

        Returns:
            The API response (``totalUpdatedRows`` etc.).

        Raises:
            ExternalIOError: On transport errors or error responses.
        """
        url = f"{self.api_base}/{spreadsheet_id}/values:batchUpdate"
        body = {
            "valueInputOption": VALUE_INPUT_OPTION,
            "data": [update.to_api() for update in updates],
        }
        data = await self._request("POST", url, json=body)
        logger.info("Sheet updated successfully (%d row(s))", len(updates))
        return data
