"""
Smartsheet API Client
=====================

Thread-safe client used by every function to read and write the quality
workspace sheets.

Features:
- **ID-first lookup**: sheet IDs and column names come from the manifest
- **Name fallback**: sheets missing from the manifest are resolved by name
- **Retry with exponential backoff**: rate limits and transient 5xx errors
- **Rate limiting**: stays under the Smartsheet limit (300 req/min)
- **Logical column names**: row dicts passed to add_row/update_row may use
  logical names; they are resolved to physical titles through the manifest

Rows read back (find_rows, list_rows) are dicts keyed by the physical column
title plus ``row_id``.
"""

import os
import logging
import time
import threading
import functools
from typing import Optional, List, Dict, Any, Callable, TypeVar, Union
import requests
from requests.exceptions import RequestException

from .manifest import WorkspaceManifest, get_manifest

logger = logging.getLogger(__name__)

T = TypeVar('T')


# ============== Custom Exceptions ==============

class SmartsheetError(Exception):
    """Base exception for Smartsheet operations."""
    pass


class SmartsheetRateLimitError(SmartsheetError):
    """Raised when API rate limit is exceeded."""
    def __init__(self, reset_time: Optional[int] = None):
        self.reset_time = reset_time
        super().__init__(f"Rate limit exceeded. Reset at: {reset_time}")


class SmartsheetSaveCollisionError(SmartsheetError):
    """Raised when a save collision occurs (concurrent update)."""
    pass


class SmartsheetNotFoundError(SmartsheetError):
    """Raised when a sheet or column is not found."""
    pass


# ============== Retry Decorator ==============

def _backoff(attempt: int, base_delay: float, exponential_base: float, max_delay: float) -> float:
    return min(base_delay * (exponential_base ** attempt), max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    retryable_status_codes: tuple = (429, 500, 502, 503, 504),
    retryable_exceptions: tuple = (RequestException, SmartsheetRateLimitError),
) -> Callable:
    """
    Decorator that retries a function with exponential backoff.

    Handles:
    - HTTP 429 rate limit (respects X-RateLimit-Reset header)
    - HTTP 5xx server errors
    - Network errors

    Non-retryable HTTP errors propagate immediately; Smartsheet error 4004
    is raised as SmartsheetSaveCollisionError.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except requests.HTTPError as e:
                    response = e.response
                    status_code = response.status_code if response is not None else 0

                    if status_code not in retryable_status_codes:
                        if "4004" in str(e):
                            raise SmartsheetSaveCollisionError(str(e))
                        raise

                    last_exception = e
                    wait_time = _backoff(attempt, base_delay, exponential_base, max_delay)
                    reset_time = response.headers.get('X-RateLimit-Reset') if status_code == 429 else None
                    if reset_time:
                        wait_time = min(max(0, int(reset_time) - int(time.time())), max_delay)
                    logger.warning(f"HTTP {status_code}. Retry {attempt + 1}/{max_retries} in {wait_time}s")

                except retryable_exceptions as e:
                    last_exception = e
                    wait_time = _backoff(attempt, base_delay, exponential_base, max_delay)
                    logger.warning(f"Transient error: {e}. Retry {attempt + 1}/{max_retries} in {wait_time}s")

                if attempt < max_retries:
                    time.sleep(wait_time)

            raise last_exception or SmartsheetError("Max retries exceeded")

        return wrapper
    return decorator


# ============== Rate Limiter ==============

class RateLimiter:
    """Spaces requests to ~290 per minute (Smartsheet allows 300)."""

    def __init__(self, requests_per_minute: int = 290):
        self.min_interval = 60.0 / requests_per_minute
        self._last_request_time = 0.0
        self._lock = threading.Lock()

    def wait(self):
        with self._lock:
            elapsed = time.time() - self._last_request_time
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
            self._last_request_time = time.time()


# ============== Smartsheet Client ==============

def _cell_value(cell: Dict[str, Any]) -> Any:
    value = cell.get("value")
    return value if value is not None else cell.get("displayValue")


class SmartsheetClient:
    """
    Smartsheet API client for the quality workspace.

    Usage:
        >>> client = get_smartsheet_client()
        >>> row = client.find_row(Sheet.RNC_LOG, Column.RNC_LOG.RNC_NUMBER, "RNC-0001")
        >>> client.get_column_values(Sheet.RNC_LOG, Column.RNC_LOG.RNC_NUMBER)
        ['RNC-0001', 'RNC-0002']
    """

    def __init__(self, manifest: Optional[WorkspaceManifest] = None):
        self.api_key = os.environ.get("SMARTSHEET_API_KEY")
        self.base_url = os.environ.get("SMARTSHEET_BASE_URL", "https://api.smartsheet.eu/2.0")
        self.workspace_id = os.environ.get("SMARTSHEET_WORKSPACE_ID")

        if not self.api_key:
            raise ValueError("SMARTSHEET_API_KEY environment variable is required")

        if not self.workspace_id:
            raise ValueError("SMARTSHEET_WORKSPACE_ID environment variable is required")

        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        self._manifest = manifest or get_manifest()

        # Fallback cache for sheets not in the manifest
        self._sheet_name_to_id: Dict[str, int] = {}
        self._sheet_name_to_id_lock = threading.Lock()

        self._rate_limiter = RateLimiter()

        logger.info(f"SmartsheetClient initialized. Manifest loaded: {self._manifest.is_loaded()}")

    # ============== Low-level API Methods ==============

    def _make_request(
        self,
        method: str,
        url: str,
        json: Optional[Any] = None,
        params: Optional[Dict] = None
    ) -> requests.Response:
        """Make an API request with rate limiting."""
        self._rate_limiter.wait()

        response = requests.request(
            method=method,
            url=url,
            headers=self.headers,
            json=json,
            params=params,
            timeout=30
        )

        if not response.ok:
            logger.error(f"Smartsheet API error: {response.status_code} - {response.text[:500]}")

        response.raise_for_status()
        return response

    # ============== Sheet Resolution ==============

    def resolve_sheet_id(self, sheet_ref: Union[str, int]) -> int:
        """
        Resolve a sheet reference to its numeric ID.

        Args:
            sheet_ref: Logical name ("RNC_LOG"), physical name ("01 RNC Log")
                or numeric ID

        Raises:
            SmartsheetNotFoundError: If sheet cannot be found
        """
        if isinstance(sheet_ref, int):
            return sheet_ref

        manifest_id = self._manifest.get_sheet_id(sheet_ref)
        if manifest_id:
            return manifest_id

        return self._resolve_sheet_by_name(sheet_ref)

    @retry_with_backoff(max_retries=3)
    def _resolve_sheet_by_name(self, sheet_name: str) -> int:
        with self._sheet_name_to_id_lock:
            if not self._sheet_name_to_id:
                self._load_container_sheets(f"{self.base_url}/workspaces/{self.workspace_id}")
                logger.info(f"Loaded {len(self._sheet_name_to_id)} sheet names for fallback lookup")

            if sheet_name not in self._sheet_name_to_id:
                raise SmartsheetNotFoundError(f"Sheet '{sheet_name}' not found in workspace")

            return self._sheet_name_to_id[sheet_name]

    def _load_container_sheets(self, url: str):
        """Collect sheet names of a workspace or folder, recursing into folders."""
        container = self._make_request("GET", url, params={"include": "sheets,folders"}).json()

        for sheet in container.get("sheets", []):
            self._sheet_name_to_id[sheet["name"]] = sheet["id"]

        for folder in container.get("folders", []):
            self._load_container_sheets(f"{self.base_url}/folders/{folder['id']}")

    def _physical_column(self, sheet_ref: Union[str, int], column_ref: str, titles) -> Optional[str]:
        """Physical title for a logical or physical column reference."""
        if column_ref in titles:
            return column_ref
        if isinstance(sheet_ref, str):
            physical = self._manifest.get_column_name(sheet_ref, column_ref)
            if physical in titles:
                return physical
        return None

    # ============== Core Operations ==============

    @retry_with_backoff(max_retries=3)
    def get_sheet(self, sheet_ref: Union[str, int]) -> Dict[str, Any]:
        """Get full sheet data (columns and rows)."""
        sheet_id = self.resolve_sheet_id(sheet_ref)
        response = self._make_request("GET", f"{self.base_url}/sheets/{sheet_id}", params={"include": "columns"})
        return response.json()

    def _row_to_dict(self, row: Dict[str, Any], col_id_to_name: Dict[int, str]) -> Dict[str, Any]:
        result = {"row_id": row["id"]}
        for cell in row.get("cells", []):
            col_name = col_id_to_name.get(cell.get("columnId"))
            if col_name:
                result[col_name] = _cell_value(cell)
        return result

    def list_rows(self, sheet_ref: Union[str, int]) -> List[Dict[str, Any]]:
        """All rows of a sheet as dicts keyed by physical column title."""
        sheet_data = self.get_sheet(sheet_ref)
        col_id_to_name = {col["id"]: col["title"] for col in sheet_data.get("columns", [])}
        return [self._row_to_dict(row, col_id_to_name) for row in sheet_data.get("rows", [])]

    def get_column_values(self, sheet_ref: Union[str, int], column_ref: str) -> List[Any]:
        """
        Every value of one column, in row order (empty cells included as None).

        Raises:
            SmartsheetNotFoundError: If the column does not exist in the sheet
        """
        sheet_data = self.get_sheet(sheet_ref)
        name_to_id = {col["title"]: col["id"] for col in sheet_data.get("columns", [])}
        physical = self._physical_column(sheet_ref, column_ref, name_to_id)
        if not physical:
            raise SmartsheetNotFoundError(f"Column '{column_ref}' not found in sheet {sheet_ref}")

        column_id = name_to_id[physical]
        values = []
        for row in sheet_data.get("rows", []):
            cell = next((c for c in row.get("cells", []) if c.get("columnId") == column_id), None)
            values.append(_cell_value(cell) if cell else None)
        return values

    def find_rows(self, sheet_ref: Union[str, int], column_ref: str, value: Any) -> List[Dict[str, Any]]:
        """
        Find rows where column matches value.

        Raises:
            SmartsheetNotFoundError: If the column does not exist in the sheet
        """
        sheet_data = self.get_sheet(sheet_ref)
        columns = sheet_data.get("columns", [])
        col_id_to_name = {col["id"]: col["title"] for col in columns}
        name_to_id = {col["title"]: col["id"] for col in columns}

        physical = self._physical_column(sheet_ref, column_ref, name_to_id)
        if not physical:
            raise SmartsheetNotFoundError(f"Column '{column_ref}' not found in sheet {sheet_ref}")
        target_column_id = name_to_id[physical]

        matching_rows = []
        for row in sheet_data.get("rows", []):
            for cell in row.get("cells", []):
                if cell.get("columnId") == target_column_id:
                    if _cell_value(cell) == value:
                        matching_rows.append(self._row_to_dict(row, col_id_to_name))
                    break
        return matching_rows

    def find_row(self, sheet_ref: Union[str, int], column_ref: str, value: Any) -> Optional[Dict[str, Any]]:
        """Find first row matching column value. Returns None if not found."""
        rows = self.find_rows(sheet_ref, column_ref, value)
        return rows[0] if rows else None

    def _build_cells(self, sheet_ref: Union[str, int], values: Dict[str, Any], columns: List[Dict]) -> List[Dict]:
        """Cells payload for logical/physical keyed values; unknown keys are dropped."""
        name_to_id = {col["title"]: col["id"] for col in columns}
        cells = []
        for key, val in values.items():
            physical = self._physical_column(sheet_ref, key, name_to_id)
            if physical is None:
                logger.warning(f"Skipping unknown column '{key}' for sheet {sheet_ref}")
                continue
            cells.append({"columnId": name_to_id[physical], "value": val})
        return cells

    @retry_with_backoff(max_retries=3)
    def add_row(self, sheet_ref: Union[str, int], row_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a new row at the bottom of a sheet.

        Args:
            sheet_ref: Sheet reference
            row_data: Dict mapping column names (logical or physical) to values;
                None values are skipped

        Returns:
            Created row data
        """
        sheet_data = self.get_sheet(sheet_ref)
        values = {k: v for k, v in row_data.items() if v is not None}
        cells = self._build_cells(sheet_ref, values, sheet_data.get("columns", []))

        url = f"{self.base_url}/sheets/{sheet_data['id']}/rows"
        response = self._make_request("POST", url, json={"toBottom": True, "cells": cells})
        created_row = response.json().get("result", {})

        logger.info(f"Added row to sheet {sheet_data['id']}: row_id={created_row.get('id')}")
        return created_row

    @retry_with_backoff(max_retries=3)
    def update_row(self, sheet_ref: Union[str, int], row_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Update cells of an existing row (logical or physical column names)."""
        sheet_data = self.get_sheet(sheet_ref)
        cells = self._build_cells(sheet_ref, updates, sheet_data.get("columns", []))

        url = f"{self.base_url}/sheets/{sheet_data['id']}/rows"
        response = self._make_request("PUT", url, json=[{"id": row_id, "cells": cells}])

        logger.info(f"Updated row {row_id} in sheet {sheet_data['id']}")
        return response.json().get("result", [{}])[0]


# ============== Thread-safe Singleton ==============

_client: Optional[SmartsheetClient] = None
_client_lock = threading.Lock()


def get_smartsheet_client(reset: bool = False) -> SmartsheetClient:
    """Get or create the singleton Smartsheet client."""
    global _client

    with _client_lock:
        if reset or _client is None:
            _client = SmartsheetClient()
        return _client


def reset_smartsheet_client():
    """Reset the singleton client."""
    global _client
    with _client_lock:
        _client = None
