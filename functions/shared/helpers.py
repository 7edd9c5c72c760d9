"""
Helper utilities for Azure Functions.
Includes trace IDs, SLA calculation, date formatting and JSON cell handling.

Note: document numbers are allocated in numbering.py from the numbers
already stored in each sheet.
"""

import json
import uuid
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Any, Union

from .config import get_sla_hours, get_max_cell_chars
from .models import RncSeverity

logger = logging.getLogger(__name__)


class CellSizeExceededError(ValueError):
    """Raised when a serialized value does not fit in a single sheet cell."""

    def __init__(self, field: str, size: int, limit: int):
        self.field = field
        self.size = size
        self.limit = limit
        super().__init__(f"{field} is {size} characters, cell limit is {limit}")


def generate_trace_id() -> str:
    """Generate a unique trace ID for correlation across systems."""
    return f"trace-{uuid.uuid4().hex[:12]}"


def calculate_sla_due(severity: RncSeverity, created_at: Optional[datetime] = None) -> datetime:
    """
    Calculate SLA due date based on RNC severity.
    Hours per severity come from quality_config.json (sla_hours).
    """
    base_time = created_at or datetime.now()
    key = severity.value if hasattr(severity, "value") else str(severity)
    return base_time + timedelta(hours=get_sla_hours(key))


def format_datetime_for_smartsheet(dt: datetime) -> str:
    """Format datetime for Smartsheet API."""
    return dt.strftime("%Y-%m-%dT%H:%M:%S")


def format_date_for_smartsheet(d: Union[date, datetime]) -> str:
    """Format a DATE column value (YYYY-MM-DD)."""
    return d.strftime("%Y-%m-%d")


def parse_date_safe(value: Any) -> Optional[date]:
    """Parse a DATE/DATETIME cell value; None when empty or malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def parse_float_safe(value: Any, default: float = 0.0) -> float:
    """Safely parse a value to float."""
    if value is None:
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def to_json_cell(field: str, value: Any, limit: Optional[int] = None) -> str:
    """
    Serialize a structured value for a single TEXT_NUMBER cell.

    Raises:
        CellSizeExceededError: If the JSON does not fit in the cell
    """
    text = json.dumps(value, ensure_ascii=False, default=str)
    max_chars = limit if limit is not None else get_max_cell_chars()
    if len(text) > max_chars:
        raise CellSizeExceededError(field, len(text), max_chars)
    return text


def from_json_cell(value: Any, default: Any = None) -> Any:
    """Parse a JSON cell written by to_json_cell; default when empty or invalid."""
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning(f"Cell value is not valid JSON: {value[:80]}")
        return default
