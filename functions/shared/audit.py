"""
Shared Audit Utilities
======================

User-action trail written by every function that creates or changes a
record. Audit writes never fail the business operation: errors are logged
and the caller carries on.
"""

import logging
from datetime import datetime
from typing import Optional

from .logical_names import Sheet, Column
from .models import ActionType
from .numbering import generate_next_action_id
from .helpers import format_datetime_for_smartsheet

logger = logging.getLogger(__name__)


def log_user_action(
    client,
    user_id: str,
    action_type: ActionType,
    target_table: str,
    target_id: str,
    old_value: Optional[str] = None,
    new_value: Optional[str] = None,
    notes: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> Optional[str]:
    """
    Log a user action to the audit trail.

    Args:
        client: SmartsheetClient instance
        user_id: User email/identifier who performed the action
        action_type: Type of action (from ActionType enum)
        target_table: Logical name of the affected sheet
        target_id: Document number of the affected record
        old_value: Previous value (for updates)
        new_value: New value (for creates/updates)
        notes: Additional notes about the action
        trace_id: Correlation ID for tracing

    Returns:
        The generated action_id (e.g., "ACT-0001") or None if failed
    """
    try:
        action_id = generate_next_action_id(client)

        action_data = {
            Column.USER_ACTION_LOG.ACTION_ID: action_id,
            Column.USER_ACTION_LOG.TIMESTAMP: format_datetime_for_smartsheet(datetime.now()),
            Column.USER_ACTION_LOG.USER_ID: user_id,
            Column.USER_ACTION_LOG.ACTION_TYPE: action_type.value,
            Column.USER_ACTION_LOG.TARGET_TABLE: str(target_table),
            Column.USER_ACTION_LOG.TARGET_ID: target_id,
            Column.USER_ACTION_LOG.OLD_VALUE: old_value,
            Column.USER_ACTION_LOG.NEW_VALUE: new_value,
            Column.USER_ACTION_LOG.NOTES: notes or (f"Trace: {trace_id}" if trace_id else None),
        }

        client.add_row(Sheet.USER_ACTION_LOG, action_data)
        logger.info(f"[{trace_id}] User action logged: {action_id} - {action_type.value}")
        return action_id
    except Exception as e:
        logger.error(f"[{trace_id}] Failed to log user action: {e}")
        return None
