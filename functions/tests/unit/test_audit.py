"""
Unit Tests for the User Action Audit Trail
"""

import pytest
from unittest.mock import patch

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from shared.audit import log_user_action
from shared.logical_names import Sheet
from shared.models import ActionType


@pytest.mark.unit
class TestLogUserAction:

    def test_writes_sequential_action_ids(self, mock_client):
        first = log_user_action(mock_client, "q@company.com", ActionType.RNC_CREATED, Sheet.RNC_LOG, "RNC-0001",
                                trace_id="trace-abc")
        second = log_user_action(mock_client, "q@company.com", ActionType.LESSON_CREATED, Sheet.LESSONS_LEARNED,
                                 "LA-2025-001")

        assert (first, second) == ("ACT-0001", "ACT-0002")
        rows = mock_client.list_rows(Sheet.USER_ACTION_LOG)
        assert rows[0]["Notes"] == "Trace: trace-abc"
        assert rows[0]["Target Table"] == "RNC_LOG"
        assert "Notes" not in rows[1]

    def test_failure_does_not_raise(self, mock_client):
        with patch.object(mock_client, 'add_row', side_effect=RuntimeError("sheet locked")):
            result = log_user_action(mock_client, "q", ActionType.RNC_CREATED, Sheet.RNC_LOG, "RNC-0001")
        assert result is None
