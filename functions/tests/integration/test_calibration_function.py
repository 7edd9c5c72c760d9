"""
Integration Tests for Calibration Function
"""

import pytest
import json
from datetime import date, timedelta
from unittest.mock import patch

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from shared.logical_names import Sheet, Column

import fn_calibration


def _invoke(client, req):
    with patch('fn_calibration.get_smartsheet_client', return_value=client):
        return fn_calibration.main(req)


@pytest.mark.integration
class TestCalibrationFlow:

    def test_passing_calibration(self, mock_client, patched_manifest, factory, mock_http_request):
        response = _invoke(mock_client, mock_http_request(factory.create_calibration_request()))

        assert response.status_code == 200
        data = json.loads(response.get_body())
        assert data["status"] == "CREATED"
        assert data["calibration_number"] == "CAL-0001"
        assert data["result"] == "Conforme"
        assert data["calibration_status"] == "Valid"
        assert data["next_calibration_date"] == (date.today() + timedelta(days=180)).isoformat()

        row = mock_client.find_row(Sheet.CALIBRATION_LOG, Column.CALIBRATION_LOG.CALIBRATION_NUMBER, "CAL-0001")
        assert row["Equipment ID"] == "PAQ-014"
        assert row["Frequency (days)"] == 180

    def test_failed_parameter(self, mock_client, patched_manifest, factory, mock_http_request):
        body = factory.create_calibration_request(parameters=[
            {"name": "Span", "nominal": 100, "measured": 100.5, "tolerance": 0.2},
        ])

        data = json.loads(_invoke(mock_client, mock_http_request(body)).get_body())

        assert data["result"] == "Não Conforme"
        assert data["parameters"][0]["upper_bound"] == pytest.approx(100.2)

    def test_default_frequency(self, mock_client, patched_manifest, factory, mock_http_request):
        body = factory.create_calibration_request()
        body.pop("frequency_days")

        data = json.loads(_invoke(mock_client, mock_http_request(body)).get_body())

        assert data["next_calibration_date"] == (date.today() + timedelta(days=365)).isoformat()

    def test_old_calibration_is_expired(self, mock_client, patched_manifest, factory, mock_http_request):
        body = factory.create_calibration_request(
            calibration_date=(date.today() - timedelta(days=200)).isoformat(),
        )

        data = json.loads(_invoke(mock_client, mock_http_request(body)).get_body())

        assert data["calibration_status"] == "Expired"

    def test_due_soon_is_warning(self, mock_client, patched_manifest, factory, mock_http_request):
        body = factory.create_calibration_request(
            calibration_date=(date.today() - timedelta(days=170)).isoformat(),
        )

        data = json.loads(_invoke(mock_client, mock_http_request(body)).get_body())

        assert data["calibration_status"] == "Warning"

    def test_duplicate_request(self, mock_client, patched_manifest, factory, mock_http_request):
        body = factory.create_calibration_request()
        _invoke(mock_client, mock_http_request(body))

        data = json.loads(_invoke(mock_client, mock_http_request(body)).get_body())

        assert data["status"] == "ALREADY_PROCESSED"
        assert data["calibration_number"] == "CAL-0001"

    def test_non_finite_parameter_rejected(self, mock_client, patched_manifest, factory, mock_http_request):
        body = factory.create_calibration_request(parameters=[
            {"name": "Span", "nominal": 100, "measured": float("nan"), "tolerance": 0.2},
        ])

        response = _invoke(mock_client, mock_http_request(body))

        assert response.status_code == 400
        assert mock_client.list_rows(Sheet.CALIBRATION_LOG) == []
