"""
fn_calibration: Equipment Calibration Azure Function
=====================================================

Records an equipment calibration. Parameters are checked against their ±
tolerance, the next calibration date is derived from the frequency and the
record gets a validity status (Valid / Warning / Expired).

API Contract
------------
Endpoint: POST /api/quality/calibrations

Request:
{
    "client_request_id": "uuid",
    "equipment_id": "PAQ-014",
    "equipment_name": "Digital caliper 150mm",
    "calibration_date": "2025-06-01",
    "frequency_days": 180,
    "calibrated_by": "metrology@company.com",
    "parameters": [
        {"name": "Zero", "nominal": 0, "measured": 0.01, "tolerance": 0.02, "unit": "mm"}
    ],
    "notes": "Optional"
}

frequency_days defaults to calibration.default_frequency_days in
quality_config.json; the Warning window is calibration.warning_window_days.

Response Codes
--------------
200 OK
    - status: "CREATED" - returns calibration_number, next_calibration_date,
      calibration_status and result
    - status: "ALREADY_PROCESSED" - Idempotent return of existing record

400 Bad Request
    - status: "ERROR" - Validation error in request
"""

import logging
import json
import azure.functions as func
from datetime import datetime

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared import (
    Sheet,
    Column,
    CalibrationRequest,
    ActionType,
    DocumentFamily,
    get_smartsheet_client,
    get_manifest,
    get_numberer,
    get_calibration_settings,
    evaluate_calibration,
    generate_trace_id,
    format_datetime_for_smartsheet,
    format_date_for_smartsheet,
    to_json_cell,
    CellSizeExceededError,
    log_user_action,
)

logger = logging.getLogger(__name__)


def _get_physical_column_name(sheet_logical: str, column_logical: str) -> str:
    """Get physical column name from manifest."""
    return get_manifest().get_column_name(sheet_logical, column_logical)


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Record an equipment calibration."""
    trace_id = generate_trace_id()
    logger.info(f"[{trace_id}] fn_calibration invoked")

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = CalibrationRequest(**body)
        except Exception as e:
            logger.error(f"[{trace_id}] Invalid request: {e}")
            return func.HttpResponse(
                json.dumps({
                    "status": "ERROR",
                    "message": f"Invalid request: {str(e)}",
                    "trace_id": trace_id
                }),
                status_code=400,
                mimetype="application/json"
            )

        client = get_smartsheet_client()

        # 2. Idempotency check
        existing = client.find_row(
            Sheet.CALIBRATION_LOG,
            Column.CALIBRATION_LOG.CLIENT_REQUEST_ID,
            request.client_request_id
        )
        if existing:
            number = existing.get(
                _get_physical_column_name(Sheet.CALIBRATION_LOG, Column.CALIBRATION_LOG.CALIBRATION_NUMBER)
            )
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_PROCESSED",
                    "calibration_number": number,
                    "trace_id": trace_id,
                    "message": "This request was already processed"
                }),
                status_code=200,
                mimetype="application/json"
            )

        # 3. Evaluate
        settings = get_calibration_settings()
        frequency_days = request.frequency_days or settings["default_frequency_days"]
        outcome = evaluate_calibration(
            request.calibration_date,
            frequency_days,
            request.parameters,
            warning_window_days=settings["warning_window_days"],
        )
        parameters = [p.to_dict() for p in outcome.parameters]

        try:
            parameters_cell = to_json_cell("parameters", parameters)
        except CellSizeExceededError as e:
            return func.HttpResponse(
                json.dumps({
                    "status": "TOO_LARGE",
                    "error_code": "TOO_LARGE",
                    "field": e.field,
                    "message": str(e),
                    "trace_id": trace_id
                }),
                status_code=422,
                mimetype="application/json"
            )

        # 4. Allocate number and create record
        number = get_numberer(client).next_number(DocumentFamily.CALIBRATION)
        next_date = format_date_for_smartsheet(outcome.next_calibration_date)
        client.add_row(Sheet.CALIBRATION_LOG, {
            Column.CALIBRATION_LOG.CALIBRATION_NUMBER: number,
            Column.CALIBRATION_LOG.EQUIPMENT_ID: request.equipment_id,
            Column.CALIBRATION_LOG.EQUIPMENT_NAME: request.equipment_name,
            Column.CALIBRATION_LOG.CALIBRATION_DATE: format_date_for_smartsheet(request.calibration_date),
            Column.CALIBRATION_LOG.FREQUENCY_DAYS: frequency_days,
            Column.CALIBRATION_LOG.NEXT_CALIBRATION_DATE: next_date,
            Column.CALIBRATION_LOG.STATUS: outcome.status.value,
            Column.CALIBRATION_LOG.RESULT: outcome.result.value,
            Column.CALIBRATION_LOG.PARAMETERS: parameters_cell,
            Column.CALIBRATION_LOG.CALIBRATED_BY: request.calibrated_by,
            Column.CALIBRATION_LOG.NOTES: request.notes,
            Column.CALIBRATION_LOG.CREATED_AT: format_datetime_for_smartsheet(datetime.now()),
            Column.CALIBRATION_LOG.CLIENT_REQUEST_ID: request.client_request_id,
        })
        logger.info(
            f"[{trace_id}] Calibration {number} for {request.equipment_id}: "
            f"{outcome.result.value}, next {next_date} ({outcome.status.value})"
        )

        # 5. Audit
        log_user_action(
            client=client,
            user_id=request.calibrated_by,
            action_type=ActionType.CALIBRATION_RECORDED,
            target_table=Sheet.CALIBRATION_LOG,
            target_id=number,
            new_value=outcome.result.value,
            notes=f"Equipment {request.equipment_id}",
            trace_id=trace_id,
        )

        return func.HttpResponse(
            json.dumps({
                "status": "CREATED",
                "calibration_number": number,
                "next_calibration_date": next_date,
                "calibration_status": outcome.status.value,
                "result": outcome.result.value,
                "parameters": parameters,
                "trace_id": trace_id,
                "message": "Calibration recorded successfully"
            }, ensure_ascii=False),
            status_code=200,
            mimetype="application/json"
        )

    except Exception as e:
        logger.exception(f"[{trace_id}] Unexpected error: {e}")
        return func.HttpResponse(
            json.dumps({
                "status": "ERROR",
                "message": f"Unexpected error: {str(e)}",
                "trace_id": trace_id
            }),
            status_code=500,
            mimetype="application/json"
        )
