"""
fn_inspection_report: Inspection Report Azure Function
=======================================================

Records an inspection report for one of six disciplines. Each measurement is
classified against its tolerance tokens, each finding carries the
inspector's verdict, and the report is "Não Conforme" as soon as one of them
fails.

API Contract
------------
Endpoint: POST /api/quality/reports

Request:
{
    "client_request_id": "uuid",
    "report_type": "dimensional",
    "order_number": "OS-0012",
    "item_code": "FL-300",
    "inspector": "inspector@company.com",
    "inspection_date": "2025-06-10",
    "standard": "ASME B16.5",
    "measurements": [
        {"name": "Bore", "nominal": 100, "measured": 100.05,
         "tolerance_a": "+0.1", "tolerance_b": "-0.05", "unit": "mm"}
    ],
    "findings": [
        {"location": "Weld 3", "description": "Linear indication 2mm", "verdict": "acceptable"}
    ],
    "notes": "Optional"
}

Report families
---------------
raw-material      -> MP-####
dimensional       -> DIM-####
welding           -> END-####  (shared)
liquid-penetrant  -> END-####  (shared)
ultrasound        -> END-####  (shared)
painting          -> PIN-####

Response Codes
--------------
200 OK
    - status: "CREATED" - returns report_number, result and classified measurements
    - status: "ALREADY_PROCESSED" - Idempotent return of existing report

422 Unprocessable Entity
    - status: "TOO_LARGE" - measurements/findings exceed the cell size limit

400 Bad Request
    - status: "ERROR" - Validation error in request
"""

import logging
import json
import azure.functions as func
from datetime import datetime
from typing import List, Dict, Any

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared import (
    Sheet,
    Column,
    InspectionReportRequest,
    InspectionResult,
    FindingVerdict,
    ReportType,
    ActionType,
    Measurement,
    DocumentFamily,
    get_smartsheet_client,
    get_manifest,
    get_numberer,
    generate_trace_id,
    resolve_bounds,
    evaluate_tolerance,
    format_tolerance,
    format_datetime_for_smartsheet,
    format_date_for_smartsheet,
    to_json_cell,
    CellSizeExceededError,
    log_user_action,
)

logger = logging.getLogger(__name__)

REPORT_TARGETS = {
    ReportType.RAW_MATERIAL: (Sheet.RAW_MATERIAL_REPORTS, DocumentFamily.RAW_MATERIAL),
    ReportType.DIMENSIONAL: (Sheet.DIMENSIONAL_REPORTS, DocumentFamily.DIMENSIONAL),
    ReportType.WELDING: (Sheet.WELDING_REPORTS, DocumentFamily.NDT),
    ReportType.LIQUID_PENETRANT: (Sheet.LP_REPORTS, DocumentFamily.NDT),
    ReportType.ULTRASOUND: (Sheet.UT_REPORTS, DocumentFamily.NDT),
    ReportType.PAINTING: (Sheet.PAINTING_REPORTS, DocumentFamily.PAINTING),
}


def _get_physical_column_name(sheet_logical: str, column_logical: str) -> str:
    """Get physical column name from manifest."""
    return get_manifest().get_column_name(sheet_logical, column_logical)


def classify_measurements(measurements: List[Measurement]) -> List[Dict[str, Any]]:
    """Measurements with resolved bounds and their Conforme / Não Conforme result."""
    classified = []
    for m in measurements:
        bounds = resolve_bounds(m.nominal, m.tolerance_a, m.tolerance_b)
        classified.append({
            "name": m.name,
            "nominal": m.nominal,
            "measured": m.measured,
            "tolerance": format_tolerance(m.tolerance_a, m.tolerance_b),
            "lower_bound": bounds.lower,
            "upper_bound": bounds.upper,
            "unit": m.unit,
            "result": evaluate_tolerance(m.nominal, m.measured, m.tolerance_a, m.tolerance_b).value,
        })
    return classified


def overall_result(classified: List[Dict[str, Any]], findings) -> InspectionResult:
    if any(m["result"] == InspectionResult.NAO_CONFORME.value for m in classified):
        return InspectionResult.NAO_CONFORME
    if any(f.verdict == FindingVerdict.REJECTABLE for f in findings):
        return InspectionResult.NAO_CONFORME
    return InspectionResult.CONFORME


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Create an inspection report."""
    trace_id = generate_trace_id()
    logger.info(f"[{trace_id}] fn_inspection_report invoked")

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = InspectionReportRequest(**body)
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

        sheet, family = REPORT_TARGETS[request.report_type]
        client = get_smartsheet_client()

        # 2. Idempotency check
        existing = client.find_row(sheet, Column.INSPECTION_REPORT.CLIENT_REQUEST_ID, request.client_request_id)
        if existing:
            report_number = existing.get(_get_physical_column_name(sheet, Column.INSPECTION_REPORT.REPORT_NUMBER))
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_PROCESSED",
                    "report_number": report_number,
                    "trace_id": trace_id,
                    "message": "This request was already processed"
                }),
                status_code=200,
                mimetype="application/json"
            )

        # 3. Classify
        classified = classify_measurements(request.measurements)
        result = overall_result(classified, request.findings)

        # 4. Serialize for single-cell storage
        try:
            measurements_cell = to_json_cell("measurements", classified)
            findings_cell = to_json_cell("findings", [f.model_dump(mode="json") for f in request.findings])
        except CellSizeExceededError as e:
            logger.warning(f"[{trace_id}] {e}")
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

        # 5. Allocate number and create report
        report_number = get_numberer(client).next_number(family)
        client.add_row(sheet, {
            Column.INSPECTION_REPORT.REPORT_NUMBER: report_number,
            Column.INSPECTION_REPORT.REPORT_TYPE: request.report_type.value,
            Column.INSPECTION_REPORT.ORDER_NUMBER: request.order_number,
            Column.INSPECTION_REPORT.ITEM_CODE: request.item_code,
            Column.INSPECTION_REPORT.INSPECTOR: request.inspector,
            Column.INSPECTION_REPORT.INSPECTION_DATE: format_date_for_smartsheet(request.inspection_date),
            Column.INSPECTION_REPORT.STANDARD: request.standard,
            Column.INSPECTION_REPORT.RESULT: result.value,
            Column.INSPECTION_REPORT.MEASUREMENTS: measurements_cell,
            Column.INSPECTION_REPORT.FINDINGS: findings_cell,
            Column.INSPECTION_REPORT.NOTES: request.notes,
            Column.INSPECTION_REPORT.CREATED_AT: format_datetime_for_smartsheet(datetime.now()),
            Column.INSPECTION_REPORT.CLIENT_REQUEST_ID: request.client_request_id,
        })
        logger.info(f"[{trace_id}] Report {report_number} ({request.report_type.value}): {result.value}")

        # 6. Audit
        log_user_action(
            client=client,
            user_id=request.inspector,
            action_type=ActionType.REPORT_CREATED,
            target_table=sheet,
            target_id=report_number,
            new_value=result.value,
            trace_id=trace_id,
        )

        return func.HttpResponse(
            json.dumps({
                "status": "CREATED",
                "report_number": report_number,
                "result": result.value,
                "measurements": classified,
                "trace_id": trace_id,
                "message": "Inspection report created successfully"
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
