"""
fn_rnc_create: Non-Conformance Report Azure Function
=====================================================

Opens a non-conformance report (RNC). The RNC number is allocated from the
numbers already in the RNC log, the SLA due date from the severity.

API Contract
------------
Endpoint: POST /api/quality/rnc

Request:
{
    "client_request_id": "uuid",
    "title": "Weld porosity on flange",
    "description": "Porosity found on item 3 after LP test",
    "severity": "high",
    "origin": "internal",
    "order_number": "OS-0012",
    "item_code": "FL-300",
    "source_report_number": "END-0042",
    "reported_by": "inspector@company.com",
    "assigned_to": "quality@company.com"
}

Response Codes
--------------
200 OK
    - status: "CREATED" - RNC opened, returns rnc_number and sla_due
    - status: "ALREADY_PROCESSED" - Idempotent return of existing RNC

400 Bad Request
    - status: "ERROR" - Validation error in request

500 Internal Server Error
    - status: "ERROR" - Unexpected failure

Processing Flow
---------------
1. Parse and validate request (RncCreateRequest)
2. Idempotency check (client_request_id)
3. Allocate RNC number
4. Create row in RNC_LOG (status Open, SLA due from severity)
5. Log user action
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
    RncCreateRequest,
    RncStatus,
    ActionType,
    DocumentFamily,
    get_smartsheet_client,
    get_manifest,
    get_numberer,
    generate_trace_id,
    calculate_sla_due,
    format_datetime_for_smartsheet,
    log_user_action,
)

logger = logging.getLogger(__name__)


def _get_physical_column_name(sheet_logical: str, column_logical: str) -> str:
    """Get physical column name from manifest."""
    return get_manifest().get_column_name(sheet_logical, column_logical)


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Create an RNC."""
    trace_id = generate_trace_id()
    logger.info(f"[{trace_id}] fn_rnc_create invoked")

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = RncCreateRequest(**body)
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
            Sheet.RNC_LOG,
            Column.RNC_LOG.CLIENT_REQUEST_ID,
            request.client_request_id
        )
        if existing:
            rnc_number = existing.get(_get_physical_column_name(Sheet.RNC_LOG, Column.RNC_LOG.RNC_NUMBER))
            logger.info(f"[{trace_id}] Duplicate request, returning existing RNC {rnc_number}")
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_PROCESSED",
                    "rnc_number": rnc_number,
                    "trace_id": trace_id,
                    "message": "This request was already processed"
                }),
                status_code=200,
                mimetype="application/json"
            )

        # 3. Allocate number
        rnc_number = get_numberer(client).next_number(DocumentFamily.RNC)
        now = datetime.now()
        sla_due = format_datetime_for_smartsheet(calculate_sla_due(request.severity, now))

        # 4. Create RNC row
        client.add_row(Sheet.RNC_LOG, {
            Column.RNC_LOG.RNC_NUMBER: rnc_number,
            Column.RNC_LOG.TITLE: request.title,
            Column.RNC_LOG.DESCRIPTION: request.description,
            Column.RNC_LOG.SEVERITY: request.severity.value,
            Column.RNC_LOG.ORIGIN: request.origin.value,
            Column.RNC_LOG.ORDER_NUMBER: request.order_number,
            Column.RNC_LOG.ITEM_CODE: request.item_code,
            Column.RNC_LOG.SOURCE_REPORT_NUMBER: request.source_report_number,
            Column.RNC_LOG.REPORTED_BY: request.reported_by,
            Column.RNC_LOG.ASSIGNED_TO: request.assigned_to,
            Column.RNC_LOG.STATUS: RncStatus.OPEN.value,
            Column.RNC_LOG.SLA_DUE: sla_due,
            Column.RNC_LOG.CREATED_AT: format_datetime_for_smartsheet(now),
            Column.RNC_LOG.CLIENT_REQUEST_ID: request.client_request_id,
        })
        logger.info(f"[{trace_id}] RNC created: {rnc_number} ({request.severity.value})")

        # 5. Audit
        log_user_action(
            client=client,
            user_id=request.reported_by,
            action_type=ActionType.RNC_CREATED,
            target_table=Sheet.RNC_LOG,
            target_id=rnc_number,
            new_value=request.title,
            trace_id=trace_id,
        )

        return func.HttpResponse(
            json.dumps({
                "status": "CREATED",
                "rnc_number": rnc_number,
                "sla_due": sla_due,
                "trace_id": trace_id,
                "message": "RNC created successfully"
            }),
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
