"""
fn_action_plan: Corrective Action Plan Azure Function
======================================================

Records a corrective-action plan (five whys, root cause, actions) against an
existing RNC and moves the RNC to "In Progress".

API Contract
------------
Endpoint: POST /api/quality/action-plans

Request:
{
    "client_request_id": "uuid",
    "rnc_number": "RNC-0007",
    "problem": "Porosity on flange welds",
    "whys": ["Gas flow low", "Regulator worn", "No preventive check"],
    "root_cause": "Regulator outside maintenance plan",
    "actions": [
        {"description": "Add regulator to PM plan", "responsible": "maint@company.com",
         "due_date": "2025-07-01"}
    ],
    "created_by": "quality@company.com"
}

Response Codes
--------------
200 OK
    - status: "CREATED" - Plan recorded, returns plan_number
    - status: "ALREADY_PROCESSED" - Idempotent return of existing plan

422 Unprocessable Entity
    - status: "BLOCKED", error_code "RNC_NOT_FOUND" - RNC does not exist
    - status: "BLOCKED", error_code "RNC_CLOSED" - RNC already closed

400 Bad Request
    - status: "ERROR" - Validation error (e.g. more than five whys)
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
    ActionPlanRequest,
    ActionPlanStatus,
    RncStatus,
    ActionType,
    DocumentFamily,
    get_smartsheet_client,
    get_manifest,
    get_numberer,
    generate_trace_id,
    format_datetime_for_smartsheet,
    to_json_cell,
    CellSizeExceededError,
    log_user_action,
)

logger = logging.getLogger(__name__)


def _get_physical_column_name(sheet_logical: str, column_logical: str) -> str:
    """Get physical column name from manifest."""
    return get_manifest().get_column_name(sheet_logical, column_logical)


def _blocked(error_code: str, message: str, trace_id: str, status_code: int = 422) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps({
            "status": "BLOCKED",
            "error_code": error_code,
            "message": message,
            "trace_id": trace_id
        }),
        status_code=status_code,
        mimetype="application/json"
    )


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Create a corrective-action plan for an RNC."""
    trace_id = generate_trace_id()
    logger.info(f"[{trace_id}] fn_action_plan invoked")

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = ActionPlanRequest(**body)
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
            Sheet.ACTION_PLAN_LOG,
            Column.ACTION_PLAN_LOG.CLIENT_REQUEST_ID,
            request.client_request_id
        )
        if existing:
            plan_number = existing.get(
                _get_physical_column_name(Sheet.ACTION_PLAN_LOG, Column.ACTION_PLAN_LOG.PLAN_NUMBER)
            )
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_PROCESSED",
                    "plan_number": plan_number,
                    "trace_id": trace_id,
                    "message": "This request was already processed"
                }),
                status_code=200,
                mimetype="application/json"
            )

        # 3. Load and validate RNC
        rnc = client.find_row(Sheet.RNC_LOG, Column.RNC_LOG.RNC_NUMBER, request.rnc_number)
        if not rnc:
            logger.warning(f"[{trace_id}] RNC not found: {request.rnc_number}")
            return _blocked("RNC_NOT_FOUND", f"RNC {request.rnc_number} not found", trace_id)

        rnc_status = rnc.get(_get_physical_column_name(Sheet.RNC_LOG, Column.RNC_LOG.STATUS))
        if rnc_status == RncStatus.CLOSED.value:
            logger.warning(f"[{trace_id}] RNC {request.rnc_number} is closed")
            return _blocked("RNC_CLOSED", f"RNC {request.rnc_number} is closed", trace_id)

        # 4. Serialize analysis
        try:
            whys_cell = to_json_cell("whys", request.whys)
            actions_cell = to_json_cell("actions", [a.model_dump(mode="json") for a in request.actions])
        except CellSizeExceededError as e:
            return _blocked("TOO_LARGE", str(e), trace_id)

        # 5. Allocate number and create plan
        plan_number = get_numberer(client).next_number(DocumentFamily.ACTION_PLAN)
        client.add_row(Sheet.ACTION_PLAN_LOG, {
            Column.ACTION_PLAN_LOG.PLAN_NUMBER: plan_number,
            Column.ACTION_PLAN_LOG.RNC_NUMBER: request.rnc_number,
            Column.ACTION_PLAN_LOG.PROBLEM: request.problem,
            Column.ACTION_PLAN_LOG.WHYS: whys_cell,
            Column.ACTION_PLAN_LOG.ROOT_CAUSE: request.root_cause,
            Column.ACTION_PLAN_LOG.ACTIONS: actions_cell,
            Column.ACTION_PLAN_LOG.STATUS: ActionPlanStatus.OPEN.value,
            Column.ACTION_PLAN_LOG.CREATED_BY: request.created_by,
            Column.ACTION_PLAN_LOG.CREATED_AT: format_datetime_for_smartsheet(datetime.now()),
            Column.ACTION_PLAN_LOG.CLIENT_REQUEST_ID: request.client_request_id,
        })
        logger.info(f"[{trace_id}] Action plan {plan_number} created for {request.rnc_number}")

        # 6. Move RNC forward
        if rnc_status != RncStatus.IN_PROGRESS.value:
            client.update_row(Sheet.RNC_LOG, rnc["row_id"], {
                Column.RNC_LOG.STATUS: RncStatus.IN_PROGRESS.value,
            })

        # 7. Audit
        log_user_action(
            client=client,
            user_id=request.created_by,
            action_type=ActionType.ACTION_PLAN_CREATED,
            target_table=Sheet.ACTION_PLAN_LOG,
            target_id=plan_number,
            old_value=rnc_status,
            new_value=RncStatus.IN_PROGRESS.value,
            notes=f"RNC {request.rnc_number}",
            trace_id=trace_id,
        )

        return func.HttpResponse(
            json.dumps({
                "status": "CREATED",
                "plan_number": plan_number,
                "rnc_number": request.rnc_number,
                "trace_id": trace_id,
                "message": "Action plan created successfully"
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
