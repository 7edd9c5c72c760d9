"""
fn_lessons_learned: Lessons Learned Azure Function
===================================================

Records a lesson learned. Numbers restart every year: LA-<year>-### with the
year taken from the record date.

API Contract
------------
Endpoint: POST /api/quality/lessons

Request:
{
    "client_request_id": "uuid",
    "title": "Check regulator before long weld runs",
    "description": "...",
    "category": "Welding",
    "recommendation": "Add regulator check to WPS checklist",
    "rnc_number": "RNC-0007",
    "record_date": "2025-06-12",
    "created_by": "quality@company.com"
}

Response Codes
--------------
200 OK
    - status: "CREATED" - returns lesson_number
    - status: "ALREADY_PROCESSED" - Idempotent return of existing record

422 Unprocessable Entity
    - status: "BLOCKED", error_code "RNC_NOT_FOUND" - linked RNC does not exist

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
    LessonLearnedRequest,
    ActionType,
    DocumentFamily,
    get_smartsheet_client,
    get_manifest,
    get_numberer,
    generate_trace_id,
    format_datetime_for_smartsheet,
    format_date_for_smartsheet,
    log_user_action,
)

logger = logging.getLogger(__name__)


def _get_physical_column_name(sheet_logical: str, column_logical: str) -> str:
    """Get physical column name from manifest."""
    return get_manifest().get_column_name(sheet_logical, column_logical)


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Record a lesson learned."""
    trace_id = generate_trace_id()
    logger.info(f"[{trace_id}] fn_lessons_learned invoked")

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = LessonLearnedRequest(**body)
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
            Sheet.LESSONS_LEARNED,
            Column.LESSONS_LEARNED.CLIENT_REQUEST_ID,
            request.client_request_id
        )
        if existing:
            number = existing.get(
                _get_physical_column_name(Sheet.LESSONS_LEARNED, Column.LESSONS_LEARNED.LESSON_NUMBER)
            )
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_PROCESSED",
                    "lesson_number": number,
                    "trace_id": trace_id,
                    "message": "This request was already processed"
                }),
                status_code=200,
                mimetype="application/json"
            )

        # 3. Validate linked RNC
        if request.rnc_number:
            rnc = client.find_row(Sheet.RNC_LOG, Column.RNC_LOG.RNC_NUMBER, request.rnc_number)
            if not rnc:
                logger.warning(f"[{trace_id}] Linked RNC not found: {request.rnc_number}")
                return func.HttpResponse(
                    json.dumps({
                        "status": "BLOCKED",
                        "error_code": "RNC_NOT_FOUND",
                        "message": f"RNC {request.rnc_number} not found",
                        "trace_id": trace_id
                    }),
                    status_code=422,
                    mimetype="application/json"
                )

        # 4. Allocate year-scoped number and create record
        number = get_numberer(client).next_number(
            DocumentFamily.LESSON_LEARNED, year=request.record_date.year
        )
        client.add_row(Sheet.LESSONS_LEARNED, {
            Column.LESSONS_LEARNED.LESSON_NUMBER: number,
            Column.LESSONS_LEARNED.TITLE: request.title,
            Column.LESSONS_LEARNED.DESCRIPTION: request.description,
            Column.LESSONS_LEARNED.CATEGORY: request.category,
            Column.LESSONS_LEARNED.RECOMMENDATION: request.recommendation,
            Column.LESSONS_LEARNED.RNC_NUMBER: request.rnc_number,
            Column.LESSONS_LEARNED.RECORD_DATE: format_date_for_smartsheet(request.record_date),
            Column.LESSONS_LEARNED.CREATED_BY: request.created_by,
            Column.LESSONS_LEARNED.CREATED_AT: format_datetime_for_smartsheet(datetime.now()),
            Column.LESSONS_LEARNED.CLIENT_REQUEST_ID: request.client_request_id,
        })
        logger.info(f"[{trace_id}] Lesson learned created: {number}")

        # 5. Audit
        log_user_action(
            client=client,
            user_id=request.created_by,
            action_type=ActionType.LESSON_CREATED,
            target_table=Sheet.LESSONS_LEARNED,
            target_id=number,
            new_value=request.title,
            trace_id=trace_id,
        )

        return func.HttpResponse(
            json.dumps({
                "status": "CREATED",
                "lesson_number": number,
                "trace_id": trace_id,
                "message": "Lesson learned created successfully"
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
