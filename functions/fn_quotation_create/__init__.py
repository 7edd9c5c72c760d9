"""
fn_quotation_create: Quotation Azure Function
==============================================

Creates a quotation with priced items. Item and quotation totals are
computed here; an item without an explicit lead time takes the rounded sum
of its production stage durations.

API Contract
------------
Endpoint: POST /api/sales/quotations

Request:
{
    "client_request_id": "uuid",
    "customer_name": "Acme Industrial",
    "items": [
        {"code": "FL-300", "description": "Flange 300#", "quantity": 4,
         "unit_price": 250.0, "unit_weight": 12.5, "tax_rate": 10,
         "production_stages": [{"name": "Cut", "duration_days": 1.5},
                               {"name": "Weld", "duration_days": 2}]}
    ],
    "validity_days": 30,
    "payment_terms": "30/60",
    "created_by": "sales@company.com"
}

Response Codes
--------------
200 OK
    - status: "CREATED" - returns quotation_number, totals, validity_date, items
    - status: "ALREADY_PROCESSED" - Idempotent return of existing quotation

422 Unprocessable Entity
    - status: "TOO_LARGE" - items exceed the cell size limit

400 Bad Request
    - status: "ERROR" - Validation error in request
"""

import logging
import json
import azure.functions as func
from datetime import datetime, date, timedelta

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared import (
    Sheet,
    Column,
    QuotationCreateRequest,
    QuotationStatus,
    ActionType,
    DocumentFamily,
    get_smartsheet_client,
    get_manifest,
    get_numberer,
    get_quotation_validity_days,
    price_quotation,
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
    """Create a quotation."""
    trace_id = generate_trace_id()
    logger.info(f"[{trace_id}] fn_quotation_create invoked")

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = QuotationCreateRequest(**body)
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
            Sheet.QUOTATIONS,
            Column.QUOTATIONS.CLIENT_REQUEST_ID,
            request.client_request_id
        )
        if existing:
            number = existing.get(_get_physical_column_name(Sheet.QUOTATIONS, Column.QUOTATIONS.QUOTATION_NUMBER))
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_PROCESSED",
                    "quotation_number": number,
                    "trace_id": trace_id,
                    "message": "This request was already processed"
                }),
                status_code=200,
                mimetype="application/json"
            )

        # 3. Price items
        priced = price_quotation(request.items)
        validity_days = request.validity_days or get_quotation_validity_days()
        validity_date = format_date_for_smartsheet(date.today() + timedelta(days=validity_days))

        try:
            items_cell = to_json_cell("items", priced.items)
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

        # 4. Allocate number and create quotation
        number = get_numberer(client).next_number(DocumentFamily.QUOTATION)
        client.add_row(Sheet.QUOTATIONS, {
            Column.QUOTATIONS.QUOTATION_NUMBER: number,
            Column.QUOTATIONS.CUSTOMER_NAME: request.customer_name,
            Column.QUOTATIONS.STATUS: QuotationStatus.DRAFT.value,
            Column.QUOTATIONS.ITEMS: items_cell,
            Column.QUOTATIONS.TOTAL_VALUE: priced.total_value,
            Column.QUOTATIONS.TOTAL_TAX: priced.total_tax,
            Column.QUOTATIONS.GRAND_TOTAL: priced.grand_total,
            Column.QUOTATIONS.TOTAL_WEIGHT: priced.total_weight,
            Column.QUOTATIONS.VALIDITY_DATE: validity_date,
            Column.QUOTATIONS.PAYMENT_TERMS: request.payment_terms,
            Column.QUOTATIONS.NOTES: request.notes,
            Column.QUOTATIONS.CREATED_BY: request.created_by,
            Column.QUOTATIONS.CREATED_AT: format_datetime_for_smartsheet(datetime.now()),
            Column.QUOTATIONS.CLIENT_REQUEST_ID: request.client_request_id,
        })
        logger.info(f"[{trace_id}] Quotation {number} created: grand total {priced.grand_total}")

        # 5. Audit
        log_user_action(
            client=client,
            user_id=request.created_by,
            action_type=ActionType.QUOTATION_CREATED,
            target_table=Sheet.QUOTATIONS,
            target_id=number,
            new_value=str(priced.grand_total),
            trace_id=trace_id,
        )

        return func.HttpResponse(
            json.dumps({
                "status": "CREATED",
                "quotation_number": number,
                "total_value": priced.total_value,
                "total_tax": priced.total_tax,
                "grand_total": priced.grand_total,
                "total_weight": priced.total_weight,
                "validity_date": validity_date,
                "items": priced.items,
                "trace_id": trace_id,
                "message": "Quotation created successfully"
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
