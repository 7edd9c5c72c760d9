"""
fn_quotation_convert: Quotation to Order Azure Function
========================================================

Converts an existing quotation into a production order.

API Contract
------------
Endpoint: POST /api/sales/quotations/convert

Request:
{
    "client_request_id": "uuid",
    "quotation_number": "ORC-0003",
    "customer_po": "PO-99812",
    "requested_by": "sales@company.com"
}

Rules
-----
- Each order item delivers on conversion date + item lead time; items without
  lead time deliver on the quotation validity date
- The order delivery date is the latest item delivery date
- Order status "Aguardando Produção"; quotation status "Pedido Gerado" with
  the order number stored on the quotation

Response Codes
--------------
200 OK
    - status: "CONVERTED" - returns order_number, delivery_date, items
    - status: "ALREADY_PROCESSED" - Idempotent return of existing order

404 Not Found
    - status: "NOT_FOUND" - quotation does not exist

409 Conflict
    - status: "ALREADY_CONVERTED" - quotation already has an order

422 Unprocessable Entity
    - status: "BLOCKED" - quotation is Rejected or Expired

400 Bad Request
    - status: "ERROR" - Validation error in request
"""

import logging
import json
import azure.functions as func
from datetime import datetime, date

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared import (
    Sheet,
    Column,
    QuotationConvertRequest,
    QuotationStatus,
    OrderStatus,
    ActionType,
    DocumentFamily,
    get_smartsheet_client,
    get_manifest,
    get_numberer,
    plan_order,
    generate_trace_id,
    format_datetime_for_smartsheet,
    format_date_for_smartsheet,
    parse_date_safe,
    parse_float_safe,
    from_json_cell,
    to_json_cell,
    CellSizeExceededError,
    log_user_action,
)

logger = logging.getLogger(__name__)

BLOCKED_STATUSES = (QuotationStatus.REJECTED.value, QuotationStatus.EXPIRED.value)


def _get_physical_column_name(sheet_logical: str, column_logical: str) -> str:
    """Get physical column name from manifest."""
    return get_manifest().get_column_name(sheet_logical, column_logical)


def _quotation_value(quotation: dict, column_logical: str):
    return quotation.get(_get_physical_column_name(Sheet.QUOTATIONS, column_logical))


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Convert a quotation into a production order."""
    trace_id = generate_trace_id()
    logger.info(f"[{trace_id}] fn_quotation_convert invoked")

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = QuotationConvertRequest(**body)
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
        existing = client.find_row(Sheet.ORDERS, Column.ORDERS.CLIENT_REQUEST_ID, request.client_request_id)
        if existing:
            order_number = existing.get(_get_physical_column_name(Sheet.ORDERS, Column.ORDERS.ORDER_NUMBER))
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_PROCESSED",
                    "order_number": order_number,
                    "trace_id": trace_id,
                    "message": "This request was already processed"
                }),
                status_code=200,
                mimetype="application/json"
            )

        # 3. Load and validate quotation
        quotation = client.find_row(Sheet.QUOTATIONS, Column.QUOTATIONS.QUOTATION_NUMBER, request.quotation_number)
        if not quotation:
            logger.warning(f"[{trace_id}] Quotation not found: {request.quotation_number}")
            return func.HttpResponse(
                json.dumps({
                    "status": "NOT_FOUND",
                    "message": f"Quotation {request.quotation_number} not found",
                    "trace_id": trace_id
                }),
                status_code=404,
                mimetype="application/json"
            )

        status = _quotation_value(quotation, Column.QUOTATIONS.STATUS)
        existing_order = _quotation_value(quotation, Column.QUOTATIONS.ORDER_NUMBER)
        if not existing_order:
            # Order row may exist without the quotation mark if a prior run failed between writes
            order_row = client.find_row(Sheet.ORDERS, Column.ORDERS.QUOTATION_NUMBER, request.quotation_number)
            if order_row:
                existing_order = order_row.get(_get_physical_column_name(Sheet.ORDERS, Column.ORDERS.ORDER_NUMBER))
        if existing_order or status == QuotationStatus.ORDER_GENERATED.value:
            return func.HttpResponse(
                json.dumps({
                    "status": "ALREADY_CONVERTED",
                    "order_number": existing_order,
                    "message": f"Quotation {request.quotation_number} already converted",
                    "trace_id": trace_id
                }),
                status_code=409,
                mimetype="application/json"
            )

        if status in BLOCKED_STATUSES:
            return func.HttpResponse(
                json.dumps({
                    "status": "BLOCKED",
                    "error_code": f"QUOTATION_{status.upper()}",
                    "message": f"Quotation {request.quotation_number} is {status}",
                    "trace_id": trace_id
                }, ensure_ascii=False),
                status_code=422,
                mimetype="application/json"
            )

        # 4. Plan order items
        today = date.today()
        validity_date = parse_date_safe(_quotation_value(quotation, Column.QUOTATIONS.VALIDITY_DATE))
        items = from_json_cell(_quotation_value(quotation, Column.QUOTATIONS.ITEMS), default=[])
        plan = plan_order(items, today, validity_date)
        delivery_date = format_date_for_smartsheet(plan.delivery_date) if plan.delivery_date else None
        total_value = parse_float_safe(_quotation_value(quotation, Column.QUOTATIONS.GRAND_TOTAL))

        try:
            items_cell = to_json_cell("items", plan.items)
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

        # 5. Allocate number and create order
        order_number = get_numberer(client).next_number(DocumentFamily.ORDER)
        client.add_row(Sheet.ORDERS, {
            Column.ORDERS.ORDER_NUMBER: order_number,
            Column.ORDERS.QUOTATION_NUMBER: request.quotation_number,
            Column.ORDERS.CUSTOMER_NAME: _quotation_value(quotation, Column.QUOTATIONS.CUSTOMER_NAME),
            Column.ORDERS.CUSTOMER_PO: request.customer_po,
            Column.ORDERS.STATUS: OrderStatus.AWAITING_PRODUCTION.value,
            Column.ORDERS.ITEMS: items_cell,
            Column.ORDERS.TOTAL_VALUE: total_value,
            Column.ORDERS.DELIVERY_DATE: delivery_date,
            Column.ORDERS.CREATED_BY: request.requested_by,
            Column.ORDERS.CREATED_AT: format_datetime_for_smartsheet(datetime.now()),
            Column.ORDERS.CLIENT_REQUEST_ID: request.client_request_id,
        })

        # 6. Mark quotation
        client.update_row(Sheet.QUOTATIONS, quotation["row_id"], {
            Column.QUOTATIONS.STATUS: QuotationStatus.ORDER_GENERATED.value,
            Column.QUOTATIONS.ORDER_NUMBER: order_number,
        })
        logger.info(f"[{trace_id}] Quotation {request.quotation_number} converted to {order_number}")

        # 7. Audit
        log_user_action(
            client=client,
            user_id=request.requested_by,
            action_type=ActionType.QUOTATION_CONVERTED,
            target_table=Sheet.QUOTATIONS,
            target_id=request.quotation_number,
            old_value=status,
            new_value=order_number,
            trace_id=trace_id,
        )

        return func.HttpResponse(
            json.dumps({
                "status": "CONVERTED",
                "order_number": order_number,
                "quotation_number": request.quotation_number,
                "order_status": OrderStatus.AWAITING_PRODUCTION.value,
                "delivery_date": delivery_date,
                "total_value": total_value,
                "items": plan.items,
                "trace_id": trace_id,
                "message": "Order created successfully"
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
