"""
fn_tolerance_check: Measurement Tolerance Azure Function
=========================================================

Classifies a single measurement while the inspector is typing it in. No
sheet access.

API Contract
------------
Endpoint: POST /api/quality/tolerance

Request:
{
    "nominal": 100,
    "measured": 100.05,
    "tolerance_a": "+0.1",
    "tolerance_b": "-0.05"
}

Response:
{
    "status": "OK",
    "result": "Conforme",
    "lower_bound": 99.95,
    "upper_bound": 100.1,
    "tolerance": "+0.1 / -0.05",
    "trace_id": "trace-..."
}

Unparseable tolerance tokens are ignored (no bound contribution); with no
valid token the measured value must equal the nominal value.

Response Codes
--------------
200 OK
400 Bad Request - nominal/measured missing or not numeric
"""

import logging
import json
import azure.functions as func

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared import (
    ToleranceCheckRequest,
    generate_trace_id,
    resolve_bounds,
    evaluate_tolerance,
    format_tolerance,
)

logger = logging.getLogger(__name__)


def main(req: func.HttpRequest) -> func.HttpResponse:
    trace_id = generate_trace_id()

    try:
        body = req.get_json()
        request = ToleranceCheckRequest(**body)
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

    bounds = resolve_bounds(request.nominal, request.tolerance_a, request.tolerance_b)
    result = evaluate_tolerance(request.nominal, request.measured, request.tolerance_a, request.tolerance_b)
    logger.debug(f"[{trace_id}] {request.measured} in [{bounds.lower}, {bounds.upper}]: {result.value}")

    return func.HttpResponse(
        json.dumps({
            "status": "OK",
            "result": result.value,
            "lower_bound": bounds.lower,
            "upper_bound": bounds.upper,
            "tolerance": format_tolerance(request.tolerance_a, request.tolerance_b),
            "trace_id": trace_id
        }, ensure_ascii=False),
        status_code=200,
        mimetype="application/json"
    )
