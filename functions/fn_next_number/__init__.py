"""
fn_next_number: Document Number Preview Azure Function
=======================================================

Shows the number the next document of a family would receive. Nothing is
reserved: a concurrent submission can still take the previewed number.

API Contract
------------
Endpoint: GET /api/numbering/next?family=RNC
          GET /api/numbering/next?family=LESSON_LEARNED&year=2025

Response:
{
    "status": "OK",
    "family": "RNC",
    "next_number": "RNC-0008",
    "reserved": false,
    "trace_id": "trace-..."
}

Response Codes
--------------
200 OK
400 Bad Request - family missing/unknown or year not an integer
"""

import logging
import json
import azure.functions as func

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared import (
    DocumentFamily,
    get_smartsheet_client,
    get_numberer,
    generate_trace_id,
)

logger = logging.getLogger(__name__)


def _bad_request(message: str, trace_id: str) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps({"status": "ERROR", "message": message, "trace_id": trace_id}),
        status_code=400,
        mimetype="application/json"
    )


def main(req: func.HttpRequest) -> func.HttpResponse:
    trace_id = generate_trace_id()

    family_param = (req.params.get("family") or "").strip().upper()
    try:
        family = DocumentFamily(family_param)
    except ValueError:
        valid = ", ".join(f.value for f in DocumentFamily)
        return _bad_request(f"Unknown family '{family_param}'. Valid: {valid}", trace_id)

    year = None
    year_param = req.params.get("year")
    if year_param:
        try:
            year = int(year_param)
        except ValueError:
            return _bad_request(f"Invalid year '{year_param}'", trace_id)

    try:
        next_number = get_numberer(get_smartsheet_client()).peek_next(family, year=year)
    except Exception as e:
        logger.exception(f"[{trace_id}] Failed to preview number for {family.value}: {e}")
        return func.HttpResponse(
            json.dumps({
                "status": "ERROR",
                "message": f"Unexpected error: {str(e)}",
                "trace_id": trace_id
            }),
            status_code=500,
            mimetype="application/json"
        )

    logger.info(f"[{trace_id}] Next {family.value} number: {next_number}")
    return func.HttpResponse(
        json.dumps({
            "status": "OK",
            "family": family.value,
            "next_number": next_number,
            "reserved": False,
            "trace_id": trace_id
        }),
        status_code=200,
        mimetype="application/json"
    )
