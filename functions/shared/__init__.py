"""
Shared Library for Azure Functions
===================================

Shared models, rules and clients for the quality-management and quotation
functions.

Modules
-------
logical_names
    Logical sheet and column names resolved through the manifest
models
    Pydantic request models and status enums
smartsheet_client
    Thread-safe Smartsheet API client with retry logic
numbering
    Document number allocation (RNC-0001, END-0042, LA-2025-003)
tolerance
    Measurement classification against tolerance tokens
calibration
    Next-calibration date and validity status
pricing
    Quotation totals, lead times and order delivery dates
config
    Business defaults (quality_config.json) with file override
helpers
    Trace IDs, SLA calculation, formatting, JSON cells

Quick Start
-----------
>>> from shared import get_smartsheet_client, get_numberer, DocumentFamily
>>> client = get_smartsheet_client()
>>> get_numberer(client).next_number(DocumentFamily.RNC)
'RNC-0008'

>>> from shared import evaluate_tolerance
>>> evaluate_tolerance(100, 99.80, "+0.1", "-0.05").value
'Não Conforme'
"""

# Logical names
from .logical_names import Sheet, Column, SHEET_COLUMNS, REPORT_SHEETS

# Data models
from .models import (
    InspectionResult,
    RncSeverity,
    RncStatus,
    RncOrigin,
    ReportType,
    FindingVerdict,
    CalibrationStatus,
    QuotationStatus,
    OrderStatus,
    ActionPlanStatus,
    ActionType,
    RncCreateRequest,
    ActionItem,
    ActionPlanRequest,
    Measurement,
    Finding,
    InspectionReportRequest,
    ToleranceCheckRequest,
    CalibrationParameter,
    CalibrationRequest,
    LessonLearnedRequest,
    ProductionStage,
    QuotationItem,
    QuotationCreateRequest,
    QuotationConvertRequest,
)

# Smartsheet client and exceptions
from .smartsheet_client import (
    SmartsheetClient,
    get_smartsheet_client,
    reset_smartsheet_client,
    SmartsheetError,
    SmartsheetRateLimitError,
    SmartsheetSaveCollisionError,
    SmartsheetNotFoundError,
)

# Manifest
from .manifest import (
    WorkspaceManifest,
    get_manifest,
    reset_manifest,
    ManifestError,
    ManifestNotFoundError,
)

# Configuration
from .config import (
    ConfigError,
    load_quality_config,
    get_numbering_rule,
    get_calibration_settings,
    get_quotation_validity_days,
)

# Numbering
from .numbering import (
    DocumentFamily,
    DocumentNumberer,
    SheetNumberReader,
    allocate_next_number,
    allocate_year_scoped_number,
    get_numberer,
)

# Tolerance
from .tolerance import (
    TokenKind,
    ToleranceToken,
    ToleranceBounds,
    parse_tolerance_token,
    resolve_bounds,
    evaluate_tolerance,
    format_tolerance,
)

# Calibration and pricing
from .calibration import evaluate_calibration, calibration_status, next_calibration_date
from .pricing import (
    calculate_item_totals,
    calculate_lead_time,
    price_quotation,
    plan_order,
)

# Helpers
from .helpers import (
    CellSizeExceededError,
    generate_trace_id,
    calculate_sla_due,
    format_datetime_for_smartsheet,
    format_date_for_smartsheet,
    parse_date_safe,
    parse_float_safe,
    to_json_cell,
    from_json_cell,
)

# Audit
from .audit import log_user_action


__all__ = [
    # Logical names
    "Sheet",
    "Column",
    "SHEET_COLUMNS",
    "REPORT_SHEETS",
    # Models
    "InspectionResult",
    "RncSeverity",
    "RncStatus",
    "RncOrigin",
    "ReportType",
    "FindingVerdict",
    "CalibrationStatus",
    "QuotationStatus",
    "OrderStatus",
    "ActionPlanStatus",
    "ActionType",
    "RncCreateRequest",
    "ActionItem",
    "ActionPlanRequest",
    "Measurement",
    "Finding",
    "InspectionReportRequest",
    "ToleranceCheckRequest",
    "CalibrationParameter",
    "CalibrationRequest",
    "LessonLearnedRequest",
    "ProductionStage",
    "QuotationItem",
    "QuotationCreateRequest",
    "QuotationConvertRequest",
    # Client
    "SmartsheetClient",
    "get_smartsheet_client",
    "reset_smartsheet_client",
    "SmartsheetError",
    "SmartsheetRateLimitError",
    "SmartsheetSaveCollisionError",
    "SmartsheetNotFoundError",
    # Manifest
    "WorkspaceManifest",
    "get_manifest",
    "reset_manifest",
    "ManifestError",
    "ManifestNotFoundError",
    # Config
    "ConfigError",
    "load_quality_config",
    "get_numbering_rule",
    "get_calibration_settings",
    "get_quotation_validity_days",
    # Numbering
    "DocumentFamily",
    "DocumentNumberer",
    "SheetNumberReader",
    "allocate_next_number",
    "allocate_year_scoped_number",
    "get_numberer",
    # Tolerance
    "TokenKind",
    "ToleranceToken",
    "ToleranceBounds",
    "parse_tolerance_token",
    "resolve_bounds",
    "evaluate_tolerance",
    "format_tolerance",
    # Calibration / pricing
    "evaluate_calibration",
    "calibration_status",
    "next_calibration_date",
    "calculate_item_totals",
    "calculate_lead_time",
    "price_quotation",
    "plan_order",
    # Helpers
    "CellSizeExceededError",
    "generate_trace_id",
    "calculate_sla_due",
    "format_datetime_for_smartsheet",
    "format_date_for_smartsheet",
    "parse_date_safe",
    "parse_float_safe",
    "to_json_cell",
    "from_json_cell",
    # Audit
    "log_user_action",
]
