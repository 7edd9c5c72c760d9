"""
Shared Data Models for Quality Functions
========================================

This module defines all Pydantic models used for request validation and data
transfer across the quality-management and quotation functions.

Design Principles
-----------------
- **Pydantic v2** for validation and serialization
- **Enums** for constrained values (status, severity, report type, result)
- **Optional fields** with sensible defaults
- Responses are plain dicts built by each function (JSON body)

Model Categories
----------------
Enumerations
    InspectionResult, RncSeverity, RncStatus, RncOrigin, ReportType,
    FindingVerdict, CalibrationStatus, QuotationStatus, OrderStatus,
    ActionPlanStatus, ActionType

Request Models
    RncCreateRequest, ActionPlanRequest, InspectionReportRequest,
    ToleranceCheckRequest, CalibrationRequest, LessonLearnedRequest,
    QuotationCreateRequest, QuotationConvertRequest

Usage Examples
--------------
    >>> request = RncCreateRequest(
    ...     title="Weld porosity on flange",
    ...     description="Porosity found on item 3",
    ...     severity="high",
    ...     reported_by="inspector@company.com"
    ... )
    >>> request.severity
    <RncSeverity.HIGH: 'high'>
"""

from datetime import date
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
import uuid


class InspectionResult(str, Enum):
    """Classification of a measurement or a whole report."""
    CONFORME = "Conforme"
    NAO_CONFORME = "Não Conforme"


class RncSeverity(str, Enum):
    """Non-conformance severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RncStatus(str, Enum):
    """RNC status values - must match the sheet picklist."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class RncOrigin(str, Enum):
    """Where the non-conformance was detected."""
    INTERNAL = "internal"
    SUPPLIER = "supplier"
    CUSTOMER = "customer"


class ReportType(str, Enum):
    """Inspection report disciplines."""
    RAW_MATERIAL = "raw-material"
    DIMENSIONAL = "dimensional"
    WELDING = "welding"
    LIQUID_PENETRANT = "liquid-penetrant"
    ULTRASOUND = "ultrasound"
    PAINTING = "painting"


class FindingVerdict(str, Enum):
    """Verdict of an NDT / visual finding."""
    ACCEPTABLE = "acceptable"
    REJECTABLE = "rejectable"


class CalibrationStatus(str, Enum):
    """Calibration validity derived from the next calibration date."""
    VALID = "Valid"
    WARNING = "Warning"
    EXPIRED = "Expired"


class QuotationStatus(str, Enum):
    """Quotation lifecycle."""
    DRAFT = "Draft"
    SENT = "Sent"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"
    ORDER_GENERATED = "Pedido Gerado"


class OrderStatus(str, Enum):
    """Production order status set at conversion time."""
    AWAITING_PRODUCTION = "Aguardando Produção"


class ActionPlanStatus(str, Enum):
    """Corrective-action plan status."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class ActionType(str, Enum):
    """User action types for audit log."""
    RNC_CREATED = "RNC_CREATED"
    ACTION_PLAN_CREATED = "ACTION_PLAN_CREATED"
    REPORT_CREATED = "REPORT_CREATED"
    CALIBRATION_RECORDED = "CALIBRATION_RECORDED"
    LESSON_CREATED = "LESSON_CREATED"
    QUOTATION_CREATED = "QUOTATION_CREATED"
    QUOTATION_CONVERTED = "QUOTATION_CONVERTED"


def _new_request_id() -> str:
    return str(uuid.uuid4())


# ============== Quality Requests ==============

class RncCreateRequest(BaseModel):
    """Request payload for opening a non-conformance report."""
    client_request_id: str = Field(default_factory=_new_request_id)
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    severity: RncSeverity
    origin: RncOrigin = RncOrigin.INTERNAL
    order_number: Optional[str] = None
    item_code: Optional[str] = None
    source_report_number: Optional[str] = None
    reported_by: str
    assigned_to: Optional[str] = None


class ActionItem(BaseModel):
    """Single corrective action inside a plan."""
    description: str = Field(min_length=1)
    responsible: str
    due_date: date


class ActionPlanRequest(BaseModel):
    """Corrective-action plan linked to an RNC."""
    client_request_id: str = Field(default_factory=_new_request_id)
    rnc_number: str
    problem: str
    whys: List[str] = Field(default_factory=list)
    root_cause: str
    actions: List[ActionItem] = Field(min_length=1)
    created_by: str

    @field_validator("whys")
    @classmethod
    def at_most_five_whys(cls, value: List[str]) -> List[str]:
        if len(value) > 5:
            raise ValueError("a five-whys analysis holds at most 5 answers")
        return value


class Measurement(BaseModel):
    """A measured characteristic evaluated against tolerance tokens."""
    model_config = ConfigDict(coerce_numbers_to_str=True, allow_inf_nan=False)

    name: str
    nominal: float
    measured: float
    tolerance_a: Optional[str] = None
    tolerance_b: Optional[str] = None
    unit: Optional[str] = None


class Finding(BaseModel):
    """An NDT / visual indication with the inspector's verdict."""
    location: str
    description: Optional[str] = None
    verdict: FindingVerdict


class InspectionReportRequest(BaseModel):
    """Inspection report for any of the supported disciplines."""
    client_request_id: str = Field(default_factory=_new_request_id)
    report_type: ReportType
    order_number: str
    item_code: Optional[str] = None
    inspector: str
    inspection_date: date
    standard: Optional[str] = None
    measurements: List[Measurement] = Field(default_factory=list)
    findings: List[Finding] = Field(default_factory=list)
    notes: Optional[str] = None


class ToleranceCheckRequest(BaseModel):
    """On-the-fly tolerance check for a single measurement."""
    model_config = ConfigDict(coerce_numbers_to_str=True, allow_inf_nan=False)

    nominal: float
    measured: float
    tolerance_a: Optional[str] = None
    tolerance_b: Optional[str] = None


class CalibrationParameter(BaseModel):
    """Machine parameter checked during calibration (± tolerance)."""
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    nominal: float
    measured: float
    tolerance: float = Field(default=0.0, ge=0)
    unit: Optional[str] = None


class CalibrationRequest(BaseModel):
    """Calibration record for a piece of equipment."""
    client_request_id: str = Field(default_factory=_new_request_id)
    equipment_id: str
    equipment_name: str
    calibration_date: date
    frequency_days: Optional[int] = Field(default=None, gt=0)
    calibrated_by: str
    parameters: List[CalibrationParameter] = Field(default_factory=list)
    notes: Optional[str] = None


class LessonLearnedRequest(BaseModel):
    """Lessons-learned record."""
    client_request_id: str = Field(default_factory=_new_request_id)
    title: str = Field(min_length=1)
    description: str
    category: Optional[str] = None
    recommendation: Optional[str] = None
    rnc_number: Optional[str] = None
    record_date: date = Field(default_factory=date.today)
    created_by: str


# ============== Sales Requests ==============

class ProductionStage(BaseModel):
    """Stage of a product's production plan template."""
    name: str
    duration_days: Optional[float] = None


class QuotationItem(BaseModel):
    """Quotation line."""
    code: Optional[str] = None
    description: str
    quantity: float = Field(ge=1)
    unit_price: float = Field(ge=0)
    unit_weight: float = Field(default=0.0, ge=0)
    tax_rate: float = Field(default=0.0, ge=0)
    lead_time_days: Optional[int] = Field(default=None, ge=0)
    production_stages: List[ProductionStage] = Field(default_factory=list)
    notes: Optional[str] = None


class QuotationCreateRequest(BaseModel):
    """Request payload for creating a quotation."""
    client_request_id: str = Field(default_factory=_new_request_id)
    customer_name: str
    items: List[QuotationItem] = Field(min_length=1)
    validity_days: Optional[int] = Field(default=None, gt=0)
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    created_by: str


class QuotationConvertRequest(BaseModel):
    """Request payload for converting a quotation into an order."""
    client_request_id: str = Field(default_factory=_new_request_id)
    quotation_number: str
    customer_po: str
    requested_by: str
    metadata: Optional[Dict[str, Any]] = None
