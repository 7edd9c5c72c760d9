"""
Equipment calibration rules.

A calibration passes when every checked parameter lies within its ±
tolerance around the nominal value. Validity is tracked through the next
calibration date: past it the equipment is Expired, inside the warning
window it is flagged Warning.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Dict, Any

from .models import CalibrationParameter, CalibrationStatus, InspectionResult
from .tolerance import resolve_bounds

logger = logging.getLogger(__name__)


@dataclass
class ParameterOutcome:
    name: str
    nominal: float
    measured: float
    lower_bound: float
    upper_bound: float
    result: InspectionResult
    unit: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "nominal": self.nominal,
            "measured": self.measured,
            "lower_bound": self.lower_bound,
            "upper_bound": self.upper_bound,
            "unit": self.unit,
            "result": self.result.value,
        }


@dataclass
class CalibrationOutcome:
    """Evaluated calibration record."""
    next_calibration_date: date
    status: CalibrationStatus
    result: InspectionResult
    parameters: List[ParameterOutcome] = field(default_factory=list)


def next_calibration_date(calibration_date: date, frequency_days: int) -> date:
    return calibration_date + timedelta(days=frequency_days)


def calibration_status(
    next_date: date,
    today: Optional[date] = None,
    warning_window_days: int = 30,
) -> CalibrationStatus:
    """Expired once next_date has passed, Warning within the window, else Valid."""
    today = today or date.today()
    if next_date < today:
        return CalibrationStatus.EXPIRED
    if (next_date - today).days <= warning_window_days:
        return CalibrationStatus.WARNING
    return CalibrationStatus.VALID


def evaluate_parameter(parameter: CalibrationParameter) -> ParameterOutcome:
    bounds = resolve_bounds(parameter.nominal, f"±{parameter.tolerance}")
    result = InspectionResult.CONFORME if bounds.contains(parameter.measured) else InspectionResult.NAO_CONFORME
    return ParameterOutcome(
        name=parameter.name,
        nominal=parameter.nominal,
        measured=parameter.measured,
        lower_bound=bounds.lower,
        upper_bound=bounds.upper,
        result=result,
        unit=parameter.unit,
    )


def evaluate_calibration(
    calibration_date: date,
    frequency_days: int,
    parameters: List[CalibrationParameter],
    today: Optional[date] = None,
    warning_window_days: int = 30,
) -> CalibrationOutcome:
    """
    Evaluate parameters and compute validity of a calibration.

    Args:
        calibration_date: Date the calibration was performed
        frequency_days: Days until the next calibration is due
        parameters: Checked parameters with ± tolerance
        today: Reference date for status (defaults to today)
        warning_window_days: Days before due date that raise a Warning
    """
    outcomes = [evaluate_parameter(p) for p in parameters]
    failed = [o.name for o in outcomes if o.result is InspectionResult.NAO_CONFORME]
    if failed:
        logger.info(f"Calibration parameters out of tolerance: {failed}")

    next_date = next_calibration_date(calibration_date, frequency_days)
    return CalibrationOutcome(
        next_calibration_date=next_date,
        status=calibration_status(next_date, today, warning_window_days),
        result=InspectionResult.NAO_CONFORME if failed else InspectionResult.CONFORME,
        parameters=outcomes,
    )
