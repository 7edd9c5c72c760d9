"""
Tolerance Evaluation
====================

Classifies a measured value against a nominal value and up to two signed
tolerance tokens, as typed into inspection and calibration forms.

Token grammar
-------------
    "+0.1"   -> UPPER(0.1)      raises the upper bound only
    "-0.05"  -> LOWER(0.05)     lowers the lower bound only
    "0.5"    -> SYMMETRIC(0.5)  both bounds (unless a signed token set one)
    "±0.5"   -> SYMMETRIC(0.5)
    ""/None/garbage -> INVALID  ignored, contributes no bound

Bounds are inclusive: a measured value exactly on a bound is conforming.

Usage
-----
>>> evaluate_tolerance(100, 100.05, "+0.1", "-0.05")
<InspectionResult.CONFORME: 'Conforme'>
>>> resolve_bounds(10, "0.5")
ToleranceBounds(lower=9.5, upper=10.5)
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import InspectionResult


class TokenKind(Enum):
    UPPER = "upper"
    LOWER = "lower"
    SYMMETRIC = "symmetric"
    INVALID = "invalid"


@dataclass(frozen=True)
class ToleranceToken:
    """Parsed tolerance token."""
    kind: TokenKind
    magnitude: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.kind is not TokenKind.INVALID


@dataclass(frozen=True)
class ToleranceBounds:
    """Acceptable range [lower, upper] around a nominal value."""
    lower: float
    upper: float

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


INVALID_TOKEN = ToleranceToken(TokenKind.INVALID)

_SIGN_KINDS = {
    "+": TokenKind.UPPER,
    "-": TokenKind.LOWER,
    "±": TokenKind.SYMMETRIC,
}


def _parse_magnitude(text: str) -> Optional[float]:
    """Parse a non-negative finite magnitude, accepting a decimal comma."""
    text = text.strip().replace(",", ".")
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def parse_tolerance_token(token: Optional[str]) -> ToleranceToken:
    """
    Parse one tolerance token into a tagged variant.

    Never raises: anything that is not a string holding a non-negative
    number (optionally signed) is INVALID.
    """
    if not isinstance(token, str):
        return INVALID_TOKEN

    text = token.strip()
    if not text:
        return INVALID_TOKEN

    kind = _SIGN_KINDS.get(text[0])
    if kind is None:
        kind = TokenKind.SYMMETRIC
    else:
        text = text[1:]

    magnitude = _parse_magnitude(text)
    if magnitude is None:
        return INVALID_TOKEN
    return ToleranceToken(kind, magnitude)


def resolve_bounds(
    nominal: float,
    tolerance_a: Optional[str] = None,
    tolerance_b: Optional[str] = None,
) -> ToleranceBounds:
    """
    Resolve the acceptable range for a nominal value.

    Signed tokens always set their own side. The first symmetric token fills
    every side not already set by a signed token; a later symmetric token is
    ignored once one has been applied.
    """
    lower = upper = nominal
    lower_explicit = upper_explicit = False
    symmetric_applied = False

    for token in (parse_tolerance_token(tolerance_a), parse_tolerance_token(tolerance_b)):
        if token.kind is TokenKind.UPPER:
            upper = nominal + token.magnitude
            upper_explicit = True
        elif token.kind is TokenKind.LOWER:
            lower = nominal - token.magnitude
            lower_explicit = True
        elif token.kind is TokenKind.SYMMETRIC and not symmetric_applied:
            if not upper_explicit:
                upper = nominal + token.magnitude
            if not lower_explicit:
                lower = nominal - token.magnitude
            symmetric_applied = True

    return ToleranceBounds(lower=lower, upper=upper)


def evaluate_tolerance(
    nominal: float,
    measured: float,
    tolerance_a: Optional[str] = None,
    tolerance_b: Optional[str] = None,
) -> InspectionResult:
    """Return CONFORME when measured lies within the resolved bounds."""
    bounds = resolve_bounds(nominal, tolerance_a, tolerance_b)
    if bounds.contains(measured):
        return InspectionResult.CONFORME
    return InspectionResult.NAO_CONFORME


def format_tolerance(tolerance_a: Optional[str] = None, tolerance_b: Optional[str] = None) -> str:
    """Human-readable tolerance label for report cells (e.g. '+0.1 / -0.05')."""
    labels = []
    for token in (parse_tolerance_token(tolerance_a), parse_tolerance_token(tolerance_b)):
        if not token.is_valid:
            continue
        sign = {TokenKind.UPPER: "+", TokenKind.LOWER: "-", TokenKind.SYMMETRIC: "±"}[token.kind]
        labels.append(f"{sign}{token.magnitude:g}")
    return " / ".join(labels) if labels else "exact"
