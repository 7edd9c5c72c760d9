"""
Unit Tests for Tolerance Evaluation

Covers token parsing, bound resolution and the conformity verdict used by
inspection reports and the tolerance-check endpoint.
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from shared.models import InspectionResult
from shared.tolerance import (
    TokenKind,
    ToleranceToken,
    ToleranceBounds,
    parse_tolerance_token,
    resolve_bounds,
    evaluate_tolerance,
    format_tolerance,
)


@pytest.mark.unit
class TestParseToleranceToken:
    """Tests for parse_tolerance_token."""

    def test_plus_sign_is_upper(self):
        assert parse_tolerance_token("+0.1") == ToleranceToken(TokenKind.UPPER, 0.1)

    def test_minus_sign_is_lower(self):
        assert parse_tolerance_token("-0.05") == ToleranceToken(TokenKind.LOWER, 0.05)

    def test_unsigned_is_symmetric(self):
        assert parse_tolerance_token("0.5") == ToleranceToken(TokenKind.SYMMETRIC, 0.5)

    def test_plus_minus_sign_is_symmetric(self):
        assert parse_tolerance_token("±0.2") == ToleranceToken(TokenKind.SYMMETRIC, 0.2)

    def test_surrounding_whitespace_ignored(self):
        assert parse_tolerance_token("  +1  ") == ToleranceToken(TokenKind.UPPER, 1.0)

    def test_decimal_comma_accepted(self):
        assert parse_tolerance_token("+0,3") == ToleranceToken(TokenKind.UPPER, 0.3)

    @pytest.mark.parametrize("token", [None, "", "   ", "abc", "+", "-", "+-1", "--1", "nan", "inf"])
    def test_unparseable_tokens_are_invalid(self, token):
        parsed = parse_tolerance_token(token)
        assert parsed.kind is TokenKind.INVALID
        assert not parsed.is_valid

    def test_non_string_is_invalid(self):
        assert parse_tolerance_token(0.5).kind is TokenKind.INVALID


@pytest.mark.unit
class TestResolveBounds:
    """Tests for resolve_bounds."""

    def test_no_tokens_means_exact(self):
        assert resolve_bounds(10.0) == ToleranceBounds(10.0, 10.0)

    def test_asymmetric_pair(self):
        bounds = resolve_bounds(100, "+0.1", "-0.05")
        assert bounds.lower == pytest.approx(99.95)
        assert bounds.upper == pytest.approx(100.1)

    def test_token_order_does_not_matter_for_signed_pair(self):
        assert resolve_bounds(100, "-0.05", "+0.1") == resolve_bounds(100, "+0.1", "-0.05")

    def test_single_upper_leaves_lower_at_nominal(self):
        bounds = resolve_bounds(5, "+0.2")
        assert bounds.lower == 5
        assert bounds.upper == pytest.approx(5.2)

    def test_symmetric_fills_both_sides(self):
        bounds = resolve_bounds(10, "0.5")
        assert bounds == ToleranceBounds(9.5, 10.5)

    def test_signed_token_overrides_symmetric_side(self):
        """A signed token keeps its side even when the symmetric one comes later."""
        bounds = resolve_bounds(10, "+1", "0.5")
        assert bounds.upper == 11
        assert bounds.lower == 9.5

    def test_symmetric_first_then_signed(self):
        bounds = resolve_bounds(10, "0.5", "-2")
        assert bounds.upper == 10.5
        assert bounds.lower == 8

    def test_second_symmetric_token_is_ignored(self):
        assert resolve_bounds(10, "0.5", "2") == ToleranceBounds(9.5, 10.5)

    def test_two_upper_tokens_last_wins(self):
        assert resolve_bounds(10, "+1", "+2").upper == 12

    def test_invalid_token_contributes_nothing(self):
        assert resolve_bounds(10, "junk", "+1") == ToleranceBounds(10, 11)

    def test_zero_tolerance(self):
        assert resolve_bounds(3, "0") == ToleranceBounds(3, 3)

    def test_bounds_bracket_nominal(self):
        for a, b in [("+1", "-1"), ("2", None), (None, "-0.5"), ("x", "y")]:
            bounds = resolve_bounds(50, a, b)
            assert bounds.lower <= 50 <= bounds.upper


@pytest.mark.unit
class TestEvaluateTolerance:
    """Tests for evaluate_tolerance."""

    def test_inside_asymmetric_range(self):
        assert evaluate_tolerance(100, 100.05, "+0.1", "-0.05") is InspectionResult.CONFORME

    def test_lower_bound_is_inclusive(self):
        assert evaluate_tolerance(10, 9.5, "0.5") is InspectionResult.CONFORME

    def test_upper_bound_is_inclusive(self):
        assert evaluate_tolerance(10, 10.5, "0.5") is InspectionResult.CONFORME

    def test_asymmetric_bounds_are_inclusive(self):
        assert evaluate_tolerance(100, 99.95, "+0.1", "-0.05") is InspectionResult.CONFORME
        assert evaluate_tolerance(100, 100.1, "+0.1", "-0.05") is InspectionResult.CONFORME

    def test_outside_range(self):
        assert evaluate_tolerance(100, 100.2, "+0.1", "-0.05") is InspectionResult.NAO_CONFORME

    def test_below_asymmetric_lower_bound(self):
        assert evaluate_tolerance(100, 99.80, "+0.1", "-0.05") is InspectionResult.NAO_CONFORME

    def test_below_single_sided_range(self):
        assert evaluate_tolerance(5, 4.99, "+0.2") is InspectionResult.NAO_CONFORME

    def test_no_tolerance_requires_exact_value(self):
        assert evaluate_tolerance(7, 7) is InspectionResult.CONFORME
        assert evaluate_tolerance(7, 7.001) is InspectionResult.NAO_CONFORME

    def test_nominal_always_conforms(self):
        for a, b in [("+1", "-1"), ("0.3", None), ("garbage", ""), (None, None)]:
            assert evaluate_tolerance(42, 42, a, b) is InspectionResult.CONFORME


@pytest.mark.unit
class TestFormatTolerance:
    """Tests for format_tolerance."""

    def test_signed_pair(self):
        assert format_tolerance("+0.1", "-0.05") == "+0.1 / -0.05"

    def test_symmetric(self):
        assert format_tolerance("0.5") == "±0.5"

    def test_no_valid_tokens(self):
        assert format_tolerance(None, "abc") == "exact"
