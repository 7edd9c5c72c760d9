"""
Document Number Allocation
==========================

Human-readable sequential document numbers derived from the numbers already
stored in the workspace. Format: PREFIX + zero-padded counter
(``RNC-0001``, ``END-0042``) or, for year-scoped families,
PREFIX + YEAR + "-" + counter (``LA-2025-003``).

The allocation is computed from a snapshot of existing numbers:

1. Read every existing number of the family (``reader(family)``)
2. Keep entries that start with the family prefix, parse their digits
3. Return ``max(floor, *parsed) + 1``, zero-padded

Concurrency
-----------
Read-then-write is not atomic: two submissions racing on the same family can
receive the same number. This is accepted. ``DocumentNumberer`` takes the
reader as a collaborator so the sequence can be moved behind a transaction
without touching the allocation functions.

Usage
-----
>>> allocate_next_number(["RNC-0001", "RNC-0007", "RNC-0003"], "RNC-", 4)
'RNC-0008'
>>> allocate_year_scoped_number(["LA-2025-002", "LA-2024-010"], "LA-", 2025, 3)
'LA-2025-003'
"""

import re
import logging
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .config import get_numbering_rule
from .logical_names import Sheet, Column

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


class DocumentFamily(str, Enum):
    """Numbered document families."""
    RNC = "RNC"
    ACTION_PLAN = "ACTION_PLAN"
    RAW_MATERIAL = "RAW_MATERIAL"
    DIMENSIONAL = "DIMENSIONAL"
    NDT = "NDT"
    PAINTING = "PAINTING"
    CALIBRATION = "CALIBRATION"
    LESSON_LEARNED = "LESSON_LEARNED"
    QUOTATION = "QUOTATION"
    ORDER = "ORDER"
    USER_ACTION = "USER_ACTION"


# Sheets (and their number column) each family draws its counter from.
# Welding, liquid-penetrant and ultrasound reports share the END- series.
FAMILY_SOURCES: Dict[DocumentFamily, List[Tuple[str, str]]] = {
    DocumentFamily.RNC: [(Sheet.RNC_LOG, Column.RNC_LOG.RNC_NUMBER)],
    DocumentFamily.ACTION_PLAN: [(Sheet.ACTION_PLAN_LOG, Column.ACTION_PLAN_LOG.PLAN_NUMBER)],
    DocumentFamily.RAW_MATERIAL: [(Sheet.RAW_MATERIAL_REPORTS, Column.INSPECTION_REPORT.REPORT_NUMBER)],
    DocumentFamily.DIMENSIONAL: [(Sheet.DIMENSIONAL_REPORTS, Column.INSPECTION_REPORT.REPORT_NUMBER)],
    DocumentFamily.NDT: [
        (Sheet.WELDING_REPORTS, Column.INSPECTION_REPORT.REPORT_NUMBER),
        (Sheet.LP_REPORTS, Column.INSPECTION_REPORT.REPORT_NUMBER),
        (Sheet.UT_REPORTS, Column.INSPECTION_REPORT.REPORT_NUMBER),
    ],
    DocumentFamily.PAINTING: [(Sheet.PAINTING_REPORTS, Column.INSPECTION_REPORT.REPORT_NUMBER)],
    DocumentFamily.CALIBRATION: [(Sheet.CALIBRATION_LOG, Column.CALIBRATION_LOG.CALIBRATION_NUMBER)],
    DocumentFamily.LESSON_LEARNED: [(Sheet.LESSONS_LEARNED, Column.LESSONS_LEARNED.LESSON_NUMBER)],
    DocumentFamily.QUOTATION: [(Sheet.QUOTATIONS, Column.QUOTATIONS.QUOTATION_NUMBER)],
    DocumentFamily.ORDER: [(Sheet.ORDERS, Column.ORDERS.ORDER_NUMBER)],
    DocumentFamily.USER_ACTION: [(Sheet.USER_ACTION_LOG, Column.USER_ACTION_LOG.ACTION_ID)],
}


# ============== Pure Allocation ==============

def _highest_number(existing_numbers: Iterable[Any], prefix: str, floor: int) -> int:
    highest = floor
    for value in existing_numbers or []:
        if not isinstance(value, str) or not value.startswith(prefix):
            continue
        digits = _NON_DIGITS.sub("", value[len(prefix):])
        if not digits:
            continue
        highest = max(highest, int(digits))
    return highest


def allocate_next_number(
    existing_numbers: Iterable[Any],
    prefix: str,
    pad_width: int,
    floor: int = 0,
) -> str:
    """
    Compute the next number for a prefix.

    Entries that are not strings, or that belong to another prefix, are
    ignored. Numbers wider than ``pad_width`` are never truncated
    (``RNC-9999`` is followed by ``RNC-10000``).

    Args:
        existing_numbers: Numbers already in use (any iterable, not mutated)
        prefix: Family prefix including separator (e.g. "RNC-")
        pad_width: Minimum digits of the counter
        floor: Counter value to continue from when no higher number exists

    Returns:
        Next formatted number (e.g. "RNC-0008")
    """
    highest = _highest_number(existing_numbers, prefix, floor)
    return f"{prefix}{str(highest + 1).zfill(pad_width)}"


def allocate_year_scoped_number(
    existing_numbers: Iterable[Any],
    prefix: str,
    year: int,
    pad_width: int,
    floor: int = 0,
) -> str:
    """Next number of a yearly series (``LA-2025-003``); other years are ignored."""
    return allocate_next_number(existing_numbers, f"{prefix}{year}-", pad_width, floor)


# ============== Readers ==============

NumberReader = Callable[[DocumentFamily], List[Any]]


class SheetNumberReader:
    """
    Reads the existing numbers of a family from its sheets.

    Usage:
        >>> reader = SheetNumberReader(get_smartsheet_client())
        >>> reader(DocumentFamily.NDT)   # welding + LP + UT report numbers
        ['END-0001', 'END-0002', ...]
    """

    def __init__(self, client):
        self.client = client

    def __call__(self, family: DocumentFamily) -> List[Any]:
        numbers: List[Any] = []
        for sheet_ref, column_ref in FAMILY_SOURCES[DocumentFamily(family)]:
            numbers.extend(self.client.get_column_values(sheet_ref, column_ref))
        return numbers


# ============== Numberer ==============

class DocumentNumberer:
    """
    Allocates document numbers using configured prefix/pad/floor rules.

    Usage:
        >>> numberer = DocumentNumberer(SheetNumberReader(client))
        >>> numberer.next_number(DocumentFamily.RNC)
        'RNC-0008'
        >>> numberer.next_number(DocumentFamily.LESSON_LEARNED, year=2025)
        'LA-2025-003'
    """

    def __init__(self, reader: NumberReader):
        self.reader = reader

    def _allocate(self, family: DocumentFamily, year: Optional[int]) -> str:
        family = DocumentFamily(family)
        rule = get_numbering_rule(family.value)
        existing = self.reader(family)

        if rule.get("year_scoped"):
            scope_year = year or date.today().year
            return allocate_year_scoped_number(
                existing, rule["prefix"], scope_year, rule["pad_width"], rule.get("floor", 0)
            )
        return allocate_next_number(existing, rule["prefix"], rule["pad_width"], rule.get("floor", 0))

    def next_number(self, family: DocumentFamily, year: Optional[int] = None) -> str:
        """
        Allocate the next number of a family.

        Args:
            family: Document family
            year: Scope year for year-scoped families (defaults to current year)
        """
        number = self._allocate(family, year)
        logger.info(f"Allocated {number} for family {DocumentFamily(family).value}")
        return number

    def peek_next(self, family: DocumentFamily, year: Optional[int] = None) -> str:
        """Preview the next number without any claim on it."""
        return self._allocate(family, year)


def get_numberer(client) -> DocumentNumberer:
    """Numberer backed by the workspace sheets."""
    return DocumentNumberer(SheetNumberReader(client))


# ============== Convenience Functions ==============

def generate_next_action_id(client) -> str:
    """Generate next User Action ID (e.g., ACT-0001)."""
    return get_numberer(client).next_number(DocumentFamily.USER_ACTION)
