"""
Quotation Pricing and Order Planning
====================================

Pure calculations behind quotations and their conversion to production
orders. No I/O: the functions take request models or stored item dicts and
return dataclasses / dicts ready to be written to the sheets.

Rules
-----
- Item:      total_price = quantity * unit_price
             tax_amount  = total_price * tax_rate / 100
- Quotation: totals are sums over items
- Lead time: an item without explicit lead_time_days takes the rounded sum
             of its production stage durations (half rounds up)
- Delivery:  conversion date + lead time, else the quotation validity date;
             the order delivers on the latest item date
"""

import math
import logging
from dataclasses import dataclass, field, asdict
from datetime import date, timedelta
from typing import List, Optional, Dict, Any, Iterable

from .models import QuotationItem, ProductionStage

logger = logging.getLogger(__name__)

MONEY_DIGITS = 2


@dataclass
class ItemTotals:
    total_price: float
    tax_amount: float
    total_with_tax: float
    total_weight: float


@dataclass
class PricedQuotation:
    """Quotation items with their computed totals."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    total_value: float = 0.0
    total_tax: float = 0.0
    grand_total: float = 0.0
    total_weight: float = 0.0


@dataclass
class OrderPlan:
    """Order items with delivery dates, plus the order delivery date."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    delivery_date: Optional[date] = None


def _money(value: float) -> float:
    return round(value, MONEY_DIGITS)


def calculate_item_totals(
    quantity: float,
    unit_price: float,
    tax_rate: float = 0.0,
    unit_weight: float = 0.0,
) -> ItemTotals:
    total_price = quantity * unit_price
    tax_amount = total_price * tax_rate / 100
    return ItemTotals(
        total_price=_money(total_price),
        tax_amount=_money(tax_amount),
        total_with_tax=_money(total_price + tax_amount),
        total_weight=quantity * unit_weight,
    )


def calculate_lead_time(stages: Iterable[ProductionStage]) -> int:
    """Rounded sum of stage durations; stages without a duration count as zero."""
    total = sum((s.duration_days or 0) for s in stages)
    return int(math.floor(total + 0.5))


def price_quotation(items: List[QuotationItem]) -> PricedQuotation:
    """Compute per-item and quotation totals."""
    priced = PricedQuotation()

    for item in items:
        totals = calculate_item_totals(item.quantity, item.unit_price, item.tax_rate, item.unit_weight)
        lead_time = item.lead_time_days
        if lead_time is None and item.production_stages:
            lead_time = calculate_lead_time(item.production_stages)

        priced.items.append({
            "code": item.code,
            "description": item.description,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "tax_rate": item.tax_rate,
            "lead_time_days": lead_time,
            "notes": item.notes,
            **asdict(totals),
        })
        priced.total_value += totals.total_price
        priced.total_tax += totals.tax_amount
        priced.total_weight += totals.total_weight

    priced.total_value = _money(priced.total_value)
    priced.total_tax = _money(priced.total_tax)
    priced.grand_total = _money(priced.total_value + priced.total_tax)
    return priced


def item_delivery_date(
    conversion_date: date,
    lead_time_days: Optional[int],
    validity_date: Optional[date],
) -> Optional[date]:
    if lead_time_days is not None:
        return conversion_date + timedelta(days=int(lead_time_days))
    return validity_date


def plan_order(
    quotation_items: List[Dict[str, Any]],
    conversion_date: date,
    validity_date: Optional[date] = None,
) -> OrderPlan:
    """
    Derive order items from stored quotation items.

    Args:
        quotation_items: Items as stored on the quotation (dicts)
        conversion_date: Date the order is generated
        validity_date: Quotation validity, used for items without lead time
    """
    plan = OrderPlan()
    for item in quotation_items:
        lead_time = item.get("lead_time_days")
        delivery = item_delivery_date(conversion_date, lead_time, validity_date)
        plan.items.append({
            "code": item.get("code"),
            "description": item.get("description"),
            "quantity": item.get("quantity"),
            "unit_price": item.get("unit_price"),
            "total_price": item.get("total_price"),
            "lead_time_days": lead_time,
            "delivery_date": delivery.isoformat() if delivery else None,
        })
        if delivery and (plan.delivery_date is None or delivery > plan.delivery_date):
            plan.delivery_date = delivery

    return plan
