"""Cross-field consistency rules.

These rules relate several fields of one order (status, lines, payment,
refund) or, for identifier uniqueness, the whole order set. Like the field
validators they return findings instead of raising.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence

from ..utils.config import DEFAULT_TOLERANCE
from .models import (
    CHARGEABLE_STATUSES,
    Finding,
    Order,
    OrderStatus,
    business_rule,
    structural,
)


def amounts_match(actual: Optional[float], expected: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """Absolute comparison, inclusive of the tolerance bound."""
    if actual is None:
        return False
    return abs(actual - expected) <= tolerance


def check_lines_required(order: Order) -> Optional[Finding]:
    if order.status in CHARGEABLE_STATUSES and not order.has_lines:
        return business_rule(
            "missing required line items",
            "lines",
            status=order.status,
            lines="absent" if order.lines is None else "empty",
        )
    return None


def check_payment_captured(order: Order) -> Optional[Finding]:
    if order.status != OrderStatus.PAID.value:
        return None
    if order.payment is None or order.payment.captured is not True:
        return business_rule(
            "paid order not captured",
            "payment.captured",
            captured=None if order.payment is None else order.payment.captured,
        )
    return None


def check_refund_consistency(order: Order, tolerance: float = DEFAULT_TOLERANCE) -> Optional[Finding]:
    """Compare the refund of a cancelled order with its line total.

    The expected amount sums every line, including lines that fail their own
    validation, so a refund of a negatively priced line still reconciles.
    A cancelled order without a refund record is compared as a mismatch.
    """
    if order.status != OrderStatus.CANCELLED.value or not order.has_lines:
        return None

    expected = order.gmv
    refund = order.refund.amount if order.refund is not None else None
    if amounts_match(refund, expected, tolerance):
        return None
    return business_rule(
        "refund/line-total mismatch",
        "refund.amount",
        expected=expected,
        refund=refund,
        tolerance=tolerance,
    )


def check_unique_ids(orders: Sequence[Order]) -> Dict[int, Finding]:
    """Map input position -> finding for every repeated order id.

    The first occurrence of an id is left alone; blank ids are reported by
    ``validate_id`` and are not compared here.
    """
    first_seen: Dict[str, int] = {}
    duplicates: Dict[int, Finding] = {}
    for index, order in enumerate(orders):
        if order.id is None or not str(order.id).strip():
            continue
        if order.id in first_seen:
            duplicates[index] = structural(
                "duplicate order id",
                "id",
                id=order.id,
                first_position=first_seen[order.id] + 1,
            )
        else:
            first_seen[order.id] = index
    return duplicates
