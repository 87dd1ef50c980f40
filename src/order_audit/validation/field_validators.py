"""Single-field validation rules.

Every validator is a pure function of one order (or one nested entity) and
returns ``None`` when the value is acceptable, or a ``Finding`` describing
the violated rule. Line validation can fail on several rules at once and
therefore returns a list.
"""

from __future__ import annotations

import re
from typing import List, Optional

from .models import (
    Customer,
    Finding,
    Line,
    Order,
    OrderStatus,
    Shipping,
    business_rule,
    format_error,
    structural,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email) is not None


def validate_id(order: Order) -> Optional[Finding]:
    if order.id is None or not str(order.id).strip():
        return structural("missing order id", "id")
    return None


def validate_status(order: Order) -> Optional[Finding]:
    if order.status not in OrderStatus.values():
        return structural("invalid status", "status", status=order.status)
    return None


def validate_customer(order: Order) -> Optional[Finding]:
    if order.customer is None:
        return structural("missing customer", "customer")
    return None


def validate_email(customer: Optional[Customer]) -> Optional[Finding]:
    """Flag a present email that does not look like ``local@domain.tld``.

    An absent customer or email is not a finding; an empty string is present
    and therefore fails the pattern.
    """
    if customer is None or customer.email is None:
        return None
    if not is_valid_email(customer.email):
        return format_error("invalid email", "customer.email", email=customer.email)
    return None


def is_valid_line(line: Line) -> bool:
    return bool(line.sku) and line.quantity > 0 and line.price >= 0


def validate_line(line: Line, index: int = 0) -> List[Finding]:
    """Check sku presence, quantity and price of one line.

    Args:
        line: Line to check
        index: Zero-based position of the line in its order, used in the field path

    Returns:
        All findings for the line, empty when the line is valid
    """
    path = f"lines[{index}]"
    findings: List[Finding] = []
    if not line.sku:
        findings.append(structural("missing sku", f"{path}.sku"))
    if line.quantity <= 0:
        findings.append(business_rule(
            "non-positive quantity", f"{path}.qty", sku=line.sku, qty=line.quantity
        ))
    if line.price < 0:
        findings.append(business_rule(
            "negative price", f"{path}.price", sku=line.sku, price=line.price
        ))
    return findings


def validate_lines(order: Order) -> List[Finding]:
    findings: List[Finding] = []
    for index, line in enumerate(order.lines or ()):
        findings.extend(validate_line(line, index))
    return findings


def validate_shipping_fee(shipping: Optional[Shipping]) -> Optional[Finding]:
    if shipping is None:
        return structural("missing shipping", "shipping")
    if shipping.fee is None:
        return structural("missing shipping fee", "shipping.fee")
    if shipping.fee < 0:
        return business_rule("negative shipping fee", "shipping.fee", fee=shipping.fee)
    return None
