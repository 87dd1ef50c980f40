"""Whole-set aggregates and order-set queries."""

from __future__ import annotations

from typing import Dict, Iterable, List, NamedTuple, Sequence

from ..utils.config import DEFAULT_TOLERANCE
from .consistency import amounts_match
from .field_validators import is_valid_email, is_valid_line
from .models import Line, Order, OrderStatus


class SkuQuantity(NamedTuple):
    sku: str
    quantity: int


def order_label(order: Order, index: int) -> str:
    """Order id, or a positional label for orders that have none."""
    if order.id is None or not str(order.id).strip():
        return f"<order #{index + 1}>"
    return str(order.id)


def iter_lines(orders: Iterable[Order]) -> Iterable[Line]:
    for order in orders:
        yield from order.lines or ()


def count_line_items(orders: Iterable[Order]) -> int:
    """Total number of lines across all orders, invalid lines included."""
    return sum(order.line_count for order in orders)


def gmv_by_order(orders: Sequence[Order]) -> Dict[str, float]:
    """GMV per order keyed by order id, in input order.

    A repeated id keeps the value of its last occurrence; repeats are
    reported separately as findings.
    """
    return {order_label(order, index): order.gmv for index, order in enumerate(orders)}


def top_skus(orders: Iterable[Order], k: int) -> List[SkuQuantity]:
    """Rank SKUs by summed quantity over lines with a positive quantity.

    Equal totals are ordered by SKU ascending so the ranking never depends on
    the order in which lines were seen.

    Args:
        orders: Orders whose lines are ranked
        k: Number of entries to return

    Returns:
        At most ``k`` entries, highest quantity first
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")

    totals: Dict[str, int] = {}
    for line in iter_lines(orders):
        if line.quantity > 0 and line.sku:
            totals[line.sku] = totals.get(line.sku, 0) + line.quantity

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [SkuQuantity(sku, quantity) for sku, quantity in ranked[:k]]


def order_ids(orders: Sequence[Order]) -> List[str]:
    return [order_label(order, index) for index, order in enumerate(orders)]


def uncaptured_paid_orders(orders: Sequence[Order]) -> List[str]:
    return [
        order_label(order, index)
        for index, order in enumerate(orders)
        if order.status == OrderStatus.PAID.value
        and (order.payment is None or order.payment.captured is not True)
    ]


def correctly_refunded_orders(orders: Sequence[Order], tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    """Cancelled orders whose valid lines are refunded in full.

    Stricter than a bare refund match: an order with any invalid line (for
    example a negative price refunded as a negative amount) is left out even
    when the refund equals its line total. The amount comparison includes the
    tolerance bound, like the refund consistency rule.
    """
    refunded = []
    for index, order in enumerate(orders):
        if order.status != OrderStatus.CANCELLED.value or not order.has_lines:
            continue
        if not all(is_valid_line(line) for line in order.lines):
            continue
        amount = order.refund.amount if order.refund is not None else None
        if amounts_match(amount, order.gmv, tolerance):
            refunded.append(order_label(order, index))
    return refunded


def orders_with_missing_or_invalid_email(orders: Sequence[Order]) -> List[str]:
    flagged = []
    for index, order in enumerate(orders):
        email = order.customer.email if order.customer is not None else None
        if email is None or not is_valid_email(email):
            flagged.append(order_label(order, index))
    return flagged
