"""Audit report assembly and rendering."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Dict, List, Optional, Sequence

from ..utils.config import DEFAULT_TOLERANCE
from ..utils.logging import get_logger
from .aggregation import (
    SkuQuantity,
    correctly_refunded_orders,
    count_line_items,
    gmv_by_order,
    order_ids,
    order_label,
    orders_with_missing_or_invalid_email,
    top_skus,
    uncaptured_paid_orders,
)
from .consistency import (
    check_lines_required,
    check_payment_captured,
    check_refund_consistency,
    check_unique_ids,
)
from .field_validators import (
    validate_customer,
    validate_email,
    validate_id,
    validate_lines,
    validate_shipping_fee,
    validate_status,
)
from .models import Finding, Order

logger = get_logger(__name__)


@dataclass
class OrderProblems:
    order_id: str
    findings: List[Finding]

    @property
    def issues(self) -> List[str]:
        return [finding.describe() for finding in self.findings]


@dataclass
class OrderSets:
    """Order ids grouped by the order-set queries, each in input order."""
    order_ids: List[str]
    uncaptured_paid: List[str]
    correctly_refunded: List[str]
    missing_or_invalid_email: List[str]

    @classmethod
    def collect(cls, orders: Sequence[Order], tolerance: float = DEFAULT_TOLERANCE) -> "OrderSets":
        return cls(
            order_ids=order_ids(orders),
            uncaptured_paid=uncaptured_paid_orders(orders),
            correctly_refunded=correctly_refunded_orders(orders, tolerance),
            missing_or_invalid_email=orders_with_missing_or_invalid_email(orders),
        )

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "orderIds": list(self.order_ids),
            "uncapturedPaid": list(self.uncaptured_paid),
            "correctlyRefunded": list(self.correctly_refunded),
            "missingOrInvalidEmail": list(self.missing_or_invalid_email),
        }


@dataclass
class AuditReport:
    total_orders: int
    total_line_items: int
    problems: List[OrderProblems] = field(default_factory=list)
    gmv_by_order: Optional[Dict[str, float]] = None
    top_skus: Optional[List[SkuQuantity]] = None
    order_sets: Optional[OrderSets] = None
    tolerance: float = DEFAULT_TOLERANCE

    @property
    def invalid_orders(self) -> int:
        return len(self.problems)

    @property
    def is_clean(self) -> bool:
        return not self.problems

    def issues_for(self, order_id: str) -> List[str]:
        """Rendered findings of one order, empty when the order is clean."""
        for problem in self.problems:
            if problem.order_id == order_id:
                return problem.issues
        return []

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "totalOrders": self.total_orders,
            "totalLineItems": self.total_line_items,
            "invalidOrders": self.invalid_orders,
            "problems": [
                {"orderId": problem.order_id, "issues": problem.issues}
                for problem in self.problems
            ],
            "tolerance": self.tolerance,
        }
        if self.gmv_by_order is not None:
            data["gmvByOrder"] = dict(self.gmv_by_order)
        if self.top_skus is not None:
            data["topSkus"] = [
                {"sku": entry.sku, "quantity": entry.quantity} for entry in self.top_skus
            ]
        if self.order_sets is not None:
            data.update(self.order_sets.to_dict())
        return data


def evaluate_order(order: Order, tolerance: float = DEFAULT_TOLERANCE) -> List[Finding]:
    """Run every per-order rule and return all findings in rule order."""
    findings: List[Finding] = []
    for finding in (
        validate_id(order),
        validate_status(order),
        validate_customer(order),
        validate_email(order.customer),
    ):
        if finding is not None:
            findings.append(finding)

    findings.extend(validate_lines(order))

    for finding in (
        validate_shipping_fee(order.shipping),
        check_lines_required(order),
        check_payment_captured(order),
        check_refund_consistency(order, tolerance),
    ):
        if finding is not None:
            findings.append(finding)
    return findings


def build_report(
    orders: Sequence[Order],
    top_k: Optional[int] = None,
    include_gmv: bool = False,
    tolerance: float = DEFAULT_TOLERANCE,
    max_workers: Optional[int] = None,
    include_order_sets: bool = False,
) -> AuditReport:
    """
    Validate every order and assemble the audit report.

    Args:
        orders: Loaded orders, in source order
        top_k: When set, attach the ``top_k`` best-selling SKUs
        include_gmv: Attach GMV per order
        tolerance: Absolute tolerance for refund reconciliation
        max_workers: Evaluate orders on a thread pool of this size when > 1
        include_order_sets: Attach the order id groupings (uncaptured paid,
            correctly refunded, missing or invalid email)

    Returns:
        AuditReport with problems listed in input order
    """
    orders = list(orders)
    evaluate = partial(evaluate_order, tolerance=tolerance)

    if max_workers and max_workers > 1 and len(orders) > 1:
        # Executor.map yields in submission order, not completion order
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            per_order = list(executor.map(evaluate, orders))
    else:
        per_order = [evaluate(order) for order in orders]

    duplicates = check_unique_ids(orders)

    problems: List[OrderProblems] = []
    for index, (order, findings) in enumerate(zip(orders, per_order)):
        if index in duplicates:
            findings = findings + [duplicates[index]]
        label = order_label(order, index)
        if findings:
            logger.debug(f"Order {label}: {len(findings)} finding(s)")
            problems.append(OrderProblems(label, findings))

    report = AuditReport(
        total_orders=len(orders),
        total_line_items=count_line_items(orders),
        problems=problems,
        gmv_by_order=gmv_by_order(orders) if include_gmv else None,
        top_skus=top_skus(orders, top_k) if top_k is not None else None,
        order_sets=OrderSets.collect(orders, tolerance) if include_order_sets else None,
        tolerance=tolerance,
    )
    logger.info(
        f"Audited {report.total_orders} orders ({report.total_line_items} lines): "
        f"{report.invalid_orders} with problems"
    )
    return report


def render_summary(report: AuditReport) -> str:
    """Plain-text summary listing every finding of every problem order."""
    lines = [
        f"Orders: {report.total_orders}, Lines: {report.total_line_items}, "
        f"Invalid: {report.invalid_orders}",
        "Problems:",
    ]
    if not report.problems:
        lines.append("  (none)")
    for problem in report.problems:
        lines.append(f"  {problem.order_id}")
        for issue in problem.issues:
            lines.append(f"    - {issue}")

    if report.gmv_by_order is not None:
        lines.append("GMV by order:")
        for order_id, gmv in report.gmv_by_order.items():
            lines.append(f"  {order_id}: {gmv:.2f}")

    if report.top_skus is not None:
        lines.append(f"Top {len(report.top_skus)} SKUs by quantity:")
        for rank, entry in enumerate(report.top_skus, start=1):
            lines.append(f"  {rank}. {entry.sku}: {entry.quantity}")

    if report.order_sets is not None:
        sets = report.order_sets
        for title, ids in (
            ("Order ids", sets.order_ids),
            ("Uncaptured paid orders", sets.uncaptured_paid),
            ("Correctly refunded orders", sets.correctly_refunded),
            ("Missing or invalid email", sets.missing_or_invalid_email),
        ):
            lines.append(f"{title}: {', '.join(ids) if ids else '(none)'}")

    return "\n".join(lines)
