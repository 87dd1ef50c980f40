"""Order validation module entry point."""

from .audit import OrderAuditService
from .loader import OrderLoadError, load_orders_file, parse_document, parse_orders
from .models import Finding, FindingCategory, Order, OrderStatus
from .report import AuditReport, build_report, render_summary
from .repository import OrderRepository

__all__ = [
    "AuditReport",
    "Finding",
    "FindingCategory",
    "Order",
    "OrderAuditService",
    "OrderLoadError",
    "OrderRepository",
    "OrderStatus",
    "build_report",
    "load_orders_file",
    "parse_document",
    "parse_orders",
    "render_summary",
]
