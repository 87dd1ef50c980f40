"""Order audit service: loads orders from a source and builds the report."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

from ..utils.config import DEFAULT_TOLERANCE
from ..utils.logging import get_logger
from .loader import load_orders_file, parse_orders
from .models import Order
from .report import AuditReport, build_report
from .repository import OrderRepository

logger = get_logger(__name__)


class OrderAuditService:
    """High-level service for order audit runs."""

    def __init__(
        self,
        top_k: Optional[int] = None,
        include_gmv: bool = False,
        tolerance: float = DEFAULT_TOLERANCE,
        max_workers: Optional[int] = None,
        include_order_sets: bool = False,
        db_name: Optional[str] = None,
        connection_url_env_key: Optional[str] = None,
    ) -> None:
        self.top_k = top_k
        self.include_gmv = include_gmv
        self.tolerance = tolerance
        self.max_workers = max_workers
        self.include_order_sets = include_order_sets
        self.db_name = db_name
        self.connection_url_env_key = connection_url_env_key

    def audit_orders(self, orders: Sequence[Order]) -> AuditReport:
        return build_report(
            orders,
            top_k=self.top_k,
            include_gmv=self.include_gmv,
            tolerance=self.tolerance,
            max_workers=self.max_workers,
            include_order_sets=self.include_order_sets,
        )

    def audit_file(self, path: Union[str, Path]) -> AuditReport:
        """Audit the orders stored in a JSON file."""
        logger.info(f"Auditing order file: {path}")
        return self.audit_orders(load_orders_file(path))

    def audit_collection(self, order_id: Optional[str] = None) -> AuditReport:
        """Audit the configured MongoDB collection, or a single order in it.

        Raises:
            ValueError: If ``order_id`` is given and no such order exists
        """
        with OrderRepository(
            db_name=self.db_name,
            connection_url_env_key=self.connection_url_env_key,
        ) as repo:
            if order_id is None:
                documents = repo.fetch_orders()
            else:
                document = repo.get_order_by_id(order_id)
                if not document:
                    raise ValueError(f"Order with ID {order_id} not found")
                documents = [document]
        return self.audit_orders(parse_orders(documents))
