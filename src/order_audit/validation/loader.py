"""Raw order documents -> typed records.

The loader is the only place that touches untyped data. It rejects input it
cannot map onto the record model with ``OrderLoadError``; anything the model
can represent (blank ids, unknown statuses, absent emails, absent lines) is
passed through so the audit rules can report it.
"""

from __future__ import annotations

import json
import math
from numbers import Number
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..utils.logging import get_logger
from .models import Customer, Line, Order, Payment, Refund, Shipping

logger = get_logger(__name__)


class OrderLoadError(ValueError):
    """Raised when the order source cannot be mapped onto the record model."""


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Number):
        raise OrderLoadError(f"{where} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise OrderLoadError(f"{where} must be finite, got {value!r}")
    return number


def _integer(value: Any, where: str) -> int:
    number = _number(value, where)
    if not number.is_integer():
        raise OrderLoadError(f"{where} must be a whole number, got {value!r}")
    return int(number)


def _mapping(value: Any, where: str) -> Optional[Mapping[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise OrderLoadError(f"{where} must be an object, got {type(value).__name__}")
    return value


def parse_line(raw: Any, where: str) -> Line:
    data = _mapping(raw, where)
    if data is None:
        raise OrderLoadError(f"{where} must be an object, got null")
    sku = data.get("sku")
    return Line(
        sku=None if sku is None else str(sku),
        quantity=_integer(data.get("qty"), f"{where}.qty"),
        price=_number(data.get("price"), f"{where}.price"),
    )


def parse_order(raw: Any, position: int = 0) -> Order:
    """Build one ``Order`` from its source document."""
    where = f"orders[{position}]"
    data = _mapping(raw, where)
    if data is None:
        raise OrderLoadError(f"{where} must be an object, got null")

    lines = None
    if data.get("lines") is not None:
        raw_lines = data["lines"]
        if not isinstance(raw_lines, list):
            raise OrderLoadError(f"{where}.lines must be a list")
        lines = tuple(parse_line(line, f"{where}.lines[{i}]") for i, line in enumerate(raw_lines))

    customer = None
    customer_data = _mapping(data.get("customer"), f"{where}.customer")
    if customer_data is not None:
        email = customer_data.get("email")
        customer = Customer(
            id=customer_data.get("id"),
            email=None if email is None else str(email),
        )

    payment = None
    payment_data = _mapping(data.get("payment"), f"{where}.payment")
    if payment_data is not None:
        payment = Payment(captured=payment_data.get("captured") is True)

    refund = None
    refund_data = _mapping(data.get("refund"), f"{where}.refund")
    if refund_data is not None:
        amount = refund_data.get("amount")
        refund = Refund(
            amount=None if amount is None else _number(amount, f"{where}.refund.amount")
        )

    shipping = None
    shipping_data = _mapping(data.get("shipping"), f"{where}.shipping")
    if shipping_data is not None:
        fee = shipping_data.get("fee")
        shipping = Shipping(
            fee=None if fee is None else _number(fee, f"{where}.shipping.fee")
        )

    order_id = data.get("id")
    status = data.get("status")
    return Order(
        id=None if order_id is None else str(order_id),
        status=None if status is None else str(status),
        customer=customer,
        lines=lines,
        payment=payment,
        refund=refund,
        shipping=shipping,
    )


def parse_orders(documents: Iterable[Any]) -> List[Order]:
    return [parse_order(doc, position) for position, doc in enumerate(documents)]


def parse_document(payload: Any) -> List[Order]:
    """Parse a ``{"orders": [...]}`` document."""
    if not isinstance(payload, Mapping):
        raise OrderLoadError("Order document must be a JSON object")
    if "orders" not in payload:
        raise OrderLoadError("Order document has no 'orders' collection")
    if not isinstance(payload["orders"], list):
        raise OrderLoadError("'orders' must be a list")
    return parse_orders(payload["orders"])


def load_orders_file(path: Union[str, Path]) -> List[Order]:
    """Read and parse an orders JSON file."""
    file_path = Path(path)
    try:
        with file_path.open(encoding="utf-8") as handle:
            payload: Dict[str, Any] = json.load(handle)
    except OSError as e:
        raise OrderLoadError(f"Cannot read order file {file_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise OrderLoadError(f"Invalid JSON in {file_path}: {e}") from e

    orders = parse_document(payload)
    logger.info(f"Loaded {len(orders)} orders from {file_path}")
    return orders
