"""Typed order records and validation findings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class OrderStatus(str, Enum):
    """Order lifecycle states accepted by the audit."""
    PAID = "PAID"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"

    @classmethod
    def values(cls) -> Tuple[str, ...]:
        return tuple(member.value for member in cls)


# Statuses that imply at least one line item was sold
CHARGEABLE_STATUSES = (OrderStatus.PAID.value, OrderStatus.PENDING.value)


@dataclass(frozen=True)
class Customer:
    id: Optional[Any] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Line:
    sku: Optional[str]
    quantity: int
    price: float

    @property
    def line_total(self) -> float:
        """quantity x price, computed for invalid lines too."""
        return self.quantity * self.price


@dataclass(frozen=True)
class Payment:
    captured: bool = False


@dataclass(frozen=True)
class Refund:
    amount: Optional[float] = None


@dataclass(frozen=True)
class Shipping:
    fee: Optional[float] = 0.0


@dataclass(frozen=True)
class Order:
    """A single order as loaded from the source.

    ``status`` keeps the raw source value so that unknown statuses survive
    loading and can be reported. ``lines`` is ``None`` when the source has no
    ``lines`` key at all, which is not the same as an empty tuple.
    """
    id: Optional[str]
    status: Optional[str]
    customer: Optional[Customer] = None
    lines: Optional[Tuple[Line, ...]] = None
    payment: Optional[Payment] = None
    refund: Optional[Refund] = None
    shipping: Optional[Shipping] = None

    @property
    def has_lines(self) -> bool:
        return bool(self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines) if self.lines is not None else 0

    @property
    def gmv(self) -> float:
        """Gross merchandise value over every line, 0.0 without lines."""
        if not self.lines:
            return 0.0
        return sum(line.line_total for line in self.lines)


class FindingCategory(str, Enum):
    """Finding taxonomy.

    STRUCTURAL: a required field is missing or malformed.
    FORMAT: a present value is malformed.
    BUSINESS_RULE: a cross-field or value-range rule is violated.
    """
    STRUCTURAL = "StructuralError"
    FORMAT = "FormatError"
    BUSINESS_RULE = "BusinessRuleError"


@dataclass
class Finding:
    """One recorded rule violation attached to an order."""
    category: FindingCategory
    rule: str
    field_path: str
    details: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        text = f"{self.category.value}: {self.rule} [{self.field_path}]"
        if self.details:
            extras = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
            text = f"{text} ({extras})"
        return text

    def __str__(self) -> str:
        return self.describe()


def structural(rule: str, field_path: str, **details: Any) -> Finding:
    return Finding(FindingCategory.STRUCTURAL, rule, field_path, dict(details))


def format_error(rule: str, field_path: str, **details: Any) -> Finding:
    return Finding(FindingCategory.FORMAT, rule, field_path, dict(details))


def business_rule(rule: str, field_path: str, **details: Any) -> Finding:
    return Finding(FindingCategory.BUSINESS_RULE, rule, field_path, dict(details))
