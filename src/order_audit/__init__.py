"""
Order Audit - order consistency checks and aggregates

A CLI tool that validates order records (status, customer email, line items,
payment capture, refund reconciliation, shipping fees) and reports problem
orders together with GMV and best-selling SKU figures.
"""

__version__ = "0.1.0"

from . import utils
from . import validation

__all__ = ["utils", "validation"]
