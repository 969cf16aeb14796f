from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from .import_row import ImportRow

"""MonthlyOrder model and the upload context attached to parsed rows.

A MonthlyOrder is the persisted form of an ImportRow in the monthly_orders
table: the parsed figures plus the caller-supplied reporting month, channel
flag and the month's total order count.
"""

__all__ = [
    "MonthlyOrder",
    "UploadContext",
    "parse_month",
]

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` or ``YYYY-MM-DD`` into the first day of that month.

    Raises:
        ValueError: If the value is not a valid month.
    """
    m = _MONTH_RE.match(value.strip())
    if m is None:
        raise ValueError(f"invalid month (expected YYYY-MM): {value!r}")
    year, month = int(m.group(1)), int(m.group(2))
    # date() validates the month range
    return date(year, month, 1)


@dataclass(frozen=True)
class UploadContext:
    """Context the upload handler attaches to every parsed row."""
    month: date  # first day of reporting month
    is_amazon: bool = False
    total_orders: int = 0


@dataclass(frozen=True)
class MonthlyOrder:
    """One row of the monthly_orders table."""
    month: date
    product_name: str
    units_sold: float
    gross_amount: float
    tax_amount: float
    net_amount: float
    is_amazon: bool = False
    total_orders: int = 0
    ads_spent: float = 0.0
    id: str | None = None  # assigned by the database

    @staticmethod
    def from_import_row(row: ImportRow, context: UploadContext) -> MonthlyOrder:
        return MonthlyOrder(
            month=context.month,
            product_name=row.product_name,
            units_sold=row.units_sold,
            gross_amount=row.gross_amount,
            tax_amount=row.tax_amount,
            net_amount=row.net_amount,
            is_amazon=context.is_amazon,
            total_orders=context.total_orders,
        )

    @property
    def month_key(self) -> str:
        """``YYYY-MM`` label used for grouping."""
        return self.month.strftime("%Y-%m")
