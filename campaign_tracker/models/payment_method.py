from __future__ import annotations

from dataclasses import dataclass
from datetime import date

"""PaymentMethod model (payment_methods table).

One row per (month, payment method) with the number of orders paid that way.
The names in PAYMENT_METHODS are the ones the shop checkout offers; other
names are accepted and show up as-is in the report.
"""

__all__ = [
    "PAYMENT_METHODS",
    "PaymentMethod",
]

PAYMENT_METHODS = (
    "PayPal",
    "Carta di Credito",
    "Bonifico Bancario",
    "Contrassegno",
    "Contanti",
    "Altro",
)


@dataclass(frozen=True)
class PaymentMethod:
    month: date  # first day of the reporting month
    payment_method: str
    orders_count: int = 0
    id: str | None = None

    @staticmethod
    def create(month: date, payment_method: str, orders_count: int) -> PaymentMethod:
        """Build a validated entry.

        Raises:
            ValueError: Blank method name or orders_count <= 0
        """
        name = payment_method.strip()
        if not name:
            raise ValueError("payment method name must not be empty")
        if orders_count <= 0:
            raise ValueError("orders count must be greater than 0")
        return PaymentMethod(month=month.replace(day=1), payment_method=name, orders_count=orders_count)
