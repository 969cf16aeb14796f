from __future__ import annotations

from dataclasses import dataclass

"""ImportRow model: one sold-product line produced by the CSV parser.

The parser builds one ImportRow per valid data line. The reporting month and
the Amazon channel flag are not part of the row; the caller attaches them
through UploadContext before persisting (see monthly_order.py).
"""

__all__ = [
    "ImportRow",
]


@dataclass(frozen=True)
class ImportRow:
    """Parsed CSV line (immutable once built).

    Invariant: net_amount + tax_amount == gross_amount whenever one of the
    two was derived from the other.
    """
    product_name: str  # trimmed, non-empty
    units_sold: float  # > 0
    gross_amount: float  # VAT included, > 0
    tax_amount: float
    net_amount: float  # VAT excluded

    def to_dict(self) -> dict[str, object]:
        """Serialize using the upload wire keys."""
        return {
            "productName": self.product_name,
            "unitsSold": self.units_sold,
            "grossAmount": self.gross_amount,
            "taxAmount": self.tax_amount,
            "netAmount": self.net_amount,
        }
