from __future__ import annotations

from dataclasses import dataclass

"""ProductCost model (product_costs table, unique per product name)."""

__all__ = [
    "ProductCost",
]


@dataclass(frozen=True)
class ProductCost:
    """Per-unit cost configuration for a product.

    The product name must match MonthlyOrder.product_name exactly for the
    integrated margin calculation to pick up its sales.
    """
    product_name: str
    production_cost: float = 0.0  # per unit
    packaging_cost: float = 0.0  # per unit
    has_shipping_cost: bool = True
    id: str | None = None

    @property
    def unit_cost(self) -> float:
        return self.production_cost + self.packaging_cost
