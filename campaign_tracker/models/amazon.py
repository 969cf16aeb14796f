from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

"""Amazon channel models (amazon_revenue / amazon_products tables)."""

__all__ = [
    "AmazonProduct",
    "AmazonRevenue",
]


@dataclass(frozen=True)
class AmazonProduct:
    name: str
    quantity: int = 0
    product_revenue: float | None = None
    amazon_revenue_id: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class AmazonRevenue:
    """Monthly Amazon revenue and advertising spend (one row per month)."""
    month: date
    revenue: float
    ad_spend: float = 0.0
    roi: float = 0.0  # percent, see services.metrics.roi
    products: list[AmazonProduct] = field(default_factory=list)
    id: str | None = None
