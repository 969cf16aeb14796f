from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

"""Campaign domain models (campaigns / campaign_products tables).

Derived figures (roi, average order value, products per order) are computed
by services.metrics when a campaign is built via Campaign.create().
"""

__all__ = [
    "Campaign",
    "CampaignProduct",
]


@dataclass(frozen=True)
class CampaignProduct:
    """Product sold through a campaign."""
    name: str
    quantity: int
    campaign_id: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class Campaign:
    """Advertising campaign performance record."""
    title: str
    budget: float  # ad spend
    revenue: float
    orders: int
    products: int  # products sold
    campaign_date: date
    description: str = ""
    roi: float = 0.0  # percent
    average_order_value: float = 0.0
    products_per_order: float = 0.0
    sold_products: list[CampaignProduct] = field(default_factory=list)
    id: str | None = None

    @staticmethod
    def create(
        title: str,
        budget: float,
        revenue: float,
        orders: int,
        products: int,
        on: date,
        description: str = "",
        sold_products: list[CampaignProduct] | None = None,
    ) -> Campaign:
        """Build a campaign with its derived metrics filled in.

        Raises:
            ValueError: If any amount or count is negative.
        """
        # Avoid import cycle: metrics imports the models package
        from ..services.metrics import average_order_value, products_per_order, roi

        if budget < 0 or revenue < 0 or orders < 0 or products < 0:
            raise ValueError("campaign values must not be negative")
        return Campaign(
            title=title,
            budget=budget,
            revenue=revenue,
            orders=orders,
            products=products,
            campaign_date=on,
            description=description,
            roi=roi(revenue, budget),
            average_order_value=average_order_value(revenue, orders),
            products_per_order=products_per_order(products, orders),
            sold_products=list(sold_products or []),
        )
