from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import pandas as pd

from ..models.campaign import Campaign
from ..models.monthly_order import MonthlyOrder
from ..models.payment_method import PaymentMethod
from ..models.product_cost import ProductCost

"""Derived dashboard metrics.

The per-record formulas (ROI, average order value, margin) are plain
arithmetic with a zero guard on the divisor. The monthly summary and the
leaderboards aggregate MonthlyOrder rows through a pandas DataFrame.
"""

__all__ = [
    "roi",
    "average_order_value",
    "products_per_order",
    "Margin",
    "product_margin",
    "net_profit",
    "CampaignTotals",
    "campaign_totals",
    "orders_frame",
    "monthly_summary",
    "product_leaderboard",
    "ProductMargin",
    "integrated_margins",
    "payment_method_breakdown",
]

ORDER_COLUMNS = [
    "month",
    "product_name",
    "units_sold",
    "gross_amount",
    "tax_amount",
    "net_amount",
    "is_amazon",
    "total_orders",
]


def roi(revenue: float, spend: float) -> float:
    """Return on ad spend in percent; 0 when nothing was spent."""
    if spend <= 0:
        return 0.0
    return (revenue - spend) / spend * 100


def average_order_value(revenue: float, orders: float) -> float:
    return revenue / orders if orders > 0 else 0.0


def products_per_order(products: float, orders: float) -> float:
    return products / orders if orders > 0 else 0.0


@dataclass(frozen=True)
class Margin:
    net: float
    percentage: float


def product_margin(price: float, shipping_cost: float, production_cost: float, commission: float = 0.0) -> Margin:
    """Unit margin of a product sold at `price` (marketplace commission optional)."""
    net = price - (shipping_cost + production_cost + commission)
    pct = net / price * 100 if price > 0 else 0.0
    return Margin(net=net, percentage=pct)


def net_profit(product_margin_total: float, ad_spend: float, other_expenses: float = 0.0) -> float:
    return product_margin_total - ad_spend - other_expenses


@dataclass(frozen=True)
class CampaignTotals:
    budget: float
    revenue: float
    orders: int
    products: int
    roi: float
    average_order_value: float


def campaign_totals(campaigns: Iterable[Campaign]) -> CampaignTotals:
    campaigns = list(campaigns)
    budget = sum(c.budget for c in campaigns)
    revenue = sum(c.revenue for c in campaigns)
    orders = sum(c.orders for c in campaigns)
    products = sum(c.products for c in campaigns)
    return CampaignTotals(
        budget=budget,
        revenue=revenue,
        orders=orders,
        products=products,
        roi=roi(revenue, budget),
        average_order_value=average_order_value(revenue, orders),
    )


def orders_frame(orders: Iterable[MonthlyOrder]) -> pd.DataFrame:
    """MonthlyOrder rows as a DataFrame (month as ``YYYY-MM`` string)."""
    records = [
        {
            "month": o.month_key,
            "product_name": o.product_name,
            "units_sold": o.units_sold,
            "gross_amount": o.gross_amount,
            "tax_amount": o.tax_amount,
            "net_amount": o.net_amount,
            "is_amazon": o.is_amazon,
            "total_orders": o.total_orders,
        }
        for o in orders
    ]
    return pd.DataFrame.from_records(records, columns=ORDER_COLUMNS)


def monthly_summary(orders: Iterable[MonthlyOrder]) -> pd.DataFrame:
    """One row per (month, channel), newest month first.

    total_orders is stored on every product row of an upload, so it is taken
    once per group (max), not summed.
    """
    df = orders_frame(orders)
    columns = ["month", "channel", "gross_amount", "net_amount", "tax_amount",
               "units_sold", "total_orders", "average_order_value"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    df["channel"] = df["is_amazon"].map({True: "amazon", False: "shop"})
    summary = (
        df.groupby(["month", "channel"], as_index=False)
        .agg(
            gross_amount=("gross_amount", "sum"),
            net_amount=("net_amount", "sum"),
            tax_amount=("tax_amount", "sum"),
            units_sold=("units_sold", "sum"),
            total_orders=("total_orders", "max"),
        )
    )
    summary["average_order_value"] = [
        average_order_value(g, o) for g, o in zip(summary["gross_amount"], summary["total_orders"])
    ]
    return summary.sort_values(["month", "channel"], ascending=[False, True]).reset_index(drop=True)[columns]


def product_leaderboard(
    orders: Iterable[MonthlyOrder], month: str | None = None, limit: int | None = 10
) -> list[tuple[str, float]]:
    """Products ranked by units sold (ties by name).

    Args:
        orders: Monthly order rows
        month: ``YYYY-MM`` to restrict to one month; None = all months
        limit: Maximum entries; None = all
    """
    df = orders_frame(orders)
    if month is not None:
        df = df[df["month"] == month]
    if df.empty:
        return []
    totals = df.groupby("product_name", as_index=False)["units_sold"].sum()
    totals = totals.sort_values(["units_sold", "product_name"], ascending=[False, True])
    if limit is not None:
        totals = totals.head(limit)
    return [(str(name), float(units)) for name, units in zip(totals["product_name"], totals["units_sold"])]


@dataclass(frozen=True)
class ProductMargin:
    product_name: str
    units_sold: float
    net_revenue: float
    total_costs: float
    margin: float
    margin_percentage: float


def integrated_margins(
    costs: Sequence[ProductCost], orders: Iterable[MonthlyOrder], shipping_cost: float = 0.0
) -> list[ProductMargin]:
    """Margin on net revenue for every configured product.

    costs = units * (production + packaging), plus `shipping_cost` once when
    the product has sales and is flagged has_shipping_cost.
    """
    df = orders_frame(orders)
    by_product = df.groupby("product_name")[["units_sold", "net_amount"]].sum() if not df.empty else None

    results = []
    for cost in costs:
        if by_product is not None and cost.product_name in by_product.index:
            units = float(by_product.at[cost.product_name, "units_sold"])
            net_revenue = float(by_product.at[cost.product_name, "net_amount"])
            has_sales = True
        else:
            units, net_revenue, has_sales = 0.0, 0.0, False

        total_costs = units * cost.unit_cost
        if cost.has_shipping_cost and has_sales:
            total_costs += shipping_cost
        margin = net_revenue - total_costs
        results.append(
            ProductMargin(
                product_name=cost.product_name,
                units_sold=units,
                net_revenue=net_revenue,
                total_costs=total_costs,
                margin=margin,
                margin_percentage=margin / net_revenue * 100 if net_revenue > 0 else 0.0,
            )
        )
    return results


def payment_method_breakdown(entries: Iterable[PaymentMethod]) -> pd.DataFrame:
    """Orders per payment method and month with the share of the month in percent.

    Entries of the same (month, method) are summed. Newest month first, then
    by orders descending.
    """
    columns = ["month", "payment_method", "orders_count", "share"]
    records = [
        {"month": f"{e.month:%Y-%m}", "payment_method": e.payment_method, "orders_count": e.orders_count}
        for e in entries
    ]
    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame.from_records(records)
    df = df.groupby(["month", "payment_method"], as_index=False)["orders_count"].sum()
    month_total = df.groupby("month")["orders_count"].transform("sum")
    df["share"] = [c / t * 100 if t > 0 else 0.0 for c, t in zip(df["orders_count"], month_total)]
    df = df.sort_values(["month", "orders_count", "payment_method"], ascending=[False, False, True])
    return df.reset_index(drop=True)[columns]
