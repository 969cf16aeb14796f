from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

import psycopg2

from ..models.amazon import AmazonProduct, AmazonRevenue
from ..models.campaign import Campaign, CampaignProduct
from ..models.monthly_order import MonthlyOrder
from ..models.payment_method import PaymentMethod
from ..models.product_cost import ProductCost
from ..services.metrics import roi
from .batch_insert import BatchInsertError, batch_insert

"""CRUD operations for the dashboard tables.

Every function takes the caller's cursor; nothing here opens connections or
commits. Table layout: sql/schema.sql.
"""

__all__ = [
    "RepositoryError",
    "MONTHLY_ORDERS_TABLE",
    "insert_monthly_orders",
    "select_all_monthly_orders",
    "select_monthly_orders_by_range",
    "delete_monthly_order",
    "delete_monthly_orders_by_month",
    "insert_campaign",
    "select_all_campaigns",
    "update_campaign",
    "delete_campaign",
    "upsert_amazon_revenue",
    "select_all_amazon_revenue",
    "delete_amazon_revenue",
    "upsert_product_costs",
    "select_all_product_costs",
    "get_product_cost",
    "delete_product_cost",
    "insert_payment_method",
    "select_all_payment_methods",
    "select_payment_methods_by_range",
    "update_payment_method",
    "delete_payment_method",
]

MONTHLY_ORDERS_TABLE = "monthly_orders"
CAMPAIGNS_TABLE = "campaigns"
CAMPAIGN_PRODUCTS_TABLE = "campaign_products"
AMAZON_REVENUE_TABLE = "amazon_revenue"
AMAZON_PRODUCTS_TABLE = "amazon_products"
PRODUCT_COSTS_TABLE = "product_costs"
PAYMENT_METHODS_TABLE = "payment_methods"

MONTHLY_ORDER_COLUMNS = (
    "month",
    "product_name",
    "units_sold",
    "gross_amount",
    "tax_amount",
    "net_amount",
    "is_amazon",
    "total_orders",
    "ads_spent",
)
CAMPAIGN_COLUMNS = (
    "title",
    "description",
    "budget",
    "revenue",
    "orders",
    "products",
    "campaign_date",
    "roi",
    "average_order_value",
    "products_per_order",
)


class RepositoryError(Exception):
    pass


def _execute(cursor: Any, sql: str, params: Sequence[Any] | None = None) -> None:
    try:
        cursor.execute(sql, params)
    except psycopg2.Error as e:
        raise RepositoryError(str(e)) from e


def _num(value: Any) -> float:
    # NUMERIC columns come back as Decimal
    return 0.0 if value is None else float(value)


def _id(value: Any) -> str | None:
    return None if value is None else str(value)


# ── monthly_orders ─────────────────────────────────────────────────────────────

def _monthly_order_values(o: MonthlyOrder) -> tuple[Any, ...]:
    return (
        o.month,
        o.product_name,
        o.units_sold,
        o.gross_amount,
        o.tax_amount,
        o.net_amount,
        o.is_amazon,
        o.total_orders,
        o.ads_spent,
    )


def _monthly_order_from_row(row: Sequence[Any]) -> MonthlyOrder:
    (id_, month, product_name, units, gross, tax, net, is_amazon, total_orders, ads_spent) = row
    return MonthlyOrder(
        id=_id(id_),
        month=month,
        product_name=product_name,
        units_sold=_num(units),
        gross_amount=_num(gross),
        tax_amount=_num(tax),
        net_amount=_num(net),
        is_amazon=bool(is_amazon),
        total_orders=int(total_orders or 0),
        ads_spent=_num(ads_spent),
    )


def _monthly_select(table: str) -> str:
    return f"SELECT id,{','.join(MONTHLY_ORDER_COLUMNS)} FROM {table}"


def insert_monthly_orders(
    cursor: Any,
    orders: Sequence[MonthlyOrder],
    table: str = MONTHLY_ORDERS_TABLE,
    page_size: int = 1000,
) -> list[str]:
    """Insert monthly order rows and return their generated ids (input order)."""
    try:
        result = batch_insert(
            cursor,
            table,
            MONTHLY_ORDER_COLUMNS,
            [_monthly_order_values(o) for o in orders],
            returning=["id"],
            page_size=page_size,
        )
    except BatchInsertError as e:
        raise RepositoryError(f"insert into {table} failed: {e}") from e
    return [str(r[0]) for r in result.returned_values or []]


def select_all_monthly_orders(cursor: Any, table: str = MONTHLY_ORDERS_TABLE) -> list[MonthlyOrder]:
    _execute(cursor, _monthly_select(table) + " ORDER BY month DESC")
    return [_monthly_order_from_row(r) for r in cursor.fetchall()]


def select_monthly_orders_by_range(
    cursor: Any, start: date, end: date, table: str = MONTHLY_ORDERS_TABLE
) -> list[MonthlyOrder]:
    """Rows with start <= month <= end, newest month first."""
    _execute(
        cursor,
        _monthly_select(table) + " WHERE month >= %s AND month <= %s ORDER BY month DESC",
        (start, end),
    )
    return [_monthly_order_from_row(r) for r in cursor.fetchall()]


def delete_monthly_order(cursor: Any, order_id: str, table: str = MONTHLY_ORDERS_TABLE) -> int:
    _execute(cursor, f"DELETE FROM {table} WHERE id = %s", (order_id,))
    return cursor.rowcount


def delete_monthly_orders_by_month(cursor: Any, month: date, table: str = MONTHLY_ORDERS_TABLE) -> int:
    """Delete every row of one reporting month; returns the deleted count."""
    _execute(cursor, f"DELETE FROM {table} WHERE month = %s", (month,))
    return cursor.rowcount


# ── campaigns ──────────────────────────────────────────────────────────────────

def _campaign_values(c: Campaign) -> tuple[Any, ...]:
    return (
        c.title,
        c.description,
        c.budget,
        c.revenue,
        c.orders,
        c.products,
        c.campaign_date,
        c.roi,
        c.average_order_value,
        c.products_per_order,
    )


def insert_campaign(cursor: Any, campaign: Campaign) -> str:
    """Insert a campaign and its sold products; returns the campaign id."""
    placeholders = ",".join(["%s"] * len(CAMPAIGN_COLUMNS))
    _execute(
        cursor,
        f"INSERT INTO {CAMPAIGNS_TABLE} ({','.join(CAMPAIGN_COLUMNS)}) VALUES ({placeholders}) RETURNING id",
        _campaign_values(campaign),
    )
    campaign_id = str(cursor.fetchone()[0])

    if campaign.sold_products:
        try:
            batch_insert(
                cursor,
                CAMPAIGN_PRODUCTS_TABLE,
                ["campaign_id", "name", "quantity"],
                [(campaign_id, p.name, p.quantity) for p in campaign.sold_products],
            )
        except BatchInsertError as e:
            raise RepositoryError(f"insert into {CAMPAIGN_PRODUCTS_TABLE} failed: {e}") from e
    return campaign_id


def select_all_campaigns(cursor: Any) -> list[Campaign]:
    """All campaigns (newest first) with their sold products attached."""
    _execute(
        cursor,
        f"SELECT id,{','.join(CAMPAIGN_COLUMNS)} FROM {CAMPAIGNS_TABLE} ORDER BY campaign_date DESC",
    )
    campaign_rows = cursor.fetchall()

    _execute(cursor, f"SELECT id,campaign_id,name,quantity FROM {CAMPAIGN_PRODUCTS_TABLE}")
    products: dict[str, list[CampaignProduct]] = {}
    for pid, cid, name, qty in cursor.fetchall():
        products.setdefault(str(cid), []).append(
            CampaignProduct(name=name, quantity=int(qty), campaign_id=str(cid), id=_id(pid))
        )

    campaigns = []
    for row in campaign_rows:
        (id_, title, description, budget, revenue, orders, n_products, on,
         roi_, aov, ppo) = row
        campaigns.append(
            Campaign(
                id=_id(id_),
                title=title,
                description=description or "",
                budget=_num(budget),
                revenue=_num(revenue),
                orders=int(orders),
                products=int(n_products),
                campaign_date=on,
                roi=_num(roi_),
                average_order_value=_num(aov),
                products_per_order=_num(ppo),
                sold_products=products.get(str(id_), []),
            )
        )
    return campaigns


def update_campaign(cursor: Any, campaign_id: str, campaign: Campaign) -> int:
    """Overwrite a campaign's fields (derived metrics included); products untouched."""
    assignments = ",".join(f"{c} = %s" for c in CAMPAIGN_COLUMNS)
    _execute(
        cursor,
        f"UPDATE {CAMPAIGNS_TABLE} SET {assignments}, updated_at = now() WHERE id = %s",
        (*_campaign_values(campaign), campaign_id),
    )
    return cursor.rowcount


def delete_campaign(cursor: Any, campaign_id: str) -> int:
    _execute(cursor, f"DELETE FROM {CAMPAIGN_PRODUCTS_TABLE} WHERE campaign_id = %s", (campaign_id,))
    _execute(cursor, f"DELETE FROM {CAMPAIGNS_TABLE} WHERE id = %s", (campaign_id,))
    return cursor.rowcount


# ── amazon_revenue ─────────────────────────────────────────────────────────────

def upsert_amazon_revenue(cursor: Any, month: date, revenue: float, ad_spend: float = 0.0) -> AmazonRevenue:
    """Insert or replace the Amazon figures of one month (ROI recomputed)."""
    value = roi(revenue, ad_spend)
    _execute(
        cursor,
        f"INSERT INTO {AMAZON_REVENUE_TABLE} (month, revenue, ad_spend, roi) VALUES (%s,%s,%s,%s) "
        "ON CONFLICT (month) DO UPDATE SET revenue = EXCLUDED.revenue, "
        "ad_spend = EXCLUDED.ad_spend, roi = EXCLUDED.roi, updated_at = now() "
        "RETURNING id",
        (month, revenue, ad_spend, value),
    )
    new_id = cursor.fetchone()[0]
    return AmazonRevenue(id=_id(new_id), month=month, revenue=revenue, ad_spend=ad_spend, roi=value)


def select_all_amazon_revenue(cursor: Any) -> list[AmazonRevenue]:
    _execute(cursor, f"SELECT id,month,revenue,ad_spend,roi FROM {AMAZON_REVENUE_TABLE} ORDER BY month DESC")
    revenue_rows = cursor.fetchall()

    _execute(
        cursor,
        f"SELECT id,amazon_revenue_id,name,quantity,product_revenue FROM {AMAZON_PRODUCTS_TABLE}",
    )
    products: dict[str, list[AmazonProduct]] = {}
    for pid, rid, name, qty, prod_rev in cursor.fetchall():
        products.setdefault(str(rid), []).append(
            AmazonProduct(
                id=_id(pid),
                amazon_revenue_id=str(rid),
                name=name,
                quantity=int(qty or 0),
                product_revenue=None if prod_rev is None else _num(prod_rev),
            )
        )

    return [
        AmazonRevenue(
            id=_id(id_),
            month=month,
            revenue=_num(rev),
            ad_spend=_num(spend),
            roi=_num(roi_),
            products=products.get(str(id_), []),
        )
        for id_, month, rev, spend, roi_ in revenue_rows
    ]


def delete_amazon_revenue(cursor: Any, revenue_id: str) -> int:
    _execute(cursor, f"DELETE FROM {AMAZON_PRODUCTS_TABLE} WHERE amazon_revenue_id = %s", (revenue_id,))
    _execute(cursor, f"DELETE FROM {AMAZON_REVENUE_TABLE} WHERE id = %s", (revenue_id,))
    return cursor.rowcount


# ── product_costs ──────────────────────────────────────────────────────────────

def upsert_product_costs(cursor: Any, costs: Sequence[ProductCost]) -> int:
    """Insert or update cost rows keyed by product name."""
    for c in costs:
        _execute(
            cursor,
            f"INSERT INTO {PRODUCT_COSTS_TABLE} "
            "(product_name, production_cost, packaging_cost, has_shipping_cost) VALUES (%s,%s,%s,%s) "
            "ON CONFLICT (product_name) DO UPDATE SET production_cost = EXCLUDED.production_cost, "
            "packaging_cost = EXCLUDED.packaging_cost, has_shipping_cost = EXCLUDED.has_shipping_cost, "
            "updated_at = now()",
            (c.product_name, c.production_cost, c.packaging_cost, c.has_shipping_cost),
        )
    return len(costs)


def _product_cost_from_row(row: Sequence[Any]) -> ProductCost:
    id_, name, production, packaging, has_shipping = row
    return ProductCost(
        id=_id(id_),
        product_name=name,
        production_cost=_num(production),
        packaging_cost=_num(packaging),
        has_shipping_cost=bool(has_shipping),
    )


_PRODUCT_COST_SELECT = (
    f"SELECT id,product_name,production_cost,packaging_cost,has_shipping_cost FROM {PRODUCT_COSTS_TABLE}"
)


def select_all_product_costs(cursor: Any) -> list[ProductCost]:
    _execute(cursor, _PRODUCT_COST_SELECT + " ORDER BY product_name")
    return [_product_cost_from_row(r) for r in cursor.fetchall()]


def get_product_cost(cursor: Any, product_name: str) -> ProductCost | None:
    _execute(cursor, _PRODUCT_COST_SELECT + " WHERE product_name = %s", (product_name,))
    row = cursor.fetchone()
    return None if row is None else _product_cost_from_row(row)


def delete_product_cost(cursor: Any, cost_id: str) -> int:
    _execute(cursor, f"DELETE FROM {PRODUCT_COSTS_TABLE} WHERE id = %s", (cost_id,))
    return cursor.rowcount


# ── payment_methods ────────────────────────────────────────────────────────────

_PAYMENT_METHOD_SELECT = f"SELECT id,month,payment_method,orders_count FROM {PAYMENT_METHODS_TABLE}"


def _payment_method_from_row(row: Sequence[Any]) -> PaymentMethod:
    id_, month, method, count = row
    return PaymentMethod(id=_id(id_), month=month, payment_method=method, orders_count=int(count or 0))


def insert_payment_method(cursor: Any, entry: PaymentMethod) -> PaymentMethod:
    """Insert one (month, method, orders) entry; returns it with its id."""
    _execute(
        cursor,
        f"INSERT INTO {PAYMENT_METHODS_TABLE} (month, payment_method, orders_count) VALUES (%s,%s,%s) RETURNING id",
        (entry.month, entry.payment_method, entry.orders_count),
    )
    new_id = cursor.fetchone()[0]
    return PaymentMethod(
        id=_id(new_id), month=entry.month, payment_method=entry.payment_method, orders_count=entry.orders_count
    )


def select_all_payment_methods(cursor: Any) -> list[PaymentMethod]:
    _execute(cursor, _PAYMENT_METHOD_SELECT + " ORDER BY month DESC")
    return [_payment_method_from_row(r) for r in cursor.fetchall()]


def select_payment_methods_by_range(cursor: Any, start: date, end: date) -> list[PaymentMethod]:
    """Entries with start <= month <= end, newest month first."""
    _execute(
        cursor,
        _PAYMENT_METHOD_SELECT + " WHERE month >= %s AND month <= %s ORDER BY month DESC",
        (start, end),
    )
    return [_payment_method_from_row(r) for r in cursor.fetchall()]


def update_payment_method(cursor: Any, entry_id: str, entry: PaymentMethod) -> int:
    _execute(
        cursor,
        f"UPDATE {PAYMENT_METHODS_TABLE} SET month = %s, payment_method = %s, orders_count = %s, "
        "updated_at = now() WHERE id = %s",
        (entry.month, entry.payment_method, entry.orders_count, entry_id),
    )
    return cursor.rowcount


def delete_payment_method(cursor: Any, entry_id: str) -> int:
    _execute(cursor, f"DELETE FROM {PAYMENT_METHODS_TABLE} WHERE id = %s", (entry_id,))
    return cursor.rowcount
