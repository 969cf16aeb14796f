from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path
from typing import Any

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..csvimport.normalizer import parse_number
from ..csvimport.parser import CsvParseError
from ..csvimport.reader import CsvReadError
from ..db import repository
from ..db.connection import DatabaseUnavailableError, connect, load_env_file
from ..logging.init import log_summary, setup_logging
from ..models.campaign import Campaign, CampaignProduct
from ..models.monthly_order import UploadContext, parse_month
from ..models.payment_method import PAYMENT_METHODS, PaymentMethod
from ..models.product_cost import ProductCost
from ..services import metrics
from ..services.importer import ProcessingError, import_files, preview_file, scan_csv_files
from ..services.summary import render_preview, render_report, render_summary_line

"""CLI entrypoint.

Default action: import monthly sales CSV files (given as arguments, or every
.csv in source_directory) into monthly_orders for one reporting month.

    campaign-tracker --month 2025-03 --total-orders 120 [--amazon] [files...]
    campaign-tracker --inspect-data files...      # parse + preview, no DB
    campaign-tracker --report                     # metrics from the DB
    campaign-tracker --delete-month 2025-03

Recording dashboard data (one action per call):

    campaign-tracker --add-campaign "Spring sale" --budget 100 --revenue 450 --orders 12 --products 15
    campaign-tracker --amazon-revenue 2025-03 1500 --ad-spend 320
    campaign-tracker --product-cost "Siero" 4.50 0.80 [--no-shipping]
    campaign-tracker --payment-method 2025-03 PayPal 40

Amounts accept the same formats as CSV cells ("1.234,56", "€ 12,50").
Exit codes: 0 all files imported / action done, 2 at least one file failed,
1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="campaign-tracker", description="Monthly sales CSV importer and metrics")
    p.add_argument("files", nargs="*", help="CSV files to import (default: all .csv in source_directory)")
    p.add_argument("--month", default=None, help="Reporting month YYYY-MM (default: current month in the configured timezone)")
    p.add_argument("--total-orders", type=int, default=None, help="Total orders of the month (> 0)")
    p.add_argument("--amazon", action="store_true", help="Rows belong to the Amazon channel")
    p.add_argument("--inspect-data", action="store_true", help="Parse and print a preview, then exit")
    p.add_argument("--report", action="store_true", help="Print the metrics report from the database")
    p.add_argument("--delete-month", metavar="YYYY-MM", help="Delete all monthly orders of a month")

    p.add_argument("--add-campaign", metavar="TITLE", help="Record a campaign's performance")
    p.add_argument("--budget", default="0", help="Campaign ad spend (with --add-campaign)")
    p.add_argument("--revenue", default="0", help="Campaign revenue (with --add-campaign)")
    p.add_argument("--orders", type=int, default=0, help="Campaign orders (with --add-campaign)")
    p.add_argument("--products", type=int, default=0, help="Campaign products sold (with --add-campaign)")
    p.add_argument("--campaign-date", metavar="YYYY-MM-DD", help="Campaign date (default: today)")
    p.add_argument("--description", default="", help="Campaign description")
    p.add_argument("--sold-product", action="append", default=[], metavar="NAME=QTY",
                   help="Product sold through the campaign (repeatable)")
    p.add_argument("--amazon-revenue", nargs=2, metavar=("YYYY-MM", "REVENUE"), help="Record Amazon revenue of a month")
    p.add_argument("--ad-spend", default="0", help="Amazon ad spend (with --amazon-revenue)")
    p.add_argument("--product-cost", nargs=3, metavar=("NAME", "PRODUCTION", "PACKAGING"),
                   help="Set a product's unit production and packaging cost")
    p.add_argument("--no-shipping", action="store_true", help="Product carries no shipping cost (with --product-cost)")
    p.add_argument("--payment-method", nargs=3, metavar=("YYYY-MM", "METHOD", "ORDERS"),
                   help="Record the orders paid with one method in a month")

    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Config file path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _resolve_files(cfg: ImportConfig, files: list[str]) -> list[Path]:
    if not files:
        return scan_csv_files(cfg.source_path)
    paths = [Path(f) for f in files]
    missing = [str(p) for p in paths if not p.is_file()]
    if missing:
        raise ProcessingError(f"file not found: {', '.join(missing)}")
    return paths


def _db_disabled() -> bool:
    # DISABLE_DB_CONNECT=1 forces mock mode (tests, dry runs)
    return os.getenv("DISABLE_DB_CONNECT") == "1"


def _amount(value: str, what: str) -> float:
    number = parse_number(value)
    if number is None or number < 0:
        raise ValueError(f"invalid {what}: {value!r}")
    return number


def _inspect_data(cfg: ImportConfig, paths: list[Path]) -> int:
    if not paths:
        print("inspect: no .csv files")
        return EXIT_SUCCESS_ALL
    code = EXIT_SUCCESS_ALL
    for path in paths:
        print(f"FILE: {path.name}")
        try:
            result = preview_file(cfg, path)
        except (CsvReadError, CsvParseError) as e:
            print(f"  parse_error: {e}")
            code = EXIT_PARTIAL_FAILURE
            continue
        for line in render_preview(result):
            print(f"  {line}")
    return code


def _report(cfg: ImportConfig, logger: logging.Logger) -> int:
    if _db_disabled():
        logger.error("report: database connection disabled (DISABLE_DB_CONNECT=1)")
        return EXIT_FATAL
    try:
        with connect(cfg) as cur:
            orders = repository.select_all_monthly_orders(cur, table=cfg.monthly_orders_table)
            campaigns = repository.select_all_campaigns(cur)
            amazon = repository.select_all_amazon_revenue(cur)
            costs = repository.select_all_product_costs(cur)
            payments = repository.select_all_payment_methods(cur)
    except (DatabaseUnavailableError, repository.RepositoryError) as e:
        logger.error(f"report: {e}")
        return EXIT_FATAL

    lines = render_report(
        metrics.monthly_summary(orders),
        metrics.product_leaderboard(orders),
        totals=metrics.campaign_totals(campaigns) if campaigns else None,
        amazon=amazon,
        margins=metrics.integrated_margins(costs, orders, shipping_cost=cfg.shipping_cost),
        payments=metrics.payment_method_breakdown(payments),
    )
    for line in lines:
        print(line)
    return EXIT_SUCCESS_ALL


def _write(cfg: ImportConfig, logger: logging.Logger, label: str, action: Callable[[Any], str]) -> int:
    """Run one write action on its own connection (committed on success) and log its message."""
    if _db_disabled():
        logger.error(f"{label}: database connection disabled (DISABLE_DB_CONNECT=1)")
        return EXIT_FATAL
    try:
        with connect(cfg) as cur:
            message = action(cur)
    except (DatabaseUnavailableError, repository.RepositoryError) as e:
        logger.error(f"{label}: {e}")
        return EXIT_FATAL
    logger.info(message)
    return EXIT_SUCCESS_ALL


def _delete_month(cfg: ImportConfig, month: date, logger: logging.Logger) -> int:
    def action(cur: Any) -> str:
        deleted = repository.delete_monthly_orders_by_month(cur, month, table=cfg.monthly_orders_table)
        return f"deleted {deleted} monthly orders for {month:%Y-%m}"

    return _write(cfg, logger, "delete", action)


def _sold_product(value: str) -> CampaignProduct:
    name, sep, qty = value.rpartition("=")
    if not sep or not name.strip():
        raise ValueError(f"invalid sold product (expected NAME=QTY): {value!r}")
    quantity = int(qty)
    if quantity < 0:
        raise ValueError(f"invalid sold product quantity: {value!r}")
    return CampaignProduct(name=name.strip(), quantity=quantity)


def _add_campaign(cfg: ImportConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    try:
        title = args.add_campaign.strip()
        if not title:
            raise ValueError("campaign title must not be empty")
        if args.campaign_date:
            on = date.fromisoformat(args.campaign_date)
        else:
            on = datetime.now(cfg.tzinfo).date()
        campaign = Campaign.create(
            title,
            budget=_amount(args.budget, "budget"),
            revenue=_amount(args.revenue, "revenue"),
            orders=args.orders,
            products=args.products,
            on=on,
            description=args.description,
            sold_products=[_sold_product(s) for s in args.sold_product],
        )
    except ValueError as e:
        logger.error(f"campaign: {e}")
        return EXIT_FATAL

    def action(cur: Any) -> str:
        campaign_id = repository.insert_campaign(cur, campaign)
        return (
            f"campaign {campaign.title!r} recorded (id={campaign_id}): "
            f"roi={campaign.roi:.1f}% aov={campaign.average_order_value:.2f}"
        )

    return _write(cfg, logger, "campaign", action)


def _amazon_revenue(cfg: ImportConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    month_arg, revenue_arg = args.amazon_revenue
    try:
        month = parse_month(month_arg)
        revenue = _amount(revenue_arg, "revenue")
        ad_spend = _amount(args.ad_spend, "ad spend")
    except ValueError as e:
        logger.error(f"amazon: {e}")
        return EXIT_FATAL

    def action(cur: Any) -> str:
        rec = repository.upsert_amazon_revenue(cur, month, revenue, ad_spend)
        return (
            f"amazon revenue {month:%Y-%m}: revenue={rec.revenue:.2f} "
            f"ad_spend={rec.ad_spend:.2f} roi={rec.roi:.1f}%"
        )

    return _write(cfg, logger, "amazon", action)


def _product_cost(cfg: ImportConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    name, production, packaging = args.product_cost
    try:
        if not name.strip():
            raise ValueError("product name must not be empty")
        cost = ProductCost(
            product_name=name.strip(),
            production_cost=_amount(production, "production cost"),
            packaging_cost=_amount(packaging, "packaging cost"),
            has_shipping_cost=not args.no_shipping,
        )
    except ValueError as e:
        logger.error(f"product cost: {e}")
        return EXIT_FATAL

    def action(cur: Any) -> str:
        repository.upsert_product_costs(cur, [cost])
        return (
            f"product cost {cost.product_name!r}: production={cost.production_cost:.2f} "
            f"packaging={cost.packaging_cost:.2f} shipping={'yes' if cost.has_shipping_cost else 'no'}"
        )

    return _write(cfg, logger, "product cost", action)


def _payment_method(cfg: ImportConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    month_arg, method, count = args.payment_method
    try:
        entry = PaymentMethod.create(parse_month(month_arg), method, int(count))
    except ValueError as e:
        logger.error(f"payment method: {e}")
        return EXIT_FATAL
    if entry.payment_method not in PAYMENT_METHODS:
        logger.warning(f"payment method {entry.payment_method!r} is not one of: {', '.join(PAYMENT_METHODS)}")

    def action(cur: Any) -> str:
        saved = repository.insert_payment_method(cur, entry)
        return (
            f"payment method {saved.month:%Y-%m} {saved.payment_method}: "
            f"{saved.orders_count} orders (id={saved.id})"
        )

    return _write(cfg, logger, "payment method", action)


def main(argv: list[str] | None = None) -> int:
    # Only read sys.argv when called without arguments; main([]) must not pick up pytest's flags
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    # .env first so that DB settings there win over the config file
    load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.report:
        return _report(cfg, logger)

    if args.delete_month:
        try:
            month = parse_month(args.delete_month)
        except ValueError as e:
            logger.error(str(e))
            return EXIT_FATAL
        return _delete_month(cfg, month, logger)

    if args.add_campaign is not None:
        return _add_campaign(cfg, args, logger)
    if args.amazon_revenue:
        return _amazon_revenue(cfg, args, logger)
    if args.product_cost:
        return _product_cost(cfg, args, logger)
    if args.payment_method:
        return _payment_method(cfg, args, logger)

    try:
        paths = _resolve_files(cfg, args.files)
    except ProcessingError as e:
        logger.error(str(e))
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg, paths)

    try:
        month = parse_month(args.month or datetime.now(cfg.tzinfo).strftime("%Y-%m"))
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FATAL
    if args.total_orders is None or args.total_orders <= 0:
        logger.error("total orders required: pass --total-orders N (N > 0)")
        return EXIT_FATAL

    context = UploadContext(month=month, is_amazon=args.amazon, total_orders=args.total_orders)
    logger.info(f"Importing {len(paths)} file(s) for {month:%Y-%m}")

    db_mode = "mock"
    if _db_disabled():
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        result = import_files(cfg, paths, context, cursor=None)
    else:
        try:
            with connect(cfg) as cur:
                db_mode = "live"
                result = import_files(cfg, paths, context, cursor=cur)
        except DatabaseUnavailableError as e:
            logger.info(f"DB connection failed -> fallback to mock mode: {e}")
            result = import_files(cfg, paths, context, cursor=None)

    logger.info(f"mode={db_mode} total_rows={result.total_inserted_rows}")
    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
