from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from ..csvimport.parser import ParseResult
from ..models.amazon import AmazonRevenue
from ..models.processing_result import ProcessingResult
from .metrics import CampaignTotals, ProductMargin

"""Text rendering for the CLI: SUMMARY line, upload preview, metrics report."""

__all__ = [
    "render_summary_line",
    "render_preview",
    "render_report",
]


def _format_number(value: float) -> str:
    """Integers without decimals, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line of an import run.

    Format:
    SUMMARY files={total}/{total} success={s} failed={f} rows={rows}
    skipped_rows={k} gross={gross:.2f} elapsed_sec={e} throughput_rps={t}

    >>> from datetime import datetime, timezone
    >>> t = datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> r = ProcessingResult(1, 0, 4, 1, 488.0, t, t, 2.0, 2.0)
    >>> render_summary_line(r)
    'SUMMARY files=1/1 success=1 failed=0 rows=4 skipped_rows=1 gross=488.00 elapsed_sec=2 throughput_rps=2'
    """
    total = result.total_files
    return (
        f"SUMMARY files={total}/{total} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"rows={result.total_inserted_rows} "
        f"skipped_rows={result.skipped_rows} "
        f"gross={result.gross_amount:.2f} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )


def render_preview(result: ParseResult) -> list[str]:
    """Preview lines of a parsed upload: totals, then one line per row."""
    rows = result.rows
    gross = sum(r.gross_amount for r in rows)
    net = sum(r.net_amount for r in rows)
    tax = sum(r.tax_amount for r in rows)
    units = sum(r.units_sold for r in rows)
    lines = [
        f"rows={len(rows)} skipped={len(result.issues)} "
        f"gross={gross:.2f} net={net:.2f} tax={tax:.2f} units={_format_number(units)}"
    ]
    for r in rows:
        lines.append(
            f"  {r.product_name} | units={_format_number(r.units_sold)} | gross={r.gross_amount:.2f} "
            f"| tax={r.tax_amount:.2f} | net={r.net_amount:.2f}"
        )
    lines.extend(f"  ! {msg}" for msg in result.errors)
    return lines


def render_report(
    summary: pd.DataFrame,
    leaderboard: Sequence[tuple[str, float]],
    totals: CampaignTotals | None = None,
    amazon: Sequence[AmazonRevenue] = (),
    margins: Sequence[ProductMargin] = (),
    payments: pd.DataFrame | None = None,
) -> list[str]:
    """Report lines for the --report command."""
    lines = ["monthly summary:"]
    if summary.empty:
        lines.append("  (no monthly orders)")
    for rec in summary.itertuples(index=False):
        lines.append(
            f"  {rec.month} {rec.channel}: gross={rec.gross_amount:.2f} net={rec.net_amount:.2f} "
            f"tax={rec.tax_amount:.2f} units={_format_number(rec.units_sold)} "
            f"orders={int(rec.total_orders)} aov={rec.average_order_value:.2f}"
        )

    lines.append("top products:")
    for pos, (name, units) in enumerate(leaderboard, start=1):
        lines.append(f"  {pos}. {name} ({_format_number(units)} units)")

    if totals is not None:
        lines.append(
            f"campaigns: budget={totals.budget:.2f} revenue={totals.revenue:.2f} "
            f"orders={totals.orders} roi={totals.roi:.1f}% aov={totals.average_order_value:.2f}"
        )

    if amazon:
        avg_roi = sum(a.roi for a in amazon) / len(amazon)
        lines.append(
            f"amazon: revenue={sum(a.revenue for a in amazon):.2f} "
            f"ad_spend={sum(a.ad_spend for a in amazon):.2f} avg_roi={avg_roi:.1f}%"
        )

    for m in margins:
        lines.append(
            f"margin {m.product_name}: net_revenue={m.net_revenue:.2f} costs={m.total_costs:.2f} "
            f"margin={m.margin:.2f} ({m.margin_percentage:.1f}%)"
        )

    if payments is not None and not payments.empty:
        # payments is newest month first (metrics.payment_method_breakdown)
        for month, group in payments.groupby("month", sort=False):
            parts = [
                f"{rec.payment_method}={int(rec.orders_count)} ({rec.share:.1f}%)"
                for rec in group.itertuples(index=False)
            ]
            lines.append(f"payments {month}: " + ", ".join(parts))
    return lines
