"""
Markdown report exporter.

Renders report snapshots as Markdown, suitable for GitHub, Notion, or any
Markdown viewer. Amounts use the Spanish euro convention (``12.345 €``).
"""

from __future__ import annotations

import math
from typing import Sequence

from finboard.analyzers.periods import month_label
from finboard.models.report import (
    BlockReport,
    CashflowRow,
    CategoryRow,
    ClientShareRow,
    ExecutiveReport,
    ManagementReport,
    RenewalRow,
    ReportSnapshot,
    RevenueRow,
    VCReport,
)


def format_currency(amount: float) -> str:
    """Whole euros, ``.`` thousands separator from five digits up: ``12.345 €``."""
    rounded = round(amount)
    digits = f"{abs(rounded):d}"
    if len(digits) > 4:
        digits = f"{abs(rounded):,d}".replace(",", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{digits} €"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_runway(months: float) -> str:
    if math.isinf(months):
        return "∞"
    return f"{months:.1f} months"


def _table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[str]:
    lines = ["| " + " | ".join(headers) + " |", "|" + "|".join("---" for _ in headers) + "|"]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    lines.append("")
    return lines


def _metrics(pairs: Sequence[tuple[str, str]]) -> list[str]:
    return _table(["Metric", "Value"], [(f"**{name}**", value) for name, value in pairs])


def _revenue_section(rows: Sequence[RevenueRow]) -> list[str]:
    if not rows:
        return []
    lines = ["### Monthly Revenue", ""]
    lines += _table(
        ["Month", "Recurring", "Non-recurring", "Total"],
        [
            (month_label(r.month), format_currency(r.recurring), format_currency(r.non_recurring), format_currency(r.total))
            for r in rows
        ],
    )
    return lines


def _cashflow_section(rows: Sequence[CashflowRow]) -> list[str]:
    if not rows:
        return []
    lines = ["### Cash Flow", ""]
    lines += _table(
        ["Month", "Inflow", "Outflow", "Net"],
        [(month_label(r.month), format_currency(r.inflow), format_currency(r.outflow), format_currency(r.net)) for r in rows],
    )
    return lines


def _category_section(rows: Sequence[CategoryRow]) -> list[str]:
    if not rows:
        return []
    lines = ["### Expenses by Category", ""]
    lines += _table(
        ["Category", "Total", "Share"],
        [(r.category, format_currency(r.total), format_percent(r.percentage)) for r in rows],
    )
    return lines


def _concentration_section(rows: Sequence[ClientShareRow]) -> list[str]:
    if not rows:
        return []
    lines = ["### Client Concentration", ""]
    lines += _table(
        ["Client", "ARR", "Share"],
        [(r.name, format_currency(r.arr), format_percent(r.percentage)) for r in rows],
    )
    return lines


def _renewal_section(title: str, rows: Sequence[RenewalRow]) -> list[str]:
    if not rows:
        return []
    lines = [f"### {title}", ""]
    lines += _table(
        ["Client", "Product", "ARR", "End date"],
        [(r.client, r.product, format_currency(r.arr), r.end_date.isoformat()) for r in rows],
    )
    return lines


def _footer(report: ReportSnapshot) -> list[str]:
    return ["---", f"*Generated by finboard on {report.generated_at.strftime('%Y-%m-%d %H:%M')}*"]


# ------------------------------------------------------------------ #
#  Per-report renderers                                               #
# ------------------------------------------------------------------ #


def _render_executive(report: ExecutiveReport) -> list[str]:
    lines = [f"# Executive Report — {report.report_month}", "", f"*Report date: {report.report_date.isoformat()}*", ""]

    lines += ["## Financial Health", ""]
    lines += _metrics(
        [
            (f"Revenue YTD {report.fiscal_year}", format_currency(report.revenue_ytd)),
            ("ARR", format_currency(report.arr_actual)),
            ("ARR growth (6m)", format_percent(report.arr_growth)),
            ("Cash", format_currency(report.cash_balance)),
            ("Burn rate", format_currency(report.burn_rate)),
            ("Net burn", format_currency(report.net_burn)),
            ("Runway", format_runway(report.runway)),
        ]
    )

    lines += ["## Alerts", ""]
    lines += _metrics(
        [
            ("ARR at risk (90 days)", format_currency(report.arr_at_risk)),
            ("Pending collection", f"{format_currency(report.pending_amount)} ({format_percent(report.pending_percentage)})"),
            ("Active customers", str(report.active_customers)),
            ("Recurring share", format_percent(report.recurring_percentage)),
            ("DSO", f"{report.dso:.0f} days"),
            ("Collection rate", format_percent(report.collection_rate)),
        ]
    )
    lines += _renewal_section("Contracts at Risk", report.contracts_at_risk)

    lines += ["## Revenue & Growth", ""]
    lines += _revenue_section(report.monthly_revenue)
    lines += _metrics(
        [
            ("Forecast M+1", format_currency(report.forecast_m1)),
            ("Forecast M+3", format_currency(report.forecast_m3)),
            ("Forecast M+6", format_currency(report.forecast_m6)),
            ("Forecast M+12", format_currency(report.forecast_m12)),
            ("Invoiced YTD (licenses)", format_currency(report.invoiced_ytd)),
            ("Forecast rest of FY", format_currency(report.forecast_remaining_fy)),
            ("Estimated FY total", format_currency(report.total_estimated_fy)),
        ]
    )

    lines += ["## Cash Flow", ""]
    lines += _metrics(
        [
            ("Average monthly inflow", format_currency(report.avg_monthly_inflow)),
            ("Runway end", report.runway_end_date),
        ]
    )
    lines += _cashflow_section(report.cashflow_monthly)
    lines += _category_section(report.expenses_by_category)

    lines += ["## Contracts & Customers", ""]
    lines += _metrics(
        [
            ("Base ARR", format_currency(report.arr_base)),
            ("Expansion", format_currency(report.expansion)),
            ("Churn", format_currency(report.churn)),
            ("Pipeline ARR", format_currency(report.pipeline_arr)),
            ("Active contracts", str(report.active_contracts)),
            ("Active clients", str(report.active_clients)),
        ]
    )
    lines += _concentration_section(report.client_concentration)
    lines += _renewal_section("Upcoming Renewals", report.upcoming_renewals)
    return lines


def _render_management(report: ManagementReport) -> list[str]:
    lines = [f"# Management Report — {report.report_month}", "", f"*Report date: {report.report_date.isoformat()}*", ""]
    if report.custom_note:
        lines += [report.custom_note, ""]

    lines += ["## Revenue Performance", ""]
    lines += _metrics(
        [
            (f"Revenue FY {report.fiscal_year - 1}", format_currency(report.revenue_prior_fy)),
            (f"Revenue YTD {report.fiscal_year}", format_currency(report.revenue_ytd)),
            (f"Revenue {report.last_complete_quarter_label}", format_currency(report.revenue_last_quarter)),
            (f"Revenue {report.last_complete_month_label}", format_currency(report.revenue_last_month)),
            ("ARR", format_currency(report.current_arr)),
            ("MRR", format_currency(report.current_mrr)),
            ("ARR growth (6m)", format_percent(report.arr_growth)),
        ]
    )
    lines += _revenue_section(report.monthly_revenue)

    lines += ["## Clients", ""]
    clients = [("Total clients", str(report.total_clients)), ("Recurring clients", str(report.recurring_clients))]
    if report.usage_total_users is not None:
        clients.append(("Platform users", f"{report.usage_total_users:,}".replace(",", ".")))
    if report.usage_avg_daily_chats is not None:
        clients.append(("Daily conversations", f"{report.usage_avg_daily_chats:.0f}"))
    lines += _metrics(clients)
    lines += _concentration_section(report.client_concentration)

    lines += ["## Cash & Runway", ""]
    lines += _metrics(
        [
            ("Cash", format_currency(report.cash_balance)),
            ("Burn rate", format_currency(report.burn_rate)),
            ("Net burn", format_currency(report.net_burn)),
            ("Runway", format_runway(report.runway)),
            ("Runway end", report.runway_end_date),
        ]
    )
    lines += _cashflow_section(report.cashflow_monthly)
    lines += _category_section(report.expenses_by_category)

    lines += ["## Operational Efficiency", ""]
    lines += _metrics(
        [
            ("DSO", f"{report.dso:.0f} days"),
            ("Collection rate", format_percent(report.collection_rate)),
            ("Recurring share", format_percent(report.recurring_percentage)),
        ]
    )
    return lines


def _render_vc(report: VCReport) -> list[str]:
    lines = [f"# Investor Update — {report.period_label}", "", f"*Report date: {report.report_date.isoformat()}*", ""]
    if report.custom_text:
        lines += [report.custom_text, ""]

    revenue = [("Revenue in period", format_currency(report.total_revenue_period))]
    if report.revenue_quarter is not None and report.period_type == "year":
        revenue.append(("Revenue current quarter", format_currency(report.revenue_quarter)))
    if report.revenue_ytd is not None:
        revenue.append((f"Revenue FY {report.period_year}", format_currency(report.revenue_ytd)))
    revenue += [("MRR", format_currency(report.mrr_current)), ("ARR", format_currency(report.arr_current))]
    lines += ["## Revenue", ""] + _metrics(revenue)

    traction = [("Clients", str(report.total_clients))]
    if report.monthly_active_users is not None:
        traction.append(("Monthly active users", f"{report.monthly_active_users:,}".replace(",", ".")))
    if report.avg_daily_chats is not None:
        traction.append(("Daily conversations", f"{report.avg_daily_chats:.0f}"))
    lines += ["## Traction", ""] + _metrics(traction)

    lines += ["## Pipeline", ""]
    lines += _metrics(
        [
            ("Pipeline ARR", format_currency(report.pipeline_total_arr)),
            ("Deals", str(report.pipeline_deal_count)),
        ]
    )
    if report.pipeline_client_names:
        lines += [", ".join(report.pipeline_client_names), ""]

    lines += ["## Cash", ""]
    lines += _metrics(
        [
            (f"Cash at {report.cash_balance_date.isoformat()}", format_currency(report.cash_balance)),
            ("Burn rate", format_currency(report.burn_rate)),
            ("Net burn", format_currency(report.net_burn)),
            ("Runway", format_runway(report.runway)),
        ]
    )

    if report.financing:
        lines += ["## Financing", ""]
        lines += _table(
            ["Item", "Amount", "Detail"],
            [(f.label, format_currency(f.amount), f.detail) for f in report.financing],
        )
    return lines


def _render_block(report: BlockReport) -> list[str]:
    lines = [f"# Company Report — {report.report_month}", "", f"*Report date: {report.report_date.isoformat()}*", ""]
    if report.custom_note:
        lines += [report.custom_note, ""]

    lines += ["## Revenue", ""]
    lines += _metrics(
        [
            (f"Revenue FY {report.fiscal_year - 1}", format_currency(report.revenue_prior_fy)),
            (f"Revenue YTD {report.fiscal_year}", format_currency(report.revenue_ytd)),
            (f"Revenue {report.last_complete_quarter_label}", format_currency(report.revenue_last_quarter)),
            (f"Revenue {report.last_complete_month_label}", format_currency(report.revenue_last_month)),
            ("ARR", format_currency(report.current_arr)),
            ("MRR", format_currency(report.current_mrr)),
            ("ARR growth (6m)", format_percent(report.arr_growth)),
            ("Recurring share", format_percent(report.recurring_percentage)),
        ]
    )
    lines += _revenue_section(report.monthly_revenue)

    lines += ["## Customers & Pipeline", ""]
    lines += _metrics(
        [
            ("Total clients", str(report.total_clients)),
            ("Active customers (4m)", str(report.active_customers)),
            ("Active contracts", str(report.active_contracts)),
            ("Pipeline ARR", format_currency(report.pipeline_arr)),
            ("Pipeline deals", str(report.pipeline_count)),
        ]
    )
    lines += _concentration_section(report.client_concentration)

    lines += ["## Cash", ""]
    lines += _metrics(
        [
            (f"Cash at {report.cash_balance_date.isoformat()}", format_currency(report.cash_balance)),
            ("Burn rate", format_currency(report.burn_rate)),
            ("Average monthly inflow", format_currency(report.avg_monthly_inflow)),
            ("Net burn", format_currency(report.net_burn)),
            ("Runway", format_runway(report.runway)),
            ("Runway end", report.runway_end_date),
        ]
    )
    lines += _cashflow_section(report.cashflow_monthly)
    lines += _category_section(report.expenses_by_category)

    lines += ["## Contracts & Forecast", ""]
    lines += _metrics(
        [
            ("Base ARR", format_currency(report.arr_base)),
            ("Expansion", format_currency(report.expansion)),
            ("Churn", format_currency(report.churn)),
            ("ARR at risk", format_currency(report.arr_at_risk)),
            ("Forecast M+12", format_currency(report.forecast_m12)),
            ("Estimated FY total", format_currency(report.total_estimated_fy)),
            ("DSO", f"{report.dso:.0f} days"),
            ("Pending collection", format_currency(report.pending_amount)),
        ]
    )
    lines += _renewal_section("Contracts at Risk", report.contracts_at_risk)

    if report.financing:
        lines += ["## Financing", ""]
        lines += _table(
            ["Item", "Amount", "Detail"],
            [(f.label, format_currency(f.amount), f.detail) for f in report.financing],
        )
    return lines


def render_markdown(report: ReportSnapshot) -> str:
    """Render any report snapshot as Markdown."""
    if isinstance(report, ExecutiveReport):
        lines = _render_executive(report)
    elif isinstance(report, ManagementReport):
        lines = _render_management(report)
    elif isinstance(report, VCReport):
        lines = _render_vc(report)
    elif isinstance(report, BlockReport):
        lines = _render_block(report)
    else:
        raise TypeError(f"Unsupported report type: {type(report).__name__}")

    return "\n".join(lines + _footer(report))
