"""
Report Data Collectors — assemble report snapshots from a dataset.

Each collector is a pure function of a :class:`FinancialDataset`, a reference
date and options; it recomputes every figure through the same engines the
rest of the package uses, so a report always agrees with the CLI views.

Collectors:
1. **Executive** — financial health, alerts, revenue, cash, contracts.
2. **Management** — revenue performance, recurring metrics, usage, cash.
3. **VC** — investor update for a fiscal year or quarter.
4. **Block** — the union of the above for freely composed reports.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Sequence

from finboard.analyzers import contracts as contract_metrics
from finboard.analyzers import revenue
from finboard.analyzers.cashflow import (
    DEFAULT_FINANCING_CATEGORIES,
    CashflowMetrics,
    cashflow_chart_series,
    cashflow_metrics,
    expenses_by_category,
)
from finboard.analyzers.forecast import ForecastData, calculate_forecast
from finboard.analyzers.periods import long_month_label, previous_complete_month, previous_complete_quarter
from finboard.models.financial import FinancialDataset, Invoice
from finboard.models.report import (
    BlockReport,
    CashflowRow,
    CategoryRow,
    ClientShareRow,
    ExecutiveReport,
    ManagementReport,
    MRRTrendRow,
    RenewalRow,
    ReportPeriod,
    RevenueRow,
    VCReport,
    period_label,
)

logger = logging.getLogger("finboard.analyzers.reports")


@dataclass
class ReportOptions:
    """Windows and lookup tables shared by all collectors."""

    burn_window_months: int = 6
    chart_months: int = 6
    executive_category_months: int = 6
    management_category_months: int = 12
    active_customer_months: int = 4
    risk_horizon_days: int = 90
    concentration_top_n: int = 5
    financing_categories: Sequence[str] = DEFAULT_FINANCING_CATEGORIES
    client_aliases: Mapping[str, str] = field(default_factory=dict)
    excluded_clients: Sequence[str] = ()


# ------------------------------------------------------------------ #
#  Shared blocks                                                      #
# ------------------------------------------------------------------ #


def _sum_net(invoices: Sequence[Invoice]) -> float:
    return sum((inv.amount_net for inv in invoices), 0.0)


def _ytd(invoices: Sequence[Invoice], year: int) -> list[Invoice]:
    return [inv for inv in invoices if inv.invoice_year == year]


def _cash(dataset: FinancialDataset, today: date, options: ReportOptions) -> CashflowMetrics:
    return cashflow_metrics(
        dataset.expenses,
        dataset.inflows,
        dataset.cash_balance,
        window_months=options.burn_window_months,
        today=today,
        financing_categories=options.financing_categories,
    )


def _forecast(dataset: FinancialDataset, today: date, options: ReportOptions) -> ForecastData:
    return calculate_forecast(
        dataset.contracts,
        dataset.invoices,
        today,
        client_aliases=options.client_aliases,
        excluded_clients=options.excluded_clients,
    )


def _cashflow_rows(dataset: FinancialDataset, options: ReportOptions) -> list[CashflowRow]:
    series = cashflow_chart_series(
        dataset.expenses, dataset.inflows, options.chart_months, options.financing_categories
    )
    return [CashflowRow(month=p.month, inflow=p.inflow, outflow=p.outflow, net=p.net) for p in series]


def _category_rows(dataset: FinancialDataset, months: int, today: date) -> list[CategoryRow]:
    return [
        CategoryRow(category=c.category, total=c.total, percentage=c.percentage)
        for c in expenses_by_category(dataset.expenses, months, today)
    ]


def _revenue_rows(invoices: Sequence[Invoice]) -> list[RevenueRow]:
    return [
        RevenueRow(month=r.month, recurring=r.recurring, non_recurring=r.non_recurring, total=r.total)
        for r in revenue.monthly_revenue(invoices, last_n=6)
    ]


def _trend_rows(dataset: FinancialDataset) -> list[MRRTrendRow]:
    return [MRRTrendRow(**point) for point in revenue.mrr_trend(dataset.mrr_series, last_n=6)]


def _concentration_rows(dataset: FinancialDataset, options: ReportOptions) -> list[ClientShareRow]:
    return [
        ClientShareRow(name=s.name, arr=s.arr, percentage=s.percentage)
        for s in contract_metrics.client_concentration(dataset.contracts, options.concentration_top_n)
    ]


def _risk_rows(dataset: FinancialDataset, today: date, options: ReportOptions) -> list[RenewalRow]:
    return [
        RenewalRow(client=r.client, product=r.product, arr=r.arr, end_date=r.end_date)
        for r in contract_metrics.contracts_at_risk(dataset.contracts, today, options.risk_horizon_days)
    ]


def _runway(metrics: CashflowMetrics) -> float:
    return math.inf if metrics.runway_is_infinite else metrics.runway_months


def _revenue_performance(invoices: Sequence[Invoice], today: date) -> dict[str, object]:
    """Prior FY, YTD, last complete quarter and last complete month."""
    quarter_label = previous_complete_quarter(today)
    last_year, last_month = previous_complete_month(today)
    return {
        "revenue_prior_fy": _sum_net(_ytd(invoices, today.year - 1)),
        "revenue_ytd": _sum_net(_ytd(invoices, today.year)),
        "revenue_last_quarter": _sum_net([inv for inv in invoices if inv.invoice_quarter == quarter_label]),
        "last_complete_quarter_label": quarter_label,
        "revenue_last_month": _sum_net(
            [inv for inv in invoices if inv.invoice_year == last_year and inv.invoice_month == last_month]
        ),
        "last_complete_month_label": long_month_label(last_year, last_month),
    }


def _usage(dataset: FinancialDataset) -> dict[str, object]:
    latest = dataset.usage.latest if dataset.usage else None
    return {
        "usage_total_users": latest.total_users if latest else None,
        "usage_avg_daily_chats": latest.avg_daily_conversations if latest else None,
        "usage_report_date": latest.date if latest else None,
    }


# ------------------------------------------------------------------ #
#  Collectors                                                         #
# ------------------------------------------------------------------ #


def collect_executive_report(
    dataset: FinancialDataset,
    today: date | None = None,
    options: ReportOptions | None = None,
) -> ExecutiveReport:
    """Build the executive report as of ``today``."""
    today = today or date.today()
    options = options or ReportOptions()
    invoices = dataset.invoices
    ytd = _ytd(invoices, today.year)

    arr = contract_metrics.arr_actual(dataset.contracts)
    cash = _cash(dataset, today, options)
    forecast = _forecast(dataset, today, options)
    at_risk = _risk_rows(dataset, today, options)
    pending = revenue.pending_summary(ytd)

    logger.info("Collected executive report for %s", today.isoformat())
    return ExecutiveReport(
        report_date=today,
        report_month=long_month_label(today.year, today.month),
        fiscal_year=today.year,
        revenue_ytd=_sum_net(ytd),
        arr_actual=arr,
        arr_growth=contract_metrics.arr_growth(arr, dataset.mrr_series),
        cash_balance=dataset.cash_balance.current_balance,
        runway=_runway(cash),
        net_burn=cash.net_burn,
        burn_rate=cash.burn_rate,
        contracts_at_risk=at_risk,
        arr_at_risk=sum((r.arr for r in at_risk), 0.0),
        pending_amount=pending.pending_amount,
        pending_percentage=pending.pending_percentage,
        active_customers=revenue.active_customer_count(invoices, today, options.active_customer_months),
        recurring_percentage=revenue.recurring_percentage(ytd),
        dso=revenue.days_sales_outstanding(invoices),
        collection_rate=revenue.collection_rate(ytd),
        monthly_revenue=_revenue_rows(invoices),
        mrr_trend=_trend_rows(dataset),
        forecast_m1=forecast.forecast_m1,
        forecast_m3=forecast.forecast_m3,
        forecast_m6=forecast.forecast_m6,
        forecast_m12=forecast.forecast_m12,
        invoiced_ytd=forecast.invoiced_ytd,
        forecast_remaining_fy=forecast.forecast_remaining_fy,
        total_estimated_fy=forecast.total_estimated_fy,
        avg_monthly_inflow=cash.avg_monthly_inflow,
        cashflow_monthly=_cashflow_rows(dataset, options),
        expenses_by_category=_category_rows(dataset, options.executive_category_months, today),
        runway_end_date=cash.runway_end_date,
        arr_base=contract_metrics.arr_base(dataset.contracts),
        expansion=contract_metrics.expansion(dataset.contracts),
        churn=contract_metrics.churn(dataset.contract_events),
        pipeline_arr=contract_metrics.pipeline_summary(dataset.contracts).total_arr,
        active_contracts=len(contract_metrics.active_contracts(dataset.contracts)),
        active_clients=contract_metrics.active_client_count(dataset.contracts),
        client_concentration=_concentration_rows(dataset, options),
        upcoming_renewals=at_risk,
    )


def collect_management_report(
    dataset: FinancialDataset,
    custom_note: str = "",
    today: date | None = None,
    options: ReportOptions | None = None,
) -> ManagementReport:
    """Build the management report as of ``today``."""
    today = today or date.today()
    options = options or ReportOptions()
    invoices = dataset.invoices
    ytd = _ytd(invoices, today.year)

    arr = contract_metrics.arr_actual(dataset.contracts)
    cash = _cash(dataset, today, options)

    logger.info("Collected management report for %s", today.isoformat())
    return ManagementReport(
        report_date=today,
        report_month=long_month_label(today.year, today.month),
        fiscal_year=today.year,
        custom_note=custom_note,
        **_revenue_performance(invoices, today),  # type: ignore[arg-type]
        current_arr=arr,
        current_mrr=dataset.mrr_series[-1].mrr_approx if dataset.mrr_series else 0.0,
        arr_growth=contract_metrics.arr_growth(arr, dataset.mrr_series),
        monthly_revenue=_revenue_rows(invoices),
        total_clients=len(revenue.unique_customers(invoices)),
        recurring_clients=len(contract_metrics.active_contracts(dataset.contracts)),
        client_concentration=_concentration_rows(dataset, options),
        **_usage(dataset),  # type: ignore[arg-type]
        cash_balance=dataset.cash_balance.current_balance,
        burn_rate=cash.burn_rate,
        net_burn=cash.net_burn,
        runway=_runway(cash),
        runway_end_date=cash.runway_end_date,
        cashflow_monthly=_cashflow_rows(dataset, options),
        expenses_by_category=_category_rows(dataset, options.management_category_months, today),
        dso=revenue.days_sales_outstanding(invoices),
        collection_rate=revenue.collection_rate(ytd),
        recurring_percentage=revenue.recurring_percentage(ytd),
    )


def collect_vc_report(
    dataset: FinancialDataset,
    period: ReportPeriod,
    custom_text: str = "",
    manual_mrr: float = 0.0,
    manual_arr: float = 0.0,
    today: date | None = None,
    options: ReportOptions | None = None,
) -> VCReport:
    """Build the investor update for ``period``.

    MRR and ARR are taken as given (``manual_mrr`` / ``manual_arr``); every
    other figure is computed.
    """
    today = today or date.today()
    options = options or ReportOptions()
    invoices = dataset.invoices

    if period.type == "year":
        period_invoices = _ytd(invoices, period.year)
    else:
        period_invoices = [inv for inv in invoices if inv.invoice_quarter == period.quarter_key]
    total_period = _sum_net(period_invoices)

    if period.type == "quarter":
        revenue_quarter = total_period
    else:
        current_quarter = (today.month - 1) // 3 + 1
        key = f"{period.year}Q{current_quarter}"
        revenue_quarter = _sum_net([inv for inv in invoices if inv.invoice_quarter == key])

    cash = _cash(dataset, today, options)
    pipeline = contract_metrics.pipeline_summary(dataset.contracts)
    latest_usage = dataset.usage.latest if dataset.usage else None

    logger.info("Collected VC report for %s", period_label(period))
    return VCReport(
        report_date=today,
        period_label=period_label(period),
        period_type=period.type,
        period_year=period.year,
        custom_text=custom_text,
        total_revenue_period=total_period,
        revenue_quarter=revenue_quarter,
        revenue_ytd=_sum_net(_ytd(invoices, period.year)),
        mrr_current=manual_mrr,
        arr_current=manual_arr,
        total_clients=len(revenue.unique_customers(invoices)),
        monthly_active_users=latest_usage.active_users if latest_usage else None,
        avg_daily_chats=latest_usage.avg_daily_conversations if latest_usage else None,
        pipeline_total_arr=pipeline.total_arr,
        pipeline_deal_count=pipeline.deal_count,
        pipeline_client_names=pipeline.client_names,
        cash_balance=dataset.cash_balance.current_balance,
        cash_balance_date=dataset.cash_balance.last_updated,
        burn_rate=cash.burn_rate,
        net_burn=cash.net_burn,
        runway=_runway(cash),
        financing=list(dataset.financing),
    )


def collect_block_report(
    dataset: FinancialDataset,
    custom_note: str = "",
    today: date | None = None,
    options: ReportOptions | None = None,
) -> BlockReport:
    """Build the block report: every figure the other collectors produce."""
    today = today or date.today()
    options = options or ReportOptions()
    invoices = dataset.invoices
    ytd = _ytd(invoices, today.year)

    arr = contract_metrics.arr_actual(dataset.contracts)
    cash = _cash(dataset, today, options)
    forecast = _forecast(dataset, today, options)
    pipeline = contract_metrics.pipeline_summary(dataset.contracts)
    at_risk = _risk_rows(dataset, today, options)
    pending = revenue.pending_summary(ytd)

    logger.info("Collected block report for %s", today.isoformat())
    return BlockReport(
        report_date=today,
        report_month=long_month_label(today.year, today.month),
        fiscal_year=today.year,
        custom_note=custom_note,
        **_revenue_performance(invoices, today),  # type: ignore[arg-type]
        current_arr=arr,
        current_mrr=dataset.mrr_series[-1].mrr_approx if dataset.mrr_series else 0.0,
        arr_growth=contract_metrics.arr_growth(arr, dataset.mrr_series),
        recurring_percentage=revenue.recurring_percentage(ytd),
        monthly_revenue=_revenue_rows(invoices),
        mrr_trend=_trend_rows(dataset),
        total_clients=len(revenue.unique_customers(invoices)),
        recurring_clients=len(contract_metrics.active_contracts(dataset.contracts)),
        active_customers=revenue.active_customer_count(invoices, today, options.active_customer_months),
        client_concentration=_concentration_rows(dataset, options),
        **_usage(dataset),  # type: ignore[arg-type]
        pipeline_arr=pipeline.total_arr,
        pipeline_count=pipeline.deal_count,
        pipeline_client_names=pipeline.client_names,
        cash_balance=dataset.cash_balance.current_balance,
        cash_balance_date=dataset.cash_balance.last_updated,
        burn_rate=cash.burn_rate,
        net_burn=cash.net_burn,
        avg_monthly_inflow=cash.avg_monthly_inflow,
        runway=_runway(cash),
        runway_end_date=cash.runway_end_date,
        cashflow_monthly=_cashflow_rows(dataset, options),
        expenses_by_category=_category_rows(dataset, options.management_category_months, today),
        financing=list(dataset.financing),
        dso=revenue.days_sales_outstanding(invoices),
        collection_rate=revenue.collection_rate(ytd),
        pending_amount=pending.pending_amount,
        pending_percentage=pending.pending_percentage,
        arr_base=contract_metrics.arr_base(dataset.contracts),
        arr_actual=arr,
        expansion=contract_metrics.expansion(dataset.contracts),
        churn=contract_metrics.churn(dataset.contract_events),
        active_contracts=len(contract_metrics.active_contracts(dataset.contracts)),
        active_clients=contract_metrics.active_client_count(dataset.contracts),
        upcoming_renewals=at_risk,
        forecast_m1=forecast.forecast_m1,
        forecast_m3=forecast.forecast_m3,
        forecast_m6=forecast.forecast_m6,
        forecast_m12=forecast.forecast_m12,
        invoiced_ytd=forecast.invoiced_ytd,
        forecast_remaining_fy=forecast.forecast_remaining_fy,
        total_estimated_fy=forecast.total_estimated_fy,
        contracts_at_risk=at_risk,
        arr_at_risk=sum((r.arr for r in at_risk), 0.0),
    )
