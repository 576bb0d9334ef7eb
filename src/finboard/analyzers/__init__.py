"""
finboard analyzers — pure computation engines.

Every engine works on in-memory records and never touches the filesystem;
connectors and the invoice store are the only I/O boundaries.
"""

from finboard.analyzers.cashflow import (
    CashflowMetrics,
    burn_rate,
    cashflow_chart_series,
    cashflow_metrics,
    expenses_by_category,
    net_burn,
    project_cash,
    runway_months,
)
from finboard.analyzers.enrichment import InvalidDateError, enrich, update
from finboard.analyzers.forecast import ForecastData, RevenueForecaster, calculate_forecast
from finboard.analyzers.invoice_ids import compare_invoice_ids, sort_invoice_ids
from finboard.analyzers.reports import (
    ReportOptions,
    collect_block_report,
    collect_executive_report,
    collect_management_report,
    collect_vc_report,
)
from finboard.analyzers.revenue import KPIData, customer_summary, kpi_summary, monthly_revenue_chart

__all__ = [
    # Cash
    "CashflowMetrics",
    "burn_rate",
    "cashflow_chart_series",
    "cashflow_metrics",
    "expenses_by_category",
    "net_burn",
    "project_cash",
    "runway_months",
    # Invoices
    "InvalidDateError",
    "enrich",
    "update",
    "compare_invoice_ids",
    "sort_invoice_ids",
    # Forecast
    "ForecastData",
    "RevenueForecaster",
    "calculate_forecast",
    # Revenue
    "KPIData",
    "customer_summary",
    "kpi_summary",
    "monthly_revenue_chart",
    # Reports
    "ReportOptions",
    "collect_block_report",
    "collect_executive_report",
    "collect_management_report",
    "collect_vc_report",
]
