"""
Report snapshot models — executive, management, investor and block reports.

A snapshot is a plain bag of already-computed figures: the collectors in
:mod:`finboard.analyzers.reports` fill it, the exporters only format it.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from finboard.models.financial import FinancingEntry

QUARTER_MONTHS = {1: "Jan–Mar", 2: "Apr–Jun", 3: "Jul–Sep", 4: "Oct–Dec"}


class ReportKind(str, Enum):
    EXECUTIVE = "executive"
    MANAGEMENT = "management"
    VC = "vc"
    BLOCK = "block"


class ReportPeriod(BaseModel):
    """A full fiscal year, or one quarter of it."""

    type: Literal["year", "quarter"] = "year"
    year: int
    quarter: int | None = Field(default=None, ge=1, le=4)

    @model_validator(mode="after")
    def _quarter_required(self) -> ReportPeriod:
        if self.type == "quarter" and self.quarter is None:
            raise ValueError("quarter periods need a quarter number (1-4)")
        return self

    @property
    def quarter_key(self) -> str | None:
        """``"2025Q1"``-style key matching ``Invoice.invoice_quarter``."""
        return f"{self.year}Q{self.quarter}" if self.type == "quarter" else None

    @property
    def label(self) -> str:
        return period_label(self)


def period_label(period: ReportPeriod) -> str:
    """``"FY 2025"`` or ``"Q1 2025 (Jan–Mar)"``."""
    if period.type == "year":
        return f"FY {period.year}"
    assert period.quarter is not None
    return f"Q{period.quarter} {period.year} ({QUARTER_MONTHS[period.quarter]})"


# ------------------------------------------------------------------ #
#  Rows                                                               #
# ------------------------------------------------------------------ #


class RevenueRow(BaseModel):
    month: str
    recurring: float
    non_recurring: float
    total: float


class MRRTrendRow(BaseModel):
    month: str
    mrr: float
    arr: float


class CashflowRow(BaseModel):
    month: str
    inflow: float
    outflow: float
    net: float


class CategoryRow(BaseModel):
    category: str
    total: float
    percentage: float


class ClientShareRow(BaseModel):
    name: str
    arr: float
    percentage: float


class RenewalRow(BaseModel):
    client: str
    product: str
    arr: float
    end_date: date


# ------------------------------------------------------------------ #
#  Snapshots                                                          #
# ------------------------------------------------------------------ #


class ReportSnapshot(BaseModel):
    """Fields every report shares, plus export helpers."""

    # Runway may be infinite; keep it round-trippable in JSON.
    model_config = ConfigDict(ser_json_inf_nan="constants")

    kind: ReportKind
    report_date: date
    generated_at: datetime = Field(default_factory=datetime.now)

    def to_markdown(self) -> str:
        """Export report as Markdown."""
        from finboard.exporters.markdown import render_markdown

        return render_markdown(self)

    def to_json(self) -> str:
        """Export report as JSON."""
        return self.model_dump_json(indent=2)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()


class ExecutiveReport(ReportSnapshot):
    """Monthly executive report: health, revenue, cash, contracts."""

    kind: ReportKind = ReportKind.EXECUTIVE
    report_month: str
    fiscal_year: int

    # Financial health
    revenue_ytd: float
    arr_actual: float
    arr_growth: float
    cash_balance: float
    runway: float
    net_burn: float
    burn_rate: float

    # Alerts
    contracts_at_risk: list[RenewalRow] = Field(default_factory=list)
    arr_at_risk: float = 0.0
    pending_amount: float = 0.0
    pending_percentage: float = 0.0

    # Operations
    active_customers: int = 0
    recurring_percentage: float = 0.0
    dso: float = 0.0
    collection_rate: float = 0.0

    # Revenue and growth
    monthly_revenue: list[RevenueRow] = Field(default_factory=list)
    mrr_trend: list[MRRTrendRow] = Field(default_factory=list)
    forecast_m1: float = 0.0
    forecast_m3: float = 0.0
    forecast_m6: float = 0.0
    forecast_m12: float = 0.0
    invoiced_ytd: float = 0.0
    forecast_remaining_fy: float = 0.0
    total_estimated_fy: float = 0.0

    # Cash flow
    avg_monthly_inflow: float = 0.0
    cashflow_monthly: list[CashflowRow] = Field(default_factory=list)
    expenses_by_category: list[CategoryRow] = Field(default_factory=list)
    runway_end_date: str = ""

    # Contracts and customers
    arr_base: float = 0.0
    expansion: float = 0.0
    churn: float = 0.0
    pipeline_arr: float = 0.0
    active_contracts: int = 0
    active_clients: int = 0
    client_concentration: list[ClientShareRow] = Field(default_factory=list)
    upcoming_renewals: list[RenewalRow] = Field(default_factory=list)


class ManagementReport(ReportSnapshot):
    """Monthly management report with a free-text note from the author."""

    kind: ReportKind = ReportKind.MANAGEMENT
    report_month: str
    fiscal_year: int
    custom_note: str = ""

    revenue_prior_fy: float
    revenue_ytd: float
    revenue_last_quarter: float
    last_complete_quarter_label: str
    revenue_last_month: float
    last_complete_month_label: str

    current_arr: float
    current_mrr: float
    arr_growth: float

    monthly_revenue: list[RevenueRow] = Field(default_factory=list)

    total_clients: int = 0
    recurring_clients: int = 0
    client_concentration: list[ClientShareRow] = Field(default_factory=list)

    usage_total_users: int | None = None
    usage_avg_daily_chats: float | None = None
    usage_report_date: date | None = None

    cash_balance: float
    burn_rate: float
    net_burn: float
    runway: float
    runway_end_date: str

    cashflow_monthly: list[CashflowRow] = Field(default_factory=list)
    expenses_by_category: list[CategoryRow] = Field(default_factory=list)

    dso: float = 0.0
    collection_rate: float = 0.0
    recurring_percentage: float = 0.0


class VCReport(ReportSnapshot):
    """Investor update for a year or quarter. MRR/ARR are entered by hand."""

    kind: ReportKind = ReportKind.VC
    period_label: str
    period_type: Literal["year", "quarter"]
    period_year: int
    custom_text: str = ""

    total_revenue_period: float
    revenue_quarter: float | None = None
    revenue_ytd: float | None = None
    mrr_current: float
    arr_current: float

    total_clients: int = 0
    monthly_active_users: int | None = None
    avg_daily_chats: float | None = None

    pipeline_total_arr: float = 0.0
    pipeline_deal_count: int = 0
    pipeline_client_names: list[str] = Field(default_factory=list)

    cash_balance: float
    cash_balance_date: date
    burn_rate: float
    net_burn: float
    runway: float

    financing: list[FinancingEntry] = Field(default_factory=list)


class BlockReport(ReportSnapshot):
    """Everything the other reports know, for freely composed block reports."""

    kind: ReportKind = ReportKind.BLOCK
    report_month: str
    fiscal_year: int
    custom_note: str = ""

    revenue_prior_fy: float
    revenue_ytd: float
    revenue_last_quarter: float
    last_complete_quarter_label: str
    revenue_last_month: float
    last_complete_month_label: str

    current_arr: float
    current_mrr: float
    arr_growth: float
    recurring_percentage: float

    monthly_revenue: list[RevenueRow] = Field(default_factory=list)
    mrr_trend: list[MRRTrendRow] = Field(default_factory=list)

    total_clients: int = 0
    recurring_clients: int = 0
    active_customers: int = 0
    client_concentration: list[ClientShareRow] = Field(default_factory=list)

    usage_total_users: int | None = None
    usage_avg_daily_chats: float | None = None
    usage_report_date: date | None = None

    pipeline_arr: float = 0.0
    pipeline_count: int = 0
    pipeline_client_names: list[str] = Field(default_factory=list)

    cash_balance: float
    cash_balance_date: date
    burn_rate: float
    net_burn: float
    avg_monthly_inflow: float
    runway: float
    runway_end_date: str

    cashflow_monthly: list[CashflowRow] = Field(default_factory=list)
    expenses_by_category: list[CategoryRow] = Field(default_factory=list)
    financing: list[FinancingEntry] = Field(default_factory=list)

    dso: float = 0.0
    collection_rate: float = 0.0
    pending_amount: float = 0.0
    pending_percentage: float = 0.0

    arr_base: float = 0.0
    arr_actual: float = 0.0
    expansion: float = 0.0
    churn: float = 0.0
    active_contracts: int = 0
    active_clients: int = 0
    upcoming_renewals: list[RenewalRow] = Field(default_factory=list)

    forecast_m1: float = 0.0
    forecast_m3: float = 0.0
    forecast_m6: float = 0.0
    forecast_m12: float = 0.0
    invoiced_ytd: float = 0.0
    forecast_remaining_fy: float = 0.0
    total_estimated_fy: float = 0.0

    contracts_at_risk: list[RenewalRow] = Field(default_factory=list)
    arr_at_risk: float = 0.0


AnyReport = ExecutiveReport | ManagementReport | VCReport | BlockReport
