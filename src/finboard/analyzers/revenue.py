"""
Revenue analytics — invoice-side KPIs and series.

Provides:
- Accrual (issue date) and collection (payment date) filters
- Gap-filled monthly revenue chart, recurring vs non-recurring
- Headline KPIs (revenue split, current MRR/ARR, invoice counts)
- Collection efficiency (DSO, collection rate, pending amount)
- Per-customer aggregation keyed by trimmed customer name
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Sequence, TypeVar

from finboard.analyzers.periods import add_months, month_label, month_range
from finboard.models.financial import Invoice, MRRMetric, RevenueCategory

T = TypeVar("T")


@dataclass
class ChartDataPoint:
    month_key: str  # "2025-03-01"
    month: str  # display label
    recurring: float
    non_recurring: float
    total: float


@dataclass
class MonthlyRevenue:
    month: str  # "2025-03"
    recurring: float
    non_recurring: float
    total: float


@dataclass
class KPIData:
    total_revenue: float
    recurring_revenue: float
    non_recurring_revenue: float
    current_mrr: float
    current_arr: float
    recurring_percentage: float
    total_invoices: int
    paid_invoices: int
    pending_invoices: int
    unique_customers: int


@dataclass
class PendingSummary:
    pending_amount: float
    pending_percentage: float


@dataclass
class CustomerSummary:
    customer_name: str
    invoice_count: int
    total_revenue: float
    recurring_revenue: float
    recurring_percentage: float
    first_invoice: date
    last_invoice: date
    is_active: bool


# ------------------------------------------------------------------ #
#  Filters                                                            #
# ------------------------------------------------------------------ #


def filter_by_date(
    records: Iterable[T],
    date_field: str,
    start: date | None = None,
    end: date | None = None,
) -> list[T]:
    """Keep records whose ``date_field`` lies in [start, end].

    With no bounds everything is returned; otherwise records with a missing
    date are dropped.
    """
    items = list(records)
    if start is None and end is None:
        return items

    kept: list[T] = []
    for item in items:
        value = getattr(item, date_field, None)
        if value is None:
            continue
        if start is not None and value < start:
            continue
        if end is not None and value > end:
            continue
        kept.append(item)
    return kept


def filter_invoices_by_accrual(invoices: Iterable[Invoice], start: date | None = None, end: date | None = None) -> list[Invoice]:
    """Devengo view — by issue date."""
    return filter_by_date(invoices, "invoice_date", start, end)


def filter_invoices_by_collection(invoices: Iterable[Invoice], start: date | None = None, end: date | None = None) -> list[Invoice]:
    """Cobro view — by payment date; unpaid invoices never appear."""
    paid = [inv for inv in invoices if inv.payment_date is not None]
    return filter_by_date(paid, "payment_date", start, end)


# ------------------------------------------------------------------ #
#  Series                                                             #
# ------------------------------------------------------------------ #


def _split_by_month(invoices: Iterable[Invoice]) -> dict[date, dict[str, float]]:
    by_month: dict[date, dict[str, float]] = defaultdict(lambda: {"recurring": 0.0, "non_recurring": 0.0})
    for inv in invoices:
        bucket = "recurring" if inv.revenue_category == RevenueCategory.RECURRING else "non_recurring"
        by_month[inv.invoice_month_start][bucket] += inv.amount_net
    return by_month


def monthly_revenue_chart(invoices: Sequence[Invoice]) -> list[ChartDataPoint]:
    """Monthly revenue from the first to the last invoiced month, empty months as 0.

    Labels carry a 2-digit year only when the range spans more than one year.
    """
    if not invoices:
        return []

    by_month = _split_by_month(invoices)
    months = month_range(min(by_month), max(by_month))
    multi_year = len({m.year for m in months}) > 1

    points: list[ChartDataPoint] = []
    for m in months:
        data = by_month.get(m, {"recurring": 0.0, "non_recurring": 0.0})
        key = m.isoformat()
        points.append(
            ChartDataPoint(
                month_key=key,
                month=month_label(key, with_year=multi_year),
                recurring=data["recurring"],
                non_recurring=data["non_recurring"],
                total=data["recurring"] + data["non_recurring"],
            )
        )
    return points


def monthly_revenue(invoices: Iterable[Invoice], last_n: int = 6) -> list[MonthlyRevenue]:
    """Recurring / non-recurring revenue for the last ``last_n`` invoiced months."""
    by_month = _split_by_month(invoices)
    rows = [
        MonthlyRevenue(
            month=m.isoformat()[:7],
            recurring=data["recurring"],
            non_recurring=data["non_recurring"],
            total=data["recurring"] + data["non_recurring"],
        )
        for m, data in sorted(by_month.items())
    ]
    return rows[-last_n:] if last_n > 0 else rows


def mrr_trend(mrr_series: Sequence[MRRMetric], last_n: int = 6) -> list[dict[str, Any]]:
    """The last ``last_n`` points of the precomputed MRR series."""
    tail = list(mrr_series)[-last_n:] if last_n > 0 else list(mrr_series)
    return [{"month": p.month, "mrr": p.mrr_approx, "arr": p.arr_approx} for p in tail]


# ------------------------------------------------------------------ #
#  KPIs                                                               #
# ------------------------------------------------------------------ #


def unique_customers(invoices: Iterable[Invoice]) -> list[str]:
    """Sorted distinct customer names (trimmed)."""
    return sorted({inv.customer_name.strip() for inv in invoices})


def kpi_summary(invoices: Sequence[Invoice], mrr_series: Sequence[MRRMetric]) -> KPIData:
    """Headline revenue KPIs; current MRR/ARR come from the last series point."""
    total = sum((inv.amount_net for inv in invoices), 0.0)
    recurring = sum((inv.amount_net for inv in invoices if inv.revenue_category == RevenueCategory.RECURRING), 0.0)
    non_recurring = sum(
        (inv.amount_net for inv in invoices if inv.revenue_category == RevenueCategory.NON_RECURRING), 0.0
    )
    latest = mrr_series[-1] if mrr_series else None
    paid = sum(1 for inv in invoices if inv.is_paid)

    return KPIData(
        total_revenue=total,
        recurring_revenue=recurring,
        non_recurring_revenue=non_recurring,
        current_mrr=latest.mrr_approx if latest else 0.0,
        current_arr=latest.arr_approx if latest else 0.0,
        recurring_percentage=(recurring / total) * 100 if total else 0.0,
        total_invoices=len(invoices),
        paid_invoices=paid,
        pending_invoices=len(invoices) - paid,
        unique_customers=len(unique_customers(invoices)),
    )


def revenue_total(invoices: Iterable[Invoice]) -> float:
    return sum((inv.amount_net for inv in invoices), 0.0)


def recurring_percentage(invoices: Sequence[Invoice]) -> float:
    """Share of net revenue that is recurring (0 when there is no revenue)."""
    total = revenue_total(invoices)
    recurring = revenue_total(inv for inv in invoices if inv.revenue_category == RevenueCategory.RECURRING)
    return (recurring / total) * 100 if total else 0.0


def days_sales_outstanding(invoices: Iterable[Invoice]) -> float:
    """Average days-to-pay over paid invoices; 0 when none are paid."""
    lags = [inv.days_to_pay for inv in invoices if inv.is_paid and inv.days_to_pay is not None]
    return sum(lags) / len(lags) if lags else 0.0


def collection_rate(invoices: Sequence[Invoice]) -> float:
    """Percentage of invoices (by count) that are paid."""
    if not invoices:
        return 0.0
    return sum(1 for inv in invoices if inv.is_paid) / len(invoices) * 100


def pending_summary(invoices: Sequence[Invoice]) -> PendingSummary:
    """Unpaid net amount and its share of all net revenue in ``invoices``."""
    total = revenue_total(invoices)
    pending = revenue_total(inv for inv in invoices if not inv.is_paid)
    return PendingSummary(pending_amount=pending, pending_percentage=(pending / total) * 100 if total > 0 else 0.0)


def active_customer_count(invoices: Iterable[Invoice], today: date, months: int = 4) -> int:
    """Distinct customers invoiced within the last ``months`` months."""
    cutoff = add_months(today, -months)
    return len({inv.customer_name.strip() for inv in invoices if inv.invoice_date >= cutoff})


def customer_summary(
    invoices: Iterable[Invoice],
    today: date | None = None,
    active_months: int = 6,
) -> list[CustomerSummary]:
    """Aggregate invoices per customer, keyed by the trimmed name.

    A customer is active when invoiced within the last ``active_months``.
    """
    cutoff = add_months(today or date.today(), -active_months)
    grouped: dict[str, list[Invoice]] = defaultdict(list)
    for inv in invoices:
        grouped[inv.customer_name.strip()].append(inv)

    summaries: list[CustomerSummary] = []
    for name, rows in grouped.items():
        total = revenue_total(rows)
        recurring = revenue_total(r for r in rows if r.is_recurring or r.revenue_category == RevenueCategory.RECURRING)
        dates = sorted(r.invoice_date for r in rows)
        summaries.append(
            CustomerSummary(
                customer_name=name,
                invoice_count=len(rows),
                total_revenue=total,
                recurring_revenue=recurring,
                recurring_percentage=(recurring / total) * 100 if total > 0 else 0.0,
                first_invoice=dates[0],
                last_invoice=dates[-1],
                is_active=dates[-1] >= cutoff,
            )
        )
    summaries.sort(key=lambda s: s.total_revenue, reverse=True)
    return summaries
