"""
Cash Flow Metrics — burn rate, net burn and runway from the bank ledger.

Uses expense and inflow rows to produce:
1. **Monthly buckets** — ledger totals grouped by ``YYYY-MM``.
2. **Burn rate** — trailing-window average of operating expenses.
3. **Average inflow** — trailing-window average of operating inflows.
4. **Net burn and runway** — months of cash left at the current net burn.
5. **Category breakdown** — share of operating spend per expense category.
6. **Chart series and projection** — inflow vs outflow per month, cash curve.

Financing movements (loans, grants, equity) are never operating cash and are
excluded from every figure here. Amounts keep their ledger sign
(:class:`SignedAmount`) until the final, display-oriented fields.

No I/O, no shared state — pure arithmetic over in-memory rows.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Sequence

from finboard.analyzers.periods import add_months, month_key, month_label
from finboard.models.amounts import Magnitude, SignedAmount
from finboard.models.financial import BankInflow, CashBalance, CashBalancePoint, Expense
from finboard.normalizer import fold_labels

logger = logging.getLogger("finboard.analyzers.cashflow")

DEFAULT_WINDOW_MONTHS = 6

# Inflow categories that are financing, not operating revenue.
DEFAULT_FINANCING_CATEGORIES: tuple[str, ...] = (
    "ENISA",
    "Subvención",
    "TaxLease",
    "Reembolso",
    "Prestamo",
    "Préstamo",
    "SeedRound",
    "Financing",
    "Financiación",
)

INDEFINITE_RUNWAY_LABEL = "Indefinido"
INFINITE_RUNWAY_SENTINEL = -1


@dataclass(frozen=True)
class MonthlyTotal:
    """Ledger total for one month."""

    month: str  # "2025-03"
    total: SignedAmount


@dataclass
class CategoryBreakdown:
    """Operating spend for one expense category."""

    category: str
    total: float  # magnitude
    percentage: float


@dataclass
class CashflowChartPoint:
    month: str
    month_label: str
    inflow: float
    outflow: float
    net: float


@dataclass
class CashProjectionPoint:
    month: str
    month_label: str
    projected: float
    is_historical: bool


@dataclass
class CashflowMetrics:
    """Cash health snapshot — the single entry point for burn and runway."""

    current_cash: float
    last_updated: str
    burn_rate: float  # magnitude of the average monthly operating spend
    burn_rate_period: int
    avg_monthly_inflow: float
    net_burn: float  # positive = cash depleting
    runway_months: float  # -1 = infinite
    runway_end_date: str
    expenses_by_category: list[CategoryBreakdown] = field(default_factory=list)

    @property
    def runway_is_infinite(self) -> bool:
        return self.runway_months == INFINITE_RUNWAY_SENTINEL

    @property
    def runway(self) -> float:
        """Runway with ``math.inf`` in place of the sentinel."""
        return math.inf if self.runway_is_infinite else self.runway_months


# ------------------------------------------------------------------ #
#  Bucketing                                                          #
# ------------------------------------------------------------------ #


def monthly_buckets(records: Iterable[Any], date_field: str, amount_field: str = "amount") -> list[MonthlyTotal]:
    """Group records by the ``YYYY-MM`` of ``date_field`` and sum their amounts.

    Output is sorted ascending by month.
    """
    by_month: dict[str, SignedAmount] = defaultdict(SignedAmount)
    for record in records:
        raw = getattr(record, date_field)
        if raw is None:
            continue
        key = month_key(raw) if isinstance(raw, date) else str(raw)[:7]
        by_month[key] = by_month[key] + SignedAmount(float(getattr(record, amount_field)))

    return [MonthlyTotal(month=m, total=by_month[m]) for m in sorted(by_month)]


def _operating_expenses(expenses: Iterable[Expense]) -> list[Expense]:
    return [e for e in expenses if not e.is_financing]


def _operating_inflows(inflows: Iterable[BankInflow], financing_categories: Sequence[str]) -> list[BankInflow]:
    excluded = fold_labels(tuple(financing_categories))
    return [i for i in inflows if i.category_key not in excluded]


def _trailing_average(buckets: list[MonthlyTotal], window_months: int) -> SignedAmount:
    """Average of the last ``window_months`` buckets (fewer if history is shorter, 0 = all)."""
    recent = buckets[-window_months:] if window_months > 0 else buckets
    if not recent:
        return SignedAmount()
    return SignedAmount.total([b.total for b in recent]) / len(recent)


def monthly_expenses(expenses: Iterable[Expense]) -> list[MonthlyTotal]:
    """Monthly operating expense totals (financing excluded), raw sign."""
    return monthly_buckets(_operating_expenses(expenses), "expense_date")


def monthly_bank_inflows(
    inflows: Iterable[BankInflow],
    financing_categories: Sequence[str] = DEFAULT_FINANCING_CATEGORIES,
) -> list[MonthlyTotal]:
    """Monthly operating inflow totals (financing excluded)."""
    return monthly_buckets(_operating_inflows(inflows, financing_categories), "inflow_date")


# ------------------------------------------------------------------ #
#  Burn and runway                                                    #
# ------------------------------------------------------------------ #


def burn_rate(expenses: Iterable[Expense], window_months: int = DEFAULT_WINDOW_MONTHS) -> SignedAmount:
    """Average monthly operating expense over the trailing window.

    Expenses are negative in the ledger, so the result usually is too.
    Divides by the number of months actually present, never by the window.
    """
    return _trailing_average(monthly_expenses(expenses), window_months)


def avg_monthly_inflow(
    inflows: Iterable[BankInflow],
    window_months: int = DEFAULT_WINDOW_MONTHS,
    financing_categories: Sequence[str] = DEFAULT_FINANCING_CATEGORIES,
) -> Magnitude:
    """Average monthly operating inflow over the trailing window."""
    average = _trailing_average(monthly_bank_inflows(inflows, financing_categories), window_months)
    return Magnitude(max(0.0, average.value))


def net_burn(burn: SignedAmount, avg_inflow: Magnitude) -> SignedAmount:
    """``|burn| − inflow``. Positive means cash is depleting."""
    return burn.magnitude() - avg_inflow


def runway_months(current_cash: float, net: SignedAmount) -> float:
    """Months until cash reaches zero; ``math.inf`` whenever net burn ≤ 0."""
    if not net.is_positive:
        return math.inf
    return current_cash / net.value


def runway_end_date(months: float, today: date | None = None) -> str:
    """ISO date ``floor(months)`` months from today, or ``"Indefinido"``."""
    if not math.isfinite(months):
        return INDEFINITE_RUNWAY_LABEL
    today = today or date.today()
    return add_months(today, math.floor(months)).isoformat()


# ------------------------------------------------------------------ #
#  Breakdown and charts                                               #
# ------------------------------------------------------------------ #


def expenses_by_category(
    expenses: Iterable[Expense],
    months_window: int = 0,
    today: date | None = None,
) -> list[CategoryBreakdown]:
    """Operating spend per category, largest first.

    Financing and uncategorised rows are excluded. ``months_window`` keeps rows
    dated on or after ``today`` minus that many months; 0 keeps all history.
    """
    rows = [e for e in _operating_expenses(expenses) if e.category is not None]
    if months_window > 0:
        cutoff = add_months(today or date.today(), -months_window)
        rows = [e for e in rows if e.expense_date >= cutoff]

    by_category: dict[str, SignedAmount] = defaultdict(SignedAmount)
    for e in rows:
        assert e.category is not None
        by_category[e.category.value] = by_category[e.category.value] + SignedAmount(e.amount)

    grand_total = SignedAmount.total(list(by_category.values()))
    breakdown = [
        CategoryBreakdown(
            category=category,
            total=total.magnitude().value,
            percentage=(total.value / grand_total.value) * 100 if grand_total.value else 0.0,
        )
        for category, total in by_category.items()
    ]
    breakdown.sort(key=lambda c: c.total, reverse=True)
    return breakdown


def cashflow_chart_series(
    expenses: Iterable[Expense],
    inflows: Iterable[BankInflow],
    months_window: int = 12,
    financing_categories: Sequence[str] = DEFAULT_FINANCING_CATEGORIES,
) -> list[CashflowChartPoint]:
    """Inflow vs outflow for the last ``months_window`` months with any activity.

    A month present in only one of the two series still appears, with 0 on
    the other side.
    """
    expense_map = {m.month: m.total for m in monthly_expenses(expenses)}
    inflow_map = {m.month: m.total for m in monthly_bank_inflows(inflows, financing_categories)}

    months = sorted(set(expense_map) | set(inflow_map))
    if months_window > 0:
        months = months[-months_window:]

    points: list[CashflowChartPoint] = []
    for m in months:
        outflow = expense_map.get(m, SignedAmount()).magnitude()
        inflow = inflow_map.get(m, SignedAmount()).value
        points.append(
            CashflowChartPoint(
                month=m,
                month_label=month_label(m),
                inflow=inflow,
                outflow=outflow.value,
                net=inflow - outflow.value,
            )
        )
    return points


def cash_history(history: Sequence[CashBalancePoint], months_to_show: int = 0) -> list[CashProjectionPoint]:
    """The most recent ``months_to_show`` balances (0 = all), oldest first."""
    recent = sorted(history, key=lambda h: h.month, reverse=True)
    if months_to_show > 0:
        recent = recent[:months_to_show]
    return [
        CashProjectionPoint(month=h.month, month_label=month_label(h.month), projected=h.balance, is_historical=True)
        for h in sorted(recent, key=lambda h: h.month)
    ]


def project_cash(
    current_cash: float,
    net: SignedAmount,
    projection_months: int = 12,
    history: Sequence[CashBalancePoint] = (),
    historical_months: int = 0,
    today: date | None = None,
) -> list[CashProjectionPoint]:
    """Historical balances followed by a straight-line projection.

    Each projected month subtracts the net burn and floors at zero; with a
    negative net burn the curve rises instead.
    """
    today = today or date.today()
    points = cash_history(history, historical_months)

    projected = current_cash
    for i in range(1, projection_months + 1):
        key = month_key(add_months(today, i))
        projected = max(0.0, projected - net.value)
        points.append(CashProjectionPoint(month=key, month_label=month_label(key), projected=projected, is_historical=False))
    return points


# ------------------------------------------------------------------ #
#  Aggregate                                                          #
# ------------------------------------------------------------------ #


def cashflow_metrics(
    expenses: Sequence[Expense],
    inflows: Sequence[BankInflow],
    cash_balance: CashBalance,
    window_months: int = DEFAULT_WINDOW_MONTHS,
    today: date | None = None,
    financing_categories: Sequence[str] = DEFAULT_FINANCING_CATEGORIES,
) -> CashflowMetrics:
    """Compose burn, inflow, net burn, runway and category breakdown."""
    burn = burn_rate(expenses, window_months)
    inflow = avg_monthly_inflow(inflows, window_months, financing_categories)
    net = net_burn(burn, inflow)
    runway = runway_months(cash_balance.current_balance, net)

    logger.debug(
        "Cash metrics: burn=%.2f inflow=%.2f net=%.2f runway=%s",
        burn.value,
        inflow.value,
        net.value,
        "inf" if math.isinf(runway) else f"{runway:.1f}",
    )

    return CashflowMetrics(
        current_cash=cash_balance.current_balance,
        last_updated=cash_balance.last_updated.isoformat(),
        burn_rate=burn.magnitude().value,
        burn_rate_period=window_months,
        avg_monthly_inflow=inflow.value,
        net_burn=net.value,
        runway_months=runway if math.isfinite(runway) else INFINITE_RUNWAY_SENTINEL,
        runway_end_date=runway_end_date(runway, today),
        expenses_by_category=expenses_by_category(expenses, 0, today),
    )
