"""
Contract analytics — ARR, expansion, churn, pipeline and concentration.

ARR figures use each contract's current annual price; "base" ARR uses the
price signed at contract start, so ``expansion = actual - base``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Sequence

from finboard.models.financial import Contract, ContractEvent, ContractEventType, ContractStatus, MRRMetric


@dataclass
class ContractAtRisk:
    client: str
    product: str
    arr: float
    end_date: date


@dataclass
class ClientShare:
    name: str
    arr: float
    percentage: float


@dataclass
class PipelineSummary:
    total_arr: float
    deal_count: int
    client_names: list[str]


@dataclass
class ContractTotals:
    set_up: float
    base_arr: float
    current_arr: float
    current_mrr: float
    active_count: int


def active_contracts(contracts: Iterable[Contract]) -> list[Contract]:
    return [c for c in contracts if c.status == ContractStatus.ACTIVE]


def pipeline_contracts(contracts: Iterable[Contract]) -> list[Contract]:
    """Contracts still in negotiation."""
    return [c for c in contracts if c.status == ContractStatus.NEGOTIATION]


def arr_actual(contracts: Iterable[Contract]) -> float:
    """Current ARR of the active book."""
    return sum((c.current_price_annual for c in active_contracts(contracts)), 0.0)


def arr_base(contracts: Iterable[Contract]) -> float:
    return sum((c.base_arr_eur for c in active_contracts(contracts)), 0.0)


def expansion(contracts: Sequence[Contract]) -> float:
    """ARR gained over the signed base (price updates, upsell)."""
    return arr_actual(contracts) - arr_base(contracts)


def churn(events: Iterable[ContractEvent]) -> float:
    """Total ARR lost to cancellations, as a magnitude."""
    return sum((abs(e.arr_delta) for e in events if e.event_type == ContractEventType.CANCELLATION), 0.0)


def pipeline_summary(contracts: Iterable[Contract]) -> PipelineSummary:
    """ARR and client names of deals under negotiation, largest first."""
    pipeline = sorted(pipeline_contracts(contracts), key=lambda c: c.current_price_annual, reverse=True)
    return PipelineSummary(
        total_arr=sum((c.current_price_annual for c in pipeline), 0.0),
        deal_count=len(pipeline),
        client_names=[c.client_name for c in pipeline],
    )


def contracts_at_risk(contracts: Iterable[Contract], today: date, horizon_days: int = 90) -> list[ContractAtRisk]:
    """Active contracts ending between today and ``today + horizon_days`` (inclusive)."""
    horizon = today + timedelta(days=horizon_days)
    return [
        ContractAtRisk(client=c.client_name, product=c.product, arr=c.current_price_annual, end_date=c.end_date)
        for c in active_contracts(contracts)
        if c.end_date is not None and today <= c.end_date <= horizon
    ]


def client_concentration(contracts: Sequence[Contract], top_n: int = 5) -> list[ClientShare]:
    """Top ``top_n`` active contracts by ARR with their share of total ARR."""
    total = arr_actual(contracts)
    shares = [
        ClientShare(
            name=c.client_name,
            arr=c.current_price_annual,
            percentage=(c.current_price_annual / total) * 100 if total > 0 else 0.0,
        )
        for c in active_contracts(contracts)
        if c.current_price_annual > 0
    ]
    shares.sort(key=lambda s: s.arr, reverse=True)
    return shares[:top_n]


def arr_growth(current_arr: float, mrr_series: Sequence[MRRMetric], months_back: int = 6) -> float:
    """Percent change of ``current_arr`` against the ARR ``months_back`` points ago.

    The last series point is the current month, so the reference is the
    point ``months_back + 1`` from the end. 0 when the series is too short or
    the reference ARR is not positive.
    """
    if len(mrr_series) < months_back + 1:
        return 0.0
    reference = mrr_series[-(months_back + 1)].arr_approx
    if reference <= 0:
        return 0.0
    return (current_arr - reference) / reference * 100


def contract_totals(contracts: Sequence[Contract]) -> ContractTotals:
    """Sums over the active book, as shown in the contracts summary."""
    active = active_contracts(contracts)
    return ContractTotals(
        set_up=sum((c.set_up for c in active), 0.0),
        base_arr=sum((c.base_arr_eur for c in active), 0.0),
        current_arr=sum((c.current_price_annual for c in active), 0.0),
        current_mrr=sum((c.current_mrr for c in active), 0.0),
        active_count=len(active),
    )


def active_client_count(contracts: Iterable[Contract]) -> int:
    return len({c.client_name for c in active_contracts(contracts)})
