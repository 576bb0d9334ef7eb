"""
Revenue Forecaster — flat run-rate projection of recurring revenue.

Rules:
- Only clients with an active contract are forecast; a configurable list of
  client ids (contracts without genuine recurring billing) is skipped.
- A client's MRR comes from its most recent recurring (license) invoice,
  normalised to a month by the contract's billing frequency.
- A client not invoiced yet falls back to the contract's stated MRR.
- Invoice customer names are trimmed and resolved through an alias table
  before being matched to contract client ids.

Horizons are flat multiples of the total MRR (no growth, no churn).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Mapping, Sequence

from finboard.models.financial import BillingFrequency, Contract, Invoice, RevenueType
from finboard.normalizer import normalize_client_name

logger = logging.getLogger("finboard.analyzers.forecast")

_MONTHS_PER_PERIOD: dict[BillingFrequency, int] = {
    BillingFrequency.MONTHLY: 1,
    BillingFrequency.QUARTERLY: 3,
    BillingFrequency.ANNUAL: 12,
}


class ForecastSource(str, Enum):
    """Where a client's MRR estimate comes from."""

    INVOICE = "invoice"
    CONTRACT = "contract"


@dataclass
class ForecastClient:
    """Forecast detail for one active client."""

    client_id: str
    client_name: str
    contract_name: str
    billing_frequency: BillingFrequency
    last_invoice_date: date | None
    last_invoice_amount: float  # net of the last invoice, or contract MRR
    mrr_estimate: float
    percent_of_total: float
    forecast_fy: float
    source: ForecastSource


@dataclass
class ForecastData:
    """Complete forecast: totals, horizons, fiscal-year view and client detail."""

    calculated_at: str
    fiscal_year: int
    total_mrr: float
    forecast_m1: float
    forecast_m3: float
    forecast_m6: float
    forecast_m12: float
    months_remaining_fy: int
    invoiced_ytd: float
    forecast_remaining_fy: float
    total_estimated_fy: float
    clients: list[ForecastClient] = field(default_factory=list)


def billing_frequency_of(contract: Contract) -> BillingFrequency:
    """Contract billing frequency, monthly when unspecified."""
    return contract.billing_frequency or BillingFrequency.MONTHLY


def normalize_mrr(amount: float, frequency: BillingFrequency) -> float:
    """Convert one billing period's amount to a monthly figure."""
    months = _MONTHS_PER_PERIOD[frequency]
    return amount / months if months != 1 else amount


class RevenueForecaster:
    """Project recurring revenue per client and roll it up."""

    @classmethod
    def calculate(
        cls,
        contracts: Sequence[Contract],
        invoices: Sequence[Invoice],
        reference_date: date | None = None,
        *,
        client_aliases: Mapping[str, str] | None = None,
        excluded_clients: Sequence[str] | None = None,
    ) -> ForecastData:
        """Run the forecast as of ``reference_date`` (defaults to now).

        Args:
            contracts: All contracts; only active, non-excluded ones are used.
            invoices: All invoices; only license (recurring) ones are used.
            reference_date: Fixes the fiscal year and months remaining.
            client_aliases: Invoice customer name -> contract client id.
            excluded_clients: Client ids never forecast.

        Returns:
            ForecastData with clients sorted by MRR, largest first.
        """
        ref = reference_date or datetime.now()
        fiscal_year = ref.year
        months_remaining = 12 - (ref.month - 1)  # current month included

        excluded = set(excluded_clients or ())
        active = [c for c in contracts if c.is_active and c.client_id not in excluded]

        license_invoices = [inv for inv in invoices if inv.revenue_type == RevenueType.LICENSE]
        latest_by_client: dict[str, Invoice] = {}
        for inv in license_invoices:
            key = normalize_client_name(inv.customer_name, client_aliases)
            current = latest_by_client.get(key)
            if current is None or inv.invoice_date > current.invoice_date:
                latest_by_client[key] = inv

        invoiced_ytd = sum((inv.amount_net for inv in license_invoices if inv.invoice_year == fiscal_year), 0.0)

        clients: list[ForecastClient] = []
        for contract in active:
            frequency = billing_frequency_of(contract)
            last = latest_by_client.get(contract.client_id)

            if last is not None:
                mrr = normalize_mrr(last.amount_net, frequency)
                client = ForecastClient(
                    client_id=contract.client_id,
                    client_name=contract.client_name,
                    contract_name=contract.product,
                    billing_frequency=frequency,
                    last_invoice_date=last.invoice_date,
                    last_invoice_amount=last.amount_net,
                    mrr_estimate=mrr,
                    percent_of_total=0.0,
                    forecast_fy=mrr * months_remaining,
                    source=ForecastSource.INVOICE,
                )
            else:
                client = ForecastClient(
                    client_id=contract.client_id,
                    client_name=contract.client_name,
                    contract_name=contract.product,
                    billing_frequency=frequency,
                    last_invoice_date=None,
                    last_invoice_amount=contract.current_mrr,
                    mrr_estimate=contract.current_mrr,
                    percent_of_total=0.0,
                    forecast_fy=contract.current_mrr * months_remaining,
                    source=ForecastSource.CONTRACT,
                )
                logger.debug("No license invoice for %s, using contract MRR", contract.client_id)
            clients.append(client)

        total_mrr = sum((c.mrr_estimate for c in clients), 0.0)
        for c in clients:
            c.percent_of_total = (c.mrr_estimate / total_mrr) * 100 if total_mrr > 0 else 0.0
        clients.sort(key=lambda c: c.mrr_estimate, reverse=True)

        forecast_remaining = total_mrr * months_remaining
        logger.info(
            "Forecast FY%d: %d clients, MRR=%.2f, %d months remaining",
            fiscal_year,
            len(clients),
            total_mrr,
            months_remaining,
        )

        return ForecastData(
            calculated_at=ref.isoformat(),
            fiscal_year=fiscal_year,
            total_mrr=total_mrr,
            forecast_m1=total_mrr,
            forecast_m3=total_mrr * 3,
            forecast_m6=total_mrr * 6,
            forecast_m12=total_mrr * 12,
            months_remaining_fy=months_remaining,
            invoiced_ytd=invoiced_ytd,
            forecast_remaining_fy=forecast_remaining,
            total_estimated_fy=invoiced_ytd + forecast_remaining,
            clients=clients,
        )


def calculate_forecast(
    contracts: Sequence[Contract],
    invoices: Sequence[Invoice],
    reference_date: date | None = None,
    **kwargs: object,
) -> ForecastData:
    """Convenience function for the revenue forecast.

    See RevenueForecaster.calculate() for full parameter documentation.
    """
    return RevenueForecaster.calculate(contracts, invoices, reference_date, **kwargs)  # type: ignore[arg-type]
