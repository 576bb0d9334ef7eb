"""Shared fixtures: one small company, as models and as a data directory."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from finboard.analyzers.enrichment import enrich
from finboard.models.financial import (
    BankInflow,
    CashBalance,
    CashBalancePoint,
    Contract,
    ContractEvent,
    Expense,
    FinancialDataset,
    Invoice,
    InvoiceCreate,
    MRRMetric,
    UsageMetrics,
    UsageSnapshot,
)
from finboard.store.invoices import InvoiceStore

TODAY = date(2025, 4, 15)


def make_invoice(
    invoice_id: str,
    invoice_date: str,
    customer: str,
    net: float,
    revenue_type: str = "Licencia",
    status: str = "pending",
    payment_date: str | None = None,
    tax_rate: float = 0.21,
) -> Invoice:
    return enrich(
        InvoiceCreate(
            invoice_id=invoice_id,
            invoice_date=invoice_date,
            customer_name=customer,
            invoice_concept=f"{revenue_type} {customer}",
            revenue_type=revenue_type,
            amount_net=net,
            amount_total=round(net * (1 + tax_rate), 2),
            status=status,
            payment_date=payment_date,
        )
    )


def _invoices() -> list[Invoice]:
    return [
        make_invoice("FACT122024", "2024-10-10", "ACME", 2400, status="paid", payment_date="2024-10-20"),
        make_invoice("FACT12025", "2025-01-10", "ACME", 3000, status="paid", payment_date="2025-02-09"),
        make_invoice("FACT22025", "2025-02-05", "Beta Labs", 2000, revenue_type="SetUp"),
        make_invoice("FACT32025", "2025-04-01", "ACME", 3000),
    ]


def _contracts() -> list[Contract]:
    return [
        Contract(
            contract_id="C1",
            client_id="ACME",
            client_name="ACME",
            product="Platform",
            status="activo",
            end_date=date(2025, 6, 30),
            billing_frequency="trimestral",
            base_arr_eur=10000,
            current_price_annual=12000,
            current_mrr=1000,
        ),
        Contract(
            contract_id="C2",
            client_id="BETA",
            client_name="Beta Labs",
            product="Platform",
            status="activo",
            end_date=date(2026, 1, 31),
            billing_frequency="mensual",
            set_up=2000,
            base_arr_eur=6000,
            current_price_annual=6000,
            current_mrr=500,
        ),
        Contract(
            contract_id="C3",
            client_id="GAMMA",
            client_name="Gamma",
            product="Pilot",
            status="negociación",
            current_price_annual=8000,
        ),
    ]


def _expenses() -> list[Expense]:
    return [
        Expense(expense_id="E1", expense_date=date(2025, 1, 25), category="Salarios", amount=-2000),
        Expense(expense_id="E2", expense_date=date(2025, 2, 25), category="Salarios", amount=-2000),
        Expense(expense_id="E3", expense_date=date(2025, 2, 10), category="Financiación", amount=-10000),
        Expense(expense_id="E4", expense_date=date(2025, 3, 25), category="Salarios", amount=-1500),
        Expense(expense_id="E5", expense_date=date(2025, 3, 5), category="Marketing", amount=-500),
    ]


def _inflows() -> list[BankInflow]:
    return [
        BankInflow(inflow_id="I1", inflow_date=date(2025, 1, 15), category="Ventas", amount=1000),
        BankInflow(inflow_id="I2", inflow_date=date(2025, 2, 15), category="Ventas", amount=1000),
        BankInflow(inflow_id="I3", inflow_date=date(2025, 2, 20), category="ENISA", amount=50000),
        BankInflow(inflow_id="I4", inflow_date=date(2025, 3, 15), category="Ventas", amount=1000),
    ]


def _mrr_series() -> list[MRRMetric]:
    months = ["2024-09", "2024-10", "2024-11", "2024-12", "2025-01", "2025-02", "2025-03"]
    return [MRRMetric(month=m, mrr_approx=1000 + 100 * i, arr_approx=(1000 + 100 * i) * 12) for i, m in enumerate(months)]


def build_dataset() -> FinancialDataset:
    return FinancialDataset(
        invoices=_invoices(),
        contracts=_contracts(),
        contract_events=[
            ContractEvent(
                event_id="EV1",
                contract_id="C9",
                client_name="Delta",
                event_date=date(2025, 2, 1),
                event_type="CANCELACION",
                arr_delta=-3000,
            )
        ],
        expenses=_expenses(),
        inflows=_inflows(),
        cash_balance=CashBalance(
            current_balance=30000,
            last_updated=date(2025, 3, 31),
            history=[
                CashBalancePoint(month="2025-02", balance=32000),
                CashBalancePoint(month="2025-03", balance=30000),
            ],
        ),
        mrr_series=_mrr_series(),
        usage=UsageMetrics(
            last_updated=date(2025, 3, 31),
            latest=UsageSnapshot(date=date(2025, 3, 31), total_users=1200, active_users=800, avg_daily_conversations=150.5),
        ),
        source="test",
    )


@pytest.fixture
def dataset() -> FinancialDataset:
    return build_dataset()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """The shared dataset written out as the exports the files connector reads."""
    ds = build_dataset()
    root = tmp_path / "data"
    root.mkdir()

    InvoiceStore(root / "facturas_historicas_enriquecido.csv").write_all(ds.invoices)

    def dump_json(name: str, payload: object) -> None:
        (root / name).write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")

    dump_json("contracts.json", [c.model_dump(mode="json") for c in ds.contracts])
    dump_json("contract_events.json", [e.model_dump(mode="json") for e in ds.contract_events])
    dump_json("cash_balance.json", ds.cash_balance.model_dump(mode="json"))
    assert ds.usage is not None
    dump_json("usage_metrics.json", ds.usage.model_dump(mode="json"))
    dump_json(
        "financing.json",
        {
            "grants": [{"name": "Neotec", "amount": 250000, "institution": "CDTI"}],
            "debt": [{"instrument": "ENISA", "amount": 100000, "date": "2024-06-01"}],
            "equity_rounds": [{"round": "Seed", "investor": "Angels", "amount": 500000, "instrument": "SAFE"}],
        },
    )

    pd.DataFrame([e.model_dump(mode="json") for e in ds.expenses]).to_csv(root / "expenses.csv", index=False)
    pd.DataFrame([i.model_dump(mode="json", exclude={"category_key"}) for i in ds.inflows]).to_csv(
        root / "inflows.csv", index=False
    )
    pd.DataFrame([m.model_dump() for m in ds.mrr_series]).to_csv(root / "mrr_aproximado_por_mes.csv", index=False)
    return root
