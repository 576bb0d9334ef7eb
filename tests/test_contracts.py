"""Tests for contract analytics."""

from datetime import date

import pytest

from finboard.analyzers import contracts as cm
from finboard.models.financial import Contract, FinancialDataset, MRRMetric


def _series(arrs: list[float]) -> list[MRRMetric]:
    return [MRRMetric(month=f"2024-{i + 1:02d}", mrr_approx=a / 12, arr_approx=a) for i, a in enumerate(arrs)]


class TestArr:
    def test_actual_base_expansion(self, dataset: FinancialDataset) -> None:
        assert cm.arr_actual(dataset.contracts) == pytest.approx(18000)
        assert cm.arr_base(dataset.contracts) == pytest.approx(16000)
        assert cm.expansion(dataset.contracts) == pytest.approx(2000)

    def test_churn_is_magnitude(self, dataset: FinancialDataset) -> None:
        assert cm.churn(dataset.contract_events) == pytest.approx(3000)
        assert cm.churn([]) == 0

    def test_totals(self, dataset: FinancialDataset) -> None:
        totals = cm.contract_totals(dataset.contracts)
        assert totals.set_up == 2000
        assert totals.current_mrr == 1500
        assert totals.active_count == 2
        assert cm.active_client_count(dataset.contracts) == 2


class TestPipelineAndRisk:
    def test_pipeline(self, dataset: FinancialDataset) -> None:
        summary = cm.pipeline_summary(dataset.contracts)
        assert summary.total_arr == 8000
        assert summary.deal_count == 1
        assert summary.client_names == ["Gamma"]

    def test_at_risk_window_inclusive(self, dataset: FinancialDataset) -> None:
        at_risk = cm.contracts_at_risk(dataset.contracts, date(2025, 4, 1), horizon_days=90)
        assert [r.client for r in at_risk] == ["ACME"]
        assert cm.contracts_at_risk(dataset.contracts, date(2025, 6, 30), horizon_days=0)[0].arr == 12000
        assert cm.contracts_at_risk(dataset.contracts, date(2025, 7, 1)) == []

    def test_concentration(self, dataset: FinancialDataset) -> None:
        shares = cm.client_concentration(dataset.contracts)
        assert [(s.name, round(s.percentage, 2)) for s in shares] == [("ACME", 66.67), ("Beta Labs", 33.33)]
        assert len(cm.client_concentration(dataset.contracts, top_n=1)) == 1

    def test_concentration_skips_zero_arr(self) -> None:
        contracts = [Contract(contract_id="C", client_id="Z", client_name="Z", status="activo")]
        assert cm.client_concentration(contracts) == []


class TestArrGrowth:
    def test_against_six_months_back(self) -> None:
        series = _series([100000, 1, 1, 1, 1, 1, 1])
        assert cm.arr_growth(120000, series) == pytest.approx(20)

    def test_short_series(self) -> None:
        assert cm.arr_growth(120000, _series([100000] * 6)) == 0

    def test_non_positive_reference(self) -> None:
        assert cm.arr_growth(120000, _series([0] * 7)) == 0
