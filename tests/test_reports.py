"""Tests for the report data collectors."""

import math
from datetime import date

import pytest
from conftest import TODAY

from finboard.analyzers.reports import (
    ReportOptions,
    collect_block_report,
    collect_executive_report,
    collect_management_report,
    collect_vc_report,
)
from finboard.models.financial import CashBalance, FinancialDataset, FinancingEntry
from finboard.models.report import ReportKind, ReportPeriod


class TestExecutiveReport:
    def test_figures(self, dataset: FinancialDataset) -> None:
        report = collect_executive_report(dataset, TODAY)

        assert report.kind == ReportKind.EXECUTIVE
        assert report.report_month == "abril de 2025"
        assert report.revenue_ytd == pytest.approx(8000)
        assert report.arr_actual == pytest.approx(18000)
        assert report.arr_growth == pytest.approx(50)
        assert report.cash_balance == 30000
        assert report.burn_rate == pytest.approx(2000)
        assert report.net_burn == pytest.approx(1000)
        assert report.runway == pytest.approx(30)
        assert report.runway_end_date == "2027-10-15"

        assert [r.client for r in report.contracts_at_risk] == ["ACME"]
        assert report.arr_at_risk == 12000
        assert report.pending_amount == pytest.approx(5000)
        assert report.pending_percentage == pytest.approx(62.5)
        assert report.active_customers == 2
        assert report.recurring_percentage == pytest.approx(75)
        assert report.dso == pytest.approx(20)
        assert report.collection_rate == pytest.approx(100 / 3)

        assert report.forecast_m12 == pytest.approx(18000)
        assert report.total_estimated_fy == pytest.approx(19500)
        assert [r.month for r in report.cashflow_monthly] == ["2025-01", "2025-02", "2025-03"]
        assert report.expenses_by_category[0].category == "Salarios"
        assert report.churn == 3000
        assert report.pipeline_arr == 8000
        assert len(report.mrr_trend) == 6

    def test_options_shorten_risk_horizon(self, dataset: FinancialDataset) -> None:
        report = collect_executive_report(dataset, TODAY, ReportOptions(risk_horizon_days=30))
        assert report.contracts_at_risk == []
        assert report.arr_at_risk == 0

    def test_infinite_runway(self, dataset: FinancialDataset) -> None:
        calm = dataset.model_copy(update={"expenses": []})
        report = collect_executive_report(calm, TODAY)
        assert math.isinf(report.runway)
        assert report.runway_end_date == "Indefinido"
        assert "Infinity" in report.to_json()


class TestManagementReport:
    def test_revenue_performance(self, dataset: FinancialDataset) -> None:
        report = collect_management_report(dataset, "Strong quarter", TODAY)
        assert report.custom_note == "Strong quarter"
        assert report.revenue_prior_fy == pytest.approx(2400)
        assert report.revenue_ytd == pytest.approx(8000)
        assert report.last_complete_quarter_label == "2025Q1"
        assert report.revenue_last_quarter == pytest.approx(5000)
        assert report.last_complete_month_label == "marzo de 2025"
        assert report.revenue_last_month == 0
        assert report.current_mrr == 1600

    def test_clients_and_usage(self, dataset: FinancialDataset) -> None:
        report = collect_management_report(dataset, today=TODAY)
        assert report.total_clients == 2
        assert report.recurring_clients == 2
        assert report.usage_total_users == 1200
        assert report.usage_avg_daily_chats == 150.5
        assert report.usage_report_date == date(2025, 3, 31)

    def test_without_usage(self, dataset: FinancialDataset) -> None:
        report = collect_management_report(dataset.model_copy(update={"usage": None}), today=TODAY)
        assert report.usage_total_users is None

    def test_category_window(self, dataset: FinancialDataset) -> None:
        report = collect_management_report(dataset, today=TODAY, options=ReportOptions(management_category_months=1))
        # Only rows on or after 2025-03-15 remain
        assert [(c.category, c.total) for c in report.expenses_by_category] == [("Salarios", 1500)]


class TestVCReport:
    def test_quarter_period(self, dataset: FinancialDataset) -> None:
        period = ReportPeriod(type="quarter", year=2025, quarter=1)
        report = collect_vc_report(dataset, period, "Hello", manual_mrr=1700, manual_arr=20400, today=TODAY)

        assert report.period_label == "Q1 2025 (Jan–Mar)"
        assert report.total_revenue_period == pytest.approx(5000)
        assert report.revenue_quarter == pytest.approx(5000)
        assert report.revenue_ytd == pytest.approx(8000)
        assert (report.mrr_current, report.arr_current) == (1700, 20400)
        assert report.monthly_active_users == 800
        assert report.avg_daily_chats == 150.5
        assert report.pipeline_client_names == ["Gamma"]
        assert report.cash_balance_date == date(2025, 3, 31)
        assert report.custom_text == "Hello"

    def test_year_period_uses_current_quarter(self, dataset: FinancialDataset) -> None:
        report = collect_vc_report(dataset, ReportPeriod(year=2025), today=TODAY)
        assert report.period_label == "FY 2025"
        assert report.total_revenue_period == pytest.approx(8000)
        assert report.revenue_quarter == pytest.approx(3000)

    def test_financing_comes_from_dataset(self, dataset: FinancialDataset) -> None:
        entries = [FinancingEntry(label="Seed (Angels)", amount=500000, detail="SAFE")]
        report = collect_vc_report(dataset.model_copy(update={"financing": entries}), ReportPeriod(year=2025), today=TODAY)
        assert report.financing == entries


class TestBlockReport:
    def test_has_every_section(self, dataset: FinancialDataset) -> None:
        report = collect_block_report(dataset, "note", TODAY)
        assert report.kind == ReportKind.BLOCK
        assert report.custom_note == "note"
        assert report.revenue_last_quarter == pytest.approx(5000)
        assert report.arr_actual == report.current_arr == pytest.approx(18000)
        assert report.pipeline_count == 1
        assert report.avg_monthly_inflow == pytest.approx(1000)
        assert report.forecast_remaining_fy == pytest.approx(13500)
        assert report.arr_at_risk == 12000
        assert report.usage_total_users == 1200

    def test_empty_dataset(self) -> None:
        empty = FinancialDataset(cash_balance=CashBalance(current_balance=0, last_updated=TODAY))
        report = collect_block_report(empty, today=TODAY)
        assert report.revenue_ytd == 0
        assert report.current_mrr == 0
        assert report.arr_growth == 0
        assert math.isinf(report.runway)
        assert report.monthly_revenue == []
