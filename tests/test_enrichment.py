"""Tests for invoice enrichment and invoice-number ordering."""

from datetime import date

import pytest

from finboard.analyzers.enrichment import (
    InvalidDateError,
    enrich,
    implied_tax_rate,
    parse_iso_date,
    quarter_label,
    rederive,
    update,
)
from finboard.analyzers.invoice_ids import compare_invoice_ids, parse_invoice_id, sort_invoice_ids
from finboard.models.financial import InvoiceCreate, InvoiceEdit, InvoiceStatus, RevenueCategory


def _base(**overrides: object) -> InvoiceCreate:
    fields: dict[str, object] = {
        "invoice_id": " FACT12025 ",
        "invoice_date": "2025-04-10",
        "customer_name": " ACME ",
        "invoice_concept": "Licencia Q2",
        "revenue_type": "Licencia",
        "amount_net": 1000.0,
        "amount_total": 1210.0,
        "status": "paid",
        "payment_date": "2025-05-10",
    }
    fields.update(overrides)
    return InvoiceCreate.model_validate(fields)


class TestEnrich:
    def test_derived_fields(self) -> None:
        inv = enrich(_base())
        assert inv.invoice_id == "FACT12025"
        assert inv.customer_name == "ACME"
        assert inv.invoice_year == 2025
        assert inv.invoice_month == 4
        assert inv.invoice_month_start == date(2025, 4, 1)
        assert inv.invoice_quarter == "2025Q2"
        assert inv.payment_year == 2025
        assert inv.payment_month == 5
        assert inv.payment_month_start == date(2025, 5, 1)
        assert inv.days_to_pay == 30
        assert inv.revenue_type_normalized == "licencia"
        assert inv.revenue_category == RevenueCategory.RECURRING
        assert inv.is_recurring is True
        assert inv.amount_tax == pytest.approx(210.0)
        assert inv.tax_rate_implied == pytest.approx(0.21)

    def test_setup_is_non_recurring(self) -> None:
        inv = enrich(_base(revenue_type="SetUp"))
        assert inv.revenue_category == RevenueCategory.NON_RECURRING
        assert inv.is_recurring is False
        assert inv.revenue_type_normalized == "setup"

    def test_pending_drops_payment_date(self) -> None:
        inv = enrich(_base(status="pending"))
        assert inv.payment_date is None
        assert inv.payment_year is None
        assert inv.payment_month_start is None
        assert inv.days_to_pay is None

    def test_payment_before_invoice_is_negative(self) -> None:
        inv = enrich(_base(payment_date="2025-04-05"))
        assert inv.days_to_pay == -5

    def test_zero_net_has_zero_rate(self) -> None:
        assert implied_tax_rate(0, 0) == 0.0

    def test_bad_date_raises(self) -> None:
        with pytest.raises(InvalidDateError):
            enrich(_base(invoice_date="10/04/2025"))
        with pytest.raises(InvalidDateError):
            parse_iso_date("2025-02-30")

    def test_rederive_is_idempotent(self) -> None:
        inv = enrich(_base())
        assert rederive(inv) == inv

    @pytest.mark.parametrize("month,label", [(1, "2025Q1"), (3, "2025Q1"), (4, "2025Q2"), (12, "2025Q4")])
    def test_quarter_label(self, month: int, label: str) -> None:
        assert quarter_label(2025, month) == label


class TestUpdate:
    def test_merges_and_rederives(self) -> None:
        inv = enrich(_base(status="pending"))
        edit = InvoiceEdit(status="paid", payment_date="2025-04-20", amount_net=2000.0, amount_total=2420.0)
        updated = update(inv, edit)
        assert updated.invoice_id == "FACT12025"
        assert updated.status == InvoiceStatus.PAID
        assert updated.days_to_pay == 10
        assert updated.amount_tax == pytest.approx(420.0)
        assert updated.customer_name == "ACME"

    def test_leaving_paid_clears_payment(self) -> None:
        inv = enrich(_base())
        updated = update(inv, InvoiceEdit(status="pending"))
        assert updated.payment_date is None
        assert updated.days_to_pay is None

    def test_moving_date_changes_quarter(self) -> None:
        inv = enrich(_base())
        updated = update(inv, InvoiceEdit(invoice_date="2025-01-15"))
        assert updated.invoice_quarter == "2025Q1"
        assert updated.days_to_pay == 115


class TestInvoiceIds:
    def test_parse(self) -> None:
        number = parse_invoice_id("FACT0012026")
        assert number is not None
        assert (number.year, number.correlative) == (2026, 1)
        assert parse_invoice_id("INV-1") is None

    def test_numeric_not_lexicographic(self) -> None:
        assert compare_invoice_ids("FACT22024", "FACT102024") < 0

    def test_year_before_correlative(self) -> None:
        ids = ["FACT12025", "FACT102024", "FACT22025", "bogus"]
        assert sort_invoice_ids(ids) == ["FACT102024", "FACT12025", "FACT22025", "bogus"]
        assert sort_invoice_ids(ids, descending=True) == ["FACT22025", "FACT12025", "FACT102024", "bogus"]

    def test_case_insensitive(self) -> None:
        assert compare_invoice_ids("fact12025", "FACT12025") == 0
