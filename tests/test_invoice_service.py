"""Tests for invoice validation and the record-management service."""

from pathlib import Path
from typing import Any

import pytest

from finboard.models.financial import Invoice, InvoiceStatus
from finboard.store import (
    DuplicateInvoiceError,
    InvoiceNotFoundError,
    InvoiceService,
    InvoiceStore,
    InvoiceValidationError,
    WriteInProgressError,
    WriteLock,
)
from finboard.store.validation import validate_create, validate_edit


def _new(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "invoice_id": "FACT12025",
        "invoice_date": "2025-01-10",
        "customer_name": "ACME",
        "invoice_concept": "Licencia enero",
        "revenue_type": "Licencia",
        "amount_net": 1000,
        "amount_total": 1210,
        "status": "pending",
        "payment_date": None,
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(tmp_path: Path) -> InvoiceService:
    return InvoiceService(InvoiceStore(tmp_path / "invoices.csv", backup_dir=tmp_path / "backups"))


class TestValidation:
    def test_valid(self) -> None:
        assert validate_create(_new()) == {}
        assert validate_create(_new(status="paid", payment_date="2025-02-01", revenue_type="setup")) == {}

    def test_required_fields(self) -> None:
        errors = validate_create(_new(invoice_id=" ", customer_name="", invoice_concept=None, invoice_date=None))
        assert set(errors) == {"invoice_id", "customer_name", "invoice_concept", "invoice_date"}

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"invoice_date": "10-01-2025"}, "invoice_date"),
            ({"revenue_type": "Consulting"}, "revenue_type"),
            ({"amount_net": 0}, "amount_net"),
            ({"amount_net": "abc"}, "amount_net"),
            ({"amount_total": 900}, "amount_total"),
            ({"status": "overdue"}, "status"),
            ({"status": "paid"}, "payment_date"),
            ({"status": "paid", "payment_date": "01/02/2025"}, "payment_date"),
        ],
    )
    def test_rejects(self, overrides: dict[str, Any], field: str) -> None:
        assert field in validate_create(_new(**overrides))

    def test_edit_checks_only_supplied_fields(self) -> None:
        assert validate_edit({"status": "pending"}) == {}
        assert validate_edit({"status": "pending", "amount_net": 5, "amount_total": 4}) == {
            "amount_total": "Total cannot be lower than the net amount"
        }

    def test_edit_requires_status(self) -> None:
        assert "status" in validate_edit({"customer_name": "New"})


class TestInvoiceService:
    def test_create(self, service: InvoiceService) -> None:
        invoice = service.create(_new(customer_name="  ACME  "))
        assert invoice.customer_name == "ACME"
        assert invoice.invoice_quarter == "2025Q1"
        assert service.get("FACT12025") == invoice
        assert service.customers() == ["ACME"]

    def test_create_validation_error(self, service: InvoiceService) -> None:
        with pytest.raises(InvoiceValidationError) as exc:
            service.create(_new(amount_net=-1))
        assert "amount_net" in exc.value.errors
        assert service.list() == []

    def test_duplicate(self, service: InvoiceService) -> None:
        service.create(_new())
        with pytest.raises(DuplicateInvoiceError):
            service.create(_new(invoice_id=" FACT12025 "))

    def test_list_sorted_by_invoice_number(self, service: InvoiceService) -> None:
        for invoice_id in ("FACT12025", "FACT102024", "FACT22025"):
            service.create(_new(invoice_id=invoice_id))
        assert [inv.invoice_id for inv in service.list()] == ["FACT22025", "FACT12025", "FACT102024"]
        assert [inv.invoice_id for inv in service.list(descending=False)] == ["FACT102024", "FACT12025", "FACT22025"]

    def test_update_marks_paid(self, service: InvoiceService) -> None:
        service.create(_new())
        updated = service.update("FACT12025", {"status": "paid", "payment_date": "2025-02-10"})
        assert updated.status == InvoiceStatus.PAID
        assert updated.days_to_pay == 31
        assert updated.payment_month_start is not None
        assert service.get("FACT12025").days_to_pay == 31

    def test_update_ignores_id_change(self, service: InvoiceService) -> None:
        service.create(_new())
        updated = service.update("FACT12025", {"invoice_id": "FACT99", "status": "pending", "customer_name": "Beta"})
        assert updated.invoice_id == "FACT12025"
        assert updated.customer_name == "Beta"

    def test_update_not_found(self, service: InvoiceService) -> None:
        with pytest.raises(InvoiceNotFoundError):
            service.update("FACT12025", {"status": "pending"})
        with pytest.raises(InvoiceNotFoundError):
            service.get("FACT12025")

    def test_update_rechecks_total_after_merge(self, service: InvoiceService) -> None:
        service.create(_new())
        with pytest.raises(InvoiceValidationError) as exc:
            service.update("FACT12025", {"status": "pending", "amount_net": 5000})
        assert set(exc.value.errors) == {"amount_total"}
        assert service.get("FACT12025").amount_net == 1000

    def test_writes_are_backed_up(self, service: InvoiceService, tmp_path: Path) -> None:
        service.create(_new())
        service.create(_new(invoice_id="FACT22025"))
        assert len(list((tmp_path / "backups").iterdir())) == 1


class TestConcurrentWriters:
    def test_second_writer_fails_fast_mid_cycle(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        lock = WriteLock()
        path = tmp_path / "invoices.csv"
        store_a = InvoiceStore(path, lock=lock)
        first = InvoiceService(store_a)
        second = InvoiceService(InvoiceStore(path, lock=lock))

        read_all = store_a.read_all
        rejected: list[WriteInProgressError] = []

        def read_then_interleave(missing_ok: bool = False) -> list[Invoice]:
            invoices = read_all(missing_ok=missing_ok)
            # Another writer arrives between the first writer's read and its write
            try:
                second.create(_new(invoice_id="FACT22025"))
            except WriteInProgressError as e:
                rejected.append(e)
            return invoices

        monkeypatch.setattr(store_a, "read_all", read_then_interleave)
        first.create(_new())

        assert len(rejected) == 1
        assert [inv.invoice_id for inv in second.list()] == ["FACT12025"]

        second.create(_new(invoice_id="FACT22025"))
        assert [inv.invoice_id for inv in second.list()] == ["FACT22025", "FACT12025"]

    def test_failed_change_leaves_file_untouched(self, service: InvoiceService) -> None:
        service.create(_new())
        before = service.store.path.read_text()
        with pytest.raises(DuplicateInvoiceError):
            service.create(_new())
        assert service.store.path.read_text() == before
        assert not service.store.lock.locked
