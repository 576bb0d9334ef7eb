"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner, Result

from finboard import __version__
from finboard.cli import app
from finboard.store import InvoiceStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("FINBOARD_DATA_DIR", "FINBOARD_INVOICES_FILE", "FINBOARD_BURN_WINDOW"):
        monkeypatch.delenv(name, raising=False)


class TestMetricsCommands:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_cashflow(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["cashflow", "--data-dir", str(data_dir), "--date", "2025-04-15"])
        assert result.exit_code == 0, result.output
        assert "Runway" in result.output
        assert "2027-10-15" in result.output
        assert "Cash Projection" in result.output

    def test_forecast(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["forecast", "--data-dir", str(data_dir), "--date", "2025-04-15"])
        assert result.exit_code == 0, result.output
        assert "ACME" in result.output
        assert "18.000 €" in result.output

    def test_kpis(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["kpis", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output
        assert "10.400 €" in result.output

    def test_missing_data_dir(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["cashflow", "--data-dir", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_config_file(self, data_dir: Path, tmp_path: Path) -> None:
        (tmp_path / "finboard.yaml").write_text(f"data:\n  data_dir: {data_dir}\n")
        result = runner.invoke(app, ["kpis", "--config", "finboard.yaml"])
        assert result.exit_code == 0, result.output


class TestReportCommand:
    def test_markdown(self, data_dir: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "exec.md"
        result = runner.invoke(
            app, ["report", "--data-dir", str(data_dir), "--date", "2025-04-15", "--output", str(out)]
        )
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8").startswith("# Executive Report")

    @pytest.mark.parametrize("kind", ["management", "block"])
    def test_json(self, data_dir: Path, tmp_path: Path, kind: str) -> None:
        out = tmp_path / f"{kind}.json"
        result = runner.invoke(
            app,
            ["report", "--kind", kind, "--note", "hi", "--data-dir", str(data_dir), "--date", "2025-04-15", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["kind"] == kind
        assert data["custom_note"] == "hi"

    def test_vc_quarter(self, data_dir: Path, tmp_path: Path) -> None:
        out = tmp_path / "vc.json"
        args = ["report", "--kind", "vc", "--year", "2025", "--quarter", "1", "--mrr", "1700", "--arr", "20400"]
        result = runner.invoke(app, args + ["--data-dir", str(data_dir), "--date", "2025-04-15", "-o", str(out)])
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["period_label"] == "Q1 2025 (Jan–Mar)"
        assert data["mrr_current"] == 1700

    def test_bad_date(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["report", "--data-dir", str(data_dir), "--date", "15/04/2025"])
        assert result.exit_code != 0


class TestInvoiceCommands:
    def _add(self, data_dir: Path, invoice_id: str = "FACT52025", *extra: str) -> Result:
        return runner.invoke(
            app,
            [
                "invoices", "add",
                "--id", invoice_id,
                "--date", "2025-04-20",
                "--customer", "Beta Labs",
                "--concept", "Licencia abril",
                "--net", "500",
                "--total", "605",
                "--data-dir", str(data_dir),
                *extra,
            ],
        )

    def test_add_then_list(self, data_dir: Path) -> None:
        result = self._add(data_dir)
        assert result.exit_code == 0, result.output
        assert "2025Q2" in result.output

        listed = runner.invoke(app, ["invoices", "list", "--data-dir", str(data_dir)])
        assert listed.exit_code == 0
        assert "FACT52025" in listed.output
        assert "(5 of 5)" in listed.output

    def test_add_invalid(self, data_dir: Path) -> None:
        result = self._add(data_dir, "FACT62025", "--status", "paid")
        assert result.exit_code == 1
        assert "payment_date" in result.output

    def test_add_duplicate(self, data_dir: Path) -> None:
        result = self._add(data_dir, "FACT12025")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_edit(self, data_dir: Path) -> None:
        result = runner.invoke(
            app,
            ["invoices", "edit", "FACT32025", "--status", "paid", "--payment-date", "2025-04-11", "--data-dir", str(data_dir)],
        )
        assert result.exit_code == 0, result.output
        invoices = InvoiceStore(data_dir / "facturas_historicas_enriquecido.csv").read_all()
        invoice = next(inv for inv in invoices if inv.invoice_id == "FACT32025")
        assert invoice.is_paid
        assert invoice.days_to_pay == 10

    def test_edit_unknown(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["invoices", "edit", "FACT992025", "--status", "pending", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "not found" in result.output
