"""
finboard CLI — command-line interface.

Usage:
    finboard cashflow --data-dir ./data
    finboard forecast --config finboard.yaml
    finboard report --kind executive --output report.md
    finboard invoices add --id FACT12025 --date 2025-03-01 ...
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from finboard import __version__
from finboard.analyzers.enrichment import InvalidDateError
from finboard.config import FinboardConfig
from finboard.exporters.markdown import format_currency, format_percent
from finboard.models.financial import FinancialDataset
from finboard.models.report import ReportKind, ReportPeriod, ReportSnapshot
from finboard.store.errors import InvoiceValidationError, StoreError

app = typer.Typer(
    name="finboard",
    help="📊 finboard — SaaS financial metrics: ARR, burn, runway, forecast",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
invoices_app = typer.Typer(help="Manage the invoice register", no_args_is_help=True)
app.add_typer(invoices_app, name="invoices")

console = Console()

CONFIG_OPTION = typer.Option("finboard.yaml", "--config", "-c", help="Path to config file")
DATA_DIR_OPTION = typer.Option(None, "--data-dir", "-d", help="Dataset directory (overrides config)")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]finboard[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """📊 finboard — financial metrics for subscription businesses."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ------------------------------------------------------------------ #
#  Helpers                                                            #
# ------------------------------------------------------------------ #


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def _load_config(config: str, data_dir: str | None) -> FinboardConfig:
    cfg = FinboardConfig.load(config if Path(config).exists() else None)
    if data_dir:
        cfg.data.data_dir = data_dir
    return cfg


def _load_dataset(cfg: FinboardConfig) -> FinancialDataset:
    from finboard.connectors.files import DataDirectoryConnector

    connector = DataDirectoryConnector(cfg.data, cfg.normalizer.subcategory_synonyms)
    try:
        with console.status("[bold green]Loading data...[/bold green]"):
            return asyncio.run(connector.pull())
    except FileNotFoundError as e:
        _fail(str(e))


def _invoice_service(cfg: FinboardConfig):  # noqa: ANN202
    from finboard.store import InvoiceService, InvoiceStore

    store = InvoiceStore(
        cfg.data.path(cfg.data.invoices_file),
        backup_dir=cfg.store.backup_dir,
        keep_backups=cfg.store.keep_backups,
    )
    return InvoiceService(store)


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date {value!r} (use YYYY-MM-DD)") from None


def _metric_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table(title=title, show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for name, value in rows:
        table.add_row(name, value)
    return table


# ------------------------------------------------------------------ #
#  Metrics                                                            #
# ------------------------------------------------------------------ #


@app.command()
def cashflow(
    config: str = CONFIG_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION,
    as_of: Optional[str] = typer.Option(None, "--date", help="Reference date (YYYY-MM-DD)"),
) -> None:
    """Burn rate, net burn, runway and spend by category."""
    from finboard.analyzers.cashflow import cashflow_metrics, project_cash
    from finboard.models.amounts import SignedAmount

    cfg = _load_config(config, data_dir)
    today = _parse_date(as_of)
    dataset = _load_dataset(cfg)
    metrics = cashflow_metrics(
        dataset.expenses,
        dataset.inflows,
        dataset.cash_balance,
        cfg.cashflow.burn_window_months,
        today,
        cfg.cashflow.financing_categories,
    )

    runway = "∞" if metrics.runway_is_infinite else f"{metrics.runway_months:.1f} months"
    console.print(
        _metric_table(
            "Cash Flow",
            [
                (f"Cash ({metrics.last_updated})", format_currency(metrics.current_cash)),
                (f"Burn rate ({metrics.burn_rate_period}m)", format_currency(metrics.burn_rate)),
                ("Average inflow", format_currency(metrics.avg_monthly_inflow)),
                ("Net burn", format_currency(metrics.net_burn)),
                ("Runway", runway),
                ("Runway end", metrics.runway_end_date),
            ],
        )
    )

    if metrics.expenses_by_category:
        table = Table(title="Spend by Category")
        table.add_column("Category", style="bold")
        table.add_column("Total", justify="right")
        table.add_column("Share", justify="right")
        for row in metrics.expenses_by_category:
            table.add_row(row.category, format_currency(row.total), format_percent(row.percentage))
        console.print(table)

    points = project_cash(
        metrics.current_cash,
        SignedAmount(metrics.net_burn),
        projection_months=cfg.cashflow.projection_months,
        history=dataset.cash_balance.history,
        historical_months=cfg.cashflow.chart_months,
        today=today,
    )
    table = Table(title="Cash Projection")
    table.add_column("Month", style="bold")
    table.add_column("Balance", justify="right")
    table.add_column("")
    for p in points:
        table.add_row(p.month_label, format_currency(p.projected), "actual" if p.is_historical else "projected")
    console.print(table)


@app.command()
def forecast(
    config: str = CONFIG_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION,
    as_of: Optional[str] = typer.Option(None, "--date", help="Reference date (YYYY-MM-DD)"),
) -> None:
    """Run-rate revenue forecast per active client."""
    from finboard.analyzers.forecast import calculate_forecast

    cfg = _load_config(config, data_dir)
    dataset = _load_dataset(cfg)
    result = calculate_forecast(
        dataset.contracts,
        dataset.invoices,
        _parse_date(as_of),
        client_aliases=cfg.forecast.client_aliases,
        excluded_clients=cfg.forecast.excluded_clients,
    )

    console.print(
        _metric_table(
            f"Forecast FY {result.fiscal_year}",
            [
                ("MRR", format_currency(result.total_mrr)),
                ("M+1", format_currency(result.forecast_m1)),
                ("M+3", format_currency(result.forecast_m3)),
                ("M+6", format_currency(result.forecast_m6)),
                ("M+12", format_currency(result.forecast_m12)),
                ("Invoiced YTD", format_currency(result.invoiced_ytd)),
                (f"Rest of FY ({result.months_remaining_fy}m)", format_currency(result.forecast_remaining_fy)),
                ("Estimated FY total", format_currency(result.total_estimated_fy)),
            ],
        )
    )

    table = Table(title="Clients")
    table.add_column("Client", style="bold")
    table.add_column("Frequency")
    table.add_column("Last invoice")
    table.add_column("MRR", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Source")
    for c in result.clients:
        table.add_row(
            c.client_name,
            c.billing_frequency.value,
            c.last_invoice_date.isoformat() if c.last_invoice_date else "-",
            format_currency(c.mrr_estimate),
            format_percent(c.percent_of_total),
            c.source.value,
        )
    console.print(table)


@app.command()
def kpis(
    config: str = CONFIG_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION,
) -> None:
    """Headline revenue KPIs over the whole invoice history."""
    from finboard.analyzers import revenue

    cfg = _load_config(config, data_dir)
    dataset = _load_dataset(cfg)
    summary = revenue.kpi_summary(dataset.invoices, dataset.mrr_series)

    console.print(
        _metric_table(
            "Revenue KPIs",
            [
                ("Total revenue", format_currency(summary.total_revenue)),
                ("Recurring", format_currency(summary.recurring_revenue)),
                ("Non-recurring", format_currency(summary.non_recurring_revenue)),
                ("Recurring share", format_percent(summary.recurring_percentage)),
                ("MRR", format_currency(summary.current_mrr)),
                ("ARR", format_currency(summary.current_arr)),
                ("Invoices", f"{summary.total_invoices} ({summary.paid_invoices} paid, {summary.pending_invoices} pending)"),
                ("Customers", str(summary.unique_customers)),
                ("DSO", f"{revenue.days_sales_outstanding(dataset.invoices):.0f} days"),
                ("Collection rate", format_percent(revenue.collection_rate(dataset.invoices))),
            ],
        )
    )


@app.command()
def report(
    kind: ReportKind = typer.Option(ReportKind.EXECUTIVE, "--kind", "-k", help="executive, management, vc or block"),
    output: str = typer.Option("report.md", "--output", "-o", help="Output file path (.md, .json)"),
    note: str = typer.Option("", "--note", help="Free text added to the report"),
    as_of: Optional[str] = typer.Option(None, "--date", help="Report date (YYYY-MM-DD)"),
    year: Optional[int] = typer.Option(None, "--year", help="VC report: fiscal year"),
    quarter: Optional[int] = typer.Option(None, "--quarter", min=1, max=4, help="VC report: quarter (1-4)"),
    mrr: float = typer.Option(0.0, "--mrr", help="VC report: MRR to state"),
    arr: float = typer.Option(0.0, "--arr", help="VC report: ARR to state"),
    config: str = CONFIG_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION,
) -> None:
    """Build a report and save it as Markdown or JSON."""
    from finboard.analyzers import reports

    cfg = _load_config(config, data_dir)
    today = _parse_date(as_of) or date.today()

    console.print(Panel.fit(f"[bold blue]📊 finboard[/bold blue] — {kind.value} report", subtitle=f"v{__version__}"))
    dataset = _load_dataset(cfg)
    options = cfg.report_options()

    snapshot: ReportSnapshot
    if kind == ReportKind.EXECUTIVE:
        snapshot = reports.collect_executive_report(dataset, today, options)
    elif kind == ReportKind.MANAGEMENT:
        snapshot = reports.collect_management_report(dataset, note, today, options)
    elif kind == ReportKind.BLOCK:
        snapshot = reports.collect_block_report(dataset, note, today, options)
    else:
        period = ReportPeriod(
            type="quarter" if quarter else "year",
            year=year or today.year,
            quarter=quarter,
        )
        snapshot = reports.collect_vc_report(dataset, period, note, mrr, arr, today, options)

    _save_report(snapshot, output)


def _save_report(report: ReportSnapshot, output: str) -> None:
    """Save report to file."""
    path = Path(output)
    if path.suffix == ".json":
        content = report.to_json()
    else:
        content = report.to_markdown()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    console.print(f"[green]✓[/green] Report saved to [bold]{path}[/bold]")


# ------------------------------------------------------------------ #
#  Invoices                                                           #
# ------------------------------------------------------------------ #


def _run_invoice_write(action: Any) -> Any:
    try:
        return action()
    except InvoiceValidationError as e:
        for name, message in e.errors.items():
            console.print(f"[red]  {name}: {message}[/red]")
        _fail(str(e))
    except (StoreError, InvalidDateError) as e:
        _fail(str(e))


@invoices_app.command("list")
def list_invoices(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of invoices to show (0 = all)"),
    config: str = CONFIG_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION,
) -> None:
    """List invoices, newest invoice number first."""
    service = _invoice_service(_load_config(config, data_dir))
    invoices = service.list()
    shown = invoices[:limit] if limit else invoices

    table = Table(title=f"Invoices ({len(shown)} of {len(invoices)})")
    table.add_column("Id", style="bold")
    table.add_column("Date")
    table.add_column("Customer")
    table.add_column("Type")
    table.add_column("Net", justify="right")
    table.add_column("Status")
    for inv in shown:
        color = "green" if inv.is_paid else "yellow"
        table.add_row(
            inv.invoice_id,
            inv.invoice_date.isoformat(),
            inv.customer_name,
            inv.revenue_type.value,
            format_currency(inv.amount_net),
            f"[{color}]{inv.status.value}[/{color}]",
        )
    console.print(table)


@invoices_app.command("add")
def add_invoice(
    invoice_id: str = typer.Option(..., "--id", help="Invoice number, e.g. FACT12025"),
    invoice_date: str = typer.Option(..., "--date", help="Invoice date (YYYY-MM-DD)"),
    customer: str = typer.Option(..., "--customer", help="Customer name"),
    concept: str = typer.Option(..., "--concept", help="Invoice concept"),
    revenue_type: str = typer.Option("Licencia", "--type", help="Licencia or SetUp"),
    net: float = typer.Option(..., "--net", help="Amount before tax"),
    total: float = typer.Option(..., "--total", help="Amount including tax"),
    status: str = typer.Option("pending", "--status", help="paid or pending"),
    payment_date: Optional[str] = typer.Option(None, "--payment-date", help="Required when paid"),
    config: str = CONFIG_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION,
) -> None:
    """Create an invoice and derive its reporting fields."""
    service = _invoice_service(_load_config(config, data_dir))
    data = {
        "invoice_id": invoice_id,
        "invoice_date": invoice_date,
        "customer_name": customer,
        "invoice_concept": concept,
        "revenue_type": revenue_type,
        "amount_net": net,
        "amount_total": total,
        "status": status,
        "payment_date": payment_date,
    }
    invoice = _run_invoice_write(lambda: service.create(data))
    console.print(f"[green]✓[/green] Created invoice [bold]{invoice.invoice_id}[/bold] ({invoice.invoice_quarter})")


@invoices_app.command("edit")
def edit_invoice(
    invoice_id: str = typer.Argument(..., help="Invoice to edit"),
    status: str = typer.Option(..., "--status", help="paid or pending"),
    invoice_date: Optional[str] = typer.Option(None, "--date", help="Invoice date (YYYY-MM-DD)"),
    customer: Optional[str] = typer.Option(None, "--customer"),
    concept: Optional[str] = typer.Option(None, "--concept"),
    revenue_type: Optional[str] = typer.Option(None, "--type"),
    net: Optional[float] = typer.Option(None, "--net"),
    total: Optional[float] = typer.Option(None, "--total"),
    payment_date: Optional[str] = typer.Option(None, "--payment-date"),
    config: str = CONFIG_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION,
) -> None:
    """Edit an invoice; only the options given are changed."""
    service = _invoice_service(_load_config(config, data_dir))
    supplied = {
        "invoice_date": invoice_date,
        "customer_name": customer,
        "invoice_concept": concept,
        "revenue_type": revenue_type,
        "amount_net": net,
        "amount_total": total,
        "payment_date": payment_date,
    }
    data = {k: v for k, v in supplied.items() if v is not None}
    data["status"] = status
    invoice = _run_invoice_write(lambda: service.update(invoice_id, data))
    console.print(f"[green]✓[/green] Updated invoice [bold]{invoice.invoice_id}[/bold]")


if __name__ == "__main__":
    app()
