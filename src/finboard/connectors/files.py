"""
Data directory connector — load the whole dataset from CSV and JSON exports.

Expected layout (file names configurable through :class:`DataConfig`):

- invoices CSV (enriched, 22 columns), read through :class:`InvoiceStore`
- ``contracts.json`` / ``contract_events.json``
- ``expenses.csv`` / ``inflows.csv`` — the bank ledger
- ``cash_balance.json`` — current balance plus monthly history
- MRR series CSV
- ``usage_metrics.json`` and ``financing.json`` — optional
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from finboard.config import DataConfig
from finboard.connectors.base import BaseConnector
from finboard.models.financial import (
    BankInflow,
    CashBalance,
    Contract,
    ContractEvent,
    Expense,
    FinancialDataset,
    FinancingEntry,
    MRRMetric,
    UsageMetrics,
)
from finboard.normalizer import drop_blank_values, normalize_subcategory
from finboard.store.invoices import InvoiceStore

logger = logging.getLogger("finboard.connectors.files")

M = TypeVar("M", bound=BaseModel)


def read_csv_records(path: Path) -> list[dict[str, Any]]:
    """Read a CSV as text cells with stripped headers; blank cells are dropped."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = df.columns.str.strip()
    return [drop_blank_values(record) for record in df.to_dict(orient="records")]


def read_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def parse_records(records: list[Mapping[str, Any]], model: type[M], source: str) -> list[M]:
    """Validate each record into ``model``, skipping (and logging) bad rows."""
    parsed: list[M] = []
    for record in records:
        try:
            parsed.append(model.model_validate(drop_blank_values(record)))
        except ValidationError as e:
            logger.debug("Skipping %s row: %s", source, e)
    if len(parsed) < len(records):
        logger.warning("Skipped %d of %d rows in %s", len(records) - len(parsed), len(records), source)
    return parsed


def parse_financing(raw: Any) -> list[FinancingEntry]:
    """Financing entries from either a flat list or grouped equity/debt/grants.

    The grouped form is what the funding export produces::

        {"equity_rounds": [...], "debt": [...], "grants": [...]}
    """
    if isinstance(raw, list):
        return [FinancingEntry.model_validate(item) for item in raw]

    entries: list[FinancingEntry] = []
    for grant in raw.get("grants", []):
        entries.append(
            FinancingEntry(label=grant["name"], amount=grant["amount"], detail=grant.get("institution", ""))
        )
    for debt in raw.get("debt", []):
        entries.append(
            FinancingEntry(
                label=f"{debt['instrument']} {debt.get('institution', '')}".strip(),
                amount=debt["amount"],
                detail=f"Granted {debt['date']}" if debt.get("date") else "",
            )
        )
    for round_ in raw.get("equity_rounds", []):
        entries.append(
            FinancingEntry(
                label=f"{round_.get('round', 'Equity')} ({round_['investor']})",
                amount=round_["amount"],
                detail=round_.get("instrument", ""),
            )
        )
    return entries


class DataDirectoryConnector(BaseConnector):
    """Load a :class:`FinancialDataset` from a directory of exports.

    Usage::

        connector = DataDirectoryConnector(DataConfig(data_dir="./data"))
        dataset = await connector.pull()
    """

    name = "files"
    description = "Load the dataset from CSV/JSON exports in a directory"

    def __init__(
        self,
        data_config: DataConfig | None = None,
        subcategory_synonyms: Mapping[str, str] | None = None,
    ) -> None:
        self.data_config = data_config or DataConfig()
        self.subcategory_synonyms = subcategory_synonyms

    def source_available(self) -> bool:
        return Path(self.data_config.data_dir).is_dir()

    def load(self) -> FinancialDataset:
        """Read every dataset file.

        Raises:
            FileNotFoundError: A required file is missing.
        """
        cfg = self.data_config
        invoices = InvoiceStore(cfg.path(cfg.invoices_file)).read_all()

        dataset = FinancialDataset(
            invoices=invoices,
            contracts=parse_records(self._required_json(cfg.contracts_file), Contract, cfg.contracts_file),
            contract_events=parse_records(
                self._required_json(cfg.contract_events_file), ContractEvent, cfg.contract_events_file
            ),
            expenses=self._expenses(),
            inflows=parse_records(self._required_csv(cfg.inflows_file), BankInflow, cfg.inflows_file),
            cash_balance=CashBalance.model_validate(self._required_json(cfg.cash_balance_file)),
            mrr_series=parse_records(self._required_csv(cfg.mrr_file), MRRMetric, cfg.mrr_file),
            usage=self._usage(),
            financing=self._financing(),
            source=f"files:{cfg.data_dir}",
        )

        logger.info(
            "Loaded dataset from %s: %d invoices, %d contracts, %d expenses, %d inflows",
            cfg.data_dir,
            len(dataset.invoices),
            len(dataset.contracts),
            len(dataset.expenses),
            len(dataset.inflows),
        )
        return dataset

    def _file(self, filename: str) -> Path:
        path = self.data_config.path(filename)
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")
        return path

    def _required_csv(self, filename: str) -> list[dict[str, Any]]:
        return read_csv_records(self._file(filename))

    def _required_json(self, filename: str) -> Any:
        return read_json(self._file(filename))

    def _expenses(self) -> list[Expense]:
        filename = self.data_config.expenses_file
        expenses = parse_records(self._required_csv(filename), Expense, filename)
        for expense in expenses:
            expense.subcategory = normalize_subcategory(expense.subcategory, self.subcategory_synonyms)
        return expenses

    def _usage(self) -> UsageMetrics | None:
        path = self.data_config.path(self.data_config.usage_file)
        if not path.exists():
            return None
        try:
            return UsageMetrics.model_validate(read_json(path))
        except (ValidationError, ValueError) as e:
            logger.warning("Ignoring unreadable usage metrics %s: %s", path.name, e)
            return None

    def _financing(self) -> list[FinancingEntry]:
        path = self.data_config.path(self.data_config.financing_file)
        if not path.exists():
            return []
        return parse_financing(read_json(path))
