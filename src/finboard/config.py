"""
finboard configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from finboard.analyzers.cashflow import DEFAULT_FINANCING_CATEGORIES
from finboard.analyzers.reports import ReportOptions
from finboard.normalizer import DEFAULT_SUBCATEGORY_SYNONYMS


class DataConfig(BaseModel):
    """Where the dataset files live."""

    data_dir: str = Field(default="./data", description="Directory holding the dataset files")
    invoices_file: str = "facturas_historicas_enriquecido.csv"
    contracts_file: str = "contracts.json"
    contract_events_file: str = "contract_events.json"
    expenses_file: str = "expenses.csv"
    inflows_file: str = "inflows.csv"
    cash_balance_file: str = "cash_balance.json"
    mrr_file: str = "mrr_aproximado_por_mes.csv"
    usage_file: str = "usage_metrics.json"
    financing_file: str = "financing.json"

    def path(self, filename: str) -> Path:
        return Path(self.data_dir) / filename


class CashflowConfig(BaseModel):
    """Burn and runway windows."""

    burn_window_months: int = Field(default=6, ge=0, description="Trailing months for burn and inflow averages")
    chart_months: int = Field(default=6, ge=0)
    executive_category_months: int = Field(default=6, ge=0)
    management_category_months: int = Field(default=12, ge=0)
    projection_months: int = Field(default=12, ge=1)
    financing_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FINANCING_CATEGORIES),
        description="Inflow categories treated as financing, never operating cash",
    )


class ForecastConfig(BaseModel):
    """Client matching for the revenue forecast."""

    client_aliases: dict[str, str] = Field(
        default_factory=dict,
        description="Invoice customer name -> contract client id",
    )
    excluded_clients: list[str] = Field(
        default_factory=list,
        description="Client ids whose active contract has no recurring billing",
    )


class NormalizerConfig(BaseModel):
    subcategory_synonyms: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SUBCATEGORY_SYNONYMS))


class StoreConfig(BaseModel):
    """Invoice store settings."""

    backup_dir: str = Field(default="./data/backups", description="Where invoice CSV backups are written")
    keep_backups: int = Field(default=20, ge=0, description="Backups kept per file (0 = unlimited)")


class FinboardConfig(BaseModel):
    """Root configuration for finboard."""

    data: DataConfig = Field(default_factory=DataConfig)
    cashflow: CashflowConfig = Field(default_factory=CashflowConfig)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)

    # Reporting
    risk_horizon_days: int = Field(default=90, ge=0)
    active_customer_months: int = Field(default=4, ge=0)

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> FinboardConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_data_dir = os.environ.get("FINBOARD_DATA_DIR")
        env_invoices = os.environ.get("FINBOARD_INVOICES_FILE")
        env_window = os.environ.get("FINBOARD_BURN_WINDOW")

        if env_data_dir or env_invoices:
            section = data.get("data", {})
            if env_data_dir:
                section["data_dir"] = env_data_dir
            if env_invoices:
                section["invoices_file"] = env_invoices
            data["data"] = section

        if env_window:
            section = data.get("cashflow", {})
            section["burn_window_months"] = int(env_window)
            data["cashflow"] = section

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)

    def report_options(self) -> ReportOptions:
        """Collector options derived from this configuration."""
        return ReportOptions(
            burn_window_months=self.cashflow.burn_window_months,
            chart_months=self.cashflow.chart_months,
            executive_category_months=self.cashflow.executive_category_months,
            management_category_months=self.cashflow.management_category_months,
            active_customer_months=self.active_customer_months,
            risk_horizon_days=self.risk_horizon_days,
            financing_categories=tuple(self.cashflow.financing_categories),
            client_aliases=dict(self.forecast.client_aliases),
            excluded_clients=tuple(self.forecast.excluded_clients),
        )
