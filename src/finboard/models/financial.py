"""
Financial data models — invoices, contracts, bank ledger, cash balance.

Closed string values (statuses, categories, frequencies) are enums. Raw labels
are folded once here, at ingestion, so engines compare enum members only.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from finboard.normalizer import (
    coerce_bool,
    coerce_optional_int,
    fold,
    parse_billing_frequency,
    parse_contract_status,
    parse_expense_category,
)


class InvoiceStatus(str, Enum):
    """Payment status of an invoice."""

    PAID = "paid"
    PENDING = "pending"
    ISSUED = "issued"  # legacy rows only, treated as not paid


class RevenueType(str, Enum):
    """Revenue type of an invoice. Exactly one value is recurring."""

    LICENSE = "Licencia"
    SETUP = "SetUp"

    @classmethod
    def _missing_(cls, value: object) -> RevenueType | None:
        if isinstance(value, str):
            key = fold(value)
            for member in cls:
                if fold(member.value) == key:
                    return member
        return None


class RevenueCategory(str, Enum):
    RECURRING = "recurring"
    NON_RECURRING = "non_recurring"


class ContractStatus(str, Enum):
    """Commercial status of a contract."""

    ACTIVE = "activo"
    INACTIVE = "inactivo"
    NEGOTIATION = "negociación"


class BillingFrequency(str, Enum):
    MONTHLY = "mensual"
    QUARTERLY = "trimestral"
    ANNUAL = "anual"


class ContractEventType(str, Enum):
    """Point-in-time change to a contract's commercial terms."""

    EXPANSION = "EXPANSION"
    CANCELLATION = "CANCELACIÓN"
    DOWNGRADE = "DOWNGRADE"
    NEW_BUSINESS = "NEW_BUSINESS"

    @classmethod
    def _missing_(cls, value: object) -> ContractEventType | None:
        if isinstance(value, str):
            key = fold(value)
            for member in cls:
                if fold(member.value) == key:
                    return member
        return None


class ExpenseCategory(str, Enum):
    """Top-level expense categories of the bank ledger."""

    SALARIES = "Salarios"
    OUTSOURCING = "Outsourcing"
    PROFESSIONALS = "Profesionales"
    MARKETING = "Marketing"
    OPERATIONS = "Operaciones"
    TAXES = "Impuestos"
    FINANCING = "Financiación"
    OTHER = "Otros"


# Maps enum value -> derived revenue category. Closed two-value mapping.
REVENUE_CATEGORY_BY_TYPE: dict[RevenueType, RevenueCategory] = {
    RevenueType.LICENSE: RevenueCategory.RECURRING,
    RevenueType.SETUP: RevenueCategory.NON_RECURRING,
}


class Invoice(BaseModel):
    """A fully enriched invoice row.

    The first nine fields are author-supplied; the rest are derived by
    :func:`finboard.analyzers.enrichment.enrich` and never edited directly.
    """

    invoice_id: str
    invoice_date: date
    customer_name: str
    invoice_concept: str = ""
    revenue_type: RevenueType
    amount_net: float
    amount_total: float
    status: InvoiceStatus
    payment_date: date | None = None

    invoice_year: int
    invoice_month: int
    invoice_month_start: date
    invoice_quarter: str
    payment_year: int | None = None
    payment_month: int | None = None
    payment_month_start: date | None = None
    days_to_pay: int | None = None
    revenue_type_normalized: str
    revenue_category: RevenueCategory
    is_recurring: bool
    amount_tax: float
    tax_rate_implied: float

    @field_validator("is_recurring", mode="before")
    @classmethod
    def _coerce_recurring(cls, v: Any) -> bool:
        return coerce_bool(v)

    @field_validator("payment_date", "payment_month_start", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("invoice_year", "invoice_month", "payment_year", "payment_month", "days_to_pay", mode="before")
    @classmethod
    def _whole_number(cls, v: Any) -> Any:
        return coerce_optional_int(v)

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def month_key(self) -> str:
        """Issue month as ``YYYY-MM``."""
        return self.invoice_month_start.isoformat()[:7]


class Contract(BaseModel):
    """Current snapshot of a commercial agreement (read-only to the engines)."""

    contract_id: str
    client_id: str
    client_name: str
    product: str = ""
    status: ContractStatus
    start_date: date | None = None
    end_date: date | None = None
    billing_frequency: BillingFrequency | None = None
    currency: str = "EUR"
    set_up: float = 0.0
    base_contract_value_annual: float = 0.0
    base_mrr_eur: float = 0.0
    base_arr_eur: float = 0.0
    renewal_type: str | None = None
    notice_days: int | None = None
    ipc_applicable: bool = False
    ipc_frequency: str | None = None
    ipc_application_month: str | None = None
    current_price_annual: float = 0.0
    current_mrr: float = 0.0
    account_owner: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _fold_status(cls, v: Any) -> Any:
        return parse_contract_status(v) if isinstance(v, str) else v

    @field_validator("billing_frequency", mode="before")
    @classmethod
    def _fold_frequency(cls, v: Any) -> Any:
        return parse_billing_frequency(v) if isinstance(v, str) or v is None else v

    @field_validator("ipc_applicable", mode="before")
    @classmethod
    def _coerce_ipc(cls, v: Any) -> bool:
        return coerce_bool(v)

    @field_validator("notice_days", mode="before")
    @classmethod
    def _whole_number(cls, v: Any) -> Any:
        return coerce_optional_int(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @property
    def is_active(self) -> bool:
        return self.status == ContractStatus.ACTIVE


class ContractEvent(BaseModel):
    """A change in a contract's ARR (expansion, cancellation, ...)."""

    event_id: str
    contract_id: str
    client_name: str = ""
    event_date: date
    event_type: ContractEventType
    arr_delta: float = 0.0
    mrr_delta: float = 0.0
    currency: str = "EUR"
    reason: str = ""
    effective_from: date | None = None
    notes: str | None = None

    @property
    def signed_arr_delta(self) -> float:
        """ARR delta with its business sign.

        Cancellations and downgrades are stored as magnitudes in some exports,
        so their sign is forced negative here.
        """
        if self.event_type in (ContractEventType.CANCELLATION, ContractEventType.DOWNGRADE):
            return -abs(self.arr_delta)
        return abs(self.arr_delta)


class Expense(BaseModel):
    """A bank-ledger outflow. ``amount`` is negative at the source."""

    expense_id: str
    expense_date: date
    category: ExpenseCategory | None = None
    subcategory: str = ""
    amount: float
    description: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _fold_category(cls, v: Any) -> Any:
        if v is None or isinstance(v, ExpenseCategory):
            return v
        return parse_expense_category(str(v))

    @property
    def is_financing(self) -> bool:
        return self.category == ExpenseCategory.FINANCING


class BankInflow(BaseModel):
    """A bank-ledger inflow. ``amount`` is positive at the source."""

    inflow_id: str
    inflow_date: date
    category: str = ""
    amount: float
    description: str = ""
    category_key: str = ""

    @model_validator(mode="after")
    def _fold_category_key(self) -> BankInflow:
        self.category_key = fold(self.category)
        return self


class CashBalancePoint(BaseModel):
    month: str  # "2025-03"
    balance: float
    notes: str | None = None


class CashBalance(BaseModel):
    """Current cash position plus its monthly history."""

    current_balance: float
    last_updated: date
    history: list[CashBalancePoint] = Field(default_factory=list)


class MRRMetric(BaseModel):
    """Precomputed monthly MRR/ARR point, consumed as-is."""

    month: str
    mrr_approx: float
    arr_approx: float


class UsageSnapshot(BaseModel):
    date: date
    total_users: int | None = None
    active_users: int | None = None
    conversations: int | None = None
    avg_daily_conversations: float | None = None


class UsageMetrics(BaseModel):
    last_updated: date
    latest: UsageSnapshot
    history: list[UsageSnapshot] = Field(default_factory=list)


class FinancingEntry(BaseModel):
    """A non-operating funding item (grant, loan, equity round)."""

    label: str
    amount: float
    detail: str = ""


class FinancialDataset(BaseModel):
    """Complete dataset for analysis.

    This is what connectors produce and analyzers consume.
    """

    invoices: list[Invoice] = Field(default_factory=list)
    contracts: list[Contract] = Field(default_factory=list)
    contract_events: list[ContractEvent] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    inflows: list[BankInflow] = Field(default_factory=list)
    cash_balance: CashBalance
    mrr_series: list[MRRMetric] = Field(default_factory=list)
    usage: UsageMetrics | None = None
    financing: list[FinancingEntry] = Field(default_factory=list)
    source: str = "unknown"


class InvoiceCreate(BaseModel):
    """The nine author-supplied invoice fields.

    Dates stay as ``YYYY-MM-DD`` strings; parsing them is the enrichment
    engine's job. Business validation happens before this model reaches the
    engine (see :mod:`finboard.store.validation`).
    """

    invoice_id: str
    invoice_date: str
    customer_name: str
    invoice_concept: str = ""
    revenue_type: RevenueType
    amount_net: float
    amount_total: float
    status: InvoiceStatus
    payment_date: str | None = None


class InvoiceEdit(BaseModel):
    """A partial edit. Only fields explicitly supplied are merged."""

    invoice_date: str | None = None
    customer_name: str | None = None
    invoice_concept: str | None = None
    revenue_type: RevenueType | None = None
    amount_net: float | None = None
    amount_total: float | None = None
    status: InvoiceStatus | None = None
    payment_date: str | None = None
