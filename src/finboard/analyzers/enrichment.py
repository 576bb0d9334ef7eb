"""
Invoice Enrichment — derive the 13 computed invoice fields from the 9 base ones.

Derivations:
1. **Issue calendar** — year, month, first-of-month and ``YYYYQn`` quarter label.
2. **Payment calendar** — the same for the payment date, plus days-to-pay.
3. **Revenue class** — lowercase type, recurring/non-recurring category, flag.
4. **Tax** — tax amount (total − net) and implied tax rate.

Dates are plain calendar dates (no time, no zone), so day differences never
drift with the host timezone. Edits always re-run the whole chain.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date

from finboard.models.financial import (
    REVENUE_CATEGORY_BY_TYPE,
    Invoice,
    InvoiceCreate,
    InvoiceEdit,
    InvoiceStatus,
    RevenueCategory,
)

logger = logging.getLogger("finboard.analyzers.enrichment")

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class InvalidDateError(ValueError):
    """A date field is not a valid ``YYYY-MM-DD`` calendar date."""


def parse_iso_date(value: str | date) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Raises:
        InvalidDateError: For any other shape or an impossible date (2025-02-30).
    """
    if isinstance(value, date):
        return value
    match = _ISO_DATE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidDateError(f"Invalid date {value!r}: expected YYYY-MM-DD")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(f"Invalid date {value!r}: {e}") from e


def quarter_label(year: int, month: int) -> str:
    """``quarter_label(2025, 4) == "2025Q2"``."""
    return f"{year}Q{math.ceil(month / 3)}"


def month_start(d: date) -> date:
    return d.replace(day=1)


def days_between(start: date, end: date) -> int:
    """Signed day difference; a payment before its invoice gives a negative value."""
    return (end - start).days


def implied_tax_rate(amount_net: float, amount_total: float) -> float:
    """(total − net) / net, or 0 when net is 0."""
    if amount_net == 0:
        return 0.0
    return (amount_total - amount_net) / amount_net


def enrich(base: InvoiceCreate) -> Invoice:
    """Build a fully derived :class:`Invoice` from the author-supplied fields.

    The input is assumed to have passed validation already; the only check
    made here is that the dates parse, and a bad one raises
    :class:`InvalidDateError` instead of leaking into derived fields.
    """
    invoice_date = parse_iso_date(base.invoice_date)

    paid = base.status == InvoiceStatus.PAID
    payment_date = parse_iso_date(base.payment_date) if paid and base.payment_date else None

    if payment_date is not None:
        payment_year: int | None = payment_date.year
        payment_month: int | None = payment_date.month
        payment_month_start: date | None = month_start(payment_date)
        days_to_pay: int | None = days_between(invoice_date, payment_date)
    else:
        payment_year = payment_month = None
        payment_month_start = None
        days_to_pay = None

    revenue_category = REVENUE_CATEGORY_BY_TYPE[base.revenue_type]
    amount_tax = base.amount_total - base.amount_net

    return Invoice(
        invoice_id=base.invoice_id.strip(),
        invoice_date=invoice_date,
        customer_name=base.customer_name.strip(),
        invoice_concept=base.invoice_concept.strip(),
        revenue_type=base.revenue_type,
        amount_net=base.amount_net,
        amount_total=base.amount_total,
        status=base.status,
        payment_date=payment_date,
        invoice_year=invoice_date.year,
        invoice_month=invoice_date.month,
        invoice_month_start=month_start(invoice_date),
        invoice_quarter=quarter_label(invoice_date.year, invoice_date.month),
        payment_year=payment_year,
        payment_month=payment_month,
        payment_month_start=payment_month_start,
        days_to_pay=days_to_pay,
        revenue_type_normalized=base.revenue_type.value.lower(),
        revenue_category=revenue_category,
        is_recurring=revenue_category == RevenueCategory.RECURRING,
        amount_tax=amount_tax,
        tax_rate_implied=implied_tax_rate(base.amount_net, base.amount_total),
    )


def base_fields(invoice: Invoice) -> InvoiceCreate:
    """Extract the nine author-supplied fields of an enriched invoice."""
    return InvoiceCreate(
        invoice_id=invoice.invoice_id,
        invoice_date=invoice.invoice_date.isoformat(),
        customer_name=invoice.customer_name,
        invoice_concept=invoice.invoice_concept,
        revenue_type=invoice.revenue_type,
        amount_net=invoice.amount_net,
        amount_total=invoice.amount_total,
        status=invoice.status,
        payment_date=invoice.payment_date.isoformat() if invoice.payment_date else None,
    )


def rederive(invoice: Invoice) -> Invoice:
    """Recompute every derived field from the invoice's own base fields."""
    return enrich(base_fields(invoice))


def update(existing: Invoice, edit: InvoiceEdit) -> Invoice:
    """Merge the supplied fields of ``edit`` over ``existing`` and re-derive.

    The invoice id never changes. Moving an invoice out of ``paid`` clears its
    payment date.
    """
    merged = base_fields(existing).model_dump()
    for name in edit.model_fields_set:
        value = getattr(edit, name)
        if value is None and name != "payment_date":
            continue
        merged[name] = value.strip() if isinstance(value, str) and name != "payment_date" else value

    if merged["status"] != InvoiceStatus.PAID:
        merged["payment_date"] = None

    merged["invoice_id"] = existing.invoice_id
    logger.debug("Re-deriving invoice %s (fields: %s)", existing.invoice_id, sorted(edit.model_fields_set))
    return enrich(InvoiceCreate(**merged))
