"""
Business validation for invoice input.

Validators take the raw field mapping (as typed by a user or parsed from a
request) and return ``{field: message}``. An empty dict means valid.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from finboard.models.financial import InvoiceStatus, RevenueType

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

REVENUE_TYPES = [t.value for t in RevenueType]
INVOICE_STATUSES = [InvoiceStatus.PAID.value, InvoiceStatus.PENDING.value]

_MSG_DATE_FORMAT = "Invalid date format (use YYYY-MM-DD)"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _is_revenue_type(value: Any) -> bool:
    if isinstance(value, RevenueType):
        return True
    return isinstance(value, str) and value.strip().lower() in {t.lower() for t in REVENUE_TYPES}


def _status_value(value: Any) -> str | None:
    if isinstance(value, InvoiceStatus):
        return value.value
    return value if isinstance(value, str) else None


def _check_payment(data: Mapping[str, Any], errors: dict[str, str]) -> None:
    status = _status_value(data.get("status"))
    if status not in INVOICE_STATUSES:
        errors["status"] = f"Status must be one of: {', '.join(INVOICE_STATUSES)}"
        return
    if status == InvoiceStatus.PAID.value:
        payment_date = data.get("payment_date")
        if _blank(payment_date):
            errors["payment_date"] = "Payment date is required for paid invoices"
        elif not _ISO_DATE.match(str(payment_date)):
            errors["payment_date"] = _MSG_DATE_FORMAT


def validate_create(data: Mapping[str, Any]) -> dict[str, str]:
    """Validate a new invoice. Every base field is required."""
    errors: dict[str, str] = {}

    if _blank(data.get("invoice_id")):
        errors["invoice_id"] = "Invoice id is required"

    invoice_date = data.get("invoice_date")
    if _blank(invoice_date):
        errors["invoice_date"] = "Invoice date is required"
    elif not _ISO_DATE.match(str(invoice_date)):
        errors["invoice_date"] = _MSG_DATE_FORMAT

    if _blank(data.get("customer_name")):
        errors["customer_name"] = "Customer is required"

    if _blank(data.get("invoice_concept")):
        errors["invoice_concept"] = "Concept is required"

    if not _is_revenue_type(data.get("revenue_type")):
        errors["revenue_type"] = f"Revenue type must be one of: {', '.join(REVENUE_TYPES)}"

    net = _number(data.get("amount_net"))
    if net is None or net <= 0:
        errors["amount_net"] = "Net amount must be greater than 0"

    total = _number(data.get("amount_total"))
    if total is None or (net is not None and total < net):
        errors["amount_total"] = "Total cannot be lower than the net amount"

    _check_payment(data, errors)
    return errors


def validate_edit(data: Mapping[str, Any]) -> dict[str, str]:
    """Validate a partial edit.

    Only supplied fields are checked, except ``status`` which every edit
    must carry (and with it the paid/payment-date rule).
    """
    errors: dict[str, str] = {}

    if "invoice_date" in data and not _blank(data["invoice_date"]):
        if not _ISO_DATE.match(str(data["invoice_date"])):
            errors["invoice_date"] = _MSG_DATE_FORMAT

    if "customer_name" in data and _blank(data["customer_name"]):
        errors["customer_name"] = "Customer is required"

    if "invoice_concept" in data and _blank(data["invoice_concept"]):
        errors["invoice_concept"] = "Concept is required"

    if "revenue_type" in data and not _is_revenue_type(data["revenue_type"]):
        errors["revenue_type"] = f"Revenue type must be one of: {', '.join(REVENUE_TYPES)}"

    net = _number(data.get("amount_net"))
    if data.get("amount_net") is not None and (net is None or net <= 0):
        errors["amount_net"] = "Net amount must be greater than 0"

    total = _number(data.get("amount_total"))
    if total is not None and net is not None and total < net:
        errors["amount_total"] = "Total cannot be lower than the net amount"

    _check_payment(data, errors)
    return errors
