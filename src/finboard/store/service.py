"""
Invoice record management — create, edit, look up and list invoices.

Every mutation is validate → enrich → read-modify-write under the store's
write lock, so derived fields on disk always match their base fields.
"""

from __future__ import annotations

import logging
from functools import cmp_to_key
from typing import Any, Mapping

from finboard.analyzers.enrichment import enrich, update
from finboard.analyzers.invoice_ids import compare_invoice_ids
from finboard.models.financial import Invoice, InvoiceCreate, InvoiceEdit
from finboard.store.errors import DuplicateInvoiceError, InvoiceNotFoundError, InvoiceValidationError
from finboard.store.invoices import InvoiceStore
from finboard.store.validation import validate_create, validate_edit

logger = logging.getLogger("finboard.store.service")


class InvoiceService:
    """High-level invoice operations on top of an :class:`InvoiceStore`."""

    def __init__(self, store: InvoiceStore) -> None:
        self.store = store

    def list(self, descending: bool = True) -> list[Invoice]:
        """All invoices, ordered by invoice number (newest first by default)."""
        invoices = self.store.read_all(missing_ok=True)
        key = cmp_to_key(lambda a, b: compare_invoice_ids(a.invoice_id, b.invoice_id, descending))
        return sorted(invoices, key=key)

    def get(self, invoice_id: str) -> Invoice:
        for inv in self.store.read_all(missing_ok=True):
            if inv.invoice_id == invoice_id:
                return inv
        raise InvoiceNotFoundError(invoice_id)

    def customers(self) -> list[str]:
        return self.store.unique_customers()

    def create(self, data: Mapping[str, Any]) -> Invoice:
        """Validate, enrich and append a new invoice.

        Raises:
            InvoiceValidationError: Field-level validation failed.
            DuplicateInvoiceError: The id is already taken.
            WriteInProgressError: Another write is running.
        """
        errors = validate_create(data)
        if errors:
            raise InvoiceValidationError(errors)

        invoice_id = str(data["invoice_id"]).strip()

        def append(invoices: list[Invoice]) -> Invoice:
            if any(inv.invoice_id == invoice_id for inv in invoices):
                raise DuplicateInvoiceError(invoice_id)
            invoice = enrich(InvoiceCreate.model_validate(dict(data)))
            invoices.append(invoice)
            return invoice

        invoice = self.store.modify(append)

        logger.info("Created invoice %s for %s", invoice.invoice_id, invoice.customer_name)
        return invoice

    def update(self, invoice_id: str, data: Mapping[str, Any]) -> Invoice:
        """Apply a partial edit to an existing invoice and re-derive it.

        Raises:
            InvoiceValidationError: Field-level validation failed.
            InvoiceNotFoundError: No invoice has this id.
            WriteInProgressError: Another write is running.
        """
        errors = validate_edit(data)
        if errors:
            raise InvoiceValidationError(errors)

        edit = InvoiceEdit.model_validate({k: v for k, v in data.items() if k != "invoice_id"})

        def replace(invoices: list[Invoice]) -> Invoice:
            index = next((i for i, inv in enumerate(invoices) if inv.invoice_id == invoice_id), None)
            if index is None:
                raise InvoiceNotFoundError(invoice_id)
            updated = update(invoices[index], edit)
            if updated.amount_total < updated.amount_net:
                raise InvoiceValidationError({"amount_total": "Total cannot be lower than the net amount"})
            invoices[index] = updated
            return updated

        updated = self.store.modify(replace)

        logger.info("Updated invoice %s", invoice_id)
        return updated
