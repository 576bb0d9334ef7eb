"""Invoice store errors."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for invoice store failures."""


class WriteInProgressError(StoreError):
    """Another write holds the lock; the caller should retry later."""

    def __init__(self, message: str = "Another write operation is in progress") -> None:
        super().__init__(message)


class DuplicateInvoiceError(StoreError):
    def __init__(self, invoice_id: str) -> None:
        self.invoice_id = invoice_id
        super().__init__(f"An invoice with id {invoice_id!r} already exists")


class InvoiceNotFoundError(StoreError):
    def __init__(self, invoice_id: str) -> None:
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id!r} not found")


class InvoiceValidationError(StoreError):
    """Input failed business validation.

    ``errors`` maps each offending field to a human-readable message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid invoice input: {fields}")
