"""Store package — the invoice CSV and its record-management service."""
from finboard.store.errors import (
    DuplicateInvoiceError,
    InvoiceNotFoundError,
    InvoiceValidationError,
    StoreError,
    WriteInProgressError,
)
from finboard.store.invoices import CSV_COLUMNS, InvoiceStore
from finboard.store.lock import WriteLock
from finboard.store.service import InvoiceService

__all__ = [
    "CSV_COLUMNS",
    "DuplicateInvoiceError",
    "InvoiceNotFoundError",
    "InvoiceService",
    "InvoiceStore",
    "InvoiceValidationError",
    "StoreError",
    "WriteInProgressError",
    "WriteLock",
]
