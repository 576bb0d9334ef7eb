"""
Invoice store — the enriched invoice CSV as the system of record.

Reads go through pandas and the :class:`Invoice` model. Writes are
all-or-nothing: back up the current file, write the full new content to a
temporary file in the same directory, then atomically replace the original.
A reader therefore sees either the old file or the new one, never a mix.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

import pandas as pd
from pydantic import ValidationError

from finboard.models.financial import Invoice
from finboard.normalizer import drop_blank_values
from finboard.store.lock import WriteLock

logger = logging.getLogger("finboard.store.invoices")

T = TypeVar("T")

# Column order of the enriched invoice dataset.
CSV_COLUMNS: tuple[str, ...] = (
    "invoice_id",
    "invoice_date",
    "customer_name",
    "invoice_concept",
    "revenue_type",
    "amount_net",
    "amount_total",
    "status",
    "payment_date",
    "invoice_year",
    "invoice_month",
    "invoice_month_start",
    "invoice_quarter",
    "payment_year",
    "payment_month",
    "payment_month_start",
    "days_to_pay",
    "revenue_type_normalized",
    "revenue_category",
    "is_recurring",
    "amount_tax",
    "tax_rate_implied",
)


def format_csv_value(value: Any) -> str:
    """Render one cell the way the dataset stores it.

    ``None`` is empty, booleans are ``True``/``False``, whole floats drop
    their ``.0``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def invoice_to_row(invoice: Invoice) -> dict[str, str]:
    return {column: format_csv_value(getattr(invoice, column)) for column in CSV_COLUMNS}


class InvoiceStore:
    """CSV-backed invoice collection.

    Args:
        path: The invoice CSV.
        backup_dir: Where pre-write copies go. ``None`` disables backups.
        lock: Shared write lock; a private one is created if omitted.
        keep_backups: Newest backups to keep (0 = keep all).
    """

    def __init__(
        self,
        path: str | Path,
        backup_dir: str | Path | None = None,
        lock: WriteLock | None = None,
        keep_backups: int = 0,
    ) -> None:
        self.path = Path(path)
        self.backup_dir = Path(backup_dir) if backup_dir is not None else None
        self.lock = lock or WriteLock()
        self.keep_backups = keep_backups

    def read_all(self, missing_ok: bool = False) -> list[Invoice]:
        """Load every invoice row.

        Rows that do not validate are skipped with a warning. A missing file
        raises ``FileNotFoundError`` unless ``missing_ok`` is set.
        """
        if not self.path.exists():
            if missing_ok:
                return []
            raise FileNotFoundError(f"Invoice file not found: {self.path}")

        df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        df.columns = df.columns.str.strip()

        invoices: list[Invoice] = []
        for record in df.to_dict(orient="records"):
            try:
                invoices.append(Invoice.model_validate(drop_blank_values(record)))
            except ValidationError as e:
                logger.warning("Skipping invoice row %s: %d errors", record.get("invoice_id", "?"), e.error_count())

        logger.info("Parsed %d invoices from %s", len(invoices), self.path.name)
        return invoices

    def write_all(self, invoices: Sequence[Invoice]) -> None:
        """Replace the file with ``invoices``, holding the write lock.

        Raises:
            WriteInProgressError: If another write is running.
        """
        with self.lock.hold():
            self._write(invoices)

    def modify(self, change: Callable[[list[Invoice]], T]) -> T:
        """Run one read, change, replace cycle under the write lock.

        ``change`` edits the list in place and returns what the caller gets
        back. If it raises, the file is left untouched.

        Raises:
            WriteInProgressError: If another write is running.
        """
        with self.lock.hold():
            invoices = self.read_all(missing_ok=True)
            result = change(invoices)
            self._write(invoices)
        return result

    def _write(self, invoices: Sequence[Invoice]) -> None:
        """Back up, write a temp file beside the target, then swap it in. Caller holds the lock."""
        self._backup()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        df = pd.DataFrame([invoice_to_row(inv) for inv in invoices], columns=list(CSV_COLUMNS))
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.stem}_", suffix=".tmp")
        os.close(fd)
        try:
            df.to_csv(tmp_name, index=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Wrote %d invoices to %s", len(invoices), self.path.name)

    def exists(self, invoice_id: str) -> bool:
        return any(inv.invoice_id == invoice_id for inv in self.read_all(missing_ok=True))

    def unique_customers(self) -> list[str]:
        """Sorted distinct customer names (trimmed)."""
        return sorted({inv.customer_name.strip() for inv in self.read_all(missing_ok=True)})

    def _backup(self) -> Path | None:
        if self.backup_dir is None or not self.path.exists():
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        target = self.backup_dir / f"{self.path.stem}_{stamp}{self.path.suffix}"
        shutil.copy2(self.path, target)
        logger.debug("Backed up %s to %s", self.path.name, target)

        if self.keep_backups > 0:
            backups = sorted(self.backup_dir.glob(f"{self.path.stem}_*{self.path.suffix}"))
            for old in backups[: -self.keep_backups]:
                old.unlink()
        return target
