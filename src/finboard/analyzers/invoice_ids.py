"""
Invoice number ordering.

Invoice ids look like ``FACT`` + correlative + 4-digit year (``FACT12025`` is
invoice 1 of 2025). Sorting them as strings puts ``FACT102024`` before
``FACT22024``; this module orders them by (year, correlative) instead and
always sends ids that do not follow the pattern to the end.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable

_INVOICE_ID = re.compile(r"^FACT(\d+)(\d{4})$", re.IGNORECASE)


@dataclass(frozen=True)
class InvoiceNumber:
    year: int
    correlative: int


def parse_invoice_id(invoice_id: str) -> InvoiceNumber | None:
    """``parse_invoice_id("FACT0012026") == InvoiceNumber(2026, 1)``; ``None`` if malformed."""
    match = _INVOICE_ID.match(invoice_id or "")
    if not match:
        return None
    return InvoiceNumber(year=int(match.group(2)), correlative=int(match.group(1)))


def compare_invoice_ids(a: str, b: str, descending: bool = False) -> int:
    """Three-way comparison; malformed ids sort last in either direction."""
    pa, pb = parse_invoice_id(a), parse_invoice_id(b)
    if pa is None and pb is None:
        return 0
    if pa is None:
        return 1
    if pb is None:
        return -1

    diff = (pa.year - pb.year) or (pa.correlative - pb.correlative)
    return -diff if descending else diff


def sort_invoice_ids(ids: Iterable[str], descending: bool = False) -> list[str]:
    return sorted(ids, key=cmp_to_key(lambda a, b: compare_invoice_ids(a, b, descending)))
