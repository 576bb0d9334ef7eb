"""
Record Normalizer — canonical labels for raw ledger and invoice rows.

Source files spell the same thing many ways ("negociación" / "NEGOCIACION",
"Asesor fiscal" / "asesoría fiscal", ``True`` / ``"True"``). Every raw label
is folded here exactly once, when records are built; engines only ever see
the canonical value.
"""

from __future__ import annotations

import math
import unicodedata
from typing import Any, Mapping

# Synonym table for expense subcategories (keys are lowercase, trimmed).
DEFAULT_SUBCATEGORY_SYNONYMS: dict[str, str] = {
    "asesor fiscal": "Asesoría Fiscal",
    "asesoría fiscal": "Asesoría Fiscal",
    "asesor contable": "Asesoría Contable",
    "asesoría contable": "Asesoría Contable",
    "asesoría": "Asesoría General",
}

_CONTRACT_STATUSES = ("activo", "inactivo", "negociación")
_BILLING_FREQUENCIES = ("mensual", "trimestral", "anual")
_EXPENSE_CATEGORIES = (
    "Salarios",
    "Outsourcing",
    "Profesionales",
    "Marketing",
    "Operaciones",
    "Impuestos",
    "Financiación",
)
OTHER_EXPENSE_CATEGORY = "Otros"

_TRUE_STRINGS = frozenset({"true", "1", "yes", "si", "y"})


def fold(text: str | None) -> str:
    """Strip, lowercase and remove accents: ``" Negociación "`` -> ``"negociacion"``."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text).strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _canonical(value: str, choices: tuple[str, ...]) -> str | None:
    key = fold(value)
    for choice in choices:
        if fold(choice) == key:
            return choice
    return None


def coerce_bool(value: Any) -> bool:
    """Treat literal booleans and their string spellings ("True"/"False") alike."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in _TRUE_STRINGS


def normalize_subcategory(
    subcategory: str | None,
    synonyms: Mapping[str, str] | None = None,
) -> str:
    """Collapse spelling variants of an expense subcategory.

    Unknown labels are returned unchanged; empty input gives ``""``.
    """
    if not subcategory:
        return ""
    table = DEFAULT_SUBCATEGORY_SYNONYMS if synonyms is None else synonyms
    return table.get(subcategory.strip().lower(), subcategory)


def normalize_client_name(name: str, aliases: Mapping[str, str] | None = None) -> str:
    """Trim a customer name and resolve known aliases to the canonical client id."""
    trimmed = name.strip()
    if not aliases:
        return trimmed
    return aliases.get(trimmed) or aliases.get(name) or trimmed


def parse_contract_status(value: str) -> str:
    """Canonical contract status; unknown values pass through for validation to reject."""
    return _canonical(value, _CONTRACT_STATUSES) or value


def parse_billing_frequency(value: str | None) -> str | None:
    """Canonical billing frequency, or ``None`` when blank or unrecognised."""
    if value is None or not str(value).strip():
        return None
    return _canonical(value, _BILLING_FREQUENCIES)


def parse_expense_category(value: str | None) -> str | None:
    """Canonical expense category.

    Blank labels give ``None``; labels outside the known set map to ``Otros``.
    """
    if value is None or not str(value).strip() or str(value).strip().lower() == "nan":
        return None
    return _canonical(value, _EXPENSE_CATEGORIES) or OTHER_EXPENSE_CATEGORY


def fold_labels(labels: list[str] | tuple[str, ...] | frozenset[str]) -> frozenset[str]:
    """Fold a list of category labels into a lookup set."""
    return frozenset(fold(label) for label in labels)


def coerce_optional_int(value: Any) -> int | None:
    """Integers exported through a float column ("15.0") back to ``int``; blanks to ``None``."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        if not value.strip() or value.strip().lower() == "nan":
            return None
        return int(float(value))
    if isinstance(value, float):
        return None if math.isnan(value) else int(value)
    return value


def drop_blank_values(record: Mapping[str, Any]) -> dict[str, Any]:
    """Remove keys whose value is missing (None, NaN, empty string) so model defaults apply."""
    cleaned: dict[str, Any] = {}
    for key, value in record.items():
        if value is None:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        cleaned[str(key).strip()] = value
    return cleaned
