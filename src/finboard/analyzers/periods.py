"""
Calendar helpers shared by the metrics engines.

Month keys are ``YYYY-MM`` strings: they sort lexicographically in
chronological order, which is what every bucketing step relies on.
"""

from __future__ import annotations

import calendar
from datetime import date

MONTH_ABBREVIATIONS = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]
MONTH_NAMES = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by whole months, clamping the day to the target month's length.

    ``add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)``.
    """
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_key(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def month_label(key: str, with_year: bool = True) -> str:
    """``month_label("2025-03") == "Mar 25"``; ``with_year=False`` gives ``"Mar"``."""
    year, month = key.split("-")[:2]
    name = MONTH_ABBREVIATIONS[int(month) - 1]
    return f"{name} {year[2:]}" if with_year else name


def long_month_label(year: int, month: int) -> str:
    """``long_month_label(2025, 3) == "marzo de 2025"``."""
    return f"{MONTH_NAMES[month - 1]} de {year}"


def month_range(start: date, end: date) -> list[date]:
    """First-of-month dates from ``start``'s month through ``end``'s month, inclusive."""
    months: list[date] = []
    current = start.replace(day=1)
    last = end.replace(day=1)
    while current <= last:
        months.append(current)
        current = add_months(current, 1)
    return months


def previous_complete_month(today: date) -> tuple[int, int]:
    """(year, month) of the last fully elapsed month."""
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def previous_complete_quarter(today: date) -> str:
    """Quarter label of the last fully elapsed quarter (``"2024Q4"`` during Q1 2025)."""
    current = (today.month - 1) // 3 + 1
    if current == 1:
        return f"{today.year - 1}Q4"
    return f"{today.year}Q{current - 1}"
