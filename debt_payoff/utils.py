"""Utility functions for the debt payoff planner.

Helpers for turning user input into ``Decimal`` and ``date`` values and for
month arithmetic. Schedules advance one calendar month per period, so dates are
derived by adding ``month - 1`` months to the simulation start date.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal, InvalidOperation, getcontext
from typing import Optional, Union

getcontext().prec = 28  # increase decimal precision for financial calculations

Number = Union[Decimal, int, float, str]


def parse_year_month(ym: str) -> date:
    """Parse a ``YYYY-MM`` (or ``YYYY-MM-DD``) string into the first day of that month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.strip().split("-")
        if len(parts) < 2:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), 1)
    except (ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def first_of_month(dt: Optional[date] = None) -> date:
    """Normalize ``dt`` (today when omitted) to the first day of its month."""
    dt = dt or date.today()
    return date(dt.year, dt.month, 1)


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace. It raises
    ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        return Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def to_decimal(value: Number) -> Decimal:
    """Coerce ``value`` to ``Decimal``; floats go through ``str`` so 3.25 stays 3.25."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    return decimal_from_str(value)
