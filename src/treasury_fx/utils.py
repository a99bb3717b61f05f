"""
Helpers for the Treasury Rates of Exchange feed.

Parsing of the string-typed feed columns, filter clause builders for the
Fiscal Data query grammar (``column:op:value``), and calendar month
arithmetic for the rate lookback window.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

API_DATE_FORMAT = "%Y-%m-%d"


def parse_api_date(value: str | None) -> date | None:
    """
    Parse a feed date (YYYY-MM-DD).

    Returns None for empty or malformed input; callers decide whether
    that is an error.
    """
    if value is None or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), API_DATE_FORMAT).date()
    except ValueError:
        return None


def parse_api_exchange_rate(value: str | None) -> Decimal | None:
    """
    Parse a feed exchange rate string into an exact Decimal.

    Never goes through float. NaN and infinities are rejected.
    """
    if value is None or not value.strip():
        return None
    try:
        rate = Decimal(value.strip())
    except InvalidOperation:
        return None
    if not rate.is_finite():
        return None
    return rate


def format_api_date(value: date) -> str:
    return value.strftime(API_DATE_FORMAT)


def subtract_months(value: date, months: int) -> date:
    """
    Move a date back by whole calendar months.

    The day is clamped to the last day of the target month,
    so 2024-08-31 minus 6 months is 2024-02-29.
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def build_currency_filter(currencies: Iterable[str], always_in: bool = False) -> str:
    """Build an ``eq`` clause for one label or an ``in`` clause for several."""
    labels = list(currencies or [])
    if not labels:
        raise ValueError("Currency descriptions cannot be empty")

    if len(labels) == 1 and not always_in:
        return f"country_currency_desc:eq:{labels[0]}"

    return f"country_currency_desc:in:({','.join(labels)})"


def build_date_range_filter(
    start_date: date | None,
    end_date: date | None
) -> str | None:
    """Inclusive record_date bounds, or None when neither bound is given."""
    clauses = []
    if start_date is not None:
        clauses.append(f"record_date:gte:{format_api_date(start_date)}")
    if end_date is not None:
        clauses.append(f"record_date:lte:{format_api_date(end_date)}")
    return ",".join(clauses) if clauses else None


def join_filters(*clauses: str | None) -> str:
    return ",".join(c for c in clauses if c)
