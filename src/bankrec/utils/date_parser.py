"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_STATEMENT_DATE = re.compile(r"^\s*(\d{8})")


def parse_statement_date(value: str) -> date:
    """Parse an OFX date field into a date.

    OFX dates start with an 8-digit YYYYMMDD prefix, optionally followed by a
    time of day and a timezone (e.g. "20240115120000[-3:BRT]"). Anything after
    the first eight digits is ignored.

    Raises:
        ValueError: If the value has no valid YYYYMMDD prefix
    """
    match = _STATEMENT_DATE.match(value or "")
    if match is None:
        raise ValueError(f"Could not parse statement date '{value}'")
    try:
        return datetime.strptime(match.group(1), "%Y%m%d").date()
    except ValueError as e:
        raise ValueError(f"Could not parse statement date '{value}': {e}") from e


def month_bucket(value: date) -> str:
    """Return the YYYY-MM month a ledger entry dated ``value`` is filed under."""
    return value.isoformat()[:7]


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and a few
    relative forms: "today", "yesterday", "this month", "last month",
    "this year", "last year".

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Args:
        period: One of this-month, last-month, this-year, last-year

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return (today.replace(day=1), today)
    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)
    elif period == "this-year":
        return (today.replace(month=1, day=1), today)
    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        end_date = today.replace(month=1, day=1) - timedelta(days=1)
        return (start_date, end_date)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: "
        "this-month, last-month, this-year, last-year"
    )
