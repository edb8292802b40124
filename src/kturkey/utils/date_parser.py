"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "15.01.2024", "January 15, 2024"
    - Relative dates: "today", "yesterday", "this month", "last month"

    Dotted and slashed numeric dates are read day first, as they are
    written in Turkey.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    # ISO dates are year first; everything else is read day first
    dayfirst = not (len(date_str) >= 4 and date_str[:4].isdigit())
    try:
        return date_parser.parse(date_str, dayfirst=dayfirst).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_bounds(month: str) -> tuple[date, date]:
    """Return the first and last day of a ``YYYY-MM`` month.

    Raises:
        ValueError: If the month string is not ``YYYY-MM``
    """
    try:
        year_str, month_str = month.strip().split("-")
        start = date(int(year_str), int(month_str), 1)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse month '{month}': expected YYYY-MM ({e})")
    end = start + relativedelta(months=1) - timedelta(days=1)
    return start, end
