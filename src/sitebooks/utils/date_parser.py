"""Date parsing utilities."""

from datetime import date, datetime
import re

from dateutil import parser as date_parser

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(date_str: str) -> date:
    """Parse a CSV date string into a date object.

    QuickBooks exports use M/D/YYYY; ISO dates are accepted as well. Other
    layouts are handed to dateutil, month first, so "02-13-2026" is
    February 13th while "13-02-2026" still resolves to the same day.

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not date_str.strip():
        raise ValueError("Empty date string")

    date_str = date_str.strip()
    if _ISO_DATE.match(date_str):
        try:
            return date.fromisoformat(date_str)
        except ValueError as e:
            raise ValueError(f"Could not parse date '{date_str}': {e}")

    try:
        dt = date_parser.parse(date_str, dayfirst=False)
        return dt.date()
    except (ValueError, OverflowError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def format_date(value: date | datetime | str) -> str:
    """Return the canonical ISO (YYYY-MM-DD) form used in composite keys."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return parse_date(value).isoformat()
