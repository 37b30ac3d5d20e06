"""Date parsing utilities."""

from datetime import UTC, date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from ledgercheck.domain.errors import ValidationError


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-31", "January 2024") and a few
    relative forms used for reporting periods: "today", "yesterday",
    "this month", "last month", "this year", "last year".

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValidationError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    if text in relative_dates:
        return relative_dates[text]

    try:
        # Missing day defaults to the 1st so "2024-03" is the period start
        return date_parser.parse(text, default=datetime(today.year, 1, 1)).date()
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Could not parse date '{date_str}'") from e


def parse_effective_from(date_str: str | None) -> datetime:
    """Parse the effective-from timestamp of a classification rule.

    None or "now" mean the current UTC time; plain dates start at midnight UTC.
    """
    if date_str is None or date_str.strip().lower() == "now":
        return datetime.now(UTC)
    parsed = parse_date(date_str)
    return datetime(parsed.year, parsed.month, parsed.day, tzinfo=UTC)
