"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = ("this-week", "this-month", "this-year", "last-week", "last-month", "last-year")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024", ...) and a few
    relative forms: "today", "yesterday", "tomorrow" and
    "last/this/next week|month|year", which resolve to the first day of that
    period.

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    prefix, _, period = date_str.partition(" ")
    if prefix in ("last", "this", "next") and period in ("week", "month", "year"):
        shift = {"last": -1, "this": 0, "next": 1}[prefix]
        return _period_start(today, period, shift)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def _period_start(today: date, period: str, shift: int) -> date:
    if period == "week":
        return today - timedelta(days=today.weekday()) + timedelta(weeks=shift)
    if period == "month":
        return today.replace(day=1) + relativedelta(months=shift)
    return today.replace(month=1, day=1) + relativedelta(years=shift)


def get_date_range(period: str) -> tuple[date, date]:
    """Get inclusive start and end dates for a named period.

    "this-*" periods end today; "last-*" periods cover the whole previous
    week, month or year.

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    if period not in PERIODS:
        raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")

    today = date.today()
    which, unit = period.split("-")
    if which == "this":
        return _period_start(today, unit, 0), today

    start = _period_start(today, unit, -1)
    return start, _period_start(today, unit, 0) - timedelta(days=1)
