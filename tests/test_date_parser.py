"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from hisab.utils.date_parser import parse_date, get_date_range


def test_parse_absolute_date():
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_long_form():
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


@pytest.mark.parametrize(
    "text,offset", [("today", 0), ("yesterday", -1), ("tomorrow", 1), ("  Today ", 0)]
)
def test_parse_relative_days(text, offset):
    assert parse_date(text) == date.today() + timedelta(days=offset)


def test_parse_this_and_last_month():
    today = date.today()
    assert parse_date("this month") == today.replace(day=1)
    assert parse_date("last month") == (today - relativedelta(months=1)).replace(day=1)


def test_parse_week_starts_monday():
    monday = date.today() - timedelta(days=date.today().weekday())
    assert parse_date("this week") == monday
    assert parse_date("next week") == monday + timedelta(weeks=1)


def test_parse_next_year():
    assert parse_date("next year") == date(date.today().year + 1, 1, 1)


def test_parse_invalid():
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date")


def test_this_month_range_ends_today():
    start, end = get_date_range("this-month")
    assert start == date.today().replace(day=1)
    assert end == date.today()


def test_last_month_range_covers_whole_month():
    start, end = get_date_range("last-month")
    first_of_this_month = date.today().replace(day=1)
    assert start == (first_of_this_month - relativedelta(months=1))
    assert end == first_of_this_month - timedelta(days=1)


def test_last_week_range_is_seven_days():
    start, end = get_date_range("last-week")
    assert start.weekday() == 0
    assert end - start == timedelta(days=6)


def test_last_year_range():
    start, end = get_date_range("last-year")
    year = date.today().year - 1
    assert (start, end) == (date(year, 1, 1), date(year, 12, 31))


def test_unknown_period():
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("next-decade")
