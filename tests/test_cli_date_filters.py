"""Tests for CLI date filter helper."""

from datetime import date

import click
import pytest

from hisab.cli.date_filters import resolve_cli_date_range
from hisab.utils.date_parser import get_date_range


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_rejects_multiple_periods(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(), start_date=None, end_date=None, periods=("this-month", "last-month")
        )

    assert excinfo.value.exit_code == 1
    assert "Only one period option" in capsys.readouterr().err


def test_rejects_period_with_start_date(capsys):
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_date_range(
            _ctx(), start_date="2024-01-01", end_date=None, periods=("this-month",)
        )

    assert "cannot be combined" in capsys.readouterr().err


def test_returns_period_range():
    start, end = resolve_cli_date_range(
        _ctx(), start_date=None, end_date=None, periods=("this-month",)
    )
    assert (start, end) == get_date_range("this-month")


def test_explicit_dates():
    start, end = resolve_cli_date_range(_ctx(), start_date="2024-01-01", end_date="2024-01-31")
    assert start == date(2024, 1, 1)
    assert end == date(2024, 1, 31)


def test_open_range():
    assert resolve_cli_date_range(_ctx(), start_date=None, end_date=None) == (None, None)


def test_rejects_reversed_range(capsys):
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_date_range(_ctx(), start_date="2024-02-01", end_date="2024-01-01")
    assert "must not be after" in capsys.readouterr().err
