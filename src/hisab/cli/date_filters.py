"""CLI helpers for date range resolution."""

import functools
from datetime import date

import click

from hisab.utils.date_parser import PERIODS, get_date_range, parse_date


def period_options(command):
    """Attach --start-date, --end-date and one flag per named period to a command.

    The wrapped command receives the chosen period flags as ``periods``.
    """

    @functools.wraps(command)
    def wrapper(*args, **kwargs):
        kwargs["periods"] = tuple(
            period for period in PERIODS if kwargs.pop(period.replace("-", "_"), False)
        )
        return command(*args, **kwargs)

    for period in reversed(PERIODS):
        wrapper = click.option(
            f"--{period}", is_flag=True, help=f"Only include {period.replace('-', ' ')}"
        )(wrapper)
    wrapper = click.option("--end-date", help="Inclusive end date")(wrapper)
    wrapper = click.option("--start-date", help="Inclusive start date")(wrapper)
    return wrapper


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    periods: tuple[str, ...] = (),
) -> tuple[date | None, date | None]:
    """Resolve a date range from one period flag or explicit start/end dates."""
    if len(periods) > 1:
        click.echo(
            f"Error: Only one period option ({', '.join('--' + p for p in PERIODS)}) "
            "can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if periods and (start_date or end_date):
        click.echo(
            "Error: Period options cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if periods:
        return get_date_range(periods[0])

    start = end = None
    try:
        if start_date:
            start = parse_date(start_date)
        if end_date:
            end = parse_date(end_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date range: {e}", err=True)
        ctx.exit(1)

    if start and end and start > end:
        click.echo("Error: --start-date must not be after --end-date.", err=True)
        ctx.exit(1)
    return start, end
