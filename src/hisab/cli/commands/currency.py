"""Currency and exchange-rate commands."""

import click
from hisab.cli.account_resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_currency_or_exit,
)
from hisab.cli.error_handling import handle_domain_error
from hisab.domain.currency import CurrencyService
from hisab.domain.errors import DomainError, StorageError


@click.group()
def currency_group():
    """Manage currencies and exchange rates."""
    pass


@currency_group.command("create")
@click.argument("name", metavar="CURRENCY_NAME")
@click.option("--base", "is_base", is_flag=True, help="Make this the base currency")
@click.pass_context
def create_currency(ctx, name: str, is_base: bool):
    """Create a new currency.

    The first currency created always becomes the base currency.

    Examples:
        hisab currency create AFN --base
        hisab currency create USD
    """
    service = CurrencyService(ctx.obj["db"])
    try:
        currency = service.create_currency(name=name, is_base=is_base)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created currency '{currency.name}' (ID: {currency.id})")
    if currency.is_base:
        click.echo(f"'{currency.name}' is the base currency")


@currency_group.command("list")
@click.pass_context
def list_currencies(ctx):
    """List all currencies, base currency first."""
    service = CurrencyService(ctx.obj["db"])
    currencies = service.get_currencies()
    if not currencies:
        click.echo("No currencies found.")
        return

    click.echo("\nCurrencies:")
    click.echo("-" * 40)
    for cur in currencies:
        marker = " (base)" if cur.is_base else ""
        click.echo(f"ID: {cur.id:3d} | {cur.name}{marker}")


@currency_group.command("set-base")
@click.argument("currency", metavar="CURRENCY")
@click.pass_context
def set_base(ctx, currency: str):
    """Make CURRENCY (name or ID) the base currency.

    Amounts already converted keep the base values they were posted with.
    """
    service = CurrencyService(ctx.obj["db"])
    currency_id = resolve_currency_or_exit(ctx, service, currency)
    try:
        updated = service.set_base_currency(currency_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Base currency is now '{updated.name}'")


@currency_group.command("delete")
@click.argument("currency", metavar="CURRENCY")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_currency(ctx, currency: str, yes: bool):
    """Delete a currency nothing references."""
    service = CurrencyService(ctx.obj["db"])
    currency_id = resolve_currency_or_exit(ctx, service, currency)
    currency_obj = service.require_currency(currency_id)

    if not yes and not click.confirm(f"Are you sure you want to delete currency '{currency_obj.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_currency(currency_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted currency '{currency_obj.name}'")


@currency_group.command("rate-add")
@click.argument("from_currency", metavar="FROM")
@click.argument("to_currency", metavar="TO")
@click.argument("rate", metavar="RATE")
@click.option("--date", "rate_date", help="Date the rate applies from (default: today)")
@click.pass_context
def add_rate(ctx, from_currency: str, to_currency: str, rate: str, rate_date: str | None):
    """Record that 1 FROM equals RATE TO.

    Examples:
        hisab currency rate-add USD AFN 70.5 --date 2024-01-01
    """
    service = CurrencyService(ctx.obj["db"])
    from_id = resolve_currency_or_exit(ctx, service, from_currency)
    to_id = resolve_currency_or_exit(ctx, service, to_currency)
    value = parse_amount_or_exit(ctx, rate, "rate")
    on = parse_date_or_exit(ctx, rate_date)

    try:
        recorded = service.add_exchange_rate(from_id, to_id, value, on)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded rate 1 {from_currency} = {recorded.rate} {to_currency} on {recorded.date}")


@currency_group.command("rate-list")
@click.option("--from", "from_currency", help="Only rates from this currency")
@click.option("--to", "to_currency", help="Only rates to this currency")
@click.pass_context
def list_rates(ctx, from_currency: str | None, to_currency: str | None):
    """List recorded exchange rates, newest first."""
    service = CurrencyService(ctx.obj["db"])
    from_id = resolve_currency_or_exit(ctx, service, from_currency) if from_currency else None
    to_id = resolve_currency_or_exit(ctx, service, to_currency) if to_currency else None

    rates = service.list_exchange_rates(from_id, to_id)
    if not rates:
        click.echo("No exchange rates found.")
        return

    names = {cur.id: cur.name for cur in service.get_currencies()}
    click.echo("\nExchange rates:")
    click.echo("-" * 50)
    for rate in rates:
        click.echo(
            f"{rate.date} | 1 {names.get(rate.from_currency_id, '?')} = "
            f"{rate.rate} {names.get(rate.to_currency_id, '?')}"
        )


@currency_group.command("rate")
@click.argument("from_currency", metavar="FROM")
@click.argument("to_currency", metavar="TO", required=False)
@click.option("--date", "as_of", help="Resolve the rate as of this date (default: today)")
@click.pass_context
def show_rate(ctx, from_currency: str, to_currency: str | None, as_of: str | None):
    """Show the rate converting FROM into TO (default: the base currency)."""
    service = CurrencyService(ctx.obj["db"])
    from_id = resolve_currency_or_exit(ctx, service, from_currency)
    to_id = resolve_currency_or_exit(ctx, service, to_currency)
    on = parse_date_or_exit(ctx, as_of)

    try:
        rate = service.get_exchange_rate(from_id, to_id, on)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    to_name = service.require_currency(to_id).name
    click.echo(f"1 {service.require_currency(from_id).name} = {rate} {to_name} (as of {on})")


def register_commands(cli):
    """Register currency commands with main CLI."""
    cli.add_command(currency_group, name="currency")
