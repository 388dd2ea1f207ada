"""Sale payment commands."""

import click
from hisab.cli.account_resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_currency_or_exit,
)
from hisab.cli.error_handling import handle_domain_error
from hisab.domain.account import AccountService
from hisab.domain.currency import CurrencyService
from hisab.domain.errors import DomainError, StorageError
from hisab.domain.settlement import SettlementService


@click.group()
def payment_group():
    """Record payments against sales."""
    pass


@payment_group.command("add")
@click.argument("sale_id", type=int)
@click.argument("amount")
@click.option("--account", help="Account receiving the money")
@click.option("--currency", help="Payment currency (default: base currency)")
@click.option("--rate", help="Rate to the base currency (default: latest stored rate)")
@click.option("--date", "payment_date", help="Payment date (default: today)")
@click.pass_context
def add_payment(ctx, sale_id, amount, account, currency, rate, payment_date):
    """Record AMOUNT paid against SALE_ID.

    With --account the money is also deposited into that account.

    Examples:
        hisab payment add 1 100 --account Cash
    """
    db = ctx.obj["db"]
    currencies = CurrencyService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None
    currency_id = resolve_currency_or_exit(ctx, currencies, currency)

    service = SettlementService(db, currencies)
    try:
        payment = service.add_payment(
            sale_id=sale_id,
            amount=parse_amount_or_exit(ctx, amount),
            currency_id=currency_id,
            payment_date=parse_date_or_exit(ctx, payment_date),
            account_id=account_id,
            exchange_rate=parse_amount_or_exit(ctx, rate, "rate"),
        )
        remaining = service.remaining(sale_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded payment {payment.id} of {payment.amount} on sale {sale_id}")
    click.echo(f"Remaining: {remaining}")


@payment_group.command("list")
@click.argument("sale_id", type=int)
@click.pass_context
def list_payments(ctx, sale_id: int):
    """List payments made against SALE_ID, oldest first."""
    db = ctx.obj["db"]
    try:
        payments = SettlementService(db).list_payments(sale_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)

    if not payments:
        click.echo("No payments found.")
        return
    accounts = {acc.id: acc.name for acc in AccountService(db).list_accounts()}
    for payment in payments:
        into = accounts.get(payment.account_id, "-")
        click.echo(
            f"ID: {payment.id:4d} | {payment.date} | {payment.amount:>12} "
            f"@ {payment.exchange_rate} = {payment.base_amount} | {into}"
        )


@payment_group.command("delete")
@click.argument("payment_id", type=int)
@click.pass_context
def delete_payment(ctx, payment_id: int):
    """Delete a payment and undo its account deposit."""
    try:
        SettlementService(ctx.obj["db"]).delete_payment(payment_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted payment {payment_id}")


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")
