"""Account management commands."""

import click
from hisab.cli.account_resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_currency_or_exit,
)
from hisab.cli.date_filters import period_options, resolve_cli_date_range
from hisab.cli.error_handling import handle_domain_error
from hisab.domain.account import AccountService
from hisab.domain.currency import CurrencyService
from hisab.domain.errors import DomainError, StorageError
from hisab.domain.money import ZERO


@click.group()
def account_group():
    """Manage monetary accounts."""
    pass


def _currency_names(db) -> dict[int, str]:
    return {cur.id: cur.name for cur in CurrencyService(db).get_currencies()}


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--currency", help="Currency of the initial balance (default: base currency)")
@click.option("--initial-balance", default=None, help="Opening balance")
@click.option("--notes", help="Free-form notes")
@click.pass_context
def create_account(ctx, name: str, currency: str | None, initial_balance: str | None, notes: str | None):
    """Create a new account.

    Examples:
        hisab account create "Cash"
        hisab account create "Dollar Safe" --currency USD --initial-balance 500
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    currency_id = (
        resolve_currency_or_exit(ctx, CurrencyService(db), currency) if currency else None
    )
    balance = parse_amount_or_exit(ctx, initial_balance, "initial balance")

    try:
        account = service.create_account(
            name=name,
            currency_id=currency_id,
            initial_balance=balance if balance is not None else ZERO,
            notes=notes,
        )
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{account.name}' (ID: {account.id})")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts with their balance in their own currency."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts()
    if not accounts:
        click.echo("No accounts found.")
        return

    names = _currency_names(db)
    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        try:
            balance = service.balance(acc.id)
        except DomainError:
            # No base currency yet, so an account without a currency has no balance
            balance = acc.initial_balance
        currency = names.get(acc.currency_id, "base")
        click.echo(f"ID: {acc.id:3d} | {acc.name:20s} | {balance:>14} {currency}")


@account_group.command("balance")
@click.argument("account", metavar="ACCOUNT")
@click.option("--currency", help="Only this currency (default: every currency used)")
@click.option("--as-of", help="Only count transactions up to this date")
@click.pass_context
def show_balance(ctx, account: str, currency: str | None, as_of: str | None):
    """Show the derived balance of ACCOUNT (name or ID)."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    names = _currency_names(db)

    try:
        if currency or as_of:
            currency_id = service.require_account(account_id).currency_id
            if currency or currency_id is None:
                currency_id = resolve_currency_or_exit(ctx, CurrencyService(db), currency)
            on = parse_date_or_exit(ctx, as_of) if as_of else None
            balances = {
                currency_id: service.balance(account_id, currency_id=currency_id, as_of_date=on)
            }
        else:
            balances = service.get_balances(account_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)

    for currency_id, value in balances.items():
        click.echo(f"{value} {names.get(currency_id, 'base')}")


def _post(ctx, kind: str, account: str, amount: str | None, currency: str | None,
          rate: str | None, txn_date: str | None, full: bool, notes: str | None):
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    currency_id = resolve_currency_or_exit(ctx, CurrencyService(db), currency)

    if amount is None and not full:
        click.echo("Error: AMOUNT is required unless --full is given.", err=True)
        ctx.exit(1)

    post = service.deposit if kind == "deposit" else service.withdraw
    try:
        txn = post(
            account_id,
            parse_amount_or_exit(ctx, amount),
            currency_id,
            parse_amount_or_exit(ctx, rate, "rate"),
            parse_date_or_exit(ctx, txn_date),
            is_full=full,
            notes=notes,
        )
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded {kind} of {txn.amount} x {txn.rate} = {txn.total} (ID: {txn.id})")


@account_group.command("deposit")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount", required=False)
@click.option("--currency", help="Currency of the deposit (default: base currency)")
@click.option("--rate", help="Rate applied to the amount (default: latest stored rate, 1 for the base currency)")
@click.option("--date", "txn_date", help="Transaction date (default: today)")
@click.option("--full", is_flag=True, help="Deposit whatever closes a negative balance")
@click.option("--notes", help="Free-form notes")
@click.pass_context
def deposit(ctx, account, amount, currency, rate, txn_date, full, notes):
    """Deposit AMOUNT into ACCOUNT.

    Examples:
        hisab account deposit Cash 100
        hisab account deposit "Dollar Safe" 50 --currency USD --rate 70
    """
    _post(ctx, "deposit", account, amount, currency, rate, txn_date, full, notes)


@account_group.command("withdraw")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount", required=False)
@click.option("--currency", help="Currency of the withdrawal (default: base currency)")
@click.option("--rate", help="Rate applied to the amount (default: latest stored rate, 1 for the base currency)")
@click.option("--date", "txn_date", help="Transaction date (default: today)")
@click.option("--full", is_flag=True, help="Withdraw the whole balance")
@click.option("--notes", help="Free-form notes")
@click.pass_context
def withdraw(ctx, account, amount, currency, rate, txn_date, full, notes):
    """Withdraw AMOUNT from ACCOUNT."""
    _post(ctx, "withdraw", account, amount, currency, rate, txn_date, full, notes)


@account_group.command("transactions")
@click.argument("account", metavar="ACCOUNT")
@click.option("--currency", help="Only transactions in this currency")
@period_options
@click.pass_context
def list_transactions(ctx, account, currency, start_date, end_date, periods):
    """List deposits and withdrawals of ACCOUNT, oldest first."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    currency_id = resolve_currency_or_exit(ctx, CurrencyService(db), currency) if currency else None
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, periods=periods
    )

    transactions = service.get_account_transactions(
        account_id, currency_id=currency_id, start_date=start, end_date=end
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    names = _currency_names(db)
    for txn in transactions:
        source = f" | payment {txn.sale_payment_id}" if txn.sale_payment_id else ""
        click.echo(
            f"ID: {txn.id:4d} | {txn.date} | {txn.type:8s} | {txn.total:>14} "
            f"{names.get(txn.currency_id, '?')}{source}"
        )


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID. Accounts that journal lines or
    sale payments point at cannot be deleted.
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.require_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
