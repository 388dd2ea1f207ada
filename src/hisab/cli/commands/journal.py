"""Journal entry commands."""

import click
from hisab.cli.account_resolution import (
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_currency_or_exit,
)
from hisab.cli.error_handling import handle_domain_error
from hisab.domain.account import AccountService
from hisab.domain.currency import CurrencyService
from hisab.domain.entities import JournalLineInput
from hisab.domain.errors import DomainError, StorageError
from hisab.domain.ledger import LedgerService
from hisab.utils.amount_parser import parse_amount


@click.group()
def journal_group():
    """Post and inspect journal entries."""
    pass


def _parse_line(ctx, raw: str, side: str, accounts: AccountService, currencies: CurrencyService):
    """Turn ACCOUNT:AMOUNT[:CURRENCY] into a draft line on the given side."""
    parts = raw.split(":")
    if len(parts) not in (2, 3) or not all(part.strip() for part in parts):
        click.echo(f"Error: Invalid --{side} '{raw}', expected ACCOUNT:AMOUNT[:CURRENCY]", err=True)
        ctx.exit(1)

    account_id = resolve_account_or_exit(ctx, accounts, parts[0].strip())
    currency_id = resolve_currency_or_exit(ctx, currencies, parts[2].strip() if len(parts) == 3 else None)
    try:
        amount = parse_amount(parts[1])
    except ValueError as e:
        click.echo(f"Error: Invalid --{side} '{raw}': {e}", err=True)
        ctx.exit(1)

    if side == "debit":
        return JournalLineInput(account_id=account_id, currency_id=currency_id, debit_amount=amount)
    return JournalLineInput(account_id=account_id, currency_id=currency_id, credit_amount=amount)


def _print_entry(db, entry, lines) -> None:
    accounts = {acc.id: acc.name for acc in AccountService(db).list_accounts()}
    currencies = {cur.id: cur.name for cur in CurrencyService(db).get_currencies()}

    click.echo(f"\n{entry.entry_number} | {entry.entry_date} | {entry.description or ''}")
    if entry.reference_id is not None:
        click.echo(f"Reference: {entry.reference_type} {entry.reference_id}")
    click.echo("-" * 78)
    for line in lines:
        click.echo(
            f"{accounts.get(line.account_id, line.account_id)!s:20s} | "
            f"Dr {line.debit_amount:>12} | Cr {line.credit_amount:>12} | "
            f"{currencies.get(line.currency_id, '?'):5s} @ {line.exchange_rate} = {line.base_amount}"
        )


@journal_group.command("create")
@click.option("--debit", "debits", multiple=True, metavar="ACCOUNT:AMOUNT[:CURRENCY]",
              help="Debit line (repeatable)")
@click.option("--credit", "credits", multiple=True, metavar="ACCOUNT:AMOUNT[:CURRENCY]",
              help="Credit line (repeatable)")
@click.option("--date", "entry_date", help="Entry date (default: today)")
@click.option("--description", help="Entry description")
@click.pass_context
def create_entry(ctx, debits, credits, entry_date, description):
    """Post a balanced journal entry.

    Lines without a currency are in the base currency. Total debits must
    equal total credits.

    Examples:
        hisab journal create --debit Cash:100 --credit Sales:100
        hisab journal create --debit "Dollar Safe:10:USD" --credit Sales:10:USD
    """
    db = ctx.obj["db"]
    accounts = AccountService(db)
    currencies = CurrencyService(db)

    lines = [_parse_line(ctx, raw, "debit", accounts, currencies) for raw in debits]
    lines += [_parse_line(ctx, raw, "credit", accounts, currencies) for raw in credits]
    on = parse_date_or_exit(ctx, entry_date)

    service = LedgerService(db, currencies)
    try:
        entry = service.create_entry(entry_date=on, lines=lines, description=description)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Posted {entry.entry_number} (ID: {entry.id})")


@journal_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show a journal entry with its lines."""
    db = ctx.obj["db"]
    try:
        entry, lines = LedgerService(db).get_entry(entry_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    _print_entry(db, entry, lines)


@journal_group.command("list")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--per-page", type=int, default=10, show_default=True)
@click.pass_context
def list_entries(ctx, page: int, per_page: int):
    """List journal entries, newest first."""
    try:
        result = LedgerService(ctx.obj["db"]).list_entries(page=page, per_page=per_page)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)

    if not result.items:
        click.echo("No journal entries found.")
        return
    for entry in result.items:
        click.echo(
            f"ID: {entry.id:4d} | {entry.entry_number} | {entry.entry_date} | "
            f"{entry.reference_type:8s} | {entry.description or ''}"
        )
    click.echo(f"Page {result.page} of {result.total_pages} ({result.total} entries)")


@journal_group.command("reverse")
@click.argument("entry_id", type=int)
@click.option("--date", "entry_date", help="Date of the reversing entry (default: today)")
@click.pass_context
def reverse_entry(ctx, entry_id: int, entry_date: str | None):
    """Cancel an entry by posting its mirror image."""
    on = parse_date_or_exit(ctx, entry_date)
    try:
        reversal = LedgerService(ctx.obj["db"]).reverse_entry(entry_id, entry_date=on)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Posted reversal {reversal.entry_number} (ID: {reversal.id})")


@journal_group.command("post-sale")
@click.argument("sale_id", type=int)
@click.option("--receivable", required=True, help="Account debited with the sale total")
@click.option("--revenue", required=True, help="Account credited with the sale total")
@click.option("--description", help="Entry description (default: 'Sale N')")
@click.pass_context
def post_sale(ctx, sale_id: int, receivable: str, revenue: str, description: str | None):
    """Post the revenue entry for a sale."""
    db = ctx.obj["db"]
    accounts = AccountService(db)
    receivable_id = resolve_account_or_exit(ctx, accounts, receivable)
    revenue_id = resolve_account_or_exit(ctx, accounts, revenue)
    try:
        entry = LedgerService(db).post_sale_entry(
            sale_id, receivable_id, revenue_id, description=description
        )
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Posted {entry.entry_number} for sale {sale_id}")


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(journal_group, name="journal")
