"""Sale commands."""

import click
from hisab.cli.account_resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_currency_or_exit,
)
from hisab.cli.error_handling import handle_domain_error
from hisab.domain.currency import CurrencyService
from hisab.domain.entities import AdditionalCostInput, SaleItemInput
from hisab.domain.errors import DomainError, StorageError
from hisab.domain.reference import ReferenceService
from hisab.domain.sale import SALE_SORT_KEYS, SaleService
from hisab.utils.account_resolver import resolve_named
from hisab.utils.amount_parser import parse_positive


@click.group()
def sale_group():
    """Record and inspect sales."""
    pass


def resolve_reference_or_exit(ctx, refs: ReferenceService, kind: str, value: str) -> int:
    """Resolve a customer, product or unit name or ID, or exit with a CLI error."""
    lookups = {
        "customer": (refs.get_customer, refs.list_customers, lambda c: c.full_name),
        "product": (refs.get_product, refs.list_products, lambda p: p.name),
        "unit": (refs.get_unit, refs.list_units, lambda u: u.name),
    }
    get_by_id, candidates, name_of = lookups[kind]
    try:
        return resolve_named(kind, value, get_by_id, candidates, name_of)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def _parse_item(ctx, raw: str, refs: ReferenceService) -> SaleItemInput:
    parts = [part.strip() for part in raw.split(":")]
    if len(parts) not in (3, 4) or not all(parts):
        click.echo(f"Error: Invalid --item '{raw}', expected PRODUCT:QTY:PRICE[:UNIT]", err=True)
        ctx.exit(1)
    try:
        quantity = parse_positive(parts[1], "Quantity")
        price = parse_positive(parts[2], "Price")
    except ValueError as e:
        click.echo(f"Error: Invalid --item '{raw}': {e}", err=True)
        ctx.exit(1)

    return SaleItemInput(
        product_id=resolve_reference_or_exit(ctx, refs, "product", parts[0]),
        per_price=price,
        amount=quantity,
        unit_id=resolve_reference_or_exit(ctx, refs, "unit", parts[3]) if len(parts) == 4 else None,
    )


def _parse_cost(ctx, raw: str) -> AdditionalCostInput:
    name, sep, amount = raw.rpartition(":")
    if not sep or not name.strip():
        click.echo(f"Error: Invalid --cost '{raw}', expected NAME:AMOUNT", err=True)
        ctx.exit(1)
    return AdditionalCostInput(name=name.strip(), amount=parse_amount_or_exit(ctx, amount, "cost amount"))


@sale_group.command("create")
@click.option("--customer", required=True, help="Customer name or ID")
@click.option("--item", "items", multiple=True, required=True, metavar="PRODUCT:QTY:PRICE[:UNIT]",
              help="Sold product (repeatable); unit defaults to the product's unit")
@click.option("--cost", "costs", multiple=True, metavar="NAME:AMOUNT",
              help="Additional cost such as freight (repeatable)")
@click.option("--currency", help="Sale currency (default: base currency)")
@click.option("--rate", help="Rate to the base currency (default: latest stored rate)")
@click.option("--date", "sale_date", help="Sale date (default: today)")
@click.option("--notes", help="Free-form notes")
@click.pass_context
def create_sale(ctx, customer, items, costs, currency, rate, sale_date, notes):
    """Record a sale.

    Examples:
        hisab sale create --customer "Ahmad" --item Rice:2:100 --cost Freight:50
        hisab sale create --customer 1 --item "Oil:3:12.5:Litre" --currency USD --rate 70
    """
    db = ctx.obj["db"]
    refs = ReferenceService(db)
    currencies = CurrencyService(db)

    customer_id = resolve_reference_or_exit(ctx, refs, "customer", customer)
    sale_items = [_parse_item(ctx, raw, refs) for raw in items]
    sale_costs = [_parse_cost(ctx, raw) for raw in costs]
    currency_id = resolve_currency_or_exit(ctx, currencies, currency)

    service = SaleService(db, currencies)
    try:
        sale = service.create_sale(
            customer_id=customer_id,
            sale_date=parse_date_or_exit(ctx, sale_date),
            currency_id=currency_id,
            items=sale_items,
            additional_costs=sale_costs,
            exchange_rate=parse_amount_or_exit(ctx, rate, "rate"),
            notes=notes,
        )
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created sale {sale.id}: total {sale.total_amount} (base {sale.base_amount})")


@sale_group.command("show")
@click.argument("sale_id", type=int)
@click.pass_context
def show_sale(ctx, sale_id: int):
    """Show a sale with its items, costs and payment status."""
    db = ctx.obj["db"]
    refs = ReferenceService(db)
    try:
        full = SaleService(db).get_sale(sale_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)

    sale = full.sale
    customer = refs.get_customer(sale.customer_id)
    currency = CurrencyService(db).get_currency(sale.currency_id)
    products = {p.id: p.name for p in refs.list_products()}
    units = {u.id: u.name for u in refs.list_units()}

    click.echo(f"\nSale {sale.id} | {sale.date} | {customer.full_name if customer else sale.customer_id}")
    click.echo(f"Currency: {currency.name if currency else sale.currency_id} @ {sale.exchange_rate}")
    click.echo("-" * 60)
    for item in full.items:
        click.echo(
            f"{products.get(item.product_id, item.product_id)!s:20s} | "
            f"{item.amount} {units.get(item.unit_id, '')} x {item.per_price} = {item.total}"
        )
    for cost in full.additional_costs:
        click.echo(f"{cost.name:20s} | {cost.amount}")
    click.echo("-" * 60)
    click.echo(f"Total:     {sale.total_amount} (base {sale.base_amount})")
    click.echo(f"Paid:      {sale.paid_amount}")
    click.echo(f"Remaining: {sale.remaining_amount}")


@sale_group.command("list")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--per-page", type=int, default=10, show_default=True)
@click.option("--search", help="Match customer name or notes")
@click.option("--sort-by", type=click.Choice(SALE_SORT_KEYS), default="date", show_default=True)
@click.option("--sort-order", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)
@click.pass_context
def list_sales(ctx, page, per_page, search, sort_by, sort_order):
    """List sales a page at a time."""
    db = ctx.obj["db"]
    try:
        result = SaleService(db).list_sales(
            page=page, per_page=per_page, search=search, sort_by=sort_by, sort_order=sort_order
        )
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)

    if not result.items:
        click.echo("No sales found.")
        return
    customers = {c.id: c.full_name for c in ReferenceService(db).list_customers()}
    for sale in result.items:
        click.echo(
            f"ID: {sale.id:4d} | {sale.date} | {customers.get(sale.customer_id, '?'):20s} | "
            f"total {sale.total_amount:>12} | paid {sale.paid_amount:>12}"
        )
    click.echo(f"Page {result.page} of {result.total_pages} ({result.total} sales)")


@sale_group.command("delete")
@click.argument("sale_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_sale(ctx, sale_id: int, yes: bool):
    """Delete a sale together with its payments."""
    if not yes and not click.confirm(f"Are you sure you want to delete sale {sale_id} and its payments?"):
        click.echo("Deletion cancelled.")
        return
    try:
        SaleService(ctx.obj["db"]).delete_sale(sale_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted sale {sale_id}")


def register_commands(cli):
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")
