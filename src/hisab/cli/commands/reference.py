"""Customer, product and unit commands."""

import click
from hisab.cli.commands.sale import resolve_reference_or_exit
from hisab.cli.error_handling import handle_domain_error
from hisab.domain.errors import DomainError, StorageError
from hisab.domain.reference import ReferenceService


@click.group()
def customer_group():
    """Manage customers."""
    pass


@customer_group.command("create")
@click.argument("full_name")
@click.option("--phone")
@click.option("--address")
@click.option("--notes")
@click.pass_context
def create_customer(ctx, full_name, phone, address, notes):
    """Create a customer."""
    try:
        customer = ReferenceService(ctx.obj["db"]).create_customer(
            full_name, phone=phone, address=address, notes=notes
        )
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created customer '{customer.full_name}' (ID: {customer.id})")


@customer_group.command("list")
@click.pass_context
def list_customers(ctx):
    """List customers."""
    customers = ReferenceService(ctx.obj["db"]).list_customers()
    if not customers:
        click.echo("No customers found.")
        return
    for customer in customers:
        click.echo(f"ID: {customer.id:3d} | {customer.full_name:25s} | {customer.phone or ''}")


@click.group()
def unit_group():
    """Manage units of measure."""
    pass


@unit_group.command("create")
@click.argument("name")
@click.pass_context
def create_unit(ctx, name):
    """Create a unit such as 'kg' or 'piece'."""
    try:
        unit = ReferenceService(ctx.obj["db"]).create_unit(name)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created unit '{unit.name}' (ID: {unit.id})")


@unit_group.command("list")
@click.pass_context
def list_units(ctx):
    """List units."""
    units = ReferenceService(ctx.obj["db"]).list_units()
    if not units:
        click.echo("No units found.")
        return
    for unit in units:
        click.echo(f"ID: {unit.id:3d} | {unit.name}")


@click.group()
def product_group():
    """Manage products."""
    pass


@product_group.command("create")
@click.argument("name")
@click.option("--unit", help="Unit the product is normally sold in (name or ID)")
@click.pass_context
def create_product(ctx, name, unit):
    """Create a product."""
    refs = ReferenceService(ctx.obj["db"])
    unit_id = resolve_reference_or_exit(ctx, refs, "unit", unit) if unit else None
    try:
        product = refs.create_product(name, default_unit_id=unit_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created product '{product.name}' (ID: {product.id})")


@product_group.command("list")
@click.pass_context
def list_products(ctx):
    """List products with their default unit."""
    refs = ReferenceService(ctx.obj["db"])
    products = refs.list_products()
    if not products:
        click.echo("No products found.")
        return
    units = {u.id: u.name for u in refs.list_units()}
    for product in products:
        click.echo(f"ID: {product.id:3d} | {product.name:25s} | {units.get(product.default_unit_id, '')}")


def register_commands(cli):
    """Register customer, unit and product commands with main CLI."""
    cli.add_command(customer_group, name="customer")
    cli.add_command(unit_group, name="unit")
    cli.add_command(product_group, name="product")
