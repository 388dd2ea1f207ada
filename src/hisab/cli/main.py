"""Main CLI entry point."""

import click
from hisab.cli.logging_setup import LOG_LEVELS, configure_logging
from hisab.database.factories import DB_PATH_ENV, create_sqlite_database

# Import and register all commands at module level
from hisab.cli.commands import (
    account,
    currency,
    journal,
    payment,
    reference,
    sale,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="HISAB_LOG_LEVEL",
    help="Logging verbosity (also read from HISAB_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Hisab - double-entry ledger and sale settlement.

    Keep multi-currency accounts, post balanced journal entries, record
    sales and track the payments made against them.
    """
    configure_logging(log_level)
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
currency.register_commands(cli)
account.register_commands(cli)
journal.register_commands(cli)
sale.register_commands(cli)
payment.register_commands(cli)
reference.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
