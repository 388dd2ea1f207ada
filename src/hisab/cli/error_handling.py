"""CLI error handling helpers."""

import logging

import click

from hisab.domain.errors import DomainError, StorageError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | StorageError) -> None:
    """Render a domain or storage error and exit with failure."""
    if isinstance(error, StorageError):
        logger.debug("Storage error", exc_info=error)
        click.echo(f"Error: storage failure: {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
