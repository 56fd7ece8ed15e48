"""CLI error handling helpers."""

import click

from ledgerkit.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    extra = getattr(error, "errors", None) or []
    if len(extra) > 1:
        for field_error in extra[1:]:
            click.echo(f"  {field_error.field}: {field_error.message}", err=True)
    ctx.exit(1)
