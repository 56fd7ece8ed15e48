"""CLI helpers for date range resolution."""

from datetime import datetime

import click

from ledgerkit.utils.date_parser import end_of_day, parse_date, start_of_day


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
) -> tuple[datetime | None, datetime | None]:
    """Turn --start-date/--end-date into an inclusive UTC datetime range."""
    start = None
    end = None

    if start_date:
        try:
            start = start_of_day(parse_date(start_date))
        except ValueError as e:
            click.echo(f"Error: Invalid start date: {e}", err=True)
            ctx.exit(1)

    if end_date:
        try:
            end = end_of_day(parse_date(end_date))
        except ValueError as e:
            click.echo(f"Error: Invalid end date: {e}", err=True)
            ctx.exit(1)

    return start, end
